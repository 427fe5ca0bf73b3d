import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable

from tree_manifest.components.node import DirectoryNode, FileNode, Tree, roots_of
from tree_manifest.errors import EnhancementError

logger = logging.getLogger(__name__)

Enhancer = Callable[[FileNode | DirectoryNode, Mapping[str, Any]], None]


def merge_options(
    top_level: Mapping[str, Any], scan_options: Mapping[str, Any]
) -> Mapping[str, Any]:
    """Return a read-only union of both option bags; *top_level* wins on collision."""
    merged = dict(scan_options)
    merged.update(top_level)
    return MappingProxyType(merged)


def _check_shape(node: FileNode | DirectoryNode) -> None:
    if isinstance(node, DirectoryNode):
        if not isinstance(node.children, list):
            raise EnhancementError(node.path, "directory children must stay a list")
    elif node.model_extra and "children" in node.model_extra:
        raise EnhancementError(node.path, "file nodes cannot carry children")


def enhance_tree(
    tree: Tree,
    enhance: Enhancer,
    top_level: Mapping[str, Any],
    scan_options: Mapping[str, Any],
) -> Tree:
    """Apply *enhance* to every node in place, parents before children.

    Each call receives the node and a freshly merged, read-only view of the
    options. The children of a directory are read only after the directory
    itself has been enhanced. The same *tree* object is returned.
    """
    stack = list(reversed(roots_of(tree)))
    count = 0
    while stack:
        node = stack.pop()
        try:
            enhance(node, merge_options(top_level, scan_options))
        except EnhancementError:
            raise
        except Exception as e:
            raise EnhancementError(node.path, str(e)) from e
        _check_shape(node)
        count += 1
        if isinstance(node, DirectoryNode):
            stack.extend(reversed(node.children))

    logger.debug("Enhanced %d nodes", count)
    return tree
