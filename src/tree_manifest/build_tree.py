"""
TreeBuilder - scans one or more configured roots into node trees.

A single root yields a single node; a list of roots yields a list of nodes
in the same order. Scanning is delegated to a scanner callable (the default
is :func:`tree_manifest.components.scanner.scan_directory`) which receives
the scan options verbatim.

Usage (library):
    from tree_manifest.build_tree import build_tree
    tree = build_tree(["docs", "src"], {"extensions": r"\\.md$"})
"""

import logging
import os
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Optional

from tree_manifest.components.node import DirectoryNode, FileNode, Tree, iter_nodes
from tree_manifest.components.scanner import scan_directory

logger = logging.getLogger(__name__)

Scanner = Callable[[str, Mapping[str, Any]], FileNode | DirectoryNode]


def build_tree(
    dir: str | Sequence[str],
    scan_options: Optional[Mapping[str, Any]] = None,
    scanner: Scanner = scan_directory,
) -> Tree:
    """Scan *dir* and return the tree (or list of trees for several roots).

    Scanner failures are not caught: a :class:`~tree_manifest.errors.ScanError`
    for any root aborts the whole build.
    """
    options = dict(scan_options or {})
    if isinstance(dir, str):
        logger.debug("Scanning %s", dir)
        return scanner(dir, options)

    forest = []
    for root in dir:
        logger.debug("Scanning %s", root)
        forest.append(scanner(root, dict(options)))
    return forest


def prune_tree(tree: Tree, excluded: Sequence[str], cwd: str) -> Tree:
    """Drop every node below a root that is, or lies inside, a path in *excluded*.

    Paths are compared after resolving against *cwd*. Roots themselves are
    kept. The tree is modified in place and returned.
    """
    hidden = [os.path.normpath(os.path.join(cwd, p)) for p in excluded]

    def _is_hidden(path: str) -> bool:
        absolute = os.path.normpath(os.path.join(cwd, path))
        return any(absolute == h or absolute.startswith(h + os.sep) for h in hidden)

    for node in iter_nodes(tree):
        if isinstance(node, DirectoryNode):
            kept = [child for child in node.children if not _is_hidden(child.path)]
            if len(kept) != len(node.children):
                logger.debug("Pruned %d entries from %s", len(node.children) - len(kept), node.path)
                node.children = kept
    return tree
