import logging
import os
import re
from collections.abc import Mapping
from typing import Any, Optional

from tree_manifest.components.node import DirectoryNode, FileNode
from tree_manifest.errors import ScanError

logger = logging.getLogger(__name__)


def _compile_patterns(value: Any) -> list[re.Pattern[str]]:
    if value is None:
        return []
    if isinstance(value, (str, re.Pattern)):
        value = [value]
    return [re.compile(pattern) for pattern in value]


def _extension_matcher(value: Any):
    """Return a predicate over file names built from the ``extensions`` option."""
    if value is None:
        return lambda name: True
    if isinstance(value, (str, re.Pattern)):
        pattern = re.compile(value)
        return lambda name: pattern.search(name) is not None
    suffixes = {s.lower() for s in value}
    return lambda name: os.path.splitext(name)[1].lower() in suffixes


def scan_directory(
    root: str, options: Optional[Mapping[str, Any]] = None
) -> FileNode | DirectoryNode:
    """
    Recursively scan *root* and return it as a tree of nodes.

    Node paths are *root* joined with each entry name, so a relative root
    yields relative paths. Children are sorted by name. Symlinks below the
    root are skipped.

    Args:
        root:    Path to the directory (or single file) to scan.
        options: Scan options. Recognised keys are ``exclude`` (regex or
                 list of regexes matched against node paths), ``extensions``
                 (regex matched against file names, or a list of suffixes)
                 and ``depth`` (maximum depth below the root). Other keys
                 are ignored.

    Returns:
        The root node.

    Raises:
        ScanError: If *root* is missing, unreadable or excluded.
    """
    options = options or {}
    exclude = _compile_patterns(options.get("exclude"))
    wanted = _extension_matcher(options.get("extensions"))
    max_depth: Optional[int] = options.get("depth")

    if not os.path.exists(root):
        raise ScanError(root, "path does not exist")

    def _walk(current_path: str, depth: int) -> FileNode | DirectoryNode | None:
        if any(pattern.search(current_path) for pattern in exclude):
            return None
        if depth > 0 and os.path.islink(current_path):
            return None

        if os.path.isfile(current_path):
            if not wanted(os.path.basename(current_path)):
                return None
            return FileNode(path=current_path)

        if not os.path.isdir(current_path):
            return None

        node = DirectoryNode(path=current_path)
        if max_depth is not None and depth >= max_depth:
            return node

        try:
            entries = sorted(os.listdir(current_path))
        except PermissionError as e:
            if depth == 0:
                raise ScanError(current_path, "permission denied") from e
            logger.warning("scan_directory: cannot list %s: %s", current_path, e)
            return node

        for entry in entries:
            child = _walk(os.path.join(current_path, entry), depth + 1)
            if child is not None:
                node.children.append(child)
        return node

    tree = _walk(root, 0)
    if tree is None:
        raise ScanError(root, "root is excluded by the scan options")
    return tree
