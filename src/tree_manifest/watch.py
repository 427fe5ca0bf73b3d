from __future__ import annotations

from typing import Optional

from tree_manifest.components.fs import FileSystem
from tree_manifest.components.node import NodeKind, Tree, iter_nodes
from tree_manifest.manifest import load_manifest


def extract_watch_paths(tree: Tree) -> list[str]:
    """Return the path of every file node, depth-first, roots in order.

    Duplicate paths are kept.
    """
    return [node.path for node in iter_nodes(tree) if node.kind == NodeKind.FILE]


def load_watch_paths(path: str, fs: Optional[FileSystem] = None) -> list[str]:
    """Extract watch paths from the manifest written at *path*."""
    tree = load_manifest(path, fs)
    if tree is None:
        return []
    return extract_watch_paths(tree)
