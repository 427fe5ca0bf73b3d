from tree_manifest.components.fs import FileSystem, LocalFileSystem
from tree_manifest.components.node import (
    DirectoryNode,
    FileNode,
    NodeKind,
    Tree,
    TreeNode,
    dump_tree,
    iter_nodes,
    parse_tree,
)
from tree_manifest.components.scanner import scan_directory

__all__ = [
    "DirectoryNode",
    "FileNode",
    "FileSystem",
    "LocalFileSystem",
    "NodeKind",
    "Tree",
    "TreeNode",
    "dump_tree",
    "iter_nodes",
    "parse_tree",
    "scan_directory",
]
