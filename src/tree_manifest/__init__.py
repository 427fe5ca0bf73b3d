"""Directory tree manifest generation with change-gated writes and file mirroring."""

from tree_manifest.build_tree import build_tree
from tree_manifest.components.node import DirectoryNode, FileNode, NodeKind, dump_tree, parse_tree
from tree_manifest.config import PluginOptions, Settings, WatchConfiguration
from tree_manifest.enhance import enhance_tree
from tree_manifest.errors import (
    ConfigurationError,
    EnhancementError,
    ManifestWriteError,
    MirrorError,
    ScanError,
    TreeManifestError,
)
from tree_manifest.manifest import load_manifest, write_manifest
from tree_manifest.mirror import MirrorOutcome, MirrorReport, mirror_all, mirror_destination
from tree_manifest.plugin import Compilation, CycleReport, DirectoryTreePlugin, LocalBuildHost
from tree_manifest.watch import extract_watch_paths, load_watch_paths

__all__ = [
    "Compilation",
    "ConfigurationError",
    "CycleReport",
    "DirectoryNode",
    "DirectoryTreePlugin",
    "EnhancementError",
    "FileNode",
    "LocalBuildHost",
    "ManifestWriteError",
    "MirrorError",
    "MirrorOutcome",
    "MirrorReport",
    "NodeKind",
    "PluginOptions",
    "ScanError",
    "Settings",
    "TreeManifestError",
    "WatchConfiguration",
    "build_tree",
    "dump_tree",
    "enhance_tree",
    "extract_watch_paths",
    "load_manifest",
    "load_watch_paths",
    "mirror_all",
    "mirror_destination",
    "parse_tree",
    "write_manifest",
]
