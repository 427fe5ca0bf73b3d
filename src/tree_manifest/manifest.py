"""
manifest.py - Change-gated manifest writer

The manifest is only rewritten when its serialized bytes differ from what
is already on disk, so a rebuild with no source changes performs no write.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from pydantic import ValidationError

from tree_manifest.components.fs import FileSystem, LocalFileSystem
from tree_manifest.components.node import Tree, dump_tree, parse_tree
from tree_manifest.errors import ManifestWriteError, TreeManifestError

logger = logging.getLogger(__name__)


def read_current(path: str, fs: FileSystem) -> bytes:
    """Return the manifest bytes on disk, or ``b""`` if there is none yet."""
    try:
        return fs.read_bytes(path)
    except FileNotFoundError:
        return b""
    except OSError as e:
        raise ManifestWriteError(path, e) from e


def write_manifest(tree: Tree, path: str, fs: Optional[FileSystem] = None) -> bool:
    """
    Serialize *tree* and write it to *path* if the content changed.

    Missing parent directories are created.

    Returns:
        True if the file was written, False if it was already up to date.

    Raises:
        ManifestWriteError: If the existing file cannot be read or the new
            content cannot be written.
    """
    fs = fs or LocalFileSystem()
    content = dump_tree(tree).encode("utf-8")

    if content == read_current(path, fs):
        logger.debug("Manifest %s is up to date", path)
        return False

    try:
        fs.makedirs(os.path.dirname(path))
        fs.write_bytes(path, content)
    except OSError as e:
        raise ManifestWriteError(path, e) from e

    logger.info("Manifest written to %s (%d bytes)", path, len(content))
    return True


def load_manifest(path: str, fs: Optional[FileSystem] = None) -> Optional[Tree]:
    """Parse the manifest at *path*; None if it does not exist."""
    fs = fs or LocalFileSystem()
    try:
        raw = fs.read_bytes(path)
    except FileNotFoundError:
        logger.debug("Manifest not found at %s", path)
        return None
    try:
        return parse_tree(raw)
    except ValidationError as e:
        raise TreeManifestError(f"Corrupt manifest at {path!r}: {e}") from e
