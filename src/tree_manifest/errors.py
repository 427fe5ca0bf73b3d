"""Exception hierarchy for tree_manifest.

Every error raised by the package derives from :class:`TreeManifestError`
so callers (and the pipeline adapter) can catch a single base class.
"""

from __future__ import annotations


class TreeManifestError(Exception):
    """Base class for all tree_manifest errors."""


class ConfigurationError(TreeManifestError):
    """Plugin options failed validation."""


class ScanError(TreeManifestError):
    """A configured root could not be scanned."""

    def __init__(self, root: str, reason: str) -> None:
        self.root = root
        self.reason = reason
        super().__init__(f"Cannot scan {root!r}: {reason}")


class EnhancementError(TreeManifestError):
    """The enhancement callback failed or broke the node shape."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Enhancement failed for {path!r}: {reason}")


class ManifestWriteError(TreeManifestError):
    """The manifest file could not be read back or written."""

    def __init__(self, path: str, cause: OSError) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Failure writing manifest {path!r}: {cause}")


class MirrorError(TreeManifestError):
    """A single watched file could not be mirrored."""

    def __init__(self, source: str, destination: str, reason: str) -> None:
        self.source = source
        self.destination = destination
        self.reason = reason
        super().__init__(f"Cannot mirror {source!r} -> {destination!r}: {reason}")
