"""
mirror.py - Copy watched files into a shadow directory

Each watched file is copied under the watch directory, either flattened
into a single file name (``underline``) or at the same relative location
(``mirror``). A copy only happens when the bytes differ, so repeated
cycles without source changes write nothing.

Files are processed independently on a bounded thread pool. A failure on
one file is recorded in the :class:`MirrorReport` and never stops the
others; :func:`mirror_all` returns only after every file has settled.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import StrEnum
from typing import List, Optional

from tree_manifest.components.fs import FileSystem, LocalFileSystem
from tree_manifest.config import WatchConfiguration
from tree_manifest.errors import MirrorError

logger = logging.getLogger(__name__)


class MirrorOutcome(StrEnum):
    COPIED = "copied"
    UNCHANGED = "unchanged"
    MISSING = "missing"
    FAILED = "failed"


@dataclass(frozen=True)
class MirrorResult:
    source: str
    destination: Optional[str]
    outcome: MirrorOutcome
    error: Optional[MirrorError] = None


@dataclass
class MirrorReport:
    """Per-file results of one mirror pass, in input order."""

    results: List[MirrorResult] = field(default_factory=list)

    def count(self, outcome: MirrorOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def copied(self) -> int:
        return self.count(MirrorOutcome.COPIED)

    @property
    def unchanged(self) -> int:
        return self.count(MirrorOutcome.UNCHANGED)

    @property
    def missing(self) -> int:
        return self.count(MirrorOutcome.MISSING)

    @property
    def failed(self) -> int:
        return self.count(MirrorOutcome.FAILED)

    @property
    def errors(self) -> List[MirrorError]:
        return [r.error for r in self.results if r.error is not None]


# ---------------------------------------------------------------------------
# Destination naming
# ---------------------------------------------------------------------------


def _relative_parts(source: str, cwd: str) -> list[str]:
    absolute = os.path.normpath(os.path.join(cwd, source))
    relative = os.path.relpath(absolute, cwd)
    if relative == os.pardir or relative.startswith(os.pardir + os.sep):
        # Outside the working directory: keep the absolute layout minus its anchor
        relative = os.path.splitdrive(absolute)[1].lstrip(os.sep)
    return relative.split(os.sep)


def mirror_destination(
    source: str, watch: WatchConfiguration, cwd: Optional[str] = None
) -> str:
    """
    Compute where *source* is mirrored under ``watch.dir``.

    With ``filename="underline"`` the path relative to *cwd* is flattened,
    its components joined with ``watch.sep``::

        <cwd>/src/foo/bar.md  ->  <watch.dir>/src__foo__bar.md

    Otherwise the relative path is recreated below the watch directory::

        <cwd>/src/foo/bar.md  ->  <watch.dir>/src/foo/bar.md

    Args:
        source: Watched file path, absolute or relative to *cwd*.
        watch:  Mirror configuration.
        cwd:    Base directory; defaults to the process working directory.
    """
    cwd = cwd or os.getcwd()
    target = os.path.join(cwd, watch.target_directory)
    parts = _relative_parts(source, cwd)
    if watch.naming_strategy == "underline":
        return os.path.normpath(os.path.join(target, watch.sep.join(parts)))
    return os.path.normpath(os.path.join(target, *parts))


# ---------------------------------------------------------------------------
# Copying
# ---------------------------------------------------------------------------


def _read_destination(source: str, destination: str, fs: FileSystem) -> Optional[bytes]:
    try:
        return fs.read_bytes(destination)
    except FileNotFoundError:
        return None
    except OSError as e:
        raise MirrorError(source, destination, f"cannot read destination: {e}") from e


def _write_destination(source: str, destination: str, data: bytes, fs: FileSystem) -> None:
    try:
        fs.makedirs(os.path.dirname(destination))
    except OSError as e:
        raise MirrorError(source, destination, f"cannot create directory: {e}") from e
    try:
        fs.write_bytes(destination, data)
    except OSError as e:
        raise MirrorError(source, destination, f"cannot write: {e}") from e


def mirror_file(
    source: str,
    watch: WatchConfiguration,
    fs: Optional[FileSystem] = None,
    cwd: Optional[str] = None,
) -> MirrorResult:
    """Mirror a single file. Never raises for filesystem errors."""
    fs = fs or LocalFileSystem()
    destination = mirror_destination(source, watch, cwd)
    source_path = os.path.join(cwd or os.getcwd(), source)

    try:
        try:
            data = fs.read_bytes(source_path)
        except FileNotFoundError:
            logger.debug("Watched file %s no longer exists, nothing to do", source)
            return MirrorResult(source, destination, MirrorOutcome.MISSING)
        except OSError as e:
            raise MirrorError(source, destination, f"cannot read source: {e}") from e

        if _read_destination(source, destination, fs) == data:
            logger.debug("Mirror %s is up to date", destination)
            return MirrorResult(source, destination, MirrorOutcome.UNCHANGED)

        _write_destination(source, destination, data, fs)
    except MirrorError as e:
        logger.error("%s", e)
        return MirrorResult(source, destination, MirrorOutcome.FAILED, e)

    logger.debug("Mirrored %s -> %s", source, destination)
    return MirrorResult(source, destination, MirrorOutcome.COPIED)


def mirror_all(
    sources: Sequence[str],
    watch: WatchConfiguration,
    fs: Optional[FileSystem] = None,
    cwd: Optional[str] = None,
    max_workers: int = 4,
) -> MirrorReport:
    """
    Mirror every path in *sources* and wait for all of them to settle.

    Args:
        sources:     Watched file paths, in extraction order.
        watch:       Mirror configuration.
        fs:          Filesystem primitives; defaults to the local disk.
        cwd:         Base directory for relative naming.
        max_workers: Maximum number of files copied concurrently.

    Returns:
        A report whose results follow the order of *sources*.
    """
    fs = fs or LocalFileSystem()
    cwd = cwd or os.getcwd()
    report = MirrorReport()
    if not sources:
        return report

    with ThreadPoolExecutor(max_workers=min(max_workers, len(sources))) as ex:
        futures = [ex.submit(mirror_file, source, watch, fs, cwd) for source in sources]

    for source, future in zip(sources, futures):
        try:
            report.results.append(future.result())
        except Exception as e:
            logger.exception("Unexpected failure mirroring %s", source)
            report.results.append(
                MirrorResult(
                    source, None, MirrorOutcome.FAILED, MirrorError(source, "", str(e))
                )
            )

    logger.info(
        "Mirrored %d files into %s (%d copied, %d unchanged, %d missing, %d failed)",
        len(sources),
        watch.target_directory,
        report.copied,
        report.unchanged,
        report.missing,
        report.failed,
    )
    return report
