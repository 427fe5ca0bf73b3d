"""
plugin.py - Build pipeline adapter

Wires the tree builder, manifest writer and mirror writer into a host
build pipeline. The host exposes ``tap(event, callback)``; the plugin taps:

* ``"compile"`` - fired before scanning; starts a fresh cycle report.
* ``"emit"``    - fired at asset emission with ``(compilation, done)``;
                  runs one full cycle and calls ``done`` exactly once.

Example::

    host = LocalBuildHost()
    DirectoryTreePlugin({"dir": "docs", "path": "build/tree.json"}).apply(host)
    error, compilation = host.run()
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, Union

from tree_manifest.build_tree import Scanner, build_tree, prune_tree
from tree_manifest.components.fs import FileSystem, LocalFileSystem
from tree_manifest.components.scanner import scan_directory
from tree_manifest.config import PluginOptions, Settings, settings as default_settings
from tree_manifest.enhance import enhance_tree
from tree_manifest.errors import ManifestWriteError, TreeManifestError
from tree_manifest.manifest import write_manifest
from tree_manifest.mirror import MirrorReport, mirror_all
from tree_manifest.watch import extract_watch_paths

logger = logging.getLogger(__name__)

Done = Callable[..., Any]


class BuildHost(Protocol):
    """The part of a host build pipeline the plugin relies on."""

    def tap(self, event: str, callback: Callable[..., Any]) -> None: ...


@dataclass
class Compilation:
    """Per-cycle state shared with the host."""

    file_dependencies: List[str] = field(default_factory=list)


@dataclass
class CycleReport:
    manifest_written: bool = False
    watch_paths: List[str] = field(default_factory=list)
    mirror: Optional[MirrorReport] = None
    errors: List[TreeManifestError] = field(default_factory=list)


class _CompletionSignal:
    """Forwards to the host's ``done`` callback at most once."""

    def __init__(self, done: Done) -> None:
        self._done = done
        self._fired = False

    def __call__(self, error: Optional[BaseException] = None) -> None:
        if self._fired:
            logger.warning("Completion signal already fired for this cycle, ignoring")
            return
        self._fired = True
        self._done(error)


class DirectoryTreePlugin:
    """Generates a JSON tree of one or more directories on every build cycle.

    Args:
        options:  Raw option mapping or validated :class:`PluginOptions`.
        settings: Process settings; defaults to the environment-derived ones.
        fs:       Filesystem primitives; defaults to the local disk.
        scanner:  Directory scanner; defaults to ``scan_directory``.
        cwd:      Base directory for mirror naming; defaults to the
                  process working directory at cycle time.
    """

    def __init__(
        self,
        options: Union[Mapping[str, Any], PluginOptions],
        settings: Optional[Settings] = None,
        fs: Optional[FileSystem] = None,
        scanner: Scanner = scan_directory,
        cwd: Optional[str] = None,
    ) -> None:
        if isinstance(options, PluginOptions):
            self.options = options
        else:
            self.options = PluginOptions.from_mapping(options)
        self.settings = settings or default_settings
        self._fs = fs or LocalFileSystem()
        self._scanner = scanner
        self._cwd = cwd
        self.last_report: Optional[CycleReport] = None

    def apply(self, host: BuildHost) -> None:
        host.tap("compile", self._on_compile)
        host.tap("emit", self._on_emit)

    # ------------------------------------------------------------------
    # Lifecycle callbacks
    # ------------------------------------------------------------------

    def _on_compile(self, *_: Any) -> None:
        self.last_report = CycleReport()
        logger.debug("Directory tree cycle starting for %s", self.options.dir)

    def _on_emit(self, compilation: Compilation, done: Done) -> None:
        finish = _CompletionSignal(done)
        error: Optional[BaseException] = None
        try:
            self.run_cycle(compilation)
        except Exception as e:
            logger.error("Directory tree cycle failed: %s", e)
            error = e
        except BaseException as e:
            error = e
            raise
        finally:
            finish(error)

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    def run_cycle(self, compilation: Optional[Compilation] = None) -> CycleReport:
        """
        Scan, enhance, write the manifest and, when watching, mirror files.

        Manifest write failures are logged and recorded in the report; the
        cycle carries on with the in-memory tree. Scan and enhancement
        failures propagate.
        """
        opts = self.options
        report = CycleReport()
        self.last_report = report
        scan_options = opts.scan_options()
        cwd = self._cwd or os.getcwd()

        tree = build_tree(opts.dir, scan_options, self._scanner)
        # Our own outputs never feed back into the next cycle
        outputs = [opts.path] if opts.watch is None else [opts.path, opts.watch.target_directory]
        prune_tree(tree, outputs, cwd)
        if opts.enhance is not None:
            enhance_tree(tree, opts.enhance, opts.top_level(), scan_options)

        try:
            report.manifest_written = write_manifest(tree, opts.path, self._fs)
        except ManifestWriteError as e:
            logger.error("Failure building directory tree: %s", e)
            report.errors.append(e)

        if opts.watch is None:
            return report

        watch_paths = extract_watch_paths(tree)
        report.watch_paths = [os.path.normpath(os.path.join(cwd, p)) for p in watch_paths]
        report.mirror = mirror_all(
            watch_paths,
            opts.watch,
            fs=self._fs,
            cwd=cwd,
            max_workers=self.settings.mirror_workers,
        )
        report.errors.extend(report.mirror.errors)

        if compilation is not None:
            compilation.file_dependencies.extend(report.watch_paths)
        return report


class LocalBuildHost:
    """Minimal in-process host: runs ``compile`` then ``emit`` once per call."""

    def __init__(self) -> None:
        self._taps: Dict[str, List[Callable[..., Any]]] = {}

    def tap(self, event: str, callback: Callable[..., Any]) -> None:
        self._taps.setdefault(event, []).append(callback)

    def run(self) -> Tuple[Optional[BaseException], Compilation]:
        """Run one cycle; return the first error passed to ``done`` and the compilation."""
        compilation = Compilation()
        errors: List[Optional[BaseException]] = []

        for callback in self._taps.get("compile", []):
            callback(compilation)
        for callback in self._taps.get("emit", []):
            callback(compilation, errors.append)

        failures = [e for e in errors if e is not None]
        return (failures[0] if failures else None), compilation
