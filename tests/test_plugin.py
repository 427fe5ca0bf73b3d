"""Tests for the pipeline adapter.

A fake host records tapped callbacks; ``done`` is a MagicMock so the
exactly-once completion contract can be asserted directly.
"""
import os
from unittest.mock import MagicMock, patch

import pytest

from tree_manifest.components.node import FileNode
from tree_manifest.config import PluginOptions, Settings
from tree_manifest.errors import ConfigurationError, ManifestWriteError, ScanError
from tree_manifest.plugin import Compilation, DirectoryTreePlugin, LocalBuildHost


class FakeHost:
    def __init__(self):
        self.taps = {}

    def tap(self, event, callback):
        self.taps[event] = callback

    def emit(self, compilation):
        done = MagicMock()
        self.taps["compile"](compilation)
        self.taps["emit"](compilation, done)
        return done


@pytest.fixture()
def project(tmp_path, monkeypatch):
    """Working directory with docs/ holding *n* markdown files on demand."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "docs").mkdir()
    return tmp_path


def add_docs(project, count):
    for i in range(count):
        (project / "docs" / f"page{i}.md").write_text(f"page {i}", encoding="utf-8")


def make_plugin(project, fs=None, **options):
    base = {"dir": "docs", "path": "build/tree.json"}
    base.update(options)
    return DirectoryTreePlugin(base, settings=Settings(mirror_workers=2), fs=fs, cwd=str(project))


# ---------------------------------------------------------------------------
# Registration and configuration
# ---------------------------------------------------------------------------

class TestRegistration:
    def test_taps_compile_and_emit(self, project):
        host = FakeHost()
        make_plugin(project).apply(host)
        assert set(host.taps) == {"compile", "emit"}

    def test_invalid_options_rejected(self):
        with pytest.raises(ConfigurationError):
            DirectoryTreePlugin({"path": "tree.json"})

    def test_accepts_validated_options(self, project):
        opts = PluginOptions(dir="docs", path="tree.json")
        assert DirectoryTreePlugin(opts).options is opts


# ---------------------------------------------------------------------------
# Completion signal
# ---------------------------------------------------------------------------

class TestCompletion:
    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_done_called_once(self, project, count):
        add_docs(project, count)
        host = FakeHost()
        make_plugin(project, watch={"dir": "watch"}).apply(host)
        compilation = Compilation()
        done = host.emit(compilation)
        done.assert_called_once_with(None)
        assert len(compilation.file_dependencies) == count

    def test_done_called_once_when_file_deleted_mid_batch(self, project):
        add_docs(project, 3)
        victim = os.path.join("docs", "page1.md")

        def delete_victim(node, opts):
            if node.path == victim:
                os.remove(victim)

        host = FakeHost()
        plugin = make_plugin(project, watch={"dir": "watch"}, enhance=delete_victim)
        plugin.apply(host)
        done = host.emit(Compilation())
        done.assert_called_once_with(None)
        assert plugin.last_report.mirror.missing == 1
        assert plugin.last_report.mirror.copied == 2

    def test_scan_failure_passed_to_done(self, project):
        host = FakeHost()
        make_plugin(project, dir="missing").apply(host)
        done = host.emit(Compilation())
        done.assert_called_once()
        assert isinstance(done.call_args.args[0], ScanError)

    def test_manifest_write_failure_is_not_fatal(self, project, counting_fs):
        add_docs(project, 2)
        counting_fs.fail_writes.add("build/tree.json")
        host = FakeHost()
        plugin = make_plugin(project, fs=counting_fs, watch={"dir": "watch"})
        plugin.apply(host)
        compilation = Compilation()
        done = host.emit(compilation)
        done.assert_called_once_with(None)
        assert isinstance(plugin.last_report.errors[0], ManifestWriteError)
        assert plugin.last_report.mirror.copied == 2
        assert len(compilation.file_dependencies) == 2

    def test_mirror_failure_still_completes(self, project, counting_fs):
        add_docs(project, 2)
        counting_fs.fail_writes.add(str(project / "watch" / "docs" / "page0.md"))
        host = FakeHost()
        plugin = make_plugin(project, fs=counting_fs, watch={"dir": "watch"})
        plugin.apply(host)
        done = host.emit(Compilation())
        done.assert_called_once_with(None)
        assert plugin.last_report.mirror.failed == 1
        assert (project / "watch" / "docs" / "page1.md").exists()


# ---------------------------------------------------------------------------
# Cycle behaviour
# ---------------------------------------------------------------------------

class TestCycle:
    def test_idempotent_second_cycle(self, project, counting_fs):
        add_docs(project, 3)
        plugin = make_plugin(project, fs=counting_fs, watch={"dir": "watch", "filename": "underline"})
        first = plugin.run_cycle()
        writes_after_first = len(counting_fs.writes)
        second = plugin.run_cycle()
        assert first.manifest_written is True
        assert writes_after_first == 4  # manifest + 3 mirrors
        assert second.manifest_written is False
        assert len(counting_fs.writes) == writes_after_first
        assert (project / "watch" / "docs__page0.md").read_text(encoding="utf-8") == "page 0"

    def test_file_dependencies_are_absolute_watch_paths(self, project):
        add_docs(project, 2)
        compilation = Compilation(file_dependencies=["existing"])
        make_plugin(project, watch={"dir": "watch"}).run_cycle(compilation)
        assert compilation.file_dependencies == [
            "existing",
            str(project / "docs" / "page0.md"),
            str(project / "docs" / "page1.md"),
        ]

    def test_no_watch_means_no_mirroring(self, project):
        add_docs(project, 2)
        compilation = Compilation()
        report = make_plugin(project).run_cycle(compilation)
        assert report.mirror is None
        assert compilation.file_dependencies == []
        assert not (project / "watch").exists()
        assert (project / "build" / "tree.json").exists()

    def test_enhance_receives_merged_options(self, project):
        add_docs(project, 1)
        seen = []
        make_plugin(project, enhance=lambda node, opts: seen.append(dict(opts)), exclude="zzz").run_cycle()
        assert seen[0]["exclude"] == "zzz"
        assert seen[0]["path"] == "build/tree.json"

    def test_custom_scanner(self, project):
        scanner = MagicMock(return_value=FileNode(path="virtual.md"))
        plugin = DirectoryTreePlugin(
            {"dir": "docs", "path": "tree.json", "depth": 1}, scanner=scanner, cwd=str(project)
        )
        plugin.run_cycle()
        scanner.assert_called_once_with("docs", {"depth": 1})
        assert (project / "tree.json").read_text(encoding="utf-8") == '{"path":"virtual.md","kind":"file"}'


class TestLocalBuildHost:
    def test_runs_compile_then_emit(self, project):
        add_docs(project, 1)
        host = LocalBuildHost()
        plugin = make_plugin(project, watch={"dir": "watch"})
        plugin.apply(host)
        error, compilation = host.run()
        assert error is None
        assert compilation.file_dependencies == [str(project / "docs" / "page0.md")]

    def test_reports_error(self, project):
        host = LocalBuildHost()
        make_plugin(project, dir="missing").apply(host)
        error, _ = host.run()
        assert isinstance(error, ScanError)


class TestOutputsInsideScannedRoot:
    def test_watch_dir_and_manifest_are_not_rescanned(self, project, counting_fs):
        add_docs(project, 2)
        plugin = DirectoryTreePlugin(
            {"dir": "docs", "path": "docs/tree.json", "watch": {"dir": "docs/.mirror"}},
            settings=Settings(mirror_workers=2),
            fs=counting_fs,
            cwd=str(project),
        )
        first = plugin.run_cycle()
        writes_after_first = len(counting_fs.writes)
        second = plugin.run_cycle()

        assert first.watch_paths == second.watch_paths == [
            str(project / "docs" / "page0.md"),
            str(project / "docs" / "page1.md"),
        ]
        assert second.manifest_written is False
        assert len(counting_fs.writes) == writes_after_first
        assert not (project / "docs" / ".mirror" / "docs" / ".mirror").exists()
        assert "tree.json" not in (project / "docs" / "tree.json").read_text(encoding="utf-8")


class TestInterruptedCycle:
    def test_interrupt_reported_to_done_and_reraised(self, project):
        host = FakeHost()
        plugin = make_plugin(project)
        plugin.apply(host)
        interrupt = KeyboardInterrupt()
        done = MagicMock()

        with patch.object(plugin, "run_cycle", side_effect=interrupt):
            with pytest.raises(KeyboardInterrupt):
                host.taps["emit"](Compilation(), done)

        done.assert_called_once_with(interrupt)
