import argparse
import logging
import sys
from typing import Optional, Sequence

from tree_manifest.config import settings
from tree_manifest.errors import TreeManifestError
from tree_manifest.plugin import DirectoryTreePlugin, LocalBuildHost
from tree_manifest.watch import load_watch_paths

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tree-manifest",
        description="Write a JSON tree of directories and mirror watched files.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="Run one build cycle")
    build.add_argument("directories", nargs="+", metavar="DIR", help="Root directories to scan")
    build.add_argument("--output", "-o", required=True, metavar="FILE", help="Manifest path")
    build.add_argument("--watch-dir", metavar="DIR", help="Mirror watched files into DIR")
    build.add_argument(
        "--filename",
        choices=("underline", "mirror"),
        default="mirror",
        help="Mirror naming strategy",
    )
    build.add_argument("--sep", default="__", help="Separator for underline naming")
    build.add_argument("--exclude", action="append", metavar="REGEX", help="Skip matching paths")
    build.add_argument("--extensions", metavar="REGEX", help="Only include matching files")
    build.add_argument("--depth", type=int, help="Maximum scan depth")

    paths = sub.add_parser("paths", help="Print the watch paths of a manifest")
    paths.add_argument("manifest", metavar="FILE")
    return parser


def _options(args: argparse.Namespace) -> dict:
    dirs = args.directories
    options: dict = {"dir": dirs[0] if len(dirs) == 1 else dirs, "path": args.output}
    if args.watch_dir:
        options["watch"] = {"dir": args.watch_dir, "filename": args.filename, "sep": args.sep}
    if args.exclude:
        options["exclude"] = args.exclude
    if args.extensions:
        options["extensions"] = args.extensions
    if args.depth is not None:
        options["depth"] = args.depth
    return options


def _run_build(args: argparse.Namespace) -> int:
    plugin = DirectoryTreePlugin(_options(args))
    host = LocalBuildHost()
    plugin.apply(host)

    error, compilation = host.run()
    if error is not None:
        raise error

    report = plugin.last_report
    status = "written" if report.manifest_written else "unchanged"
    summary = f"Tree {status}: {args.output}"
    if report.mirror is not None:
        summary += (
            f" ({len(compilation.file_dependencies)} watched,"
            f" {report.mirror.copied} copied, {report.mirror.failed} failed)"
        )
    print(summary)
    return 1 if report.errors else 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "paths":
            for path in load_watch_paths(args.manifest):
                print(path)
            return 0
        return _run_build(args)
    except TreeManifestError as e:
        logger.error("%s", e)
        return 1
    except Exception as e:
        logger.exception("Unexpected failure: %s", e)
        return 1


def start_cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    start_cli()
