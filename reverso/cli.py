"""CLI entrypoints for reverso commands."""

from __future__ import annotations

import argparse
import sys
import threading
from pathlib import Path

from .config import ConfigError, ScannerConfig, load_config
from .constants import SCHEMA_FILE_NAME
from .differ import format_schema_diff
from .logging import configure_logging
from .models import ScanResult
from .scanner import Scanner


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_project_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a .reverso.yml file (defaults to <path>/.reverso.yml).",
    )
    parser.add_argument("--src", default=None, help="Source directory, relative to the project root.")
    parser.add_argument(
        "--output", default=None, help="Output directory, relative to the project root."
    )
    parser.add_argument(
        "--no-types",
        action="store_true",
        help="Skip writing the TypeScript declarations file.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write DEBUG logs to this file.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reverso",
        description="Scan JSX/TSX sources for data-reverso markers and build a content schema.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="Scan the project once and write the schema.")
    _add_verbose_option(scan_parser, suppress_default=True)
    _add_project_options(scan_parser)

    watch_parser = subparsers.add_parser(
        "watch",
        help="Scan the project, then rescan whenever a source file changes.",
    )
    _add_verbose_option(watch_parser, suppress_default=True)
    _add_project_options(watch_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for reverso commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = _load_project_config(args)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    scanner = Scanner(config)
    command = args.command
    if command == "scan" and config.watch.enabled:
        command = "watch"

    if command == "scan":
        try:
            result = scanner.scan()
        except Exception as exc:  # pragma: no cover
            parser.exit(1, f"reverso scan failed: {exc}\nRun with --verbose for more details.\n")
        _print_result(result, scanner.output_dir)
        if not result.success:
            parser.exit(1)
    elif command == "watch":
        try:
            result = scanner.start_watch()
        except Exception as exc:  # pragma: no cover
            parser.exit(1, f"reverso watch failed: {exc}\nRun with --verbose for more details.\n")
        if result is not None:
            _print_result(result, scanner.output_dir)
        print("Watching for changes (Ctrl+C to stop)")
        try:
            _wait_for_interrupt()
        except KeyboardInterrupt:
            pass
        finally:
            scanner.stop_watch()
        print("Stopped watching")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _load_project_config(args: argparse.Namespace) -> ScannerConfig:
    root = Path(args.path).expanduser().resolve()
    config = load_config(args.config if args.config is not None else root)
    if args.config is None:
        config.root = root
    if args.src:
        config.src_dir = Path(args.src)
    if args.output:
        config.output_dir = Path(args.output)
    if args.no_types:
        config.generate_types = False
    return config


def _print_result(result: ScanResult, output_dir: Path) -> None:
    schema = result.schema
    print(
        f"Found {schema.total_fields} field(s) in {schema.page_count} page(s) "
        f"from {schema.meta.files_with_markers} of {schema.meta.files_scanned} file(s)"
    )
    for warning in result.warnings:
        print(f"warning: {warning.describe()}")
    for error in result.errors:
        print(f"error: {error.describe()}")
    print(format_schema_diff(result.diff))
    print(f"Schema written to {_relativize(output_dir / SCHEMA_FILE_NAME)}")


def _wait_for_interrupt() -> None:
    threading.Event().wait()


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
