"""Command-line entry point for folder-publisher.

Usage::

    folder-publisher extract --packages my-data@^1.2.0 --output data
    folder-publisher check --packages my-data --output data
    folder-publisher list --output data

Progress lines go to stderr; reports (or JSON with ``--json``) go to stdout.

Exit codes:
    0  success, or check found everything in sync
    1  check found drift
    2  extraction/check failure (conflict, missing package, I/O error)
    3  invalid arguments or configuration
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from enum import Enum
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from . import __version__
from .config import load_consumer_config
from .config_loader import load_hierarchical_config
from .config_schema import build_config
from .consumer import ConsumerOrchestrator
from .errors import FolderPublisherError
from .logger import setup_logging
from .sync.events import StreamProgressSink
from .sync.models import PackageManager
from .sync.reporter import (
    format_check_report,
    format_extract_report,
    format_package_list,
    result_to_json,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DRIFT = 1
EXIT_FAILURE = 2
EXIT_INVALID = 3


class Command(str, Enum):
    """Sub-commands of the CLI."""

    EXTRACT = "extract"
    CHECK = "check"
    LIST = "list"


def _split(value: str | None) -> list[str] | None:
    if value is None:
        return None
    return [v.strip() for v in value.split(",") if v.strip()]


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="folder-publisher",
        description="Extract files from installed data packages and keep them in sync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Extract two packages into ./data
  folder-publisher extract --packages shared-schemas@^2.0.0,fixtures -o data

  # Only markdown files, overwriting unmanaged files in the way
  folder-publisher extract --packages docs-pack --files "**/*.md" --force

  # Preview without writing
  folder-publisher extract --packages docs-pack --dry-run

  # Everything a publishable package bundles, as its bin runner would
  folder-publisher extract --from-package node_modules/docs-pack

  # Only files whose text holds a 1-3 digit id
  folder-publisher extract --packages fixtures --content-regex "id: \\d{1,3}$"

  # Fail (exit 1) when extracted files were edited or deleted
  folder-publisher check --packages docs-pack -o data

  # Show what is managed under ./data
  folder-publisher list -o data --json
        """,
    )
    parser.add_argument(
        "command",
        choices=[c.value for c in Command],
        help="Operation to run",
    )
    parser.add_argument(
        "--packages",
        help="Comma-separated package specs, e.g. 'a,b@^1.2.0,@scope/c@~2.0.0'",
    )
    parser.add_argument(
        "--from-package",
        metavar="PATH",
        help=(
            "Publishable package directory or package.json; extracts its name "
            "plus npmdata.additionalPackages"
        ),
    )
    parser.add_argument(
        "--output",
        "-o",
        dest="output_dir",
        help="Output directory (default: current directory)",
    )
    parser.add_argument(
        "--package-manager",
        choices=[m.value for m in PackageManager],
        help="Package manager used to install missing packages (default: auto-detect)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        default=None,
        help="Overwrite unmanaged files instead of failing",
    )
    parser.add_argument(
        "--gitignore",
        action="store_true",
        default=None,
        help="Add the marker and managed files to .gitignore next to each marker",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report changes without writing anything",
    )
    parser.add_argument(
        "--upgrade",
        action="store_true",
        help="Reinstall packages even when a satisfying version is present",
    )
    parser.add_argument(
        "--files",
        help="Comma-separated filename globs; prefix with '!' to exclude",
    )
    parser.add_argument(
        "--content-regex",
        action="append",
        help=(
            "Regex a file's text must match; repeat the flag to accept "
            "any of several"
        ),
    )
    parser.add_argument(
        "--cwd",
        help="Project directory holding node_modules (default: current directory)",
    )
    parser.add_argument(
        "--silent",
        action="store_true",
        help="Do not print progress lines",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable DEBUG logging",
    )
    parser.add_argument(
        "--log-file",
        help="Also write log records to this file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"folder-publisher version {__version__}",
    )
    return parser


def _cli_overrides(args: argparse.Namespace) -> dict:
    return {
        "packages": _split(args.packages),
        "from_package": args.from_package,
        "output_dir": args.output_dir,
        "package_manager": args.package_manager,
        "force": args.force,
        "gitignore": args.gitignore,
        "dry_run": args.dry_run,
        "upgrade": args.upgrade,
        "filename_patterns": _split(args.files),
        "content_regexes": args.content_regex,
        "cwd": args.cwd,
    }


def _print_result(text: str, data, as_json: bool) -> None:
    if as_json:
        print(json.dumps(data, indent=2))
    else:
        print(text)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    command = Command(args.command)

    load_dotenv()
    try:
        unified = build_config(
            load_hierarchical_config(Path(args.cwd) if args.cwd else None)
        )
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"Invalid configuration file: {exc}", file=sys.stderr)
        return EXIT_INVALID

    setup_logging(
        mode="cli",
        debug=args.debug,
        log_file=args.log_file or unified.logging.file,
        debug_format=unified.logging.format,
        level=unified.logging.level,
    )

    cli_args = _cli_overrides(args)
    if command == Command.EXTRACT and not args.silent:
        cli_args["on_progress"] = StreamProgressSink(sys.stderr)

    try:
        config = load_consumer_config(cli_args, unified.consumer)
        orchestrator = ConsumerOrchestrator(config)

        match command:
            case Command.EXTRACT:
                result = orchestrator.extract()
                _print_result(
                    format_extract_report(result, dry_run=config.dry_run),
                    result_to_json(result),
                    args.json,
                )
                return EXIT_OK
            case Command.CHECK:
                check_result = orchestrator.check()
                _print_result(
                    format_check_report(check_result),
                    result_to_json(check_result),
                    args.json,
                )
                return EXIT_OK if check_result.ok else EXIT_DRIFT
            case Command.LIST:
                packages = orchestrator.list_packages()
                _print_result(
                    format_package_list(packages),
                    result_to_json(packages),
                    args.json,
                )
                return EXIT_OK
    except FolderPublisherError as exc:
        logger.debug("%s failed", command.value, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    except (ValueError, ValidationError) as exc:
        print(f"Invalid arguments: {exc}", file=sys.stderr)
        return EXIT_INVALID
    return EXIT_OK


def run() -> None:
    """Console-script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
