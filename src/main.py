# src/main.py - v2
"""CLI entry point: report, unfake, list, purge commands.

Usage:
    sosharness report "<params>" [--namespace NS] [--fake-cmd SRC:DEST] ...
    sosharness unfake
    sosharness list
    sosharness purge

Each invocation is one harness run: the fake queue starts empty, so fakes
are given as options of the report command.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from sosharness.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from sosharness.core.errors import HarnessError

    try:
        harness = _make_harness(args)
        return args.func(harness, args)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except HarnessError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return exc.exit_code
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="sosharness",
        description=f"sosharness v{__version__} - fakes and reusable reports for sos tests",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--root", type=Path, default=None,
        help="Harness storage root (default: SOSHARNESS_STORAGE_ROOT or ~/.sosharness)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- report ---
    p_report = subparsers.add_parser(
        "report", help="Generate or reuse a report",
    )
    p_report.add_argument("params", help="Parameters for the report tool (one quoted string)")
    p_report.add_argument(
        "-n", "--namespace", default=None,
        help="Cache namespace (default: 'default')",
    )
    p_report.add_argument(
        "--no-unfake", action="store_true",
        help="Keep fakes installed after generation",
    )
    p_report.add_argument(
        "--exit-value", default=None,
        help="Accepted tool exit status, e.g. 0, 0-2, 0,3 (default: 0)",
    )
    p_report.add_argument(
        "--fake-cmd", action="append", default=[], metavar="SRC:DEST",
        help="Fake command to install (repeatable)",
    )
    p_report.add_argument(
        "--fake-file", action="append", default=[], metavar="SRC:DEST",
        help="Fake file to install (repeatable)",
    )
    p_report.add_argument(
        "--fake-tree", action="append", default=[], metavar="ARCHIVE",
        help="Fake tree archive (repeatable, not extracted yet)",
    )
    p_report.add_argument(
        "--expect-file", action="append", default=[], metavar="REGEX",
        help="Fail unless the report lists a matching path (repeatable)",
    )
    p_report.add_argument(
        "--expect-no-file", action="append", default=[], metavar="REGEX",
        help="Fail if the report lists a matching path (repeatable)",
    )
    p_report.set_defaults(func=_cmd_report)

    # --- unfake ---
    p_unfake = subparsers.add_parser(
        "unfake", help="Restore everything faked by previous runs",
    )
    p_unfake.set_defaults(func=_cmd_unfake)

    # --- list ---
    p_list = subparsers.add_parser(
        "list", help="Show stored reports and their reuse counts",
    )
    p_list.set_defaults(func=_cmd_list)

    # --- purge ---
    p_purge = subparsers.add_parser(
        "purge", help="Delete all stored reports",
    )
    p_purge.set_defaults(func=_cmd_purge)

    return parser


def _make_harness(args: argparse.Namespace):
    from sosharness.api.facade import Harness
    from sosharness.config.settings import load_settings

    overrides: dict[str, object] = {}
    if args.root is not None:
        overrides["storage_root"] = args.root
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    return Harness(settings=load_settings(**overrides))


def _split_pair(value: str) -> tuple[str, str]:
    from sosharness.core.errors import UsageError

    source, sep, dest = value.partition(":")
    if not sep or not source or not dest:
        raise UsageError(f"expected SRC:DEST, got {value!r}")
    return source, dest


def _cmd_report(harness, args: argparse.Namespace) -> int:
    """Enqueue fakes, get a report and check expectations."""
    for value in args.fake_cmd:
        harness.fake_command(*_split_pair(value))
    for value in args.fake_file:
        harness.fake_file(*_split_pair(value))
    for archive in args.fake_tree:
        harness.fake_tree(archive)

    result = harness.report(
        args.params,
        namespace=args.namespace,
        skip_revert=args.no_unfake,
        expected_exit=args.exit_value,
    )
    print(result.report_path)
    if result.revert_ok is False:
        logger.warning("Fakes could not be fully reverted")

    failed = 0
    for pattern in args.expect_file:
        if not harness.assert_file_included(pattern):
            failed += 1
    for pattern in args.expect_no_file:
        if not harness.assert_file_not_included(pattern):
            failed += 1
    return 1 if failed else 0


def _cmd_unfake(harness, args: argparse.Namespace) -> int:
    return 0 if harness.unfake() else 1


def _cmd_list(harness, args: argparse.Namespace) -> int:
    listing = harness.list_reports()
    print(f"{listing.store_dir}:")
    for entry in listing.files:
        marker = " ->" if entry.is_symlink else ""
        print(f"  {entry.size_bytes:>12d}  {entry.name}{marker}")
    print()
    sys.stdout.write(listing.raw_db)
    return 0


def _cmd_purge(harness, args: argparse.Namespace) -> int:
    removed = harness.purge_reports()
    print(f"Removed {removed} files")
    return 0


if __name__ == "__main__":
    sys.exit(main())
