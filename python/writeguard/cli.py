"""
Command-line entry point.

Usage:
    writeguard watch ./src --ignore node_modules --ignore "*.map" --debug

Tracker options are read from the environment:
    WRITEGUARD_PAUSE_DURATION_MS, WRITEGUARD_AUTO_RESUME_TIMEOUT_MS,
    WRITEGUARD_DEBUG
"""

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from writeguard.config import TrackerOptions
from writeguard.logging_config import setup_logging
from writeguard.tracker import ChangeTracker
from writeguard.watcher import FileEvent, GuardedFileWatcher

logger = logging.getLogger(__name__)

DEFAULT_IGNORE = {".git", "node_modules", "__pycache__", ".writeguard"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="writeguard",
        description="Report file edits that were not made by the code generator",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    watch = subparsers.add_parser("watch", help="Watch a directory and log user edits")
    watch.add_argument("directory", type=Path, help="Directory to watch recursively")
    watch.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Name or glob to ignore (repeatable)",
    )
    watch.add_argument(
        "--debug",
        action="store_true",
        help="Log every classification decision (or set WRITEGUARD_DEBUG=1)",
    )
    watch.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for log files (default: .writeguard/logs)",
    )
    return parser


async def _log_user_edits(edits: list[tuple[FileEvent, Path, Optional[bytes]]]) -> None:
    for event_type, path, content in edits:
        size = "-" if content is None else f"{len(content)} bytes"
        logger.info(f"User edit ({event_type.value}): {path} [{size}]")


async def watch(
    directory: Path,
    options: TrackerOptions,
    ignore_patterns: set[str],
    stop_event: Optional[asyncio.Event] = None,
) -> None:
    """Run a guarded watcher until `stop_event` is set (or forever)."""
    stop_event = stop_event or asyncio.Event()

    with ChangeTracker(options) as tracker:
        watcher = GuardedFileWatcher(
            directory,
            tracker,
            _log_user_edits,
            ignore_patterns=ignore_patterns,
        )
        watcher.start()
        try:
            await stop_event.wait()
        finally:
            watcher.stop()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        options = TrackerOptions.from_env()
    except ValueError as e:
        print(f"writeguard: {e}", file=sys.stderr)
        return 2
    if args.debug:
        options = dataclasses.replace(options, debug=True)

    setup_logging(
        log_dir=args.log_dir,
        level=logging.DEBUG if options.debug else logging.INFO,
        console=True,
    )

    try:
        asyncio.run(watch(args.directory, options, DEFAULT_IGNORE | set(args.ignore)))
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Cannot watch {args.directory}: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Shutting down writeguard watcher")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
