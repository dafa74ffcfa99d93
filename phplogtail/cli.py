#!/usr/bin/env python3
"""
phplogtail - Live viewer for the PHP interpreter's error log.

This module implements the command-line interface: stream a growing PHP
error log as structured entries, parse a log once, or empty it.

Responsibilities:
    - Stream new entries as they are written (watch)
    - Open the live curses viewer (watch --tui)
    - Parse a whole log file once, as text or JSON (parse)
    - Empty the log file (truncate)

Usage:
    python -m phplogtail <command> [options]

Examples:
    python -m phplogtail watch
    python -m phplogtail watch /var/log/php/error.log --from-start
    python -m phplogtail watch --tui
    python -m phplogtail parse /var/log/php/error.log --json
    python -m phplogtail truncate /var/log/php/error.log
"""

import argparse
import json
import os
import sys
import time
from pathlib import Path
from typing import Optional

from .utils import paths
from .utils.applog import AppLogger
from .watch.errors import WatchError
from .watch.events import Alert, EntriesAppended, Reset, Status, WatchEvent
from .watch.lines import LineAssembler
from .watch.parser import EntryParser
from .watch.session import WatchSession, truncate_file
from .watch.throttle import AlertThrottle, format_alert
from .tui.render import format_entry

COMPONENT = "cli"

# ============================================================
# Environment Configuration
# ============================================================

def load_dotenv(env_path: Optional[Path] = None) -> None:
    """
    Load a .env file into os.environ if present.

    Lets developers keep PHPLOGTAIL_* settings next to their project
    instead of exporting them in every shell.

    Side Effects:
        Adds variables from .env that aren't already set (existing
        environment variables win).
    """
    env_path = env_path or paths.dotenv_path()

    # Silently skip if no .env file exists - it's optional
    if not env_path.is_file():
        return

    with env_path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            # Skip empty lines and comments
            if not line or line.startswith("#"):
                continue
            # Skip malformed lines (no = sign)
            if "=" not in line:
                continue
            # Split on first = only (value might contain =)
            key, value = line.split("=", 1)
            os.environ.setdefault(key.strip(), value.strip().strip('"').strip("'"))


# ============================================================
# Event printing (non-TUI)
# ============================================================

class EventPrinter:
    """
    Event sink that writes session events to stdout.

    Entries print in the same layout as the viewer's raw mode. Alerts,
    resets and status changes print with a bracketed prefix so they stand
    out from log text.
    """

    def __init__(self, with_trace: bool = True, stream=None):
        self.with_trace = with_trace
        self.stream = stream or sys.stdout

    def __call__(self, event: WatchEvent) -> None:
        if isinstance(event, EntriesAppended):
            for entry in event.entries:
                print(format_entry(entry, with_trace=self.with_trace), file=self.stream)
        elif isinstance(event, Alert):
            title, body = format_alert(event.entry)
            print(f"[alert] {title}: {body}", file=self.stream)
        elif isinstance(event, Reset):
            print(f"[phplogtail] reset: {event.file_path}", file=self.stream)
        elif isinstance(event, Status):
            detail = f" ({event.detail})" if event.detail else ""
            print(
                f"[phplogtail] status: {event.condition.value}{detail}: {event.file_path}",
                file=self.stream,
            )
        self.stream.flush()


# ============================================================
# Commands
# ============================================================

def resolve_path(args) -> Path:
    return Path(args.path).expanduser() if args.path else paths.default_log_file()


def watch_log(args) -> int:
    """
    Stream entries from a PHP error log until interrupted.

    Without --from-start only entries written after startup are shown.
    """
    file_path = resolve_path(args)
    cooldown = args.cooldown_ms if args.cooldown_ms is not None else paths.cooldown_ms()
    interval = args.interval if args.interval is not None else paths.poll_interval()
    logger = AppLogger()

    if args.tui:
        import curses

        from .tui.views import run_log_viewer

        try:
            curses.wrapper(run_log_viewer, file_path, cooldown, interval, logger)
        except KeyboardInterrupt:
            pass
        return 0

    session = WatchSession(
        EventPrinter(with_trace=not args.no_trace),
        throttle=AlertThrottle(cooldown_ms=cooldown),
        logger=logger,
        poll_interval=interval,
    )

    print(f"[phplogtail] Watching: {file_path}")
    logger.info(COMPONENT, f"watch {file_path} from_start={args.from_start}")
    try:
        session.start(file_path, from_beginning=args.from_start)
    except WatchError as exc:
        print(f"[phplogtail] {exc}", file=sys.stderr)
        return 1
    session.poll()

    try:
        # The session's watcher threads do the work; just stay alive
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\n[phplogtail] Watch stopped")
    finally:
        session.stop()
    return 0


def parse_log(args) -> int:
    """Parse an entire log file once and print every entry."""
    file_path = resolve_path(args)
    try:
        data = file_path.read_bytes()
    except OSError as exc:
        print(f"[phplogtail] cannot read {file_path}: {exc}", file=sys.stderr)
        return 1

    lines = LineAssembler()
    parser = EntryParser()
    entries = parser.feed_lines(lines.feed(data))
    # A final line without a newline is still part of the last record
    if lines.pending:
        entries.extend(parser.feed_lines(lines.feed(b"\n")))
    entries.extend(parser.flush())

    if args.json:
        json.dump([entry.to_dict() for entry in entries], sys.stdout, indent=2)
        print()
    else:
        for entry in entries:
            print(format_entry(entry, with_trace=not args.no_trace))
    return 0


def truncate_log(args) -> int:
    file_path = resolve_path(args)
    try:
        truncate_file(file_path)
    except OSError as exc:
        print(f"[phplogtail] cannot truncate {file_path}: {exc}", file=sys.stderr)
        return 1
    print(f"[phplogtail] Emptied {file_path}")
    return 0


# ============================================================
# Command-Line Argument Parsing
# ============================================================

def build_parser() -> argparse.ArgumentParser:
    """
    Build and configure the top-level argument parser.

    Every command takes an optional log path; when omitted the path comes
    from PHPLOGTAIL_LOG_FILE or the built-in default.
    """
    parser = argparse.ArgumentParser(
        prog="phplogtail",
        description="Live viewer for the PHP error log",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        required=True,
    )

    # --- watch: live streaming ---
    watch_parser = subparsers.add_parser(
        "watch",
        help="Stream new entries from a PHP error log",
    )
    watch_parser.add_argument("path", nargs="?", help="Log file (default: PHPLOGTAIL_LOG_FILE)")
    watch_parser.add_argument("--from-start", action="store_true",
                              help="Show existing entries before new ones")
    watch_parser.add_argument("--tui", action="store_true",
                              help="Open the interactive curses viewer")
    watch_parser.add_argument("--cooldown-ms", type=float, default=None,
                              help="Suppress identical alerts within this window")
    watch_parser.add_argument("--interval", type=float, default=None,
                              help="Fallback poll interval in seconds")
    watch_parser.add_argument("--no-trace", action="store_true",
                              help="Hide stack frames")

    # --- parse: one-shot ---
    parse_parser = subparsers.add_parser(
        "parse",
        help="Parse a whole log file once and print its entries",
    )
    parse_parser.add_argument("path", nargs="?", help="Log file (default: PHPLOGTAIL_LOG_FILE)")
    parse_parser.add_argument("--json", action="store_true",
                              help="Print entries as a JSON array")
    parse_parser.add_argument("--no-trace", action="store_true",
                              help="Hide stack frames")

    # --- truncate: empty the log ---
    truncate_parser = subparsers.add_parser(
        "truncate",
        help="Empty the log file (watchers see a reset)",
    )
    truncate_parser.add_argument("path", nargs="?", help="Log file (default: PHPLOGTAIL_LOG_FILE)")

    return parser


# ============================================================
# Entry Point
# ============================================================

COMMANDS = {
    "watch": watch_log,
    "parse": parse_log,
    "truncate": truncate_log,
}


def main(argv=None) -> None:
    """
    Main entry point for the phplogtail CLI.

    Exit Codes:
        0: Success
        1: The log file could not be read or written
    """
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    sys.exit(handler(args))


if __name__ == "__main__":
    main()
