"""
phplogtail - Live viewer for the PHP interpreter's error log.

This package tails a PHP error log as it grows, groups its lines into
structured entries (header, continuation lines, stack trace), and streams
them to a consumer together with throttled alerts for errors and warnings.

Package Structure:
    - cli.py: Command-line interface and entry point
    - watch/: Tailing pipeline (reader, line framing, parser, session,
      alert throttle, filesystem notifications)
    - tui/: Curses viewer and shared text rendering
    - utils/: Paths, settings, diagnostic logging, date labels

Usage:
    Run as a module: python -m phplogtail <command>

Example:
    python -m phplogtail watch --tui
"""

__version__ = "0.1.0"
