"""
Diagnostic logging for phplogtail itself.

This module provides a small append-only logger for the tool's own
activity: which file is being watched, when a rotation was detected, when
the file became unreadable. It is separate from the PHP log being tailed.

Purpose:
    The watcher runs for hours in a terminal or in the background. When
    entries stop appearing, the first question is whether the tool saw the
    file at all. This log answers that without a debugger.

Design Decisions:
    - One log file for all sessions, each line tagged with a session id
    - Append-only writes to prevent data loss
    - Human-readable format with timestamps and structured fields
    - UTC timestamps for consistency across timezones
"""

from __future__ import annotations

import datetime
import os
import uuid
from pathlib import Path


def log_root() -> Path:
    """
    Return the directory that holds phplogtail's own log.

    Uses the PHPLOGTAIL_LOG_ROOT environment variable if set, otherwise
    falls back to ~/.phplogtail/logs.

    Example:
        >>> os.environ["PHPLOGTAIL_LOG_ROOT"] = "/tmp/phplogtail"
        >>> log_root()
        PosixPath('/tmp/phplogtail')
    """
    root = os.environ.get("PHPLOGTAIL_LOG_ROOT")
    if root:
        return Path(root)
    return Path.home() / ".phplogtail" / "logs"


def app_log_path() -> Path:
    return log_root() / "phplogtail.log"


class AppLogger:
    """
    Minimal append-only diagnostic logger.

    Attributes:
        session_id: Short identifier tagging every line from this process.
        path: The filesystem path to the log file.

    Log Line Format:
        <timestamp> [session=<id>] [component=<name>] <LEVEL> <message>

    Example:
        >>> logger = AppLogger()
        >>> logger.info("session", "Watching /var/log/php/error.log")
        # Writes: 2024-01-15T12:00:00Z [session=3f2a9c1e] [component=session] INFO Watching ...
    """

    def __init__(self, path: Path | None = None, session_id: str | None = None) -> None:
        """
        Args:
            path: Log file to append to; defaults to app_log_path().
            session_id: Identifier for this run; generated if omitted.
        """
        self.session_id = session_id or uuid.uuid4().hex[:8]
        self.path = path or app_log_path()
        # Ensure the directory exists before any writes
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _ts(self) -> str:
        """Return an ISO 8601 UTC timestamp like "2024-01-15T12:00:00Z"."""
        return (
            datetime.datetime.now(datetime.timezone.utc)
            .isoformat(timespec="seconds")
            .replace("+00:00", "Z")
        )

    def log(self, component: str, level: str, message: str) -> None:
        """
        Append one structured line to the log file.

        Args:
            component: Part of the tool emitting the line ("session", "cli").
            level: Severity ("INFO", "WARN", "ERROR").
            message: Human-readable text.
        """
        line = (
            f"{self._ts()} "
            f"[session={self.session_id}] "
            f"[component={component}] "
            f"{level.upper()} {message}\n"
        )
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line)

    def info(self, component: str, message: str) -> None:
        self.log(component, "INFO", message)

    def warn(self, component: str, message: str) -> None:
        self.log(component, "WARN", message)

    def error(self, component: str, message: str) -> None:
        self.log(component, "ERROR", message)
