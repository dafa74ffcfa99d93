"""
Alert throttling for repeated PHP errors.

A failing request loop can write the same error dozens of times a second.
The throttle lets the first one through and suppresses identical ones
(same kind, same first message line) until a cooldown has passed.

Design Decisions:
    - One global "last alert" slot, shared across kinds and files
    - The key is the first message line only, so repeats that differ in
      trailing detail (stack trace, request data) still collapse
    - The clock is injected so tests can drive time explicitly
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .model import EntryKind, LogEntry

DEFAULT_COOLDOWN_MS = 3000

# Desktop notification bodies are capped at 256 bytes on macOS
ALERT_BODY_LIMIT = 250

ALERT_KINDS = frozenset({EntryKind.ERROR, EntryKind.WARNING})


@dataclass(frozen=True)
class LastAlert:
    kind: EntryKind
    first_line: str
    timestamp: float


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class AlertThrottle:
    """
    Decide whether a completed entry should raise an alert.

    Attributes:
        cooldown_ms: Minimum gap between two identical alerts.
        last_alert: The most recently approved alert, or None.

    Example:
        >>> throttle = AlertThrottle(cooldown_ms=3000)
        >>> throttle.should_alert(entry, now=0)
        True
        >>> throttle.should_alert(entry, now=1000)
        False
    """

    def __init__(
        self,
        cooldown_ms: float = DEFAULT_COOLDOWN_MS,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            cooldown_ms: Suppression window for identical alerts.
            clock: Returns the current time in milliseconds. Defaults to
                   a monotonic clock.
        """
        self.cooldown_ms = cooldown_ms
        self.clock = clock or _monotonic_ms
        self.last_alert: Optional[LastAlert] = None
        self._lock = threading.Lock()

    def should_alert(self, entry: LogEntry, now: Optional[float] = None) -> bool:
        """
        Return True if the entry should be surfaced, recording it if so.

        Args:
            entry: A completed log entry.
            now: Current time in milliseconds; read from the clock if omitted.
        """
        if entry.kind not in ALERT_KINDS:
            return False

        if now is None:
            now = self.clock()
        first_line = entry.first_line

        with self._lock:
            last = self.last_alert
            if (
                last is not None
                and last.kind == entry.kind
                and last.first_line == first_line
                and now - last.timestamp < self.cooldown_ms
            ):
                return False
            self.last_alert = LastAlert(entry.kind, first_line, now)
            return True

    def clear(self) -> None:
        with self._lock:
            self.last_alert = None


_shared: Optional[AlertThrottle] = None
_shared_lock = threading.Lock()


def shared_throttle() -> AlertThrottle:
    """Return the process-wide throttle used by sessions not given one."""
    global _shared
    with _shared_lock:
        if _shared is None:
            _shared = AlertThrottle()
        return _shared


def format_alert(entry: LogEntry) -> Tuple[str, str]:
    """
    Build the (title, body) pair for a desktop-style notification.

    Example:
        >>> format_alert(entry)
        ('PHP Error', 'Call to undefined function foo() in /app/index.php:12')
    """
    title = f"PHP {entry.kind.value.capitalize()}"
    return title, entry.first_line[:ALERT_BODY_LIMIT]
