"""
Text rendering of log entries for the CLI and the curses viewer.

Both front ends print entries in the same "raw" layout:

    [TODAY] 10:00:00 - [ERROR] Call to undefined function foo() in /app/index.php:12
      /app/index.php(12): foo()
      {main}
"""

from datetime import datetime
from typing import List, Optional

from ..utils.dates import is_older_than_a_day, relative_day, time_only
from ..watch.model import LogEntry, StackFrame


def format_entry(
    entry: LogEntry,
    now: Optional[datetime] = None,
    with_trace: bool = True,
) -> str:
    """
    Format an entry as one or more display lines joined by newlines.

    Args:
        entry: The entry to format.
        now: Reference time for the day badge; defaults to now.
        with_trace: Append the stack frames, indented by two spaces.
    """
    badge = relative_day(entry.timestamp, now)
    stamp = time_only(entry.timestamp)
    if entry.approximate_time:
        stamp = f"~{stamp}"
    text = f"[{badge}] {stamp} - [{entry.kind.value.upper()}] {entry.message}"

    if with_trace and entry.stack_frames:
        text += "\n" + "\n".join(f"  {frame.detail}" for frame in entry.stack_frames)
    return text


def format_lines(
    entry: LogEntry,
    now: Optional[datetime] = None,
    with_trace: bool = True,
) -> List[str]:
    return format_entry(entry, now, with_trace).split("\n")


def matches_search(entry: LogEntry, needle: str) -> bool:
    """Case-insensitive match against the message and the frame details."""
    if not needle:
        return True
    needle = needle.lower()
    if needle in entry.message.lower():
        return True
    return any(needle in frame.detail.lower() for frame in entry.stack_frames)


def is_old(entry: LogEntry, now: Optional[datetime] = None) -> bool:
    return is_older_than_a_day(entry.timestamp, now)


def first_located_frame(entry: LogEntry) -> Optional[StackFrame]:
    """The first frame that points at a file and line, if any."""
    for frame in entry.stack_frames:
        if frame.has_location:
            return frame
    return None
