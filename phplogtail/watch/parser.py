"""
Line-driven parser that groups PHP error log lines into entries.

PHP writes one record per error, but a record is not one line:

    [10-Jan-2024 10:00:00 UTC] PHP Fatal error:  Uncaught Exception: boom in /app/index.php:12
    Stack trace:
    #0 /app/index.php(12): foo()
    #1 {main}

The parser is a small state machine fed one complete line at a time. An
entry stays open until a line arrives that cannot belong to it, so the
currently open entry survives across polls while its trace is still being
written.

Design Decisions:
    - Line shapes are declared in one table (LINE_SHAPES) and transitions in
      another (TRANSITIONS), so each shape can be tested on its own
    - Unrecognised content never raises; logs are uncontrolled input
    - Ids are assigned when the header is seen and never reused
    - Frame order and frame numbers are kept exactly as printed
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .model import EntryKind, LogEntry, StackFrame

# Separator used when a message spans several physical lines
MESSAGE_SEPARATOR = "\n"


class ParserState(Enum):
    AWAITING_HEADER = "awaiting-header"
    IN_MESSAGE = "in-message"
    IN_STACK_TRACE = "in-stack-trace"


class LineShape(Enum):
    HEADER = "header"
    TRACE_BEGIN = "trace-begin"
    FRAME = "frame"
    TEXT = "text"


# ============================================================
# Line shapes
# ============================================================
# Order matters: the first matching pattern wins. TEXT is the fallback.

# "[<timestamp>] <body>" where the bracket holds something with a time of
# day in it. Requiring the HH:MM keeps dumped arrays like ["a","b"] out.
HEADER_PATTERN = re.compile(
    r"^\[(?P<timestamp>[^\[\]]*\d{1,2}:\d{2}[^\[\]]*)\]\s*(?P<body>.*)$"
)

TRACE_BEGIN_PATTERN = re.compile(r"^Stack trace:\s*$")

FRAME_PATTERN = re.compile(r"^#(?P<index>\d+)\s+(?P<detail>.*)$")

LINE_SHAPES: Tuple[Tuple[LineShape, "re.Pattern[str]"], ...] = (
    (LineShape.HEADER, HEADER_PATTERN),
    (LineShape.TRACE_BEGIN, TRACE_BEGIN_PATTERN),
    (LineShape.FRAME, FRAME_PATTERN),
)

# "PHP Fatal error:  Uncaught ..." inside a header body
LEVEL_PATTERN = re.compile(
    r"^PHP\s+(?P<level>[A-Za-z][A-Za-z ]*?)\s*:\s*(?P<message>.*)$"
)

# "/app/index.php(12): foo()" inside a frame detail
FRAME_LOCATION_PATTERN = re.compile(
    r"^(?P<file>.+?)\((?P<line>\d+)\):\s*(?P<call>.*)$"
)

# PHP's error_log date format: 10-Jan-2024 10:00:00 UTC
PHP_TIMESTAMP_PATTERN = re.compile(
    r"^(?P<day>\d{1,2})-(?P<month>[A-Za-z]{3})-(?P<year>\d{4})\s+"
    r"(?P<hour>\d{1,2}):(?P<minute>\d{2}):(?P<second>\d{2})"
    r"(?:\s+(?P<zone>\S+))?$"
)

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

# Level tokens as PHP prints them, lower-cased
LEVEL_KINDS: Dict[str, EntryKind] = {
    "fatal error": EntryKind.ERROR,
    "parse error": EntryKind.ERROR,
    "recoverable fatal error": EntryKind.ERROR,
    "catchable fatal error": EntryKind.ERROR,
    "core error": EntryKind.ERROR,
    "compile error": EntryKind.ERROR,
    "user error": EntryKind.ERROR,
    "warning": EntryKind.WARNING,
    "core warning": EntryKind.WARNING,
    "compile warning": EntryKind.WARNING,
    "user warning": EntryKind.WARNING,
    "notice": EntryKind.NOTICE,
    "user notice": EntryKind.NOTICE,
    "strict standards": EntryKind.NOTICE,
    "deprecated": EntryKind.DEPRECATED,
    "user deprecated": EntryKind.DEPRECATED,
}


def classify_line(line: str) -> Tuple[LineShape, Optional[re.Match]]:
    """Return the shape of a line and the match that identified it."""
    for shape, pattern in LINE_SHAPES:
        match = pattern.match(line)
        if match:
            return shape, match
    return LineShape.TEXT, None


def classify_level(level: Optional[str]) -> EntryKind:
    """Map a PHP level token to an EntryKind; unknown tokens map to UNKNOWN."""
    if not level:
        return EntryKind.UNKNOWN
    normalized = " ".join(level.split()).lower()
    return LEVEL_KINDS.get(normalized, EntryKind.UNKNOWN)


def _resolve_zone(name: str):
    if name.upper() in ("UTC", "GMT", "Z"):
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return None


def _as_local(naive: datetime) -> Optional[datetime]:
    try:
        return naive.astimezone()
    except (OverflowError, OSError, ValueError):
        return None


def parse_timestamp(text: str) -> Optional[datetime]:
    """
    Parse a header timestamp into an aware datetime.

    Accepts PHP's "10-Jan-2024 10:00:00 UTC" form (zone optional, a missing
    zone means local time) and ISO 8601. Returns None when the text cannot
    be interpreted, including an unknown zone name.

    Example:
        >>> parse_timestamp("10-Jan-2024 10:00:00 UTC")
        datetime.datetime(2024, 1, 10, 10, 0, tzinfo=datetime.timezone.utc)
    """
    text = text.strip()
    match = PHP_TIMESTAMP_PATTERN.match(text)
    if match:
        month = MONTHS.get(match.group("month").lower())
        if month is None:
            return None
        try:
            naive = datetime(
                int(match.group("year")), month, int(match.group("day")),
                int(match.group("hour")), int(match.group("minute")),
                int(match.group("second")),
            )
        except ValueError:
            return None

        zone_name = match.group("zone")
        if zone_name is None:
            return _as_local(naive)
        zone = _resolve_zone(zone_name)
        if zone is None:
            return None
        return naive.replace(tzinfo=zone)

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return _as_local(parsed)
    return parsed


def parse_frame(index: int, detail: str) -> StackFrame:
    """
    Build a StackFrame, extracting file and line when the detail has them.

    Details without the "file(line): call" shape, such as "{main}" or
    "[internal function]: foo()", keep file_name and line_number unset.
    """
    match = FRAME_LOCATION_PATTERN.match(detail)
    if not match:
        return StackFrame(index=index, detail=detail)
    return StackFrame(
        index=index,
        detail=detail,
        file_name=match.group("file"),
        line_number=int(match.group("line")),
    )


@dataclass
class _OpenEntry:
    """Mutable builder for the entry that has not been closed yet."""
    id: int
    kind: EntryKind
    level: Optional[str]
    timestamp: datetime
    approximate_time: bool
    message_lines: List[str] = field(default_factory=list)
    frames: List[StackFrame] = field(default_factory=list)

    def close(self) -> LogEntry:
        lines = list(self.message_lines)
        # Blank lines before the next record are padding, not message text
        while len(lines) > 1 and not lines[-1].strip():
            lines.pop()
        return LogEntry(
            id=self.id,
            kind=self.kind,
            timestamp=self.timestamp,
            message=MESSAGE_SEPARATOR.join(lines),
            stack_frames=tuple(self.frames),
            approximate_time=self.approximate_time,
            level=self.level,
        )


def _local_now() -> datetime:
    return datetime.now().astimezone()


class EntryParser:
    """
    Group complete log lines into LogEntry records.

    States:
        AWAITING_HEADER: nothing open; only a header line starts an entry.
        IN_MESSAGE: header seen; plain lines extend the message.
        IN_STACK_TRACE: "Stack trace:" seen; "#N ..." lines are frames.

    Attributes:
        state: Current ParserState.
        next_entry_id: Id the next header will receive.
        dropped_lines: Lines discarded because no entry could take them.

    Example:
        >>> parser = EntryParser()
        >>> parser.feed("[10-Jan-2024 10:00:00 UTC] PHP Notice:  hi")
        []
        >>> [e.message for e in parser.flush()]
        ['hi']
    """

    # (state, shape) -> handler method name
    TRANSITIONS: Dict[Tuple[ParserState, LineShape], str] = {
        (ParserState.AWAITING_HEADER, LineShape.HEADER): "_open_entry",
        (ParserState.AWAITING_HEADER, LineShape.TRACE_BEGIN): "_drop_line",
        (ParserState.AWAITING_HEADER, LineShape.FRAME): "_drop_line",
        (ParserState.AWAITING_HEADER, LineShape.TEXT): "_drop_line",
        (ParserState.IN_MESSAGE, LineShape.HEADER): "_open_entry",
        (ParserState.IN_MESSAGE, LineShape.TRACE_BEGIN): "_begin_trace",
        (ParserState.IN_MESSAGE, LineShape.FRAME): "_continue_message",
        (ParserState.IN_MESSAGE, LineShape.TEXT): "_continue_message",
        (ParserState.IN_STACK_TRACE, LineShape.HEADER): "_open_entry",
        (ParserState.IN_STACK_TRACE, LineShape.TRACE_BEGIN): "_repeat_marker",
        (ParserState.IN_STACK_TRACE, LineShape.FRAME): "_add_frame",
        (ParserState.IN_STACK_TRACE, LineShape.TEXT): "_end_trace",
    }

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Args:
            clock: Returns "now" for headers whose timestamp cannot be
                   parsed. Defaults to the local wall clock.
        """
        self.clock = clock or _local_now
        self.state = ParserState.AWAITING_HEADER
        self.next_entry_id = 1
        self.dropped_lines = 0
        self._open: Optional[_OpenEntry] = None

    @property
    def has_open_entry(self) -> bool:
        return self._open is not None

    def feed(self, line: str) -> List[LogEntry]:
        """Consume one line and return the entries it closed (0 or 1)."""
        shape, match = classify_line(line)
        handler = getattr(self, self.TRANSITIONS[(self.state, shape)])
        return handler(line, match)

    def feed_lines(self, lines: Iterable[str]) -> List[LogEntry]:
        entries: List[LogEntry] = []
        for line in lines:
            entries.extend(self.feed(line))
        return entries

    def flush(self) -> List[LogEntry]:
        """Close the open entry, if any, and return it."""
        closed = self._close()
        self.state = ParserState.AWAITING_HEADER
        return closed

    def reset(self) -> None:
        """Forget the open entry and restart ids at 1."""
        self._open = None
        self.state = ParserState.AWAITING_HEADER
        self.next_entry_id = 1
        self.dropped_lines = 0

    # --- transition handlers ---

    def _close(self) -> List[LogEntry]:
        if self._open is None:
            return []
        entry = self._open.close()
        self._open = None
        return [entry]

    def _open_entry(self, line: str, match: re.Match) -> List[LogEntry]:
        closed = self._close()

        stamp_text = match.group("timestamp")
        body = match.group("body")

        timestamp = parse_timestamp(stamp_text)
        approximate = timestamp is None
        if timestamp is None:
            timestamp = self.clock()

        level = None
        message = body
        level_match = LEVEL_PATTERN.match(body)
        if level_match:
            level = " ".join(level_match.group("level").split())
            message = level_match.group("message")

        self._open = _OpenEntry(
            id=self.next_entry_id,
            kind=classify_level(level),
            level=level,
            timestamp=timestamp,
            approximate_time=approximate,
            message_lines=[message],
        )
        self.next_entry_id += 1
        self.state = ParserState.IN_MESSAGE
        return closed

    def _continue_message(self, line: str, match: Optional[re.Match]) -> List[LogEntry]:
        self._open.message_lines.append(line)
        return []

    def _begin_trace(self, line: str, match: re.Match) -> List[LogEntry]:
        self.state = ParserState.IN_STACK_TRACE
        return []

    def _repeat_marker(self, line: str, match: re.Match) -> List[LogEntry]:
        return []

    def _add_frame(self, line: str, match: re.Match) -> List[LogEntry]:
        frame = parse_frame(int(match.group("index")), match.group("detail"))
        self._open.frames.append(frame)
        return []

    def _end_trace(self, line: str, match: Optional[re.Match]) -> List[LogEntry]:
        closed = self._close()
        self.state = ParserState.AWAITING_HEADER
        # Re-run the line against the AWAITING_HEADER row of the table
        return closed + self.feed(line)

    def _drop_line(self, line: str, match: Optional[re.Match]) -> List[LogEntry]:
        if line.strip():
            self.dropped_lines += 1
        return []
