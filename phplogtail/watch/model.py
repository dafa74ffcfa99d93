"""
Data models for parsed PHP log entries.

This module defines the structures shared by the parser, the watch session,
the alert throttle and the presentation layers.

Purpose:
    A PHP error log record spans one header line, optional continuation
    lines and an optional "Stack trace:" block. Everything downstream of the
    parser works with the structured form defined here instead of raw text.

Note:
    Entries are immutable once the parser closes them. Presentation state
    (selection, copy flashes, removal from a list) lives in the consumer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class EntryKind(str, Enum):
    """Severity class derived from the header's level token."""

    ERROR = "error"
    WARNING = "warning"
    NOTICE = "notice"
    DEPRECATED = "deprecated"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class StackFrame:
    """
    One "#N ..." line inside a stack-trace block.

    Attributes:
        index: Frame number exactly as printed (not renumbered).
        detail: Frame text with the "#N " marker removed.
        file_name: Source path when the detail has a "file(line): call" shape.
        line_number: Source line for the same shape.
    """
    index: int
    detail: str
    file_name: Optional[str] = None
    line_number: Optional[int] = None

    @property
    def has_location(self) -> bool:
        return self.file_name is not None and self.line_number is not None


@dataclass(frozen=True)
class LogEntry:
    """
    One logical record from the PHP error log.

    Attributes:
        id: Session-unique, monotonically increasing identifier.
        kind: Severity class (error, warning, notice, deprecated, unknown).
        timestamp: Time from the header, or ingestion time when unparseable.
        message: Primary text; continuation lines joined with newlines.
        stack_frames: Frames in the order they appeared.
        approximate_time: True when timestamp is the ingestion fallback.
        level: Raw level token from the header ("Fatal error"), if any.
    """
    id: int
    kind: EntryKind
    timestamp: datetime
    message: str
    stack_frames: Tuple[StackFrame, ...] = field(default_factory=tuple)
    approximate_time: bool = False
    level: Optional[str] = None

    @property
    def first_line(self) -> str:
        return self.message.split("\n", 1)[0]

    @property
    def has_stack_trace(self) -> bool:
        return len(self.stack_frames) > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serialisable dictionary."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "level": self.level,
            "timestamp": self.timestamp.isoformat(),
            "approximate_time": self.approximate_time,
            "message": self.message,
            "stack_frames": [
                {
                    "index": frame.index,
                    "detail": frame.detail,
                    "file_name": frame.file_name,
                    "line_number": frame.line_number,
                }
                for frame in self.stack_frames
            ],
        }
