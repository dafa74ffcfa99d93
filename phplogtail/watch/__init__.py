"""
Tailing pipeline for PHP error logs.

Modules:
    - reader: reads appended bytes, detects truncation and rotation
    - lines: frames the byte stream into complete lines
    - parser: groups lines into LogEntry records
    - session: WatchSession and the WatchController command surface
    - throttle: suppresses repeated alerts within a cooldown
    - notify: filesystem change notifications (watchdog + timer)
    - events: the events a session publishes to its consumer
    - model: LogEntry, StackFrame, EntryKind

Architecture:
    filesystem change -> RawChunkReader -> LineAssembler -> EntryParser
    -> entries-appended event, and separately AlertThrottle -> alert event
"""

from .events import Alert, EntriesAppended, QueueSink, Reset, Status, StatusCondition
from .model import EntryKind, LogEntry, StackFrame
from .parser import EntryParser
from .session import WatchController, WatchSession
from .throttle import AlertThrottle

__all__ = [
    "Alert",
    "AlertThrottle",
    "EntriesAppended",
    "EntryKind",
    "EntryParser",
    "LogEntry",
    "QueueSink",
    "Reset",
    "StackFrame",
    "Status",
    "StatusCondition",
    "WatchController",
    "WatchSession",
]
