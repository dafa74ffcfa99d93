"""
Events published by a watch session to its consumer.

The consumer contract is a plain callable that accepts one event object.
The UI, the CLI printer and the tests all plug in at this seam.

Event names:
    - reset: discard everything previously shown for the file
    - entries-appended: ordered batch of newly completed entries
    - alert: an entry approved by the alert throttle
    - status: non-fatal condition change (missing file, permissions, ...)
"""

from dataclasses import dataclass
from enum import Enum
from queue import Queue
from typing import Callable, ClassVar, Tuple, Union

from .model import LogEntry


class StatusCondition(str, Enum):
    WATCHING = "watching"
    FILE_NOT_FOUND = "file not found"
    PERMISSION_DENIED = "permission denied"
    READ_FAILED = "read failed"
    WATCHING_RESUMED = "watching resumed"

    @property
    def is_problem(self) -> bool:
        return self in (
            StatusCondition.FILE_NOT_FOUND,
            StatusCondition.PERMISSION_DENIED,
            StatusCondition.READ_FAILED,
        )


@dataclass(frozen=True)
class Reset:
    name: ClassVar[str] = "reset"
    file_path: str


@dataclass(frozen=True)
class EntriesAppended:
    name: ClassVar[str] = "entries-appended"
    file_path: str
    entries: Tuple[LogEntry, ...]


@dataclass(frozen=True)
class Alert:
    name: ClassVar[str] = "alert"
    file_path: str
    entry: LogEntry


@dataclass(frozen=True)
class Status:
    name: ClassVar[str] = "status"
    file_path: str
    condition: StatusCondition
    detail: str = ""


WatchEvent = Union[Reset, EntriesAppended, Alert, Status]
EventSink = Callable[[WatchEvent], None]


class QueueSink:
    """
    Event sink that hands events to another thread through a queue.

    The watcher threads produce, the UI loop consumes. The queue should be
    unbounded: an entries-appended batch that is dropped is never resent.

    Example:
        >>> events = Queue()
        >>> session = WatchSession(QueueSink(events))
    """

    def __init__(self, queue: Queue):
        self.queue = queue

    def __call__(self, event: WatchEvent) -> None:
        self.queue.put(event)
