"""
Watch session: incremental consumption of one PHP error log.

This module ties the pipeline together:

    RawChunkReader -> LineAssembler -> EntryParser -> consumer events
                                                   -> AlertThrottle -> alert

A WatchSession owns all tailing state for one file (byte offset, held-back
line fragment, parser state, id counter) and publishes events to a sink
callable. Filesystem failures never escape a poll; they become status
events and the next poll simply tries again.

Concurrency:
    Change notifications arrive on watcher threads. Only one poll runs at a
    time per session; requests that arrive meanwhile are folded into a
    single follow-up poll. switch_to() and stop() wait for an in-flight poll
    before touching state. Each session's state is private, so several
    sessions can run side by side.
"""

import stat
import threading
from pathlib import Path
from typing import List, Optional, Union

from ..utils.applog import AppLogger
from .errors import NotARegularFileError, SessionAlreadyStartedError, SessionNotStartedError
from .events import (
    Alert,
    EntriesAppended,
    EventSink,
    Reset,
    Status,
    StatusCondition,
    WatchEvent,
)
from .lines import LineAssembler
from .notify import ChangeWatcher
from .parser import EntryParser, ParserState
from .reader import RawChunkReader
from .throttle import AlertThrottle, shared_throttle

PathLike = Union[str, Path]

COMPONENT = "session"


def _check_regular_file(path: Path) -> None:
    """Reject directories and devices; a missing file is acceptable."""
    try:
        st = path.stat()
    except OSError:
        # Missing or unreadable: reported through status events instead
        return
    if not stat.S_ISREG(st.st_mode):
        raise NotARegularFileError(f"Not a regular file: {path}")


def _condition_for(exc: OSError) -> StatusCondition:
    if isinstance(exc, PermissionError):
        return StatusCondition.PERMISSION_DENIED
    return StatusCondition.READ_FAILED


class WatchSession:
    """
    Tail one PHP error log and publish its entries as events.

    Attributes:
        sink: Callable receiving Reset/EntriesAppended/Alert/Status events.
        throttle: Alert throttle (the process-wide one by default).
        file_path: File currently watched, or None when idle.
        notify: Start a ChangeWatcher on start(); disable to drive poll()
                by hand.
        poll_interval: Fallback timer period in seconds.

    Example:
        >>> events = []
        >>> session = WatchSession(events.append, notify=False)
        >>> session.start("error.log", from_beginning=True)
        >>> session.poll()
    """

    def __init__(
        self,
        sink: EventSink,
        throttle: Optional[AlertThrottle] = None,
        clock=None,
        logger: Optional[AppLogger] = None,
        notify: bool = True,
        poll_interval: float = 0.25,
        encoding: str = "utf-8",
    ):
        """
        Args:
            sink: Receives every event this session publishes.
            throttle: Shared alert throttle; defaults to shared_throttle().
            clock: Wall clock for entries with unparseable timestamps.
            logger: Optional diagnostic logger.
            notify: Watch the filesystem for changes after start().
            poll_interval: Seconds between fallback polls.
            encoding: Text encoding of the log file.
        """
        self.sink = sink
        self.throttle = throttle or shared_throttle()
        self.logger = logger
        self.notify = notify
        self.poll_interval = poll_interval

        self.file_path: Optional[Path] = None
        self._reader: Optional[RawChunkReader] = None
        self._lines = LineAssembler(encoding)
        self._parser = EntryParser(clock)
        self._watcher: Optional[ChangeWatcher] = None
        self._condition: Optional[StatusCondition] = None
        # Bumped on every start/stop so a superseded poll stops publishing
        self._generation = 0

        self._io_lock = threading.RLock()
        self._flag_lock = threading.Lock()
        self._polling = False
        self._poll_again = False

    # --- state inspection ---

    @property
    def is_active(self) -> bool:
        return self.file_path is not None

    @property
    def byte_offset(self) -> int:
        return self._reader.offset if self._reader else 0

    @property
    def pending_line_fragment(self) -> bytes:
        return self._lines.pending

    @property
    def parser_state(self) -> ParserState:
        return self._parser.state

    @property
    def next_entry_id(self) -> int:
        return self._parser.next_entry_id

    @property
    def condition(self) -> Optional[StatusCondition]:
        return self._condition

    # --- commands ---

    def start(self, file_path: PathLike, from_beginning: bool = False) -> None:
        """
        Begin watching a file.

        By default the offset starts at end-of-file so existing history is
        not replayed. A file that does not exist yet is accepted; entries
        start flowing once it appears.

        Args:
            file_path: Log file to watch.
            from_beginning: Read existing content from byte 0.

        Raises:
            SessionAlreadyStartedError: The session is already watching.
            NotARegularFileError: The path is a directory or similar.
        """
        path = Path(file_path)
        with self._io_lock:
            if self.file_path is not None:
                raise SessionAlreadyStartedError(
                    f"Session already watching {self.file_path}; use switch_to()"
                )
            _check_regular_file(path)

            self._generation += 1
            self.file_path = path
            self._reader = RawChunkReader(path)
            self._lines.reset()
            self._parser.reset()
            self._condition = None

            try:
                found = self._reader.attach(from_beginning)
            except OSError as exc:
                events = self._condition_events(_condition_for(exc), str(exc))
            else:
                condition = (
                    StatusCondition.WATCHING if found else StatusCondition.FILE_NOT_FOUND
                )
                events = self._condition_events(condition)

            self._log(
                "INFO",
                f"Watching {path} from_beginning={from_beginning} offset={self.byte_offset}",
            )
            self._publish(events, self._generation)

            if self.notify:
                self._watcher = ChangeWatcher(
                    path,
                    self._on_change,
                    interval=self.poll_interval,
                    on_error=self._on_watcher_error,
                )
                self._watcher.start()

    def switch_to(self, file_path: PathLike) -> None:
        """
        Replace the watched file, reading the new one from the beginning.

        Publishes a reset for the new path before any of its entries. Waits
        for an in-flight poll on the old file to finish first.
        """
        self._stop_watcher()
        with self._io_lock:
            self._deactivate()
            self._log("INFO", f"Switching to {file_path}")
            self.sink(Reset(str(file_path)))
            self.start(file_path, from_beginning=True)

    def stop(self) -> None:
        """Release the filesystem watch and drop all tailing state. Idempotent."""
        self._stop_watcher()
        with self._io_lock:
            self._deactivate()

    def poll(self) -> None:
        """
        Read whatever was appended since the last poll and publish it.

        Concurrent calls are coalesced: if a poll is already running, this
        call only asks it to run once more and returns immediately.

        Raises:
            SessionNotStartedError: The session is not watching a file.
        """
        if self.file_path is None:
            raise SessionNotStartedError("poll() called on a session that is not watching")

        with self._flag_lock:
            if self._polling:
                self._poll_again = True
                return
            self._polling = True

        try:
            while True:
                self._poll_once()
                with self._flag_lock:
                    if not self._poll_again:
                        self._polling = False
                        return
                    self._poll_again = False
        except BaseException:
            with self._flag_lock:
                self._polling = False
                self._poll_again = False
            raise

    # --- internals ---

    def _poll_once(self) -> None:
        with self._io_lock:
            if self.file_path is None:
                return
            generation = self._generation
            file_path = str(self.file_path)
            events: List[WatchEvent] = []

            try:
                chunk = self._reader.read()
            except OSError as exc:
                self._publish(self._condition_events(_condition_for(exc), str(exc)), generation)
                return

            if chunk.missing:
                self._publish(
                    self._condition_events(StatusCondition.FILE_NOT_FOUND), generation
                )
                return

            if self._condition is not None and self._condition.is_problem:
                events.extend(self._condition_events(StatusCondition.WATCHING_RESUMED))

            if chunk.rotated:
                self._log("WARN", f"Truncation or rotation detected on {file_path}")
                self._lines.reset()
                self._parser.reset()
                events.append(Reset(file_path))

            entries = self._parser.feed_lines(self._lines.feed(chunk.data))
            if not chunk.data and not self._lines.pending:
                # Nothing arrived for a whole poll: the open entry is complete
                entries.extend(self._parser.flush())

            if entries:
                events.append(EntriesAppended(file_path, tuple(entries)))
                # Alert candidates; the throttle decides at publish time
                events.extend(Alert(file_path, entry) for entry in entries)

            self._publish(events, generation)

    def _publish(self, events: List[WatchEvent], generation: int) -> None:
        for event in events:
            # A consumer callback may have switched or stopped the session
            if generation != self._generation:
                return
            if isinstance(event, Alert) and not self.throttle.should_alert(event.entry):
                continue
            self.sink(event)

    def _condition_events(self, condition: StatusCondition, detail: str = "") -> List[WatchEvent]:
        if condition == self._condition:
            return []
        self._condition = condition
        level = "WARN" if condition.is_problem else "INFO"
        self._log(level, f"Status {condition.value} {detail}".rstrip())
        return [Status(str(self.file_path), condition, detail)]

    def _deactivate(self) -> None:
        if self.file_path is None:
            return
        self._log("INFO", f"Stopped watching {self.file_path}")
        self._generation += 1
        self.file_path = None
        self._reader = None
        self._lines.reset()
        self._parser.reset()
        self._condition = None

    def _stop_watcher(self) -> None:
        watcher, self._watcher = self._watcher, None
        if watcher is not None:
            watcher.stop()

    def _on_change(self) -> None:
        if self.file_path is None:
            return
        try:
            self.poll()
        except SessionNotStartedError:
            # Stopped between the check and the call
            return

    def _on_watcher_error(self, exc: Exception) -> None:
        self._log("ERROR", f"Poll failed on watcher thread: {exc!r}")

    def _log(self, level: str, message: str) -> None:
        if self.logger is not None:
            self.logger.log(COMPONENT, level, message)


def truncate_file(file_path: PathLike) -> None:
    """Empty a log file in place (creating it if needed)."""
    with Path(file_path).open("w", encoding="utf-8"):
        pass


class WatchController:
    """
    Command surface for a consumer: watch, stop watching, truncate.

    Wraps the single active session of a consumer window.

    Example:
        >>> controller = WatchController(WatchSession(sink))
        >>> controller.watch("/var/log/php/error.log")
        >>> controller.truncate("/var/log/php/error.log")
    """

    def __init__(self, session: WatchSession):
        self.session = session

    def watch(self, file_path: PathLike) -> None:
        """Begin or replace the active session with full reset semantics."""
        self.session.switch_to(file_path)
        self.session.poll()

    def stop_watching(self) -> None:
        self.session.stop()

    def truncate(self, file_path: PathLike) -> None:
        """Empty the file; the next poll reports the shrink as a reset."""
        truncate_file(file_path)
        current = self.session.file_path
        if current is not None and Path(file_path).absolute() == current.absolute():
            self.session.poll()
