"""
Filesystem change notifications for a single log file.

ChangeWatcher calls back whenever the watched file may have changed. Two
sources feed it:

    - watchdog events on the file's parent directory (low latency)
    - a fallback timer that fires every `interval` seconds

The timer also guarantees a callback after the writer goes quiet, which is
what lets the session close the last entry of a burst.

Design Decisions:
    - The parent directory is watched, not the file, so creation, deletion
      and rename-over (logrotate) are all seen
    - Only created/modified/moved/deleted events count; opened/closed events
      would fire for our own reads and cause a feedback loop
    - A missing parent directory or an observer that fails to start leaves
      the timer running on its own
"""

import os
import threading
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

RELEVANT_EVENT_TYPES = frozenset({"created", "modified", "moved", "deleted"})


class _TargetFileHandler(FileSystemEventHandler):
    """Forward watchdog events that concern one file path."""

    def __init__(self, target: Path, fire: Callable[[], None]):
        super().__init__()
        self.target = target
        self.fire = fire

    def _is_target(self, raw_path) -> bool:
        if not raw_path:
            return False
        return Path(os.fsdecode(raw_path)).absolute() == self.target

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in RELEVANT_EVENT_TYPES:
            return
        if self._is_target(event.src_path) or self._is_target(
            getattr(event, "dest_path", None)
        ):
            self.fire()


class ChangeWatcher:
    """
    Invoke a callback when a file changes, with a polling fallback.

    Attributes:
        path: Absolute path of the watched file.
        callback: Called with no arguments on every (possible) change.
        interval: Seconds between fallback timer callbacks.
        on_error: Receives exceptions raised by the callback. When unset the
                  exception propagates and ends the thread that raised it.

    Example:
        >>> watcher = ChangeWatcher(Path("error.log"), session.poll, 0.25)
        >>> watcher.start()
        >>> watcher.stop()
    """

    def __init__(
        self,
        path: Path,
        callback: Callable[[], None],
        interval: float = 0.25,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        self.path = Path(path).absolute()
        self.callback = callback
        self.interval = interval
        self.on_error = on_error
        self._stop = threading.Event()
        self._observer: Optional[Observer] = None
        self._timer: Optional[threading.Thread] = None

    @property
    def uses_events(self) -> bool:
        """True when watchdog events are active (not just the timer)."""
        return self._observer is not None

    def start(self) -> None:
        self._stop.clear()

        parent = self.path.parent
        if parent.is_dir():
            observer = Observer()
            observer.schedule(
                _TargetFileHandler(self.path, self._fire),
                str(parent),
                recursive=False,
            )
            observer.daemon = True
            try:
                observer.start()
            except OSError:
                # inotify watch limit and similar; the timer still covers us
                observer = None
            self._observer = observer

        self._timer = threading.Thread(
            target=self._timer_loop,
            name=f"phplogtail-poll:{self.path.name}",
            daemon=True,
        )
        self._timer.start()

    def stop(self) -> None:
        """Stop both sources. Idempotent and safe from inside the callback."""
        self._stop.set()
        current = threading.current_thread()

        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            if observer is not current:
                observer.join(timeout=2)

        timer, self._timer = self._timer, None
        if timer is not None and timer is not current:
            timer.join(timeout=2)

    def _timer_loop(self) -> None:
        while not self._stop.wait(self.interval):
            self._fire()

    def _fire(self) -> None:
        if self._stop.is_set():
            return
        try:
            self.callback()
        except Exception as exc:
            if self.on_error is None:
                raise
            self.on_error(exc)
