"""
Curses-based viewer for a live PHP error log.

This module contains the main rendering loop for the TUI. It runs a watch
session whose watcher threads push events into a queue, and a render loop
that drains the queue and draws the entries.

Architecture:
    - Watcher threads: watchdog events + fallback timer call session.poll()
    - Main thread: drains the event queue and renders via curses
    - Communication: unbounded thread-safe queue (QueueSink)

Keys:
    q  quit            r  reload the file from the start
    c  clear the log   t  toggle stack traces
    /  search          o  open the newest located frame in the editor
"""

import curses
import subprocess
import time
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from queue import Empty, Queue
from typing import Deque, List, Optional

from ..utils import paths
from ..utils.applog import AppLogger
from ..watch.events import Alert, EntriesAppended, QueueSink, Reset, Status
from ..watch.model import LogEntry
from ..watch.session import WatchController, WatchSession
from ..watch.throttle import AlertThrottle, format_alert
from .render import first_located_frame, format_lines, matches_search

# How long an alert stays highlighted in the header
ALERT_FLASH_SECONDS = 3.0
MAX_ENTRIES = 2000


@dataclass
class ViewerState:
    """Everything the render loop draws."""
    file_path: str
    entries: Deque[LogEntry] = field(default_factory=lambda: deque(maxlen=MAX_ENTRIES))
    status: str = ""
    alert_text: str = ""
    alert_until: float = 0.0
    show_traces: bool = False
    search: str = ""
    search_input: Optional[str] = None

    def apply(self, event, now: float) -> bool:
        """Fold one session event into the view. Returns True on an alert."""
        if isinstance(event, Reset):
            self.file_path = event.file_path
            self.entries.clear()
        elif isinstance(event, EntriesAppended):
            self.entries.extend(event.entries)
        elif isinstance(event, Status):
            self.status = event.condition.value
        elif isinstance(event, Alert):
            title, body = format_alert(event.entry)
            self.alert_text = f"{title}: {body}"
            self.alert_until = now + ALERT_FLASH_SECONDS
            return True
        return False

    def visible_lines(self) -> List[str]:
        lines: List[str] = []
        for entry in self.entries:
            if matches_search(entry, self.search):
                lines.extend(format_lines(entry, with_trace=self.show_traces))
        return lines


def open_in_editor(entry: LogEntry) -> bool:
    """Open the entry's first located frame in the configured editor."""
    frame = first_located_frame(entry)
    if frame is None:
        return False
    try:
        subprocess.Popen(
            [paths.editor_command(), "-g", f"{frame.file_name}:{frame.line_number}"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError:
        # Editor missing from PATH; the viewer beeps instead of crashing
        return False
    return True


def _handle_search_key(state: ViewerState, ch: int) -> None:
    if ch == 27:  # Esc clears the filter
        state.search_input = None
        state.search = ""
    elif ch in (10, 13, curses.KEY_ENTER):
        state.search = state.search_input or ""
        state.search_input = None
    elif ch in (curses.KEY_BACKSPACE, 127, 8):
        state.search_input = (state.search_input or "")[:-1]
    elif 32 <= ch < 127:
        state.search_input = (state.search_input or "") + chr(ch)


def _draw(stdscr, state: ViewerState, now: float) -> None:
    stdscr.erase()
    h, w = stdscr.getmaxyx()

    header = "phplogtail"
    if state.alert_text and now < state.alert_until:
        header = f"{header}  !! {state.alert_text}"
    stdscr.addstr(0, 0, header[: w - 1], curses.A_BOLD)
    stdscr.addstr(1, 0, "-" * (w - 1))

    lines = state.visible_lines()
    # Leave room for header (2 lines) and footer (2 lines)
    room = max(0, h - 4)
    start = max(0, len(lines) - room)
    for idx, line in enumerate(lines[start:], start=2):
        if idx >= h - 2:
            break
        # Log text may hold characters the terminal rejects
        try:
            stdscr.addstr(idx, 0, line[: w - 1])
        except curses.error:
            pass

    if state.search_input is not None:
        footer = f"/{state.search_input}"
    else:
        footer = "q quit  r reload  c clear  t traces  / search  o open"
        if state.search:
            footer += f"  [filter: {state.search}]"
    stdscr.addstr(h - 2, 0, footer[: w - 1])
    status_bar = f"{state.file_path}  {state.status}"
    stdscr.addstr(h - 1, 0, status_bar[: w - 1], curses.A_REVERSE)
    stdscr.refresh()


def run_log_viewer(
    stdscr,
    file_path: Path,
    cooldown_ms: float = paths.DEFAULT_COOLDOWN_MS,
    poll_interval: float = paths.DEFAULT_POLL_INTERVAL,
    logger: Optional[AppLogger] = None,
) -> None:
    """
    Run the interactive log viewer until the user quits.

    Args:
        stdscr: The curses standard screen (provided by curses.wrapper).
        file_path: PHP error log to watch; read from the beginning.
        cooldown_ms: Alert throttle cooldown.
        poll_interval: Fallback poll period in seconds.
        logger: Optional diagnostic logger.
    """
    curses.curs_set(0)
    stdscr.nodelay(True)
    stdscr.keypad(True)

    events: Queue = Queue()
    session = WatchSession(
        QueueSink(events),
        throttle=AlertThrottle(cooldown_ms=cooldown_ms),
        logger=logger,
        poll_interval=poll_interval,
    )
    controller = WatchController(session)
    state = ViewerState(file_path=str(file_path))

    controller.watch(file_path)

    try:
        while True:
            ch = stdscr.getch()
            if state.search_input is not None and ch != -1:
                _handle_search_key(state, ch)
            elif ch in (ord("q"), ord("Q"), 3):
                break
            elif ch in (ord("r"), ord("R")):
                controller.watch(state.file_path)
            elif ch in (ord("c"), ord("C")):
                controller.truncate(state.file_path)
            elif ch in (ord("t"), ord("T")):
                state.show_traces = not state.show_traces
            elif ch == ord("/"):
                state.search_input = ""
            elif ch in (ord("o"), ord("O")) and state.entries:
                if not open_in_editor(state.entries[-1]):
                    curses.beep()

            now = time.monotonic()
            try:
                while True:
                    if state.apply(events.get_nowait(), now):
                        curses.beep()
            except Empty:
                pass

            _draw(stdscr, state, now)
            # ~20 FPS is smooth enough for log viewing
            time.sleep(0.05)
    finally:
        controller.stop_watching()
