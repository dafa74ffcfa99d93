"""Tests for the viewer's event folding and editor launch."""

from datetime import datetime

from phplogtail.tui import views
from phplogtail.tui.views import ViewerState, open_in_editor
from phplogtail.watch.events import Alert, EntriesAppended, Reset, Status, StatusCondition
from phplogtail.watch.model import EntryKind, LogEntry, StackFrame

STAMP = datetime(2024, 1, 10, 10, 0, 0)


def make_entry(entry_id, message, frames=()):
    return LogEntry(
        id=entry_id,
        kind=EntryKind.ERROR,
        timestamp=STAMP,
        message=message,
        stack_frames=tuple(frames),
    )


def test_apply_folds_events():
    state = ViewerState(file_path="a.log")
    entries = (make_entry(1, "one"), make_entry(2, "two"))

    assert state.apply(EntriesAppended("a.log", entries), now=0) is False
    assert [e.id for e in state.entries] == [1, 2]

    assert state.apply(Status("a.log", StatusCondition.FILE_NOT_FOUND), now=0) is False
    assert state.status == "file not found"

    assert state.apply(Alert("a.log", entries[0]), now=10) is True
    assert state.alert_text == "PHP Error: one"
    assert state.alert_until > 10

    state.apply(Reset("b.log"), now=11)
    assert state.file_path == "b.log"
    assert len(state.entries) == 0


def test_visible_lines_respects_search_and_traces():
    state = ViewerState(file_path="a.log")
    state.apply(
        EntriesAppended(
            "a.log",
            (make_entry(1, "alpha", [StackFrame(0, "{main}")]), make_entry(2, "beta")),
        ),
        now=0,
    )
    assert len(state.visible_lines()) == 2

    state.show_traces = True
    assert "  {main}" in state.visible_lines()

    state.search = "beta"
    lines = state.visible_lines()
    assert len(lines) == 1
    assert lines[0].endswith("beta")


def test_open_in_editor(monkeypatch):
    calls = []
    monkeypatch.setattr(views.subprocess, "Popen", lambda args, **kwargs: calls.append(args))
    monkeypatch.setenv("PHPLOGTAIL_EDITOR", "myeditor")

    located = make_entry(1, "x", [StackFrame(0, "/app/a.php(3): f()", "/app/a.php", 3)])
    assert open_in_editor(located) is True
    assert calls == [["myeditor", "-g", "/app/a.php:3"]]

    assert open_in_editor(make_entry(2, "y", [StackFrame(0, "{main}")])) is False
    assert len(calls) == 1


def test_open_in_editor_with_missing_editor(monkeypatch):
    monkeypatch.setenv("PHPLOGTAIL_EDITOR", "phplogtail-no-such-editor-xyz")
    located = make_entry(1, "x", [StackFrame(0, "/app/a.php(3): f()", "/app/a.php", 3)])
    assert open_in_editor(located) is False


def test_search_keys():
    state = ViewerState(file_path="a.log", search_input="")
    for ch in b"boom":
        views._handle_search_key(state, ch)
    assert state.search_input == "boom"

    views._handle_search_key(state, 127)
    views._handle_search_key(state, 10)
    assert state.search == "boo"
    assert state.search_input is None

    state.search_input = "x"
    views._handle_search_key(state, 27)
    assert state.search_input is None
    assert state.search == ""
