"""Tests for entry formatting and search."""

from datetime import datetime, timedelta

from phplogtail.tui.render import (
    first_located_frame,
    format_entry,
    format_lines,
    is_old,
    matches_search,
)
from phplogtail.watch.model import EntryKind, LogEntry, StackFrame
from phplogtail.watch.parser import parse_frame

NOW = datetime(2024, 1, 10, 12, 0, 0)


def make_entry(**overrides):
    values = dict(
        id=1,
        kind=EntryKind.ERROR,
        timestamp=datetime(2024, 1, 10, 10, 0, 0),
        message="Call to undefined function foo()",
        stack_frames=(
            StackFrame(0, "[internal function]: bar()"),
            parse_frame(1, "/app/index.php(12): foo()"),
            StackFrame(2, "{main}"),
        ),
    )
    values.update(overrides)
    return LogEntry(**values)


def test_format_entry_with_trace():
    assert format_entry(make_entry(), now=NOW) == (
        "[TODAY] 10:00:00 - [ERROR] Call to undefined function foo()\n"
        "  [internal function]: bar()\n"
        "  /app/index.php(12): foo()\n"
        "  {main}"
    )


def test_format_entry_without_trace():
    text = format_entry(make_entry(), now=NOW, with_trace=False)
    assert text == "[TODAY] 10:00:00 - [ERROR] Call to undefined function foo()"


def test_approximate_time_is_marked():
    text = format_entry(make_entry(approximate_time=True, stack_frames=()), now=NOW)
    assert text.startswith("[TODAY] ~10:00:00 - ")


def test_old_entry_badge():
    entry = make_entry(timestamp=NOW - timedelta(days=3), kind=EntryKind.WARNING)
    assert format_entry(entry, now=NOW, with_trace=False).startswith("[3D AGO] 12:00:00 - [WARNING]")
    assert is_old(entry, NOW)
    assert not is_old(make_entry(), NOW)


def test_format_lines_splits_multiline_messages():
    entry = make_entry(message="first\nsecond", stack_frames=())
    assert format_lines(entry, now=NOW) == [
        "[TODAY] 10:00:00 - [ERROR] first",
        "second",
    ]


def test_matches_search():
    entry = make_entry()
    assert matches_search(entry, "")
    assert matches_search(entry, "UNDEFINED")
    assert matches_search(entry, "index.php")
    assert not matches_search(entry, "lib.php")


def test_first_located_frame():
    assert first_located_frame(make_entry()).line_number == 12
    assert first_located_frame(make_entry(stack_frames=())) is None
