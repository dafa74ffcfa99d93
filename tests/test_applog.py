"""Tests for the diagnostic logger and environment settings."""

import re
from pathlib import Path

from phplogtail.utils import paths
from phplogtail.utils.applog import AppLogger, app_log_path, log_root

LINE_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z \[session=abc123\] "
    r"\[component=session\] (INFO|WARN|ERROR) .+$"
)


def test_log_root_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("PHPLOGTAIL_LOG_ROOT", str(tmp_path))
    assert log_root() == tmp_path
    assert app_log_path() == tmp_path / "phplogtail.log"


def test_log_root_default(monkeypatch):
    monkeypatch.delenv("PHPLOGTAIL_LOG_ROOT", raising=False)
    assert log_root() == Path.home() / ".phplogtail" / "logs"


def test_logger_appends_structured_lines(tmp_path):
    path = tmp_path / "nested" / "phplogtail.log"
    logger = AppLogger(path=path, session_id="abc123")
    logger.info("session", "Watching /x/error.log")
    logger.warn("session", "Truncation or rotation detected")
    logger.error("session", "Poll failed")

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    assert all(LINE_PATTERN.match(line) for line in lines)
    assert lines[0].endswith("INFO Watching /x/error.log")
    assert " WARN " in lines[1]
    assert " ERROR " in lines[2]


def test_logger_generates_session_id(tmp_path):
    logger = AppLogger(path=tmp_path / "a.log")
    assert len(logger.session_id) == 8


def test_default_log_file(monkeypatch, tmp_path):
    monkeypatch.delenv("PHPLOGTAIL_LOG_FILE", raising=False)
    assert paths.default_log_file() == paths.DEFAULT_LOG_FILE.expanduser()
    monkeypatch.setenv("PHPLOGTAIL_LOG_FILE", str(tmp_path / "e.log"))
    assert paths.default_log_file() == tmp_path / "e.log"


def test_numeric_settings(monkeypatch):
    monkeypatch.setenv("PHPLOGTAIL_COOLDOWN_MS", "1500")
    monkeypatch.setenv("PHPLOGTAIL_POLL_INTERVAL", "fast")
    assert paths.cooldown_ms() == 1500.0
    assert paths.poll_interval() == paths.DEFAULT_POLL_INTERVAL


def test_editor_command(monkeypatch):
    monkeypatch.delenv("PHPLOGTAIL_EDITOR", raising=False)
    assert paths.editor_command() == "code"
    monkeypatch.setenv("PHPLOGTAIL_EDITOR", "subl")
    assert paths.editor_command() == "subl"
