"""Shared fixtures for the phplogtail test suite."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from phplogtail.watch.throttle import AlertThrottle

# The two-entry log used throughout the end-to-end tests
SCENARIO_LOG = (
    "[10-Jan-2024 10:00:00 UTC] PHP Fatal error: Call to undefined function foo() in /app/index.php:12\n"
    "Stack trace:\n"
    "#0 /app/index.php(12): foo()\n"
    "#1 {main}\n"
    "[10-Jan-2024 10:00:05 UTC] PHP Warning: Undefined variable $bar in /app/lib.php:5\n"
)

# Header + 2 continuation lines + 3 frames, followed by the next header
MULTILINE_LOG = (
    "[10-Jan-2024 10:00:00 UTC] PHP Fatal error:  Uncaught Exception: boom\n"
    "continued detail one\n"
    "continued detail two\n"
    "Stack trace:\n"
    "#0 /app/src/Kernel.php(40): App\\Kernel->boot()\n"
    "#1 /app/public/index.php(12): App\\Kernel->handle()\n"
    "#2 {main}\n"
    "[10-Jan-2024 10:00:01 UTC] PHP Notice:  next\n"
).encode("utf-8")

FIXED_NOW = datetime(2024, 1, 10, 12, 0, 0, tzinfo=timezone.utc)


def append(path: Path, text) -> None:
    data = text.encode("utf-8") if isinstance(text, str) else text
    with path.open("ab") as f:
        f.write(data)


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def log_file(tmp_path) -> Path:
    return tmp_path / "error.log"


@pytest.fixture
def throttle() -> AlertThrottle:
    return AlertThrottle(cooldown_ms=3000, clock=FakeClock())


@pytest.fixture
def events():
    return []
