"""
Filesystem locations and environment-driven settings.

All path and configuration lookups are centralised here so the CLI, the
TUI and the tests resolve them the same way.

Design Decisions:
    - All functions return pathlib.Path objects
    - Environment variables override built-in defaults
    - The default log file matches a typical local PHP development setup
"""

import os
from pathlib import Path

# Where the PHP interpreter writes its error_log by default on the
# development machines this tool was written for.
DEFAULT_LOG_FILE = Path("~/sites/ai/logs/php/error.log")

DEFAULT_COOLDOWN_MS = 3000
DEFAULT_POLL_INTERVAL = 0.25
DEFAULT_EDITOR = "code"


def default_log_file() -> Path:
    """
    Return the PHP error log watched when no path is given.

    Uses PHPLOGTAIL_LOG_FILE if set.

    Example:
        >>> default_log_file()
        PosixPath('/home/user/sites/ai/logs/php/error.log')
    """
    configured = os.environ.get("PHPLOGTAIL_LOG_FILE")
    if configured:
        return Path(configured).expanduser()
    return DEFAULT_LOG_FILE.expanduser()


def env_float(name: str, default: float) -> float:
    """
    Read a numeric setting from the environment.

    Malformed values fall back to the default rather than aborting startup.
    """
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def cooldown_ms() -> float:
    return env_float("PHPLOGTAIL_COOLDOWN_MS", DEFAULT_COOLDOWN_MS)


def poll_interval() -> float:
    return env_float("PHPLOGTAIL_POLL_INTERVAL", DEFAULT_POLL_INTERVAL)


def editor_command() -> str:
    return os.environ.get("PHPLOGTAIL_EDITOR") or DEFAULT_EDITOR


def dotenv_path() -> Path:
    """The optional .env file read at startup (current working directory)."""
    return Path.cwd() / ".env"
