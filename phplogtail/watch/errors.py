"""
Exceptions raised for misuse of the watch API.

Filesystem trouble (missing file, permission denied, read failures) is not
represented here: the session absorbs those and reports them as status
events. These exceptions are for callers that break the session contract.
"""


class WatchError(Exception):
    """Base class for watch-session contract violations."""


class SessionNotStartedError(WatchError):
    """An operation that needs an active session was called on an idle one."""


class SessionAlreadyStartedError(WatchError):
    """start() was called while the session is already watching a file."""


class NotARegularFileError(WatchError):
    """The path exists but is a directory or another non-regular file."""
