"""
Human-friendly date labels for log entries.

Entries are shown with a coarse day badge ("TODAY", "3D AGO", "2W AGO")
next to a wall-clock time, so a long-lived log reads at a glance.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

ONE_DAY = timedelta(days=1)


def _local(dt: datetime) -> datetime:
    return dt.astimezone() if dt.tzinfo is not None else dt


def time_only(dt: Optional[datetime]) -> str:
    """Return HH:MM:SS in local time, or "" for a missing value."""
    if dt is None:
        return ""
    return _local(dt).strftime("%H:%M:%S")


def relative_day(dt: Optional[datetime], now: Optional[datetime] = None) -> str:
    """
    Return a day badge for a timestamp relative to now.

    Example:
        >>> relative_day(now - timedelta(days=10), now)
        '1W AGO'
    """
    if dt is None:
        return ""
    now = _local(now) if now is not None else datetime.now().astimezone()
    dt = _local(dt)

    if dt.date() == now.date():
        return "TODAY"

    if (dt.tzinfo is None) != (now.tzinfo is None):
        # Mixed naive/aware input: compare on the naive local clock
        dt = dt.replace(tzinfo=None)
        now = now.replace(tzinfo=None)
    diff_days = math.ceil((now - dt) / ONE_DAY)

    if diff_days < 1:
        # Timestamp from a later day than now (clock skew)
        return "TODAY"
    if diff_days < 7:
        return f"{diff_days}D AGO"
    if diff_days < 30:
        return f"{diff_days // 7}W AGO"
    if diff_days < 365:
        return f"{diff_days // 30}M AGO"
    return f"{diff_days // 365}Y AGO"


def is_older_than_a_day(dt: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if dt is None:
        return False
    now = now if now is not None else datetime.now().astimezone()
    if (dt.tzinfo is None) != (now.tzinfo is None):
        dt = _local(dt).replace(tzinfo=None)
        now = _local(now).replace(tzinfo=None)
    return dt < now - ONE_DAY
