"""Tests for the day badge and time helpers."""

from datetime import datetime, timedelta

import pytest

from phplogtail.utils.dates import is_older_than_a_day, relative_day, time_only

NOW = datetime(2024, 3, 20, 12, 0, 0)


@pytest.mark.parametrize("delta,badge", [
    (timedelta(hours=1), "TODAY"),
    (timedelta(days=1), "1D AGO"),
    (timedelta(days=3), "3D AGO"),
    (timedelta(days=10), "1W AGO"),
    (timedelta(days=45), "1M AGO"),
    (timedelta(days=800), "2Y AGO"),
])
def test_relative_day(delta, badge):
    assert relative_day(NOW - delta, NOW) == badge


def test_future_timestamp_is_today():
    assert relative_day(NOW + timedelta(days=2), NOW) == "TODAY"


def test_missing_values():
    assert relative_day(None, NOW) == ""
    assert time_only(None) == ""
    assert is_older_than_a_day(None, NOW) is False


def test_time_only():
    assert time_only(datetime(2024, 1, 10, 9, 5, 7)) == "09:05:07"


def test_is_older_than_a_day():
    assert is_older_than_a_day(NOW - timedelta(days=2), NOW)
    assert not is_older_than_a_day(NOW - timedelta(hours=2), NOW)
