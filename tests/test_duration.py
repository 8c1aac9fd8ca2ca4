from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from focustrack.duration import (
    as_utc,
    ceil_div,
    clamp,
    day_bounds,
    to_storage,
    utc_now,
    wall_time_minutes,
    whole_minutes,
    worked_minutes,
)


def test_whole_minutes_floors_and_never_goes_negative():
    assert whole_minutes(0) == 0
    assert whole_minutes(59.9) == 0
    assert whole_minutes(60) == 1
    assert whole_minutes(1799) == 29
    assert whole_minutes(-30) == 0


def test_wall_time_minutes_accepts_naive_and_aware():
    start = datetime(2026, 3, 2, 9, 0, 0)
    end = datetime(2026, 3, 2, 9, 25, 59, tzinfo=timezone.utc)
    assert wall_time_minutes(start, end) == 25


def test_wall_time_minutes_across_days():
    start = datetime(2026, 3, 2, 23, 50)
    assert wall_time_minutes(start, start + timedelta(hours=1)) == 60


def test_worked_minutes_subtracts_paused_seconds():
    start = datetime(2026, 3, 2, 9, 0)
    end = start + timedelta(minutes=30)
    assert worked_minutes(start, end, paused_seconds=600) == 20


def test_ceil_div():
    assert ceil_div(25, 5) == 5
    assert ceil_div(26, 5) == 6
    assert ceil_div(1, 5) == 1
    with pytest.raises(ValueError):
        ceil_div(3, 0)


def test_clamp():
    assert clamp(0, 1, 120) == 1
    assert clamp(500, 1, 120) == 120
    assert clamp(25, 1, 120) == 25


def test_as_utc_converts_offsets():
    local = datetime(2026, 3, 2, 10, 0, tzinfo=timezone(timedelta(hours=1)))
    assert as_utc(local) == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def test_day_bounds_utc():
    start, end = day_bounds(datetime(2026, 3, 2, 15, 30), timezone.utc)
    assert start == datetime(2026, 3, 2, tzinfo=timezone.utc)
    assert end == datetime(2026, 3, 3, tzinfo=timezone.utc)


def test_day_bounds_in_local_timezone():
    # 23:30 UTC on March 2nd is already March 3rd in Berlin (UTC+1)
    start, end = day_bounds(datetime(2026, 3, 2, 23, 30), ZoneInfo("Europe/Berlin"))
    assert start == datetime(2026, 3, 2, 23, 0, tzinfo=timezone.utc)
    assert end == datetime(2026, 3, 3, 23, 0, tzinfo=timezone.utc)


def test_storage_timestamps_are_aware_utc():
    assert utc_now().tzinfo is timezone.utc
    stored = to_storage(datetime(2026, 3, 2, 9, 0))
    assert stored == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
    assert stored.tzinfo is timezone.utc
