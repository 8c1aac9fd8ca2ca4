"""
Duration arithmetic: wall-clock intervals to whole minutes.

Timestamps are stored as aware UTC. Values read back from some database
drivers come back naive, so everything here accepts naive (assumed UTC)
or aware datetimes.
"""
from __future__ import annotations

import math
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Callable

SECONDS_PER_MINUTE = 60
# Upper bound for any minute count accepted from a client.
MAX_DURATION_MINUTES = 24 * 60

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Attach UTC to a naive datetime, or convert an aware one."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_storage(dt: datetime) -> datetime:
    """Aware UTC, the storage representation."""
    return as_utc(dt)


def elapsed_seconds(start: datetime, end: datetime) -> float:
    return (as_utc(end) - as_utc(start)).total_seconds()


def whole_minutes(seconds: float) -> int:
    """Floor seconds to whole minutes, never negative."""
    return max(0, int(seconds // SECONDS_PER_MINUTE))


def wall_time_minutes(start: datetime, end: datetime) -> int:
    return whole_minutes(elapsed_seconds(start, end))


def worked_minutes(start: datetime, end: datetime, paused_seconds: float = 0) -> int:
    """Wall time minus paused time, floored to minutes."""
    return whole_minutes(elapsed_seconds(start, end) - paused_seconds)


def ceil_div(numerator: int, denominator: int) -> int:
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return math.ceil(numerator / denominator)


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def day_bounds(moment: datetime, tz: tzinfo) -> tuple[datetime, datetime]:
    """Start and end of ``moment``'s calendar day in ``tz``, as aware UTC."""
    local_day = as_utc(moment).astimezone(tz).date()
    start = datetime.combine(local_day, time.min, tzinfo=tz)
    end = datetime.combine(local_day + timedelta(days=1), time.min, tzinfo=tz)
    return to_storage(start), to_storage(end)
