"""
Break cadence.

Pomodoro: every Nth completed session of the user's calendar day earns a
long break, all others a short one. Flowtime: one minute of break per
``break_ratio`` minutes worked, rounded up.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from focustrack.duration import ceil_div, day_bounds
from focustrack.models import FocusSession, Strategy
from focustrack.state_machine import SessionStatus


@dataclass(frozen=True)
class BreakPolicy:
    short_break: int = 5
    long_break: int = 15
    cycle_length: int = 4

    @classmethod
    def from_settings(cls, settings) -> "BreakPolicy":
        return cls(
            short_break=settings.short_break,
            long_break=settings.long_break,
            cycle_length=settings.cycle_length,
        )


def break_for_position(completed_today: int, policy: BreakPolicy = BreakPolicy()) -> int:
    """Break for the session completing after ``completed_today`` others today."""
    cycle_position = (completed_today + 1) % policy.cycle_length
    if cycle_position == 0:
        return policy.long_break
    return policy.short_break


def count_completed_today(
    db: Session,
    user_id: str,
    now: datetime,
    tz: tzinfo,
    *,
    exclude_id: Optional[str] = None,
) -> int:
    day_start, day_end = day_bounds(now, tz)
    statement = select(func.count()).select_from(FocusSession).where(
        FocusSession.user_id == user_id,
        FocusSession.strategy == Strategy.POMODORO.value,
        FocusSession.status == SessionStatus.COMPLETED.value,
        FocusSession.ended_at >= day_start,
        FocusSession.ended_at < day_end,
    )
    if exclude_id is not None:
        statement = statement.where(FocusSession.id != exclude_id)
    return int(db.exec(statement).one())


def next_pomodoro_break(
    db: Session,
    session: FocusSession,
    now: datetime,
    tz: tzinfo,
    policy: BreakPolicy = BreakPolicy(),
) -> int:
    completed_today = count_completed_today(db, session.user_id, now, tz, exclude_id=session.id)
    return break_for_position(completed_today, policy)


def flowtime_break(actual_duration: Optional[int], break_ratio: int) -> Optional[int]:
    """Suggested break in minutes, or None when nothing was worked."""
    if actual_duration is None or actual_duration <= 0:
        return None
    return ceil_div(actual_duration, break_ratio)
