"""
Strategy policies.

Every session row carries a ``strategy`` tag; ``policy_for`` dispatches on it.
Policies mutate rows and stage inserts/deletes on the database session but
never commit: ``SessionService`` owns the transaction.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Optional

from sqlmodel import Session

from focustrack.cadence import BreakPolicy, flowtime_break, next_pomodoro_break
from focustrack.config import Settings, get_settings
from focustrack.duration import (
    MAX_DURATION_MINUTES,
    Clock,
    clamp,
    elapsed_seconds,
    to_storage,
    utc_now,
    wall_time_minutes,
    worked_minutes,
)
from focustrack.errors import StrategyMismatch, UnsupportedOperation, ValidationError
from focustrack.models import FocusSession, Strategy
from focustrack.state_machine import SessionStatus, ensure_transition, is_terminal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of complete/interrupt. A discarded session is no longer stored."""
    session: FocusSession
    discarded: bool = False


class SessionPolicy:
    strategy: ClassVar[Strategy]

    def __init__(self, db: Session, *, clock: Clock = utc_now, settings: Settings | None = None):
        self.db = db
        self.clock = clock
        self.settings = settings or get_settings()

    def now(self) -> datetime:
        return to_storage(self.clock())

    # --- lifecycle ---------------------------------------------------------
    def start(
        self,
        user_id: str,
        custom_goal: Optional[str] = None,
        task_id: Optional[str] = None,
        event_id: Optional[str] = None,
        target_duration: Optional[int] = None,
        break_ratio: Optional[int] = None,
    ) -> FocusSession:
        session = FocusSession(
            user_id=user_id,
            strategy=self.strategy.value,
            custom_goal=_clean_goal(custom_goal),
            task_id=task_id,
            event_id=event_id,
        )
        self.configure(session, target_duration=target_duration, break_ratio=break_ratio)
        session.status = ensure_transition(session.status, SessionStatus.RUNNING).value
        session.started_at = self.now()
        self.db.add(session)
        logger.info(
            "%s started: id=%s user=%s", self.strategy.value, session.id, user_id
        )
        return session

    def configure(
        self,
        session: FocusSession,
        *,
        target_duration: Optional[int] = None,
        break_ratio: Optional[int] = None,
    ) -> None:
        """Fill strategy-specific fields on a new session."""

    def continue_from(self, previous: FocusSession) -> FocusSession:
        self._check_strategy(previous)
        return self.start(
            previous.user_id,
            previous.custom_goal,
            previous.task_id,
            previous.event_id,
            target_duration=previous.target_duration,
            break_ratio=previous.break_ratio,
        )

    def pause(self, session: FocusSession) -> FocusSession:
        raise UnsupportedOperation(f"{self.strategy.value} sessions cannot be paused")

    def resume(self, session: FocusSession) -> FocusSession:
        raise UnsupportedOperation(f"{self.strategy.value} sessions cannot be resumed")

    def record_break(self, session: FocusSession, break_taken: int) -> FocusSession:
        raise UnsupportedOperation(f"{self.strategy.value} sessions have no break cadence")

    def complete(self, session: FocusSession, actual_duration: Optional[int] = None) -> TransitionResult:
        self._check_strategy(session)
        if is_terminal(session.status):
            logger.info("Session %s already %s; complete ignored", session.id, session.status)
            return TransitionResult(session)
        now = self.now()
        if actual_duration is None:
            actual_duration = self.fallback_duration(session, now)
        _check_duration(actual_duration)
        if actual_duration < self.settings.min_duration:
            return self._discard(session, actual_duration, SessionStatus.COMPLETED, now)

        self._close_pause(session, now)
        session.status = ensure_transition(session.status, SessionStatus.COMPLETED).value
        session.ended_at = now
        session.actual_duration = actual_duration
        self.on_complete(session, now)
        self.db.add(session)
        logger.info(
            "%s completed: id=%s actual=%smin",
            self.strategy.value,
            session.id,
            actual_duration,
        )
        return TransitionResult(session)

    def interrupt(self, session: FocusSession, actual_duration: Optional[int] = None) -> TransitionResult:
        self._check_strategy(session)
        if is_terminal(session.status):
            logger.info("Session %s already %s; interrupt ignored", session.id, session.status)
            return TransitionResult(session)
        now = self.now()
        if actual_duration is None:
            actual_duration = self.tracked_duration(session, now)
        _check_duration(actual_duration)
        if actual_duration < self.settings.min_duration:
            return self._discard(session, actual_duration, SessionStatus.INTERRUPTED, now)

        self._close_pause(session, now)
        session.status = ensure_transition(session.status, SessionStatus.INTERRUPTED).value
        session.ended_at = now
        session.actual_duration = actual_duration
        self.on_interrupt(session, now)
        self.db.add(session)
        logger.info(
            "%s interrupted: id=%s actual=%smin",
            self.strategy.value,
            session.id,
            actual_duration,
        )
        return TransitionResult(session)

    # --- hooks -------------------------------------------------------------
    def fallback_duration(self, session: FocusSession, now: datetime) -> int:
        """Worked minutes used by ``complete`` when the client sends none."""
        return self.tracked_duration(session, now)

    def on_complete(self, session: FocusSession, now: datetime) -> None:
        pass

    def on_interrupt(self, session: FocusSession, now: datetime) -> None:
        pass

    # --- helpers -----------------------------------------------------------
    def tracked_duration(self, session: FocusSession, now: datetime) -> int:
        """Server-side worked minutes: wall time minus recorded pauses."""
        if session.started_at is None:
            return 0
        return worked_minutes(session.started_at, now, _paused_seconds(session, now))

    def _close_pause(self, session: FocusSession, now: datetime) -> None:
        if session.paused_at is not None:
            session.total_paused_seconds = int(_paused_seconds(session, now))
            session.paused_at = None

    def _discard(
        self,
        session: FocusSession,
        actual_duration: int,
        status: SessionStatus,
        now: datetime,
    ) -> TransitionResult:
        # the row is deleted; the in-memory copy still reports the outcome
        self.db.delete(session)
        session.status = status.value
        session.ended_at = now
        session.actual_duration = actual_duration
        logger.info(
            "%s discarded: id=%s actual=%smin below minimum %smin",
            self.strategy.value,
            session.id,
            actual_duration,
            self.settings.min_duration,
        )
        return TransitionResult(session, discarded=True)

    def _check_strategy(self, session: FocusSession) -> None:
        if session.strategy != self.strategy.value:
            raise StrategyMismatch(
                f"Expected {self.strategy.value} session, got {session.strategy}"
            )


class PomodoroPolicy(SessionPolicy):
    strategy = Strategy.POMODORO

    def configure(self, session, *, target_duration=None, break_ratio=None) -> None:
        s = self.settings
        target = s.default_target_duration if target_duration is None else int(target_duration)
        session.target_duration = clamp(target, s.min_target_duration, s.max_target_duration)
        session.pause_count = 0
        session.total_paused_seconds = 0

    def pause(self, session: FocusSession) -> FocusSession:
        self._check_strategy(session)
        if session.status != SessionStatus.RUNNING.value:
            return session
        session.status = ensure_transition(session.status, SessionStatus.PAUSED).value
        session.pause_count = (session.pause_count or 0) + 1
        session.paused_at = self.now()
        self.db.add(session)
        logger.info("pomodoro paused: id=%s count=%s", session.id, session.pause_count)
        return session

    def resume(self, session: FocusSession) -> FocusSession:
        self._check_strategy(session)
        if session.status != SessionStatus.PAUSED.value:
            return session
        self._close_pause(session, self.now())
        session.status = ensure_transition(session.status, SessionStatus.RUNNING).value
        self.db.add(session)
        logger.info("pomodoro resumed: id=%s", session.id)
        return session

    def fallback_duration(self, session, now):
        raise ValidationError("actualDuration is required for Pomodoro sessions")

    def on_complete(self, session, now) -> None:
        self._record_pause_duration(session, now)
        session.break_duration = next_pomodoro_break(
            self.db,
            session,
            now,
            self.settings.tzinfo,
            BreakPolicy.from_settings(self.settings),
        )

    def on_interrupt(self, session, now) -> None:
        self._record_pause_duration(session, now)

    def record_break(self, session: FocusSession, break_taken: int) -> FocusSession:
        self._check_strategy(session)
        if break_taken is None or not 0 <= break_taken <= MAX_DURATION_MINUTES:
            raise ValidationError(f"breakTaken must be between 0 and {MAX_DURATION_MINUTES} minutes")
        if session.status != SessionStatus.COMPLETED.value:
            raise ValidationError("Breaks can only be recorded on completed sessions")
        session.break_taken = break_taken
        self.db.add(session)
        logger.info("pomodoro break recorded: id=%s taken=%smin", session.id, break_taken)
        return session

    def _record_pause_duration(self, session: FocusSession, now: datetime) -> None:
        if session.started_at is None:
            return
        wall = wall_time_minutes(session.started_at, now)
        if session.actual_duration > wall:
            logger.warning(
                "pomodoro %s reported %smin worked over %smin wall time",
                session.id,
                session.actual_duration,
                wall,
            )
        session.pause_duration = max(0, wall - session.actual_duration)


class FlowtimePolicy(SessionPolicy):
    strategy = Strategy.FLOWTIME

    def configure(self, session, *, target_duration=None, break_ratio=None) -> None:
        ratio = self.settings.default_break_ratio if break_ratio is None else int(break_ratio)
        if not 1 <= ratio <= MAX_DURATION_MINUTES:
            raise ValidationError(f"breakRatio must be between 1 and {MAX_DURATION_MINUTES}")
        session.break_ratio = ratio

    def on_complete(self, session, now) -> None:
        session.suggested_break_duration = flowtime_break(
            session.actual_duration, session.break_ratio or self.settings.default_break_ratio
        )


class FreeSessionPolicy(SessionPolicy):
    strategy = Strategy.FREE_SESSION


POLICIES: dict[Strategy, type[SessionPolicy]] = {
    Strategy.POMODORO: PomodoroPolicy,
    Strategy.FLOWTIME: FlowtimePolicy,
    Strategy.FREE_SESSION: FreeSessionPolicy,
}


def parse_strategy(value: str) -> Strategy:
    try:
        return Strategy(value)
    except ValueError:
        allowed = ", ".join(s.value for s in Strategy)
        raise ValidationError(f"Invalid strategy {value!r}; expected one of: {allowed}") from None


def policy_for(
    strategy: str | Strategy,
    db: Session,
    *,
    clock: Clock = utc_now,
    settings: Settings | None = None,
) -> SessionPolicy:
    return POLICIES[parse_strategy(strategy)](db, clock=clock, settings=settings)


def _paused_seconds(session: FocusSession, now: datetime) -> float:
    total = float(session.total_paused_seconds or 0)
    if session.paused_at is not None:
        total += max(0.0, elapsed_seconds(session.paused_at, now))
    return total


def _check_duration(actual_duration) -> None:
    if isinstance(actual_duration, bool) or not isinstance(actual_duration, int):
        raise ValidationError("actualDuration must be an integer number of minutes")
    if actual_duration > MAX_DURATION_MINUTES:
        raise ValidationError(f"actualDuration must be at most {MAX_DURATION_MINUTES} minutes")


def _clean_goal(goal: Optional[str]) -> Optional[str]:
    if goal is None:
        return None
    goal = " ".join(goal.split())
    return goal[:255] or None
