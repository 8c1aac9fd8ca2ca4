"""
Session service: ownership checks, strategy dispatch and one transaction
per operation. The HTTP routes call only this.
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlmodel import Session, select

from focustrack.config import Settings, get_settings
from focustrack.duration import Clock, utc_now
from focustrack.errors import AccessDenied, NotAuthenticated, NotFound, StrategyMismatch
from focustrack.models import FocusSession, Strategy
from focustrack.state_machine import ACTIVE_STATUSES
from focustrack.strategies import SessionPolicy, TransitionResult, parse_strategy, policy_for

logger = logging.getLogger(__name__)


class SessionService:
    def __init__(self, db: Session, user_id: Optional[str], *, clock: Clock = utc_now, settings: Settings | None = None):
        if not user_id:
            raise NotAuthenticated("Missing X-User-Id header")
        self.db = db
        self.user_id = user_id
        self.clock = clock
        self.settings = settings or get_settings()

    # --- lookups -----------------------------------------------------------
    def get(self, session_id: str) -> FocusSession:
        session = self.db.get(FocusSession, session_id)
        if session is None:
            raise NotFound("Session not found")
        if session.user_id != self.user_id:
            raise AccessDenied("Access denied")
        return session

    def active(self) -> FocusSession:
        statement = (
            select(FocusSession)
            .where(
                FocusSession.user_id == self.user_id,
                FocusSession.status.in_([s.value for s in ACTIVE_STATUSES]),
            )
            .order_by(FocusSession.started_at.desc())
        )
        session = self.db.exec(statement).first()
        if session is None:
            raise NotFound("No active session")
        return session

    def policy(self, strategy: str | Strategy) -> SessionPolicy:
        return policy_for(strategy, self.db, clock=self.clock, settings=self.settings)

    # --- operations --------------------------------------------------------
    def start(
        self,
        strategy: str,
        custom_goal: Optional[str] = None,
        task_id: Optional[str] = None,
        event_id: Optional[str] = None,
        target_duration: Optional[int] = None,
        break_ratio: Optional[int] = None,
    ) -> FocusSession:
        policy = self.policy(parse_strategy(strategy))
        return self._commit(
            lambda: policy.start(
                self.user_id,
                custom_goal,
                task_id,
                event_id,
                target_duration=target_duration,
                break_ratio=break_ratio,
            )
        )

    def continue_session(self, session_id: str) -> FocusSession:
        previous = self.get(session_id)
        return self._commit(lambda: self.policy(previous.strategy).continue_from(previous))

    def pause(self, session_id: str) -> FocusSession:
        session = self._get_pomodoro(session_id)
        return self._commit(lambda: self.policy(Strategy.POMODORO).pause(session))

    def resume(self, session_id: str) -> FocusSession:
        session = self._get_pomodoro(session_id)
        return self._commit(lambda: self.policy(Strategy.POMODORO).resume(session))

    def complete(self, session_id: str, actual_duration: Optional[int] = None) -> TransitionResult:
        session = self.get(session_id)
        return self._commit(lambda: self.policy(session.strategy).complete(session, actual_duration))

    def interrupt(self, session_id: str, actual_duration: Optional[int] = None) -> TransitionResult:
        session = self.get(session_id)
        return self._commit(lambda: self.policy(session.strategy).interrupt(session, actual_duration))

    def record_break(self, session_id: str, break_taken: int) -> FocusSession:
        session = self._get_pomodoro(session_id)
        return self._commit(lambda: self.policy(Strategy.POMODORO).record_break(session, break_taken))

    # --- internals ---------------------------------------------------------
    def _get_pomodoro(self, session_id: str) -> FocusSession:
        session = self.get(session_id)
        if session.strategy != Strategy.POMODORO.value:
            raise StrategyMismatch(f"Operation is only available for Pomodoro sessions, not {session.strategy}")
        return session

    def _commit(self, operation):
        try:
            result = operation()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return result
