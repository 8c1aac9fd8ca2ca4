"""Client-side timer engine.

States
------
idle          No session, or a finished break waiting for the next session.
running       Work counter ticking once per second.
paused        Counter frozen (Pomodoro only).
completed     Server confirmed completion; break length known.
interrupted   Server confirmed interruption.
break         Break counter counting down to zero.

The local counters are a display convenience. Every state-changing response
from the server is adopted verbatim and overrides the local guess.

A single ``in_flight`` flag guards all server calls: while one is
outstanding, the auto-complete trigger and manual actions are no-ops.

Auto-complete reports the target minutes. When the API is unreachable the
next tick re-issues the same call; any other rejection stops the engine
with ``error`` set.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Protocol

from focustrack.duration import SECONDS_PER_MINUTE, elapsed_seconds
from focustrack.errors import FocusTrackError
from focustrack.timer.client import SessionApiError

logger = logging.getLogger(__name__)

STATUS_IDLE = "idle"
STATUS_RUNNING = "running"
STATUS_PAUSED = "paused"
STATUS_COMPLETED = "completed"
STATUS_INTERRUPTED = "interrupted"
STATUS_BREAK = "break"

POMODORO = "pomodoro"
FLOWTIME = "flowtime"


class SessionApi(Protocol):
    async def start(self, strategy: str, custom_goal: Optional[str] = None,
                    target_duration: Optional[int] = None, break_ratio: Optional[int] = None) -> dict: ...
    async def pause(self, session_id: str) -> dict: ...
    async def resume(self, session_id: str) -> dict: ...
    async def end(self, session_id: str, actual_duration: int) -> dict: ...
    async def interrupt(self, session_id: str, actual_duration: Optional[int] = None) -> dict: ...
    async def continue_session(self, session_id: str) -> dict: ...
    async def active(self) -> Optional[dict]: ...


def bell() -> None:
    """Terminal bell."""
    print("\a", end="", flush=True)


@dataclass
class TimerState:
    """Process-local ticking state. Replaced wholesale on every new session."""
    strategy: str = POMODORO
    status: str = STATUS_IDLE
    session_id: Optional[str] = None
    custom_goal: Optional[str] = None
    target_minutes: int = 25
    break_ratio: Optional[int] = None
    elapsed_seconds: int = 0
    pause_count: int = 0
    actual_duration: Optional[int] = None
    break_duration: int = 0
    break_seconds: int = 0
    break_notified: bool = False
    # minutes reported by auto-complete; fixed when the target is first reached
    completion_minutes: Optional[int] = None
    discarded: bool = False
    in_flight: bool = False
    error: Optional[str] = None

    @property
    def remaining_seconds(self) -> Optional[int]:
        if self.strategy != POMODORO:
            return None
        return max(0, self.target_minutes * SECONDS_PER_MINUTE - self.elapsed_seconds)

    @property
    def worked_minutes(self) -> int:
        return self.elapsed_seconds // SECONDS_PER_MINUTE


class TimerEngine:
    def __init__(
        self,
        api: SessionApi,
        *,
        strategy: str = POMODORO,
        target_minutes: int = 25,
        notifier: Callable[[], None] = bell,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._api = api
        self._notifier = notifier
        self._clock = clock
        self._state = TimerState(strategy=strategy, target_minutes=target_minutes)
        self._pending: set[asyncio.Task] = set()

    @property
    def state(self) -> TimerState:
        """Copy of the current state."""
        return replace(self._state)

    @property
    def busy(self) -> bool:
        return self._state.status in (STATUS_RUNNING, STATUS_PAUSED, STATUS_BREAK)

    def configure(
        self,
        *,
        strategy: Optional[str] = None,
        target_minutes: Optional[int] = None,
        custom_goal: Optional[str] = None,
        break_ratio: Optional[int] = None,
    ) -> bool:
        """Change settings for the next session. Ignored while a session is live."""
        if self._state.status in (STATUS_RUNNING, STATUS_PAUSED) or self._state.in_flight:
            return False
        s = self._state
        self._state = TimerState(
            strategy=strategy or s.strategy,
            target_minutes=target_minutes or s.target_minutes,
            custom_goal=custom_goal if custom_goal is not None else s.custom_goal,
            break_ratio=break_ratio if break_ratio is not None else s.break_ratio,
        )
        return True

    def reset(self) -> None:
        s = self._state
        self._state = TimerState(strategy=s.strategy, target_minutes=s.target_minutes)

    # --- user actions ------------------------------------------------------
    async def start(self) -> bool:
        s = self._state
        if s.status in (STATUS_RUNNING, STATUS_PAUSED):
            return False
        payload = await self._call(
            lambda: self._api.start(
                s.strategy,
                s.custom_goal,
                target_duration=s.target_minutes if s.strategy == POMODORO else None,
                break_ratio=s.break_ratio if s.strategy == FLOWTIME else None,
            )
        )
        if payload is None:
            return False
        self._begin(payload)
        return True

    async def continue_session(self) -> bool:
        s = self._state
        if s.session_id is None or s.status in (STATUS_RUNNING, STATUS_PAUSED):
            return False
        payload = await self._call(lambda: self._api.continue_session(s.session_id))
        if payload is None:
            return False
        self._begin(payload)
        return True

    async def pause(self) -> bool:
        s = self._state
        if s.strategy != POMODORO or s.status != STATUS_RUNNING or s.session_id is None:
            return False
        return await self._transition(lambda: self._api.pause(s.session_id))

    async def resume(self) -> bool:
        s = self._state
        if s.strategy != POMODORO or s.status != STATUS_PAUSED or s.session_id is None:
            return False
        return await self._transition(lambda: self._api.resume(s.session_id))

    async def complete(self) -> bool:
        s = self._state
        if s.status not in (STATUS_RUNNING, STATUS_PAUSED) or s.session_id is None:
            return False
        actual = s.worked_minutes
        return await self._transition(lambda: self._api.end(s.session_id, actual))

    async def interrupt(self) -> bool:
        s = self._state
        if s.status not in (STATUS_RUNNING, STATUS_PAUSED) or s.session_id is None:
            return False
        actual = s.worked_minutes
        return await self._transition(lambda: self._api.interrupt(s.session_id, actual))

    async def attach(self) -> bool:
        """Pick up the user's active server session, rebuilding the local counter."""
        if self.busy or self._state.in_flight:
            return False
        snapshot = await self._call(self._api.active)
        if not snapshot:
            return False
        self._state = TimerState(
            strategy=snapshot.get("type", self._state.strategy),
            status=snapshot["status"],
            session_id=snapshot["id"],
            custom_goal=snapshot.get("customGoal"),
            target_minutes=snapshot.get("targetDuration") or self._state.target_minutes,
            break_ratio=snapshot.get("breakRatio"),
            pause_count=snapshot.get("pauseCount") or 0,
            elapsed_seconds=self._server_elapsed(snapshot),
        )
        logger.info("Attached to %s session %s", self._state.strategy, self._state.session_id)
        return True

    def start_break(self) -> bool:
        s = self._state
        if s.status != STATUS_COMPLETED or s.break_duration <= 0:
            return False
        s.status = STATUS_BREAK
        s.break_seconds = s.break_duration * SECONDS_PER_MINUTE
        s.break_notified = False
        logger.info("Break started: %smin", s.break_duration)
        return True

    def skip_break(self) -> None:
        s = self._state
        if s.status == STATUS_BREAK:
            s.break_seconds = 0
            s.status = STATUS_IDLE

    # --- ticking -----------------------------------------------------------
    async def tick(self) -> None:
        """Advance the work counter by one second."""
        s = self._state
        if s.status != STATUS_RUNNING:
            return
        s.elapsed_seconds += 1
        if s.strategy != POMODORO or s.session_id is None or s.in_flight:
            return
        if s.elapsed_seconds < s.target_minutes * SECONDS_PER_MINUTE:
            return
        if s.completion_minutes is None:
            s.completion_minutes = s.target_minutes
        s.in_flight = True
        task = asyncio.create_task(self._auto_complete(s, s.completion_minutes))
        self._pending.add(task)
        task.add_done_callback(lambda t: self._auto_complete_done(s, t))

    async def break_tick(self) -> None:
        """Count the break down by one second; notify once when it reaches zero."""
        s = self._state
        if s.status != STATUS_BREAK:
            return
        if s.break_seconds > 0:
            s.break_seconds -= 1
        if s.break_seconds == 0 and not s.break_notified:
            s.break_notified = True
            s.status = STATUS_IDLE
            logger.info("Break finished")
            self._notify()

    async def run(self, interval: float = 1.0) -> None:
        """Cooperative loop: tick while running, count down while on break."""
        while True:
            status = self._state.status
            if status not in (STATUS_RUNNING, STATUS_PAUSED, STATUS_BREAK):
                break
            await asyncio.sleep(interval)
            if status == STATUS_RUNNING:
                await self.tick()
            elif status == STATUS_BREAK:
                await self.break_tick()
        await self.wait_for_pending()

    async def wait_for_pending(self) -> None:
        """Wait for scheduled auto-completes. Their failures are reported via the state."""
        while self._pending:
            await asyncio.wait(set(self._pending))

    # --- internals ---------------------------------------------------------
    async def _auto_complete(self, state: TimerState, actual: int) -> None:
        session_id = state.session_id
        logger.info("Target reached for %s; completing with %smin", session_id, actual)
        try:
            payload = await self._api.end(session_id, actual)
        except SessionApiError as e:
            # the next tick re-issues the same call
            logger.error("Auto-complete of %s failed: %s", session_id, e.message)
            state.error = e.message
        except FocusTrackError as e:
            logger.error("Auto-complete of %s rejected, stopping: %s", session_id, e.message)
            self._stop(state, e.message)
        else:
            state.error = None
            self._adopt(state, payload)
            self._notify()
        finally:
            state.in_flight = False

    def _auto_complete_done(self, state: TimerState, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Auto-complete of %s crashed", state.session_id, exc_info=exc)
            self._stop(state, str(exc) or exc.__class__.__name__)

    @staticmethod
    def _stop(state: TimerState, error: str) -> None:
        state.status = STATUS_IDLE
        state.error = error

    async def _call(self, request: Callable[[], Awaitable[dict]]) -> Optional[dict]:
        state = self._state
        if state.in_flight:
            return None
        state.in_flight = True
        try:
            payload = await request()
        except FocusTrackError as e:
            logger.error("Session request failed: %s", e.message)
            state.error = e.message
            return None
        finally:
            state.in_flight = False
        state.error = None
        return payload

    async def _transition(self, request: Callable[[], Awaitable[dict]]) -> bool:
        state = self._state
        payload = await self._call(request)
        if payload is None:
            return False
        self._adopt(state, payload)
        return True

    def _begin(self, payload: dict) -> None:
        previous = self._state
        self._state = TimerState(
            strategy=payload.get("strategy", previous.strategy),
            session_id=payload["id"],
            custom_goal=payload.get("customGoal", previous.custom_goal),
            target_minutes=payload.get("targetDuration") or previous.target_minutes,
            break_ratio=payload.get("breakRatio", previous.break_ratio),
        )
        self._adopt(self._state, payload)
        logger.info("Session %s started (%s)", self._state.session_id, self._state.strategy)

    @staticmethod
    def _adopt(state: TimerState, payload: dict) -> None:
        state.status = payload.get("status", state.status)
        if "pauseCount" in payload:
            state.pause_count = payload["pauseCount"] or 0
        if "actualDuration" in payload:
            state.actual_duration = payload["actualDuration"]
        if "breakDuration" in payload or "suggestedBreakDuration" in payload:
            state.break_duration = (
                payload.get("breakDuration") or payload.get("suggestedBreakDuration") or 0
            )
        state.discarded = bool(payload.get("discarded", False))

    def _server_elapsed(self, snapshot: dict) -> int:
        started = snapshot.get("startedAt")
        if not started:
            return 0
        now = self._clock()
        paused = float(snapshot.get("totalPausedSeconds") or 0)
        if snapshot.get("pausedAt"):
            now = datetime.fromisoformat(snapshot["pausedAt"])
        return max(0, int(elapsed_seconds(datetime.fromisoformat(started), now) - paused))

    def _notify(self) -> None:
        try:
            self._notifier()
        except Exception as e:
            logger.error("Notifier failed: %s", e)


__all__ = ["SessionApi", "TimerEngine", "TimerState", "bell"]
