from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from focustrack.duration import MAX_DURATION_MINUTES, as_utc
from focustrack.models import FocusSession, Strategy


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Requests ---

class StartSessionRequest(CamelModel):
    strategy: str
    custom_goal: Optional[str] = None
    target_duration: Optional[int] = None
    break_ratio: Optional[int] = Field(default=None, le=MAX_DURATION_MINUTES)
    task_id: Optional[str] = None
    event_id: Optional[str] = None


class EndSessionRequest(CamelModel):
    actual_duration: Optional[int] = Field(default=None, ge=0, le=MAX_DURATION_MINUTES)


class InterruptSessionRequest(CamelModel):
    actual_duration: Optional[int] = Field(default=None, ge=0, le=MAX_DURATION_MINUTES)


class RecordBreakRequest(CamelModel):
    break_taken: int = Field(ge=0, le=MAX_DURATION_MINUTES)


# --- Responses ---

class StartSessionResponse(CamelModel):
    id: str
    strategy: str
    status: str
    started_at: Optional[datetime] = None
    target_duration: Optional[int] = None
    break_ratio: Optional[int] = None
    custom_goal: Optional[str] = None


class PauseResponse(CamelModel):
    id: str
    status: str
    pause_count: int


class ResumeResponse(CamelModel):
    id: str
    status: str


class EndSessionResponse(CamelModel):
    id: str
    status: str
    actual_duration: Optional[int] = None
    pause_duration: Optional[int] = None
    break_duration: Optional[int] = None
    suggested_break_duration: Optional[int] = None
    discarded: bool = False


class InterruptSessionResponse(CamelModel):
    id: str
    status: str
    actual_duration: Optional[int] = None
    pause_duration: Optional[int] = None
    discarded: bool = False


class RecordBreakResponse(CamelModel):
    id: str
    break_duration: Optional[int] = None
    break_taken: Optional[int] = None


class SessionSnapshot(CamelModel):
    """Everything the client needs to rebuild its view of a session."""
    id: str
    type: str
    status: str
    custom_goal: Optional[str] = None
    task_id: Optional[str] = None
    event_id: Optional[str] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    actual_duration: Optional[int] = None
    target_duration: Optional[int] = None
    pause_count: Optional[int] = None
    paused_at: Optional[datetime] = None
    total_paused_seconds: Optional[int] = None
    pause_duration: Optional[int] = None
    break_duration: Optional[int] = None
    break_taken: Optional[int] = None
    break_ratio: Optional[int] = None
    suggested_break_duration: Optional[int] = None


def _utc(dt: Optional[datetime]) -> Optional[datetime]:
    return as_utc(dt) if dt is not None else None


def start_response(session: FocusSession) -> StartSessionResponse:
    return StartSessionResponse(
        id=session.id,
        strategy=session.strategy,
        status=session.status,
        started_at=_utc(session.started_at),
        target_duration=session.target_duration,
        break_ratio=session.break_ratio,
        custom_goal=session.custom_goal,
    )


def snapshot(session: FocusSession) -> SessionSnapshot:
    data = session.model_dump(exclude={"user_id", "strategy"})
    for key in ("started_at", "ended_at", "paused_at"):
        data[key] = _utc(data[key])
    return SessionSnapshot(type=Strategy(session.strategy).value, **data)
