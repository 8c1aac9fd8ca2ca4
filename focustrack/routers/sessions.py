"""
Focus sessions: start, pause/resume, end or interrupt, continue.
Every route acts only on sessions owned by the X-User-Id caller.
"""
from fastapi import APIRouter, Depends, Header
from sqlmodel import Session

from focustrack.config import Settings, get_settings
from focustrack.db import get_session
from focustrack.duration import utc_now
from focustrack.schemas import (
    EndSessionRequest,
    EndSessionResponse,
    InterruptSessionRequest,
    InterruptSessionResponse,
    PauseResponse,
    RecordBreakRequest,
    RecordBreakResponse,
    ResumeResponse,
    SessionSnapshot,
    StartSessionRequest,
    StartSessionResponse,
    snapshot,
    start_response,
)
from focustrack.service import SessionService

router = APIRouter(prefix="/api/session", tags=["sessions"])


def get_clock():
    return utc_now


def get_service(
    db: Session = Depends(get_session),
    clock=Depends(get_clock),
    settings: Settings = Depends(get_settings),
    user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> SessionService:
    return SessionService(db, user_id, clock=clock, settings=settings)


@router.get("/check")
def check(service: SessionService = Depends(get_service)):
    """Cheap authenticated ping so other tabs can tell the identity is still valid."""
    return {"status": "ok"}


@router.post("/start", response_model=StartSessionResponse, status_code=201)
def start_session(req: StartSessionRequest, service: SessionService = Depends(get_service)):
    """Start a session with the chosen strategy. Returns id, status and startedAt."""
    session = service.start(
        req.strategy,
        custom_goal=req.custom_goal,
        task_id=req.task_id,
        event_id=req.event_id,
        target_duration=req.target_duration,
        break_ratio=req.break_ratio,
    )
    return start_response(session)


@router.get("/active", response_model=SessionSnapshot)
def active_session(service: SessionService = Depends(get_service)):
    return snapshot(service.active())


@router.post("/{session_id}/continue", response_model=StartSessionResponse, status_code=201)
def continue_session(session_id: str, service: SessionService = Depends(get_service)):
    """Start a new session with the same settings as a previous one."""
    return start_response(service.continue_session(session_id))


@router.post("/{session_id}/pause", response_model=PauseResponse)
def pause_session(session_id: str, service: SessionService = Depends(get_service)):
    session = service.pause(session_id)
    return PauseResponse(id=session.id, status=session.status, pause_count=session.pause_count or 0)


@router.post("/{session_id}/resume", response_model=ResumeResponse)
def resume_session(session_id: str, service: SessionService = Depends(get_service)):
    session = service.resume(session_id)
    return ResumeResponse(id=session.id, status=session.status)


@router.post("/{session_id}/end", response_model=EndSessionResponse)
def end_session(
    session_id: str,
    req: EndSessionRequest | None = None,
    service: SessionService = Depends(get_service),
):
    """
    Complete a session with the client-reported worked minutes.
    Sessions under the minimum duration are dropped (discarded=true).
    """
    result = service.complete(session_id, req.actual_duration if req else None)
    s = result.session
    return EndSessionResponse(
        id=s.id,
        status=s.status,
        actual_duration=s.actual_duration,
        pause_duration=s.pause_duration,
        break_duration=s.break_duration,
        suggested_break_duration=s.suggested_break_duration,
        discarded=result.discarded,
    )


@router.post("/{session_id}/interrupt", response_model=InterruptSessionResponse)
def interrupt_session(
    session_id: str,
    req: InterruptSessionRequest | None = None,
    service: SessionService = Depends(get_service),
):
    result = service.interrupt(session_id, req.actual_duration if req else None)
    s = result.session
    return InterruptSessionResponse(
        id=s.id,
        status=s.status,
        actual_duration=s.actual_duration,
        pause_duration=s.pause_duration,
        discarded=result.discarded,
    )


@router.post("/{session_id}/break", response_model=RecordBreakResponse)
def record_break(
    session_id: str,
    req: RecordBreakRequest,
    service: SessionService = Depends(get_service),
):
    """Record how many minutes of break were actually taken after a Pomodoro."""
    session = service.record_break(session_id, req.break_taken)
    return RecordBreakResponse(
        id=session.id,
        break_duration=session.break_duration,
        break_taken=session.break_taken,
    )


@router.get("/{session_id}", response_model=SessionSnapshot)
def get_session_snapshot(session_id: str, service: SessionService = Depends(get_service)):
    return snapshot(service.get(session_id))
