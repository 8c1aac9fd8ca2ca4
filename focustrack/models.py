from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel

from focustrack.state_machine import SessionStatus


class Strategy(str, Enum):
    POMODORO = "pomodoro"
    FLOWTIME = "flowtime"
    FREE_SESSION = "free_session"


class FocusSession(SQLModel, table=True):
    """One work session. ``strategy`` selects which optional columns are used."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True, index=True)
    user_id: str = Field(index=True)
    strategy: str = Field(index=True)
    status: str = Field(default=SessionStatus.PENDING.value, max_length=20)

    custom_goal: Optional[str] = Field(default=None, max_length=255)
    task_id: Optional[str] = None
    event_id: Optional[str] = None

    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = Field(default=None, index=True)
    # minutes actually worked, excluding pauses
    actual_duration: Optional[int] = None

    # pomodoro
    target_duration: Optional[int] = None
    pause_count: Optional[int] = None
    paused_at: Optional[datetime] = None
    total_paused_seconds: Optional[int] = None
    pause_duration: Optional[int] = None
    break_duration: Optional[int] = None
    break_taken: Optional[int] = None

    # flowtime
    break_ratio: Optional[int] = None
    suggested_break_duration: Optional[int] = None
