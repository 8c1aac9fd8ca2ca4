"""Session lifecycle shared by every strategy.

pending -> running <-> paused -> completed | interrupted
"""
from __future__ import annotations

from enum import Enum

from focustrack.errors import InvalidTransition


class SessionStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"


TERMINAL_STATUSES: frozenset[SessionStatus] = frozenset(
    {SessionStatus.COMPLETED, SessionStatus.INTERRUPTED}
)
ACTIVE_STATUSES: frozenset[SessionStatus] = frozenset(
    {SessionStatus.RUNNING, SessionStatus.PAUSED}
)

_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.PENDING: frozenset({SessionStatus.RUNNING}),
    SessionStatus.RUNNING: frozenset(
        {SessionStatus.PAUSED, SessionStatus.COMPLETED, SessionStatus.INTERRUPTED}
    ),
    SessionStatus.PAUSED: frozenset(
        {SessionStatus.RUNNING, SessionStatus.COMPLETED, SessionStatus.INTERRUPTED}
    ),
    SessionStatus.COMPLETED: frozenset(),
    SessionStatus.INTERRUPTED: frozenset(),
}


def is_terminal(status: str) -> bool:
    return SessionStatus(status) in TERMINAL_STATUSES


def is_active(status: str) -> bool:
    return SessionStatus(status) in ACTIVE_STATUSES


def can_transition(current: str, target: str) -> bool:
    return SessionStatus(target) in _TRANSITIONS[SessionStatus(current)]


def ensure_transition(current: str, target: str) -> SessionStatus:
    """Return ``target`` as a status, or raise if the edge does not exist."""
    if not can_transition(current, target):
        raise InvalidTransition(f"Cannot move session from {current} to {target}")
    return SessionStatus(target)
