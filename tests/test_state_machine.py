import pytest

from focustrack.errors import InvalidTransition
from focustrack.state_machine import (
    SessionStatus,
    can_transition,
    ensure_transition,
    is_active,
    is_terminal,
)


@pytest.mark.parametrize(
    "current, target",
    [
        ("pending", "running"),
        ("running", "paused"),
        ("paused", "running"),
        ("running", "completed"),
        ("paused", "interrupted"),
    ],
)
def test_allowed_edges(current, target):
    assert can_transition(current, target)
    assert ensure_transition(current, target) == SessionStatus(target)


@pytest.mark.parametrize(
    "current, target",
    [
        ("pending", "paused"),
        ("completed", "running"),
        ("interrupted", "running"),
        ("completed", "interrupted"),
        ("running", "pending"),
    ],
)
def test_rejected_edges(current, target):
    assert not can_transition(current, target)
    with pytest.raises(InvalidTransition):
        ensure_transition(current, target)


def test_terminal_and_active_sets():
    assert is_terminal("completed") and is_terminal("interrupted")
    assert not is_terminal("paused")
    assert is_active("running") and is_active("paused")
    assert not is_active("pending")
