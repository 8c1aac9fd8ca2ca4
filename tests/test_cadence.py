from datetime import datetime, timezone

from focustrack.cadence import (
    BreakPolicy,
    break_for_position,
    count_completed_today,
    flowtime_break,
)


def test_every_fourth_position_is_a_long_break():
    breaks = [break_for_position(n) for n in range(9)]
    assert breaks == [5, 5, 5, 15, 5, 5, 5, 15, 5]


def test_custom_policy():
    policy = BreakPolicy(short_break=3, long_break=20, cycle_length=2)
    assert [break_for_position(n, policy) for n in range(4)] == [3, 20, 3, 20]


def test_flowtime_break_rounds_up():
    assert flowtime_break(25, 5) == 5
    assert flowtime_break(26, 5) == 6
    assert flowtime_break(1, 5) == 1
    assert flowtime_break(0, 5) is None
    assert flowtime_break(None, 5) is None


def test_count_completed_today_only_counts_own_completed_pomodoros(service_for, clock, db):
    alice = service_for("alice")
    bob = service_for("bob")

    # completed yesterday
    clock.now = datetime(2026, 3, 1, 22, 0, tzinfo=timezone.utc)
    s = alice.start("pomodoro")
    clock.advance(minutes=25)
    alice.complete(s.id, 25)

    clock.now = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
    # completed today
    s = alice.start("pomodoro")
    clock.advance(minutes=25)
    alice.complete(s.id, 25)
    # interrupted today
    s = alice.start("pomodoro")
    clock.advance(minutes=10)
    alice.interrupt(s.id, 10)
    # flowtime today
    s = alice.start("flowtime")
    clock.advance(minutes=10)
    alice.complete(s.id, 10)
    # other user
    s = bob.start("pomodoro")
    clock.advance(minutes=25)
    bob.complete(s.id, 25)

    assert count_completed_today(db, "alice", clock(), timezone.utc) == 1
    assert count_completed_today(db, "bob", clock(), timezone.utc) == 1
