"""HTTP contract: status codes, camelCase payloads, ownership and strategy errors."""
from datetime import datetime, timezone

import pytest


def start(client, strategy="pomodoro", **body):
    r = client.post("/api/session/start", json={"strategy": strategy, **body})
    assert r.status_code == 201, r.text
    return r.json()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_start_returns_201_and_session(client):
    data = start(client, customGoal="Chapter 3", targetDuration=30)
    assert data["status"] == "running"
    assert data["strategy"] == "pomodoro"
    assert data["targetDuration"] == 30
    assert data["customGoal"] == "Chapter 3"
    started = datetime.fromisoformat(data["startedAt"].replace("Z", "+00:00"))
    assert started == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def test_start_rejects_unknown_strategy(client):
    r = client.post("/api/session/start", json={"strategy": "marathon"})
    assert r.status_code == 422
    assert r.json()["error"] == "validation_error"


def test_missing_identity_is_401(client):
    r = client.post("/api/session/start", json={"strategy": "pomodoro"}, headers={"X-User-Id": ""})
    assert r.status_code == 401
    assert r.json() == {"detail": "Missing X-User-Id header", "error": "not_authenticated"}


def test_check_requires_identity(client):
    assert client.get("/api/session/check").status_code == 200
    assert client.get("/api/session/check", headers={"X-User-Id": ""}).status_code == 401


def test_unknown_session_is_404(client):
    r = client.post("/api/session/nope/pause")
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"


def test_other_users_session_is_403(client):
    sid = start(client)["id"]
    r = client.post(f"/api/session/{sid}/end", json={"actualDuration": 25}, headers={"X-User-Id": "bob"})
    assert r.status_code == 403
    assert r.json()["error"] == "access_denied"


@pytest.mark.parametrize("action", ["pause", "resume"])
def test_pause_on_flowtime_is_409(client, action):
    sid = start(client, "flowtime")["id"]
    r = client.post(f"/api/session/{sid}/{action}")
    assert r.status_code == 409
    assert r.json()["error"] == "strategy_mismatch"


def test_pomodoro_end_requires_actual_duration(client):
    sid = start(client)["id"]
    r = client.post(f"/api/session/{sid}/end")
    assert r.status_code == 422
    assert r.json()["error"] == "validation_error"


def test_pomodoro_full_cycle(client, clock):
    sid = start(client)["id"]
    clock.advance(minutes=5)
    r = client.post(f"/api/session/{sid}/pause")
    assert r.json() == {"id": sid, "status": "paused", "pauseCount": 1}
    clock.advance(minutes=10)
    assert client.post(f"/api/session/{sid}/resume").json() == {"id": sid, "status": "running"}
    clock.advance(minutes=15)

    r = client.post(f"/api/session/{sid}/end", json={"actualDuration": 20})
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "completed"
    assert data["actualDuration"] == 20
    assert data["pauseDuration"] == 10
    assert data["breakDuration"] == 5
    assert data["discarded"] is False


def test_end_is_idempotent(client, clock):
    sid = start(client)["id"]
    clock.advance(minutes=25)
    first = client.post(f"/api/session/{sid}/end", json={"actualDuration": 25}).json()
    second = client.post(f"/api/session/{sid}/end", json={"actualDuration": 25}).json()
    assert first == second


def test_discarded_session_is_gone(client, clock):
    sid = start(client, "free_session")["id"]
    clock.advance(seconds=20)
    r = client.post(f"/api/session/{sid}/end")
    assert r.status_code == 200
    assert r.json()["discarded"] is True
    assert client.get(f"/api/session/{sid}").status_code == 404


def test_interrupt_without_body(client, clock):
    sid = start(client)["id"]
    clock.advance(minutes=7, seconds=30)
    data = client.post(f"/api/session/{sid}/interrupt").json()
    assert data["status"] == "interrupted"
    assert data["actualDuration"] == 7
    assert data["pauseDuration"] == 0


def test_flowtime_suggested_break(client, clock):
    sid = start(client, "flowtime", breakRatio=5)["id"]
    clock.advance(minutes=52)
    data = client.post(f"/api/session/{sid}/end", json={"actualDuration": 52}).json()
    assert data["suggestedBreakDuration"] == 11
    assert data["breakDuration"] is None


def test_long_break_after_four_pomodoros(client, clock):
    breaks = []
    for _ in range(4):
        sid = start(client)["id"]
        clock.advance(minutes=25)
        breaks.append(client.post(f"/api/session/{sid}/end", json={"actualDuration": 25}).json()["breakDuration"])
        clock.advance(minutes=5)
    assert breaks == [5, 5, 5, 15]


def test_continue_creates_new_session(client, clock):
    first = start(client, customGoal="Refactor", targetDuration=50)
    clock.advance(minutes=50)
    client.post(f"/api/session/{first['id']}/end", json={"actualDuration": 50})
    r = client.post(f"/api/session/{first['id']}/continue")
    assert r.status_code == 201
    data = r.json()
    assert data["id"] != first["id"]
    assert data["customGoal"] == "Refactor"
    assert data["targetDuration"] == 50


def test_record_break(client, clock):
    sid = start(client)["id"]
    clock.advance(minutes=25)
    client.post(f"/api/session/{sid}/end", json={"actualDuration": 25})
    r = client.post(f"/api/session/{sid}/break", json={"breakTaken": 4})
    assert r.json() == {"id": sid, "breakDuration": 5, "breakTaken": 4}


def test_active_and_snapshot(client, clock):
    assert client.get("/api/session/active").status_code == 404
    sid = start(client, customGoal="Inbox zero")["id"]
    clock.advance(minutes=3)
    client.post(f"/api/session/{sid}/pause")

    data = client.get("/api/session/active").json()
    assert data["id"] == sid
    assert data["type"] == "pomodoro"
    assert data["status"] == "paused"
    assert data["pauseCount"] == 1
    assert data["customGoal"] == "Inbox zero"
    assert data["pausedAt"] is not None
    assert "userId" not in data

    assert client.get(f"/api/session/{sid}").json() == data


def test_oversized_values_are_rejected_without_touching_the_session(client, clock):
    sid = start(client, "flowtime")["id"]
    clock.advance(minutes=30)
    assert client.post(f"/api/session/{sid}/end", json={"actualDuration": 10**20}).status_code == 422
    assert client.post(f"/api/session/{sid}/interrupt", json={"actualDuration": 10**20}).status_code == 422
    assert client.get(f"/api/session/{sid}").json()["status"] == "running"

    r = client.post("/api/session/start", json={"strategy": "flowtime", "breakRatio": 10**20})
    assert r.status_code == 422

    pid = start(client)["id"]
    clock.advance(minutes=25)
    client.post(f"/api/session/{pid}/end", json={"actualDuration": 25})
    assert client.post(f"/api/session/{pid}/break", json={"breakTaken": 10**20}).status_code == 422
    assert client.post(f"/api/session/{pid}/break", json={"breakTaken": -1}).status_code == 422
