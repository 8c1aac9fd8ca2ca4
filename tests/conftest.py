"""Pytest fixtures: in-memory DB per test, fake clock, FastAPI TestClient."""
import os
from datetime import datetime, timedelta, timezone

# Point the app at an in-memory database before focustrack is imported
os.environ["FOCUSTRACK_DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from focustrack.config import Settings
from focustrack.db import get_session, init_db, make_engine
from focustrack.main import app
from focustrack.routers.sessions import get_clock
from focustrack.service import SessionService


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def advance(self, seconds: float = 0, *, minutes: float = 0) -> None:
        self.now += timedelta(seconds=seconds, minutes=minutes)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    with Session(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def service_for(db, clock, settings):
    def make(user_id: str = "alice") -> SessionService:
        return SessionService(db, user_id, clock=clock, settings=settings)

    return make


@pytest.fixture
def client(engine, clock):
    def override_session():
        with Session(engine, expire_on_commit=False) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app, headers={"X-User-Id": "alice"}) as c:
        yield c
    app.dependency_overrides.clear()
