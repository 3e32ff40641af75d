from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from database import db
from database.sessions import InMemorySessionStore, get_session_store
from realtime import events
from main import app


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def requests_collection(monkeypatch):
    # Register the current values so monkeypatch restores them after the test
    monkeypatch.setattr(db, "client", None)
    monkeypatch.setattr(db, "db", None)
    monkeypatch.setattr(db, "requests_collection", None)
    db.use_database(AsyncMongoMockClient(), "test-team-service-request")
    return db.requests_collection


@pytest.fixture
def emit(monkeypatch):
    mock_emit = AsyncMock()
    monkeypatch.setattr(events.sio, "emit", mock_emit)
    return mock_emit


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session_store(clock):
    store = InMemorySessionStore(default_ttl_seconds=900, clock=clock)
    app.dependency_overrides[get_session_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


@pytest.fixture
def client(requests_collection, emit, session_store):
    return TestClient(app)


@pytest.fixture
def spoc_headers(session_store):
    session = session_store.generate(spoc_id="spoc-anita")
    return {"x-spoc-token": session.token}


def emitted(mock_emit):
    """(event, payload, room) for every emit call, in order."""
    return [(c.args[0], c.args[1], c.kwargs.get("to")) for c in mock_emit.await_args_list]
