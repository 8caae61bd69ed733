import os
import threading

# The app module builds its engine at import time; keep it off MySQL
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.pop("FIREBASE_CREDENTIALS_JSON", None)

import pytest
from fastapi.testclient import TestClient
from sqlmodel import create_engine

from meetup.auth import create_access_token
from meetup.database import create_db_and_tables, get_engine
from meetup.main import app
from meetup.routers.friends import get_notification_sink
from meetup.services.relationships import FriendRelationshipStore, dispatch_inline


class RecordingSink:
    def __init__(self):
        self.events = []

    def notify(self, event):
        self.events.append(event)


class FailingSink:
    def __init__(self):
        self.calls = 0

    def notify(self, event):
        self.calls += 1
        raise RuntimeError("notification backend unavailable")


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'meetup.db'}",
        connect_args={"check_same_thread": False}
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def store(engine, sink):
    return FriendRelationshipStore(engine, sink, dispatch=dispatch_inline)


@pytest.fixture
def client(engine, sink):
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_notification_sink] = lambda: sink
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def make(user_id):
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}
    return make


class BlockingSink:
    """Holds every delivery until ``release`` is set."""

    def __init__(self):
        self.release = threading.Event()
        self.delivered = threading.Event()
        self.events = []

    def notify(self, event):
        self.release.wait(timeout=5)
        self.events.append(event)
        self.delivered.set()
