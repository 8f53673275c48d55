# ecotrack/conftest.py
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to PYTHONPATH
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Test defaults must be in place before settings are first imported
os.environ.setdefault("ENV", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

FIXED_NOW = datetime(2024, 1, 8, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """Deterministic clock; tests move it with advance()."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def documents():
    from ecotrack.features.store.memory import MemoryDocumentStore

    return MemoryDocumentStore()


@pytest.fixture
def record_store(documents, clock):
    from ecotrack.features.store.adapter import RecordStore

    return RecordStore(documents, clock=clock)


@pytest.fixture
def auth():
    from ecotrack.features.auth.provider import AuthProvider

    return AuthProvider(bcrypt_rounds=4)


@pytest.fixture
def hub():
    from ecotrack.realtime.hub import SessionHub

    return SessionHub()


@pytest.fixture
def session(auth, record_store, hub, clock):
    """Orchestrator over the in-memory store with a fixed clock."""
    from ecotrack.features.session.orchestrator import SessionOrchestrator

    orchestrator = SessionOrchestrator(auth, record_store, hub=hub, clock=clock)
    yield orchestrator
    orchestrator.close()


@pytest.fixture
def client(session, monkeypatch):
    """TestClient with the process session replaced by the fixture session."""
    from fastapi.testclient import TestClient

    from ecotrack.features.session.orchestrator import get_session, reset_session
    from ecotrack.main import app

    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("TEST_DATABASE_URL", raising=False)
    reset_session()
    app.dependency_overrides[get_session] = lambda: session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    reset_session()
