"""API test fixtures — app factory with in-memory store + Starlette TestClient.

Invariants:
    - Every test gets a fresh app, store, registry and rate limiter
    - TestClient used as a context manager so the lifespan (hub, heartbeat) runs

Design Decisions:
    - TestClient over httpx.AsyncClient: it drives the lifespan and WebSocket sessions
    - make_app fixture for tests that need non-default settings or a broken store
"""

import pytest
from fastapi.testclient import TestClient

from noteboard.config import Settings
from noteboard.infrastructure.note_store import InMemoryNoteStore
from noteboard.main import create_app


@pytest.fixture
def api_store():
    return InMemoryNoteStore()


@pytest.fixture
def make_app(api_store):
    """Factory: make_app(store=None, **setting_overrides) -> FastAPI."""
    def _make(store=None, **overrides):
        values = {
            "storage_backend": "memory",
            "log_format": "text",
            "cors_origins": ["http://localhost:3000"],
            "snapshot_policy": "push",
        }
        values.update(overrides)
        settings = Settings(_env_file=None, **values)
        return create_app(settings, store=store if store is not None else api_store)
    return _make


@pytest.fixture
def client(make_app):
    with TestClient(make_app()) as c:
        yield c


@pytest.fixture
def note_body():
    return {
        "message": "hi",
        "signature": "sig1",
        "walletAddress": "0xabc",
        "color": "pink",
    }
