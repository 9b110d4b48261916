"""Root conftest — shared test configuration and fixtures."""

import os

import pytest

# Ensure tests never touch a developer's database or emit JSON logs
os.environ.setdefault("NOTEBOARD_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("NOTEBOARD_LOG_FORMAT", "text")

from noteboard.core.connection_registry import ConnectionRegistry  # noqa: E402
from noteboard.core.note import NoteDraft  # noqa: E402
from noteboard.infrastructure.note_store import InMemoryNoteStore  # noqa: E402


@pytest.fixture
def store():
    return InMemoryNoteStore()


@pytest.fixture
async def registry():
    reg = ConnectionRegistry(queue_size=8, send_timeout=0.5)
    yield reg
    await reg.close_all()


@pytest.fixture
def make_draft():
    def _make(signature="sig1", message="hi", wallet="0xabc", color="pink"):
        return NoteDraft(
            message=message, signature=signature,
            wallet_address=wallet, color=color,
        )
    return _make
