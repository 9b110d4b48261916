"""Test Fakes — transports and stores that satisfy core Protocols without IO.

Invariants:
    - FakeTransport records every sent frame; can block forever or fail on send
    - UnavailableStore raises StorageUnavailableError on every data call
    - GatedStore holds list_recent until released (hydration race tests)
    - SlowAckStore holds insert_if_absent after the note is already listable

Design Decisions:
    - Flat fake classes (no inheritance): simple, explicit, easy to debug
    - wait_for_frames polls instead of sleeping a fixed time: sender tasks are async
"""

import asyncio
import json

from noteboard.core.errors import StorageUnavailableError
from noteboard.infrastructure.note_store import InMemoryNoteStore


class FakeTransport:
    """Records frames; `block` stalls every send, `fail` raises on every send."""

    def __init__(self, *, block: bool = False, fail: bool = False):
        self.sent: list[str] = []
        self.closed_with: tuple[int, str] | None = None
        self.block = block
        self.fail = fail
        self._open = True
        self._release = asyncio.Event()

    @property
    def is_open(self) -> bool:
        return self._open

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise ConnectionResetError("peer reset")
        if self.block:
            await self._release.wait()
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self._open = False
        self.closed_with = (code, reason)

    def frames(self) -> list[dict]:
        return [json.loads(s) for s in self.sent]

    def note_frames(self) -> list[dict]:
        return [f for f in self.frames() if "signature" in f]


async def wait_for_frames(transport: FakeTransport, count: int, timeout: float = 1.0) -> list[dict]:
    """Wait until transport has at least `count` frames."""
    async def _poll():
        while len(transport.sent) < count:
            await asyncio.sleep(0.005)
    await asyncio.wait_for(_poll(), timeout=timeout)
    return transport.frames()


async def settle(rounds: int = 5) -> None:
    """Let pending sender tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class UnavailableStore:
    """Store whose backend is down."""

    async def insert_if_absent(self, draft):
        raise StorageUnavailableError("connection refused", "insert")

    async def list_recent(self, limit):
        raise StorageUnavailableError("connection refused", "list")

    async def health_check(self) -> bool:
        return False


class GatedStore(InMemoryNoteStore):
    """In-memory store whose list_recent waits for `gate` before reading."""

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()
        self.listing = asyncio.Event()

    async def list_recent(self, limit):
        self.listing.set()
        await self.gate.wait()
        return await super().list_recent(limit)


class SlowAckStore(InMemoryNoteStore):
    """In-memory store that commits, sets `committed`, then waits for `ack`.

    Models a SQL insert that is durable (visible to list_recent) before the
    call returns to the hub.
    """

    def __init__(self):
        super().__init__()
        self.committed = asyncio.Event()
        self.ack = asyncio.Event()

    async def insert_if_absent(self, draft):
        result = await super().insert_if_absent(draft)
        self.committed.set()
        await self.ack.wait()
        return result
