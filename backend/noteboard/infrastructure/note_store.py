"""Note Stores — SQL-backed and in-memory implementations of core NoteStore.

Invariants:
    - insert_if_absent is atomic per signature: concurrent duplicates yield
      exactly one (note, True) and the rest (None, False)
    - list_recent returns at most `limit` notes, newest first (timestamp, then insert order)
    - Every call is bounded by `timeout`; expiry raises StorageUnavailableError
    - Nothing here updates or deletes a stored note

Design Decisions:
    - SQL uniqueness comes from the unique index, detected as IntegrityError on commit,
      never from a pre-read (check-then-insert races under concurrency)
    - Timestamp assigned in Python at insert so the returned note needs no refresh
    - In-memory store keeps timestamps non-decreasing so insertion order and
      timestamp order agree
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from noteboard.core.errors import StorageUnavailableError
from noteboard.core.note import Note, NoteDraft
from noteboard.infrastructure.database import DatabaseSessionManager
from noteboard.models.sticky_note import StickyNote

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_timeout(awaitable: Awaitable[T], timeout: float, operation: str) -> T:
    """Await a storage call, mapping expiry to StorageUnavailableError."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"Storage {operation} timed out after {timeout}s")
        raise StorageUnavailableError(f"timed out after {timeout}s", operation)


class SqlNoteStore:
    """NoteStore over the sticky_notes table."""

    def __init__(self, manager: DatabaseSessionManager, timeout: float = 5.0):
        self._manager = manager
        self._timeout = timeout

    async def insert_if_absent(self, draft: NoteDraft) -> tuple[Note | None, bool]:
        return await with_timeout(self._insert(draft), self._timeout, "insert")

    async def list_recent(self, limit: int) -> list[Note]:
        if limit <= 0:
            return []
        return await with_timeout(self._list(limit), self._timeout, "list")

    async def health_check(self) -> bool:
        try:
            return await asyncio.wait_for(
                self._manager.health_check(), timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.error("DB health check timed out")
            return False

    async def _insert(self, draft: NoteDraft) -> tuple[Note | None, bool]:
        async with self._manager.session() as db:
            row = StickyNote(
                message=draft.message,
                signature=draft.signature,
                wallet_address=draft.wallet_address,
                color=draft.color.value,
                timestamp=datetime.now(timezone.utc),
            )
            db.add(row)
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                return None, False
            return row.to_domain(), True

    async def _list(self, limit: int) -> list[Note]:
        async with self._manager.session() as db:
            result = await db.execute(
                select(StickyNote)
                .order_by(StickyNote.timestamp.desc(), StickyNote.id.desc())
                .limit(limit),
            )
            return [row.to_domain() for row in result.scalars().all()]


class InMemoryNoteStore:
    """Process-local NoteStore for development and tests."""

    def __init__(self, timeout: float = 5.0):
        self._timeout = timeout
        self._by_signature: dict[str, Note] = {}
        self._ordered: list[Note] = []
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._ordered)

    async def insert_if_absent(self, draft: NoteDraft) -> tuple[Note | None, bool]:
        return await with_timeout(self._insert(draft), self._timeout, "insert")

    async def list_recent(self, limit: int) -> list[Note]:
        if limit <= 0:
            return []
        async with self._lock:
            return list(reversed(self._ordered[-limit:]))

    async def health_check(self) -> bool:
        return True

    async def _insert(self, draft: NoteDraft) -> tuple[Note | None, bool]:
        async with self._lock:
            if draft.signature in self._by_signature:
                return None, False
            now = datetime.now(timezone.utc)
            if self._ordered and now < self._ordered[-1].timestamp:
                now = self._ordered[-1].timestamp
            note = draft.stamp(now)
            self._by_signature[note.signature] = note
            self._ordered.append(note)
            return note, True
