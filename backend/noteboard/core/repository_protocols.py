"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from infrastructure or api; dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes in tests need no inheritance
    - insert_if_absent returns (note, inserted) instead of raising on duplicates:
      the store decides uniqueness atomically, the hub decides what a duplicate means
"""

from typing import Protocol

from noteboard.core.note import Note, NoteDraft


class NoteStore(Protocol):
    """Durable append-only note storage — implemented by infrastructure."""

    async def insert_if_absent(self, draft: NoteDraft) -> tuple[Note | None, bool]:
        """Persist draft unless its signature exists.

        Returns (note, True) on insert, (None, False) on duplicate.
        Raises StorageUnavailableError on failure or timeout.
        """
        ...

    async def list_recent(self, limit: int) -> list[Note]:
        """Up to `limit` notes, newest first."""
        ...

    async def health_check(self) -> bool: ...


class Transport(Protocol):
    """One subscriber's socket — implemented by infrastructure."""

    @property
    def is_open(self) -> bool: ...

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000, reason: str = "") -> None: ...
