"""Broadcast Hub — persist-then-publish orchestration and snapshot hydration.

Invariants:
    - submit() publishes only after insert_if_absent reports a fresh insert
    - Duplicate signature -> DuplicateSignatureError, zero frames published
    - StorageUnavailableError propagates unchanged, zero frames published
    - Publish is never rolled back and never retried (at-most-once per connection)
    - A push-hydrated connection never receives a note both in its snapshot and as an echo

Design Decisions:
    - Ordering by sequencing, not by transaction: the hub awaits the store, then
      enqueues under the registry lock, so a persist that completes before another
      submit begins is also broadcast first
    - Signatures between insert and publish are counted in _in_flight; a joiner
      whose snapshot already holds one of them skips its later echo
    - Snapshot policy injected: push sends {"type": "initial"} on join, pull leaves
      history to GET /api/sticky-notes
"""

import logging
from collections import Counter

from noteboard.core.connection_registry import CLOSE_INTERNAL_ERROR, ConnectionRegistry
from noteboard.core.domain_types import (
    NOTES_LIST_LIMIT, ConnectionId, FrameType, SnapshotPolicy,
)
from noteboard.core.errors import DuplicateSignatureError, StorageUnavailableError
from noteboard.core.note import Note, NoteDraft
from noteboard.core.repository_protocols import NoteStore, Transport

logger = logging.getLogger(__name__)


class BroadcastHub:
    """Accepts notes, stores them once, and fans them out to live connections."""

    def __init__(
        self,
        store: NoteStore,
        registry: ConnectionRegistry,
        *,
        snapshot_policy: SnapshotPolicy = SnapshotPolicy.PUSH,
        snapshot_limit: int = NOTES_LIST_LIMIT,
    ):
        self.store = store
        self.registry = registry
        self.snapshot_policy = snapshot_policy
        self.snapshot_limit = snapshot_limit
        self._in_flight: Counter[str] = Counter()

    async def submit(self, draft: NoteDraft) -> Note:
        """Persist draft, broadcast it, return the stored note."""
        self._in_flight[draft.signature] += 1
        try:
            note, inserted = await self.store.insert_if_absent(draft)
            if not inserted or note is None:
                logger.info(
                    "Duplicate signature rejected",
                    extra={"signature": draft.signature},
                )
                raise DuplicateSignatureError(draft.signature)

            queued = await self.registry.publish(
                note.to_payload(), dedup_key=note.signature,
            )
        finally:
            self._in_flight[draft.signature] -= 1
            if self._in_flight[draft.signature] <= 0:
                del self._in_flight[draft.signature]
        logger.info(
            f"Note stored and queued for {queued} connection(s)",
            extra={"signature": note.signature, "connections": queued},
        )
        return note

    async def list_notes(self, limit: int | None = None) -> list[Note]:
        cap = self.snapshot_limit if limit is None else min(limit, self.snapshot_limit)
        return await self.store.list_recent(cap)

    async def initial_snapshot(self) -> list[Note]:
        return await self.store.list_recent(self.snapshot_limit)

    async def join(self, transport: Transport) -> ConnectionId:
        """Register a transport, hydrating it first when the policy is push."""
        if self.snapshot_policy is SnapshotPolicy.PULL:
            return await self.registry.register(transport)

        handle = await self.registry.register(transport, hydrating=True)
        try:
            notes = await self.initial_snapshot()
        except StorageUnavailableError:
            await self.registry.evict(
                handle, reason="snapshot unavailable", code=CLOSE_INTERNAL_ERROR,
            )
            raise
        seen = {n.signature for n in notes}
        await self.registry.complete_hydration(
            handle,
            {
                "type": FrameType.INITIAL.value,
                "notes": [n.to_payload() for n in notes],
            },
            seen,
            late_keys=seen & self._in_flight.keys(),
        )
        return handle

    async def leave(self, handle: ConnectionId) -> None:
        await self.registry.evict(handle, reason="client closed")
