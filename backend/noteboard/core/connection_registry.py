"""Connection Registry — live subscriber set, liveness state, and per-connection outbound queues.

Invariants:
    - The registry is the only owner of connection state; callers hold ConnectionId handles
    - Membership mutations and publish enqueues are serialized by one asyncio.Lock
    - publish() never awaits a socket: frames go onto bounded per-connection queues
      drained by one sender task per connection
    - One connection's full queue or failed send evicts that connection only
    - evict() is idempotent
    - While hydrating, published frames are buffered (at most queue_size of them)
    - A note delivered in a connection's initial snapshot is never echoed to it
      again, whether its publish lands before or after hydration completes

Design Decisions:
    - Sender task per connection: a slow or blocked peer cannot delay fan-out to others
    - All enqueues of one publish happen under the lock, so every connection
      observes publishes in the same order
    - Slow consumers are evicted, not drained: delivery is at-most-once
"""

import asyncio
import contextlib
import json
import logging
from dataclasses import dataclass, field
from uuid import uuid4

from noteboard.core.domain_types import ConnectionId, FrameType, LivenessState
from noteboard.core.errors import DeliveryError
from noteboard.core.repository_protocols import Transport

logger = logging.getLogger(__name__)

CLOSE_NORMAL = 1000
CLOSE_GOING_AWAY = 1001
CLOSE_POLICY_VIOLATION = 1008
CLOSE_INTERNAL_ERROR = 1011


@dataclass
class _Connection:
    """Registry-private connection record."""
    id: ConnectionId
    transport: Transport
    queue: asyncio.Queue
    state: LivenessState = LivenessState.ALIVE
    hydrating: bool = False
    pending: list[tuple[str, str | None]] = field(default_factory=list)
    # dedup keys already delivered in the initial snapshot
    snapshot_keys: set[str] = field(default_factory=set)
    sender_task: asyncio.Task | None = None


class ConnectionRegistry:
    """Tracks live connections and fans frames out to them."""

    def __init__(self, queue_size: int = 64, send_timeout: float = 10.0):
        self._queue_size = queue_size
        self._send_timeout = send_timeout
        self._connections: dict[ConnectionId, _Connection] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, handle: object) -> bool:
        return handle in self._connections

    # --------- membership ----------

    async def register(
        self, transport: Transport, *, hydrating: bool = False,
    ) -> ConnectionId:
        """Track a new connection in ALIVE state and start its sender."""
        conn = _Connection(
            id=ConnectionId(uuid4()),
            transport=transport,
            queue=asyncio.Queue(maxsize=self._queue_size),
            hydrating=hydrating,
        )
        async with self._lock:
            self._connections[conn.id] = conn
            conn.sender_task = asyncio.create_task(self._sender_loop(conn))
        logger.info(
            "Connection registered",
            extra={"connection_id": str(conn.id), "connections": len(self)},
        )
        return conn.id

    async def evict(
        self,
        handle: ConnectionId,
        reason: str = "evicted",
        code: int = CLOSE_NORMAL,
    ) -> bool:
        """Remove, stop and close a connection. False if it was already gone."""
        async with self._lock:
            conn = self._connections.pop(handle, None)
        if conn is None:
            return False

        task = conn.sender_task
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        if conn.transport.is_open:
            try:
                await conn.transport.close(code=code, reason=reason)
            except Exception as e:
                # peer already gone; nothing left to release
                logger.debug(f"Close after eviction failed: {e}")

        logger.info(
            "Connection evicted",
            extra={
                "connection_id": str(handle),
                "reason": reason,
                "connections": len(self),
            },
        )
        return True

    def snapshot(self) -> list[ConnectionId]:
        """Copy of current membership, safe to iterate while others mutate."""
        return list(self._connections)

    async def close_all(self, reason: str = "server shutdown") -> None:
        for handle in self.snapshot():
            await self.evict(handle, reason=reason, code=CLOSE_GOING_AWAY)

    # --------- liveness ----------

    def state(self, handle: ConnectionId) -> LivenessState | None:
        conn = self._connections.get(handle)
        return conn.state if conn else None

    def is_alive(self, handle: ConnectionId) -> bool:
        return self.state(handle) is LivenessState.ALIVE

    def mark_alive(self, handle: ConnectionId) -> None:
        """Record a liveness response (pong) from the connection."""
        conn = self._connections.get(handle)
        if conn is not None:
            conn.state = LivenessState.ALIVE

    async def begin_probe(self, handle: ConnectionId) -> bool:
        """ALIVE -> PROBING and queue a ping frame. False if not probed."""
        conn = self._connections.get(handle)
        if conn is None or conn.state is not LivenessState.ALIVE:
            return False
        conn.state = LivenessState.PROBING
        return await self.send(handle, {"type": FrameType.PING.value})

    # --------- delivery ----------

    async def publish(self, payload: dict, *, dedup_key: str | None = None) -> int:
        """Queue payload for every open connection. Returns the number queued."""
        frame = json.dumps(payload, ensure_ascii=False)
        overflowed: list[ConnectionId] = []
        queued = 0
        async with self._lock:
            for conn in self._connections.values():
                if not conn.transport.is_open:
                    continue
                if dedup_key is not None and dedup_key in conn.snapshot_keys:
                    # keys are unique per note, so one match is the only one
                    conn.snapshot_keys.discard(dedup_key)
                    continue
                if conn.hydrating:
                    if len(conn.pending) >= self._queue_size:
                        overflowed.append(conn.id)
                        continue
                    conn.pending.append((frame, dedup_key))
                    queued += 1
                    continue
                try:
                    conn.queue.put_nowait(frame)
                    queued += 1
                except asyncio.QueueFull:
                    overflowed.append(conn.id)

        for handle in overflowed:
            self._log_delivery_failure(handle, "outbound queue full")
            await self.evict(handle, reason="slow consumer", code=CLOSE_POLICY_VIOLATION)
        return queued

    async def send(self, handle: ConnectionId, payload: dict) -> bool:
        """Queue a frame for a single connection (probes, replies, errors)."""
        frame = json.dumps(payload, ensure_ascii=False)
        async with self._lock:
            conn = self._connections.get(handle)
            if conn is None:
                return False
            try:
                conn.queue.put_nowait(frame)
                return True
            except asyncio.QueueFull:
                pass
        self._log_delivery_failure(handle, "outbound queue full")
        await self.evict(handle, reason="slow consumer", code=CLOSE_POLICY_VIOLATION)
        return False

    async def complete_hydration(
        self,
        handle: ConnectionId,
        payload: dict,
        seen_keys: set[str],
        *,
        late_keys: set[str] | None = None,
    ) -> bool:
        """Deliver the initial snapshot, then flush buffered publishes not in it.

        late_keys: snapshot keys whose publish may still arrive after hydration
        (submits in flight); those later publishes are skipped for this
        connection. None keeps every unmatched snapshot key.
        """
        initial = json.dumps(payload, ensure_ascii=False)
        overflow = False
        async with self._lock:
            conn = self._connections.get(handle)
            if conn is None:
                return False
            frames = [initial]
            remaining = set(seen_keys)
            for frame, key in conn.pending:
                if key is not None and key in remaining:
                    remaining.discard(key)
                else:
                    frames.append(frame)
            conn.pending.clear()
            conn.snapshot_keys = remaining if late_keys is None else remaining & late_keys
            conn.hydrating = False
            for frame in frames:
                try:
                    conn.queue.put_nowait(frame)
                except asyncio.QueueFull:
                    overflow = True
                    break
        if overflow:
            self._log_delivery_failure(handle, "outbound queue full during hydration")
            await self.evict(handle, reason="slow consumer", code=CLOSE_POLICY_VIOLATION)
            return False
        return True

    # --------- internals ----------

    async def _sender_loop(self, conn: _Connection) -> None:
        """Drain one connection's queue to its transport until eviction or failure."""
        while True:
            frame = await conn.queue.get()
            try:
                await asyncio.wait_for(
                    conn.transport.send_text(frame), timeout=self._send_timeout,
                )
            except asyncio.TimeoutError:
                self._log_delivery_failure(conn.id, "send timed out")
                break
            except Exception as e:
                self._log_delivery_failure(conn.id, str(e) or type(e).__name__)
                break
        await self.evict(conn.id, reason="delivery failure", code=CLOSE_INTERNAL_ERROR)

    @staticmethod
    def _log_delivery_failure(handle: ConnectionId, reason: str) -> None:
        err = DeliveryError(str(handle), reason)
        logger.warning(
            err.message,
            extra={"connection_id": str(handle), "error_code": err.code},
        )
