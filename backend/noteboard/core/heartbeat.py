"""Heartbeat Monitor — one shared periodic sweep that probes and prunes connections.

Invariants:
    - One task drives every connection: O(connections) work per tick, no per-connection timers
    - Per connection per sweep: PROBING -> evicted, ALIVE -> PROBING + ping
    - A connection that misses two consecutive probes receives no further frames
    - Sweep iterates a registry snapshot, never the live membership dict
    - A failing sweep is logged; the loop keeps ticking

Design Decisions:
    - Application-level ping frames: ASGI exposes no protocol ping/pong, and
      browsers cannot answer custom probes otherwise
    - sweep() public: tests drive ticks deterministically without sleeping
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass

from noteboard.core.connection_registry import CLOSE_GOING_AWAY, ConnectionRegistry
from noteboard.core.domain_types import LivenessState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    probed: int
    evicted: int


class HeartbeatMonitor:
    """Periodically probes every registered connection."""

    def __init__(self, registry: ConnectionRegistry, interval: float = 30.0):
        self._registry = registry
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep(self) -> SweepResult:
        probed = evicted = 0
        for handle in self._registry.snapshot():
            state = self._registry.state(handle)
            if state is None:
                continue  # left between snapshot and now
            if state is LivenessState.PROBING:
                if await self._registry.evict(
                    handle, reason="heartbeat timeout", code=CLOSE_GOING_AWAY,
                ):
                    evicted += 1
                continue
            if await self._registry.begin_probe(handle):
                probed += 1
        if probed or evicted:
            logger.debug(
                f"Heartbeat sweep: probed={probed} evicted={evicted}",
                extra={"connections": len(self._registry)},
            )
        return SweepResult(probed=probed, evicted=evicted)

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.sweep()
            except Exception as e:
                logger.error(f"Heartbeat sweep failed: {e}", exc_info=True)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self.run())
        logger.info(f"Heartbeat started (interval={self._interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Heartbeat stopped")
