"""Rate Limit — fixed-window request budget per client key.

Invariants:
    - At most max_requests accepted per key per window
    - Window starts at the key's first request and resets once it elapses
    - Expired windows are pruned, so idle clients do not accumulate state

Design Decisions:
    - Pure class with injectable clock: deterministic tests, no sleeps
    - In-process state: single-worker deployment, counters reset on restart
"""

import math
import time
from dataclasses import dataclass
from typing import Callable

from noteboard.core.errors import RateLimitExceededError


@dataclass
class _Window:
    started_at: float
    count: int = 0


class FixedWindowRateLimiter:
    """Counts hits per key inside a fixed time window."""

    PRUNE_THRESHOLD = 10_000

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def hit(self, key: str) -> None:
        """Count one request for key. Raises RateLimitExceededError when over budget."""
        now = self._clock()
        if len(self._windows) > self.PRUNE_THRESHOLD:
            self._prune(now)

        window = self._windows.get(key)
        if window is None or now - window.started_at >= self.window_seconds:
            window = _Window(started_at=now)
            self._windows[key] = window

        if window.count >= self.max_requests:
            remaining = window.started_at + self.window_seconds - now
            raise RateLimitExceededError(math.ceil(remaining * 1000))
        window.count += 1

    def remaining(self, key: str) -> int:
        window = self._windows.get(key)
        if window is None or self._clock() - window.started_at >= self.window_seconds:
            return self.max_requests
        return max(self.max_requests - window.count, 0)

    def _prune(self, now: float) -> None:
        expired = [
            k for k, w in self._windows.items()
            if now - w.started_at >= self.window_seconds
        ]
        for k in expired:
            del self._windows[k]
