"""
Fixed-window rate limiting keyed by client IP.

Each key gets a counter and a reset time.  The first request after the
window expires starts a new window; requests beyond ``max_requests`` inside
a window are rejected until it resets.  There is no burst smoothing and no
shared state between processes: counters live in memory and reset when the
server restarts.

Usage
-----
    limiter = FixedWindowRateLimiter(window_seconds=900, max_requests=100)
    decision = limiter.hit(client_ip)
    if not decision.allowed:
        ...  # answer 429 with decision.retry_after
"""
from __future__ import annotations

import dataclasses
import logging
import math
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


@dataclasses.dataclass
class WindowEntry:
    count: int
    reset_time: float


@dataclasses.dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: int = 0  # whole seconds until the window resets


class FixedWindowRateLimiter:
    """In-memory fixed-window counter per key."""

    def __init__(
        self,
        window_seconds: float,
        max_requests: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._store: Dict[str, WindowEntry] = {}

    def hit(self, key: Optional[str]) -> RateLimitDecision:
        """Count one request for *key* and decide whether it may proceed."""
        key = key or UNKNOWN_CLIENT
        now = self._clock()
        entry = self._store.get(key)

        if entry is None or now > entry.reset_time:
            self._store[key] = WindowEntry(count=1, reset_time=now + self.window_seconds)
            return RateLimitDecision(allowed=True, remaining=self.max_requests - 1)

        if entry.count < self.max_requests:
            entry.count += 1
            return RateLimitDecision(allowed=True, remaining=self.max_requests - entry.count)

        retry_after = math.ceil(entry.reset_time - now)
        return RateLimitDecision(allowed=False, remaining=0, retry_after=retry_after)

    def sweep(self) -> int:
        """Drop entries whose window has passed. Returns how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._store.items() if now > entry.reset_time]
        for key in expired:
            del self._store[key]
        if expired:
            logger.debug("Rate limiter swept %d expired entries", len(expired))
        return len(expired)

    def reset(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: str) -> bool:
        return key in self._store
