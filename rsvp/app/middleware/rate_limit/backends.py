"""In-memory rate limiter backends.

Two algorithms are provided:

- ``FixedWindowRateLimiter``: one counter per (client, config) that resets at
  the end of its window. Cheap, but admits up to ``2 * max_requests`` across a
  window boundary. Good enough for anti-spam.
- ``SlidingWindowRateLimiter``: keeps every request timestamp inside the
  window per client. Exact, at O(requests-in-window) memory per client.

State is process-local. Several server instances each keep their own
counters, so the effective limit scales with the instance count.
"""

import math
import random
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from rsvp.app.core.logging import get_logger
from rsvp.app.core.sweeper import PeriodicSweeper
from rsvp.app.middleware.rate_limit.models import (
    RateLimitConfig,
    RateLimitRecord,
    RateLimitResult,
)

logger = get_logger(__name__)

Clock = Callable[[], float]


class FixedWindowRateLimiter:
    """Fixed-window counter store shared by every endpoint.

    Records are keyed by ``client_id:window:max`` so two endpoints with
    different policies never share a counter, even for the same client.
    """

    def __init__(
        self,
        clock: Clock = time.time,
        sweep_probability: float = 0.0,
        rng: Optional[random.Random] = None,
        sweep_interval_seconds: float = 60.0,
    ):
        """Initialize the store.

        Args:
            clock: Returns the current time in seconds
            sweep_probability: Chance of sweeping expired records on each
                check. Leave at 0 when start() runs the background sweep.
            rng: Random source for the opportunistic sweep
            sweep_interval_seconds: Period of the background sweep run
                between start() and stop()
        """
        self._clock = clock
        self._sweep_probability = sweep_probability
        self._rng = rng or random.Random()
        self._records: Dict[str, RateLimitRecord] = {}
        self._lock = threading.Lock()
        self._sweeper = PeriodicSweeper("rate-limit", self.sweep, sweep_interval_seconds)

    async def start(self) -> None:
        """Start the periodic sweep of expired records."""
        await self._sweeper.start()

    async def stop(self) -> None:
        await self._sweeper.stop()

    @staticmethod
    def make_key(client_id: str, config: RateLimitConfig) -> str:
        return f"{client_id}:{config.window_seconds:g}:{config.max_requests}"

    def check(self, client_id: str, config: RateLimitConfig) -> RateLimitResult:
        """Count one request from ``client_id`` against ``config``."""
        key = self.make_key(client_id, config)

        with self._lock:
            now = self._clock()

            if self._sweep_probability and self._rng.random() < self._sweep_probability:
                self._sweep_locked(now)

            record = self._records.get(key)

            if record is None or now > record.window_reset_at:
                record = RateLimitRecord(count=1, window_reset_at=now + config.window_seconds)
                self._records[key] = record
                return RateLimitResult(
                    allowed=True,
                    limit=config.max_requests,
                    remaining=config.max_requests - 1,
                    reset_at=record.window_reset_at,
                )

            if record.count >= config.max_requests:
                return RateLimitResult(
                    allowed=False,
                    limit=config.max_requests,
                    remaining=0,
                    reset_at=record.window_reset_at,
                    retry_after=max(1, math.ceil(record.window_reset_at - now)),
                )

            record.count += 1
            return RateLimitResult(
                allowed=True,
                limit=config.max_requests,
                remaining=config.max_requests - record.count,
                reset_at=record.window_reset_at,
            )

    def sweep(self) -> int:
        """Delete records whose window has ended. Returns the number removed."""
        with self._lock:
            return self._sweep_locked(self._clock())

    def _sweep_locked(self, now: float) -> int:
        expired = [key for key, record in self._records.items() if record.window_reset_at < now]
        for key in expired:
            del self._records[key]
        return len(expired)

    def reset(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


class SlidingWindowRateLimiter:
    """Sliding-window limiter tracking individual request timestamps."""

    def __init__(
        self,
        window_seconds: float,
        max_requests: int,
        clock: Clock = time.time,
    ):
        self.config = RateLimitConfig(window_seconds=window_seconds, max_requests=max_requests)
        self._clock = clock
        self._requests: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def _prune(self, timestamps: Deque[float], now: float) -> None:
        window = self.config.window_seconds
        while timestamps and now - timestamps[0] >= window:
            timestamps.popleft()

    def check(self, client_id: str) -> RateLimitResult:
        limit = self.config.max_requests
        with self._lock:
            now = self._clock()
            timestamps = self._requests.setdefault(client_id, deque())
            self._prune(timestamps, now)

            if len(timestamps) >= limit:
                reset_at = timestamps[0] + self.config.window_seconds
                return RateLimitResult(
                    allowed=False,
                    limit=limit,
                    remaining=0,
                    reset_at=reset_at,
                    retry_after=max(1, math.ceil(reset_at - now)),
                )

            timestamps.append(now)
            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=limit - len(timestamps),
                reset_at=timestamps[0] + self.config.window_seconds,
            )

    def is_allowed(self, client_id: str) -> bool:
        return self.check(client_id).allowed

    def get_remaining(self, client_id: str) -> int:
        with self._lock:
            timestamps = self._requests.get(client_id)
            if not timestamps:
                return self.config.max_requests
            self._prune(timestamps, self._clock())
            return max(0, self.config.max_requests - len(timestamps))

    def sweep(self) -> int:
        """Drop clients with no requests left inside the window."""
        with self._lock:
            now = self._clock()
            idle = []
            for client_id, timestamps in self._requests.items():
                self._prune(timestamps, now)
                if not timestamps:
                    idle.append(client_id)
            for client_id in idle:
                del self._requests[client_id]
            return len(idle)

    def __len__(self) -> int:
        return len(self._requests)
