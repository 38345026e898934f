"""Rate limiting data models.

This module contains dataclasses for rate limit configuration, state and
results.
"""

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional


@dataclass(frozen=True)
class RateLimitConfig:
    """Per-endpoint admission policy."""
    window_seconds: float
    max_requests: int

    def __post_init__(self) -> None:
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if self.max_requests < 1:
            raise ValueError("max_requests must be at least 1")


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: Optional[int] = None

    @property
    def reset_time(self) -> int:
        """Window reset as unix seconds (X-RateLimit-Reset)."""
        return math.ceil(self.reset_at)


@dataclass
class RateLimitRecord:
    """Fixed-window counter for one (client, config) pair."""
    count: int
    window_reset_at: float


RATE_LIMIT_CONFIGS = MappingProxyType({
    # RSVP submission
    "rsvp": RateLimitConfig(window_seconds=15 * 60, max_requests=3),
    # Invite lookup
    "rsvp_read": RateLimitConfig(window_seconds=60, max_requests=120),
    # Guest-name autocomplete
    "guest_search": RateLimitConfig(window_seconds=60, max_requests=30),
    # Admin mutations
    "post_operations": RateLimitConfig(window_seconds=60 * 60, max_requests=5),
})
