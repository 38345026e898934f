"""Rate limiting for the RSVP endpoints.

This module provides per-client admission control to keep the public RSVP
endpoints from being spammed. Each endpoint selects a policy from
``RATE_LIMIT_CONFIGS``; one ``FixedWindowRateLimiter`` owned by the
application holds the counters for all of them.
"""

import hashlib
from typing import Dict

from starlette.requests import HTTPConnection

from rsvp.app.middleware.rate_limit.backends import (
    FixedWindowRateLimiter,
    SlidingWindowRateLimiter,
)
from rsvp.app.middleware.rate_limit.models import (
    RATE_LIMIT_CONFIGS,
    RateLimitConfig,
    RateLimitRecord,
    RateLimitResult,
)

__all__ = [
    # Models
    "RATE_LIMIT_CONFIGS",
    "RateLimitConfig",
    "RateLimitRecord",
    "RateLimitResult",
    # Backends
    "FixedWindowRateLimiter",
    "SlidingWindowRateLimiter",
    # Helpers
    "get_client_id",
    "get_client_key",
    "rate_limit_headers",
]

_CLIENT_IP_HEADERS = ("cf-connecting-ip", "x-real-ip")


def get_client_id(request: HTTPConnection) -> str:
    """Derive the client identity used for rate limiting.

    Order: first hop of X-Forwarded-For, CF-Connecting-IP, X-Real-IP, the
    socket peer address, then ``"unknown"``.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    for header in _CLIENT_IP_HEADERS:
        value = request.headers.get(header)
        if value and value.strip():
            return value.strip()

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_client_key(request: HTTPConnection) -> str:
    """Rate limit key for the request.

    The client IP is hashed so raw addresses are never kept in memory or
    written to logs. 32 hex chars (128 bits) keeps collisions negligible.
    """
    ip_hash = hashlib.sha256(get_client_id(request).encode()).hexdigest()[:32]
    return f"ratelimit:ip:{ip_hash}"


def rate_limit_headers(result: RateLimitResult) -> Dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_time),
    }
    if not result.allowed:
        headers["Retry-After"] = str(result.retry_after or 1)
    return headers
