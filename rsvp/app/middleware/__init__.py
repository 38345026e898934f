"""Request admission and HTTP middleware for the RSVP service."""

from rsvp.app.middleware.csrf import (
    CSRF_CONFIG,
    CSRFProtector,
    get_token_from_request,
    verify_request_origin,
)
from rsvp.app.middleware.rate_limit import (
    RATE_LIMIT_CONFIGS,
    FixedWindowRateLimiter,
    SlidingWindowRateLimiter,
    get_client_id,
)
from rsvp.app.middleware.request_id import RequestIdMiddleware, get_request_id
from rsvp.app.middleware.request_size import RequestSizeLimitMiddleware
from rsvp.app.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "CSRF_CONFIG",
    "CSRFProtector",
    "get_token_from_request",
    "verify_request_origin",
    "RATE_LIMIT_CONFIGS",
    "FixedWindowRateLimiter",
    "SlidingWindowRateLimiter",
    "get_client_id",
    "RequestIdMiddleware",
    "get_request_id",
    "RequestSizeLimitMiddleware",
    "SecurityHeadersMiddleware",
]
