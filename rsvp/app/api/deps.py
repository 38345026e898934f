"""Admission dependencies shared by the API routers.

Each state-changing route is gated in the same order: origin check, rate
limit bucket, CSRF token. The stores live on ``app.state`` and are created
by the application lifespan, so every app instance (and every test) gets its
own.
"""

from typing import Callable

from fastapi import Depends, Request, Response

from rsvp.app.core.config import Settings
from rsvp.app.core.logging import get_logger
from rsvp.app.exceptions import (
    CSRFInvalidError,
    CSRFMissingError,
    OriginRejectedError,
    RateLimitExceededError,
)
from rsvp.app.middleware.csrf import (
    CSRFProtector,
    get_cookie_token,
    get_token_from_request,
    verify_request_origin,
)
from rsvp.app.middleware.rate_limit import (
    RATE_LIMIT_CONFIGS,
    FixedWindowRateLimiter,
    get_client_key,
    rate_limit_headers,
)

logger = get_logger(__name__)

# Buckets switched off by DISABLE_RSVP_RATE_LIMIT
GUEST_FACING_BUCKETS = frozenset({"rsvp", "rsvp_read", "guest_search"})


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    return request.app.state.rate_limiter


def get_csrf_protector(request: Request) -> CSRFProtector:
    return request.app.state.csrf_protector


def rate_limit(bucket: str) -> Callable:
    """Build a dependency that charges one request to ``bucket``.

    On admission the X-RateLimit-* headers are added to the response and kept
    on ``request.state`` so an error raised later in the request still carries
    them. On rejection RateLimitExceededError carries them (plus Retry-After).
    """
    config = RATE_LIMIT_CONFIGS[bucket]

    async def dependency(
        request: Request,
        response: Response,
        settings: Settings = Depends(get_settings),
        limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
    ) -> None:
        if settings.disable_rsvp_rate_limit and bucket in GUEST_FACING_BUCKETS:
            return

        client_key = get_client_key(request)
        result = limiter.check(client_key, config)
        if not result.allowed:
            logger.warning(
                f"Rate limit exceeded for bucket '{bucket}'",
                extra={"client_id": client_key, "path": request.url.path},
            )
            raise RateLimitExceededError(result)

        headers = rate_limit_headers(result)
        request.state.rate_limit_headers = headers
        for name, value in headers.items():
            response.headers[name] = value

    return dependency


async def require_origin(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> None:
    if not verify_request_origin(request, settings):
        logger.warning(
            "Rejected request with missing or disallowed origin",
            extra={"path": request.url.path, "method": request.method},
        )
        raise OriginRejectedError()


async def require_csrf(
    request: Request,
    settings: Settings = Depends(get_settings),
    protector: CSRFProtector = Depends(get_csrf_protector),
) -> None:
    """Double-submit check plus registry lookup.

    The token is read from the header, falling back to the cookie. When both
    are present they must be identical.
    """
    token = get_token_from_request(
        request,
        header_name=settings.csrf_header_name,
        cookie_name=settings.csrf_cookie_name,
    )
    if not token:
        logger.info("CSRF token missing", extra={"path": request.url.path})
        raise CSRFMissingError()

    cookie_token = get_cookie_token(request, settings.csrf_cookie_name)
    if cookie_token is not None and cookie_token != token:
        logger.warning("CSRF header and cookie disagree", extra={"path": request.url.path})
        raise CSRFInvalidError()

    if not protector.verify_token(token):
        logger.warning("CSRF token rejected", extra={"path": request.url.path})
        raise CSRFInvalidError()


def state_changing(bucket: str) -> list:
    """Dependencies for a state-changing route, in enforcement order."""
    return [Depends(require_origin), Depends(rate_limit(bucket)), Depends(require_csrf)]
