"""Custom exceptions for the RSVP service.

The admission core (rate limiter, CSRF protector, validators) returns result
objects and never raises for expected conditions. Route dependencies turn a
rejected result into one of these exceptions, and the handlers registered in
``main.py`` render them as JSON.
"""

from typing import Any, Dict, Optional

from rsvp.app.core.logging import get_logger
from rsvp.app.middleware.rate_limit import RateLimitResult, rate_limit_headers

logger = get_logger(__name__)


class RSVPException(Exception):
    """Base class for RSVP exceptions with HTTP status code.

    ``error`` is the short, stable string returned to the client.
    """
    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        self.message = message
        super().__init__(message or self.error)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None

    def to_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        if self.message:
            body["message"] = self.message
        return body


class RateLimitExceededError(RSVPException):
    """Client exceeded its request budget. Maps to HTTP 429."""
    status_code = 429
    error = "Too many requests"

    def __init__(self, result: RateLimitResult):
        self.result = result
        self.retry_after = result.retry_after or 1
        super().__init__(
            f"Rate limit exceeded. Please try again in {self.retry_after} seconds."
        )

    @property
    def headers(self) -> Dict[str, str]:
        return rate_limit_headers(self.result)

    def to_response(self) -> Dict[str, Any]:
        body = super().to_response()
        body["retryAfter"] = self.retry_after
        return body


class CSRFMissingError(RSVPException):
    """No CSRF token in header or cookie. Maps to HTTP 403."""
    status_code = 403
    error = "CSRF token missing"

    def __init__(self, message: str = "Please include a valid CSRF token in your request"):
        super().__init__(message)


class CSRFInvalidError(RSVPException):
    """Unknown, expired or mismatched CSRF token. Maps to HTTP 403."""
    status_code = 403
    error = "CSRF token invalid"

    def __init__(self, message: str = "The provided CSRF token is not valid"):
        super().__init__(message)


class OriginRejectedError(RSVPException):
    """Origin/Referer check failed. Same 403 as a CSRF failure."""
    status_code = 403
    error = "Invalid origin"


class ValidationFailedError(RSVPException):
    """Submitted fields failed validation. Maps to HTTP 400.

    Carries the field -> message map for in-form display.
    """
    status_code = 400
    error = "Validation failed"

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        super().__init__(message or "Please check your input and try again.")

    def to_response(self) -> Dict[str, Any]:
        body = super().to_response()
        body["errors"] = self.errors
        return body


class InviteNotFoundError(RSVPException):
    """Invite code does not exist. Maps to HTTP 404."""
    status_code = 404
    error = "Invite not found"


class InviteCodeRequiredError(RSVPException):
    status_code = 400
    error = "Invite code required"


class GuestNotOnInviteError(RSVPException):
    """The responding guest is not listed on the invite. Maps to HTTP 400."""
    status_code = 400
    error = "Guest not found on this invite"


class SearchUnauthorizedError(RSVPException):
    """Guest search without an invite code. Maps to HTTP 401."""
    status_code = 401
    error = "Unauthorized"


class InvalidInviteSessionError(RSVPException):
    """Guest search with a code that matches no invite. Maps to HTTP 403."""
    status_code = 403
    error = "Invalid invite session"


_SAFE_MESSAGES = (
    (("duplicate", "unique"), "This invite already exists. Please use your existing link."),
    (("connection", "database"), "Unable to process your request at this time. Please try again later."),
    (("validation", "invalid"), "Please check your input and try again."),
)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


def create_safe_error_message(original_error: BaseException) -> str:
    """Map an unexpected error to a message safe to show a guest.

    The original error is logged server-side only. Known categories get a
    more specific phrase; raw database or stack-trace text is never returned.
    """
    text = str(original_error).lower()

    logger.error(
        f"RSVP error: {type(original_error).__name__}",
        exc_info=(type(original_error), original_error, original_error.__traceback__),
    )

    for needles, message in _SAFE_MESSAGES:
        if any(needle in text for needle in needles):
            return message
    return GENERIC_ERROR_MESSAGE
