"""CSRF protection for state-changing requests.

Implements the double-submit cookie pattern: the server issues a random token
as a cookie readable by page script, and the script echoes it back in the
``x-csrf-token`` header. A cross-site form post can make the browser send the
cookie but cannot read it to set the header.

Issued tokens are also tracked in a server-side registry with an expiry, so
only tokens this process handed out are accepted. A token stays valid for
repeated use until it expires unless the protector is created with
``single_use=True``.
"""

import random
import secrets
import threading
import time
from dataclasses import dataclass
from email.utils import formatdate
from types import MappingProxyType
from typing import Callable, Dict, Optional
from urllib.parse import urlsplit

from starlette.requests import HTTPConnection

from rsvp.app.core.config import Settings
from rsvp.app.core.sweeper import PeriodicSweeper
from rsvp.app.core.logging import get_logger

logger = get_logger(__name__)

CSRF_CONFIG = MappingProxyType({
    "token_bytes": 32,
    "expiration_minutes": 60,
    "cookie_name": "__Host-csrf-token",
    "header_name": "x-csrf-token",
    "sweep_interval_seconds": 5 * 60,
})


@dataclass
class CSRFToken:
    token: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass
class IssuedToken:
    """A freshly issued token and the Set-Cookie value that carries it."""
    token: str
    cookie: str
    expires_at: float


def _random_token(num_bytes: int) -> str:
    try:
        return secrets.token_hex(num_bytes)
    except NotImplementedError:
        # No OS randomness source. Keep the form usable, but say so loudly.
        logger.warning(
            "Cryptographic RNG unavailable; issuing CSRF token from a "
            "non-cryptographic generator (degraded mode)"
        )
        return f"{random.getrandbits(num_bytes * 8):0{num_bytes * 2}x}"


def build_csrf_cookie(
    token: str,
    expires_at: float,
    production: bool = False,
    cookie_name: str = CSRF_CONFIG["cookie_name"],
) -> str:
    """Build the Set-Cookie header value for a CSRF token.

    The cookie is deliberately not HttpOnly: page script has to read it to
    echo the token back in the request header.
    """
    parts = [
        f"{cookie_name}={token}",
        f"Expires={formatdate(expires_at, usegmt=True)}",
        "Path=/",
        "Secure",
        "SameSite=Strict",
    ]
    if production:
        parts.append("Partitioned")
    return "; ".join(parts)


class CSRFProtector:
    """Issues CSRF tokens and verifies them against an in-memory registry.

    Usage:
        protector = CSRFProtector()
        issued = protector.generate_token()
        response.headers["Set-Cookie"] = issued.cookie
        ...
        if not protector.verify_token(get_token_from_request(request)):
            ...
    """

    def __init__(
        self,
        token_bytes: int = CSRF_CONFIG["token_bytes"],
        ttl_seconds: float = CSRF_CONFIG["expiration_minutes"] * 60,
        cookie_name: str = CSRF_CONFIG["cookie_name"],
        production: bool = False,
        single_use: bool = False,
        sweep_interval_seconds: float = CSRF_CONFIG["sweep_interval_seconds"],
        clock: Callable[[], float] = time.time,
    ):
        self.token_bytes = token_bytes
        self.ttl_seconds = ttl_seconds
        self.cookie_name = cookie_name
        self.production = production
        self.single_use = single_use
        self._clock = clock
        self._tokens: Dict[str, CSRFToken] = {}
        self._lock = threading.Lock()
        self._sweeper = PeriodicSweeper("csrf-tokens", self.sweep, sweep_interval_seconds)

    @classmethod
    def from_settings(cls, config: Settings) -> "CSRFProtector":
        return cls(
            token_bytes=config.csrf_token_bytes,
            ttl_seconds=config.csrf_token_ttl_minutes * 60,
            cookie_name=config.csrf_cookie_name,
            production=config.is_production,
            single_use=config.csrf_single_use,
            sweep_interval_seconds=config.csrf_sweep_interval_seconds,
        )

    async def start(self) -> None:
        """Start the periodic sweep of expired tokens."""
        await self._sweeper.start()

    async def stop(self) -> None:
        await self._sweeper.stop()

    def generate_token(self) -> IssuedToken:
        """Issue a new token and register it until it expires."""
        token = CSRFToken(
            token=_random_token(self.token_bytes),
            expires_at=self._clock() + self.ttl_seconds,
        )
        with self._lock:
            self._tokens[token.token] = token

        return IssuedToken(
            token=token.token,
            cookie=build_csrf_cookie(
                token.token,
                token.expires_at,
                production=self.production,
                cookie_name=self.cookie_name,
            ),
            expires_at=token.expires_at,
        )

    def verify_token(self, token: Optional[str]) -> bool:
        """Check a submitted token against the registry.

        Unknown tokens are rejected. Expired tokens are rejected and removed.
        """
        if not token:
            return False

        with self._lock:
            stored = self._tokens.get(token)
            if stored is None:
                return False

            if stored.is_expired(self._clock()):
                del self._tokens[token]
                return False

            if self.single_use:
                del self._tokens[token]
            return True

    def sweep(self) -> int:
        """Remove every expired token. Returns the number removed."""
        with self._lock:
            now = self._clock()
            expired = [t for t, stored in self._tokens.items() if stored.is_expired(now)]
            for t in expired:
                del self._tokens[t]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._tokens.clear()

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, token: object) -> bool:
        return token in self._tokens


def get_cookie_token(
    request: HTTPConnection,
    cookie_name: str = CSRF_CONFIG["cookie_name"],
) -> Optional[str]:
    return request.cookies.get(cookie_name) or None


def get_token_from_request(
    request: HTTPConnection,
    header_name: str = CSRF_CONFIG["header_name"],
    cookie_name: str = CSRF_CONFIG["cookie_name"],
) -> Optional[str]:
    """Return the CSRF token from the header, falling back to the cookie."""
    header_token = request.headers.get(header_name)
    if header_token:
        return header_token.strip()
    return get_cookie_token(request, cookie_name)


def _origin_of(url: str) -> str:
    try:
        parts = urlsplit(url)
    except ValueError:
        return ""
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme}://{parts.netloc}"


def verify_request_origin(request: HTTPConnection, config: Settings) -> bool:
    """Coarse Origin/Referer check layered on top of token verification.

    Outside production every request passes. In production the request must
    carry an Origin or Referer header, and when ALLOWED_ORIGINS is set the
    derived origin has to be one of them.
    """
    if not config.is_production:
        return True

    origin = request.headers.get("origin")
    referer = request.headers.get("referer")
    if not origin and not referer:
        return False

    request_origin = origin.rstrip("/") if origin else _origin_of(referer)

    if config.allowed_origins and request_origin not in config.allowed_origins:
        return False
    return True
