"""Request body size limit middleware.

RSVP payloads are small; anything much larger than a full guest list is
either a mistake or an attempt to exhaust memory. This middleware rejects
such bodies with HTTP 413 before the JSON decoder sees them.

Enforces size limits for both Content-Length and chunked transfer encoding.
"""

import json
from typing import Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send


class SizeLimitedStream:
    """A receive wrapper that counts body bytes as they are read.

    This prevents chunked transfer encoding from bypassing the
    Content-Length check.
    """

    class SizeExceededError(Exception):
        """Raised when request body exceeds size limit."""

    def __init__(self, receive: Receive, max_size: int):
        self._receive = receive
        self._max_size = max_size
        self._bytes_read = 0

    async def receive(self) -> Message:
        message = await self._receive()

        if message["type"] == "http.request":
            self._bytes_read += len(message.get("body", b""))
            if self._bytes_read > self._max_size:
                raise self.SizeExceededError(
                    f"Request body too large. Maximum allowed: {self._max_size} bytes"
                )

        return message


class RequestSizeLimitMiddleware:
    """ASGI middleware to limit request body size.

    Returns HTTP 413 (Payload Too Large) with a JSON ``{"detail": ...}`` body
    if the limit is exceeded. Implemented as raw ASGI middleware so the
    receive callable is wrapped before Starlette builds the Request.

    Usage:
        app.add_middleware(RequestSizeLimitMiddleware, max_body_size=64 * 1024)
    """

    def __init__(self, app: ASGIApp, max_body_size: int = 64 * 1024):
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = None
        for name, value in scope.get("headers", []):
            if name.lower() == b"content-length":
                content_length = value.decode("latin-1")
                break

        if content_length:
            try:
                if int(content_length) > self.max_body_size:
                    await self._send_413_response(send)
                    return
            except ValueError:
                # Invalid Content-Length, fall through to the stream check
                pass

        limited = SizeLimitedStream(receive, self.max_body_size)
        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited.receive, send_wrapper)
        except SizeLimitedStream.SizeExceededError as exc:
            if response_started:
                raise
            await self._send_413_response(send, detail=str(exc))

    async def _send_413_response(self, send: Send, detail: Optional[str] = None) -> None:
        if detail is None:
            detail = f"Request body too large. Maximum allowed: {self.max_body_size} bytes"

        body = json.dumps({"detail": detail}).encode()
        await send(
            {
                "type": "http.response.start",
                "status": 413,
                "headers": [
                    [b"content-type", b"application/json"],
                    [b"content-length", str(len(body)).encode()],
                ],
            }
        )
        await send({"type": "http.response.body", "body": body})
