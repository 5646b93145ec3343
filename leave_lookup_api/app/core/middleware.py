"""
Request pipeline and response hardening middleware.

Incoming requests pass through an explicit, ordered list of stages
before they reach the routers.  A stage is any async callable with the
signature ``stage(request) -> Optional[Response]``: returning ``None``
lets the request continue to the next stage, returning a response
rejects the request and short‑circuits the rest of the pipeline.  The
order is chosen in one place, ``create_app``, instead of emerging from
the order of ``add_middleware`` calls.

Stages may attach headers for the eventual response through
``request.state.response_headers``; the pipeline copies them onto
whatever response is finally returned.
"""

import asyncio
import logging
import math
import time
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from fastapi import HTTPException, Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .errors import error_response
from .logging_config import get_security_logger


logger = logging.getLogger(__name__)

Stage = Callable[[Request], Awaitable[Optional[Response]]]

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."
PAYLOAD_TOO_LARGE_MESSAGE = "Request body too large."


def client_ip(request: Request, trusted_hops: int = 0) -> str:
    """Return the caller's address.

    Each reverse proxy appends the address it received the request from
    to ``X-Forwarded-For``, so only the right‑most ``trusted_hops``
    entries were written by proxies we control.  The client address is
    the entry added by the outermost trusted proxy; anything to its left
    is client supplied and ignored.  With ``trusted_hops == 0`` (no
    proxy) the socket peer address is used.
    """
    if trusted_hops > 0:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
            if hops:
                return hops[-min(trusted_hops, len(hops))]
    if request.client is not None:
        return request.client.host
    return "unknown"


def _add_response_headers(request: Request, headers: Dict[str, str]) -> None:
    pending = getattr(request.state, "response_headers", None)
    if pending is None:
        pending = {}
        request.state.response_headers = pending
    pending.update(headers)


class AccessLogStage:
    """Log every request as ``[ip] METHOD path``."""

    def __init__(self, trusted_hops: int = 0) -> None:
        self.trusted_hops = trusted_hops

    async def __call__(self, request: Request) -> Optional[Response]:
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"
        logger.info("[%s] %s %s", client_ip(request, self.trusted_hops), request.method, path)
        return None


class BodySizeLimitStage:
    """Reject requests whose declared body exceeds ``max_bytes``."""

    def __init__(self, max_bytes: int) -> None:
        self.max_bytes = max_bytes

    async def __call__(self, request: Request) -> Optional[Response]:
        length = request.headers.get("content-length")
        if length is None:
            return None
        try:
            declared = int(length)
        except ValueError:
            return error_response(status.HTTP_400_BAD_REQUEST, "Invalid Content-Length header.")
        if declared > self.max_bytes:
            logger.info("Rejected body of %d bytes on %s", declared, request.url.path)
            return error_response(413, PAYLOAD_TOO_LARGE_MESSAGE)
        return None


class BodySizeLimitMiddleware:
    """Enforce ``max_bytes`` on the bytes actually received.

    ``BodySizeLimitStage`` only sees the declared ``Content-Length``; a
    chunked upload declares nothing.  This ASGI middleware counts the
    body as it is read and raises ``HTTPException(413)`` as soon as the
    limit is passed, which the exception handlers turn into the usual
    JSON error body.
    """

    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    logger.info("Rejected streamed body over %d bytes on %s", self.max_bytes, scope.get("path"))
                    raise HTTPException(status_code=413, detail=PAYLOAD_TOO_LARGE_MESSAGE)
            return message

        await self.app(scope, limited_receive, send)


class RateLimitStage:
    """Fixed window request limiter keyed by client address.

    Counters live in process memory, so each worker process enforces its
    own limit.  ``clock`` is injectable for tests.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        trusted_hops: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.trusted_hops = trusted_hops
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_prune: Optional[float] = None
        self._lock = asyncio.Lock()

    async def hit(self, key: str) -> Tuple[bool, int, int]:
        """Count one request for ``key``.

        Returns ``(allowed, remaining, reset_seconds)``.
        """
        async with self._lock:
            now = self._clock()
            window_start, count = self._windows.get(key, (now, 0))
            if now - window_start >= self.window_seconds:
                window_start, count = now, 0
            count += 1
            self._windows[key] = (window_start, count)
            self._prune(now)
        reset = max(0, math.ceil(window_start + self.window_seconds - now))
        remaining = max(0, self.max_requests - count)
        return count <= self.max_requests, remaining, reset

    def _prune(self, now: float) -> None:
        # Expired windows are swept at most once per window length.
        if self._last_prune is None:
            self._last_prune = now
            return
        if now - self._last_prune < self.window_seconds:
            return
        self._windows = {
            key: value for key, value in self._windows.items() if now - value[0] < self.window_seconds
        }
        self._last_prune = now

    async def __call__(self, request: Request) -> Optional[Response]:
        ip = client_ip(request, self.trusted_hops)
        allowed, remaining, reset = await self.hit(ip)
        headers = {
            "RateLimit-Limit": str(self.max_requests),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(reset),
        }
        if allowed:
            _add_response_headers(request, headers)
            return None
        get_security_logger().warning("Rate limit exceeded for %s on %s", ip, request.url.path)
        headers["Retry-After"] = str(reset)
        return error_response(status.HTTP_429_TOO_MANY_REQUESTS, RATE_LIMIT_MESSAGE, headers=headers)


class RequestPipelineMiddleware(BaseHTTPMiddleware):
    """Run the configured request stages in order before the app."""

    def __init__(self, app: ASGIApp, stages: Sequence[Stage] = ()) -> None:
        super().__init__(app)
        self.stages: List[Stage] = list(stages)

    async def dispatch(self, request: Request, call_next):
        response = None
        for stage in self.stages:
            response = await stage(request)
            if response is not None:
                break
        if response is None:
            response = await call_next(request)
        for name, value in getattr(request.state, "response_headers", {}).items():
            response.headers.setdefault(name, value)
        return response


SECURITY_HEADERS: Dict[str, str] = {
    "Content-Security-Policy": (
        "default-src 'self'; script-src 'self' https://www.google.com https://www.gstatic.com; "
        "frame-src https://www.google.com; style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data:; object-src 'none'; base-uri 'self'; frame-ancestors 'self'"
    ),
    "Cross-Origin-Opener-Policy": "same-origin",
    "Referrer-Policy": "no-referrer",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Frame-Options": "SAMEORIGIN",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach hardening headers to every response."""

    def __init__(self, app: ASGIApp, headers: Optional[Dict[str, str]] = None) -> None:
        super().__init__(app)
        self.headers = dict(SECURITY_HEADERS if headers is None else headers)

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response
