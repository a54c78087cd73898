"""
HTTP middleware for the MCP endpoint.

SecurityHeadersMiddleware
    Attaches API-appropriate security headers to every response.

RateLimitMiddleware
    Per-client fixed-window limiter kept in process memory. Requests over the
    limit are answered with HTTP 429 and a JSON-RPC error body, so MCP clients
    can surface the failure. Emits RateLimit-Limit, RateLimit-Remaining and
    RateLimit-Reset headers, plus Retry-After on 429. Windows live in a
    bounded TTL cache, so idle clients are forgotten once their window ends.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, Final

import structlog
from cachetools import TTLCache
from fastapi import Request
from starlette import status
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

logger = structlog.get_logger(__name__)

RATE_LIMITED_CODE = -32001
RATE_LIMITED_MESSAGE = "Too many requests, please try again later."


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach a minimal set of security headers to every response.

    Uses ``setdefault`` so route-specific headers can override.
    """

    _BASE_HEADERS: Final[dict[str, str]] = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "no-referrer",
        "Cross-Origin-Resource-Policy": "same-origin",
    }

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response: Response = await call_next(request)
        for key, value in self._BASE_HEADERS.items():
            response.headers.setdefault(key, value)
        return response


@dataclass
class _Window:
    started: float
    count: int


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window request limiter keyed by client address.

    Args:
        app:            ASGI application.
        max_requests:   Requests allowed per client per window; 0 disables limiting.
        window_seconds: Window length in seconds.
        timer:          Monotonic clock, injectable for tests.
        max_clients:    Most client windows kept at once; the least recently
                        used window is dropped beyond that.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_requests: int = 100,
        window_seconds: float = 900.0,
        timer: Callable[[], float] = time.monotonic,
        max_clients: int = 10_000,
    ) -> None:
        super().__init__(app)
        self.max_requests = int(max_requests)
        self.window_seconds = float(window_seconds)
        self._timer = timer
        self._windows: TTLCache = TTLCache(
            maxsize=max_clients, ttl=self.window_seconds, timer=timer
        )

    @property
    def tracked_clients(self) -> int:
        self._windows.expire()
        return len(self._windows)

    def _key(self, request: Request) -> str:
        return request.client.host if request.client else "unknown"

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self.max_requests <= 0:
            return await call_next(request)

        now = self._timer()
        key = self._key(request)
        window = self._windows.get(key)
        if window is None or now - window.started >= self.window_seconds:
            window = _Window(started=now, count=0)
            self._windows[key] = window

        reset_after = max(1, math.ceil(window.started + self.window_seconds - now))
        if window.count >= self.max_requests:
            logger.warning("rate_limit_exceeded", client=key, path=request.url.path)
            limited = JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "jsonrpc": "2.0",
                    "error": {"code": RATE_LIMITED_CODE, "message": RATE_LIMITED_MESSAGE},
                    "id": None,
                },
            )
            limited.headers.update(self._headers(0, reset_after))
            limited.headers["Retry-After"] = str(reset_after)
            return limited

        window.count += 1
        response: Response = await call_next(request)
        response.headers.update(self._headers(self.max_requests - window.count, reset_after))
        return response

    def _headers(self, remaining: int, reset_after: int) -> dict[str, str]:
        return {
            "RateLimit-Limit": str(self.max_requests),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(reset_after),
        }
