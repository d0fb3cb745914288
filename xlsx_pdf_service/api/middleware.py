"""Transport-level middleware wrapped around the conversion routes.

Runs outermost first: request id/access log, security headers, rate limiting,
then API key checks. All rejections use the same ``{"error": ...}`` body as the
conversion pipeline.
"""

import hmac
import logging
import secrets
import threading
import time
from collections import defaultdict
from typing import Collection

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from xlsx_pdf_service.api.responses import error_response

API_KEY_HEADER = "X-API-Key"

# paths reachable without an API key
PUBLIC_PATHS = frozenset({"/health"})

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
}


def get_client_ip(request: Request, trusted_proxies: Collection[str] = ()) -> str:
    """Address of the calling client.

    ``X-Forwarded-For`` is only honored when the direct peer is a trusted proxy; the
    rightmost entry that is not itself a trusted proxy is the client.
    """
    peer = request.client.host if request.client else "unknown"
    forwarded = request.headers.get("X-Forwarded-For")
    if not forwarded or peer not in trusted_proxies:
        return peer

    for address in reversed([part.strip() for part in forwarded.split(",")]):
        if address and address not in trusted_proxies:
            return address
    return peer


class SlidingWindowRateLimiter:
    """In-memory sliding-window rate limiter keyed by client ip.

    Clients idle for a whole window are pruned at most once per window from ``hit``.
    """

    def __init__(self, max_requests: int, window_seconds: int = 60) -> None:
        self._lock = threading.Lock()
        self._requests: dict[str, list[float]] = defaultdict(list)
        self._last_cleanup = time.monotonic()
        self.max_requests = max_requests
        self.window = window_seconds
        self.enabled = max_requests > 0

    def hit(self, key: str) -> tuple[bool, int]:
        """Record a request for ``key``; return (allowed, remaining requests in the window)."""
        if not self.enabled:
            return True, 0

        now = time.monotonic()
        cutoff = now - self.window

        if now - self._last_cleanup >= self.window:
            self.cleanup()

        with self._lock:
            timestamps = [t for t in self._requests[key] if t > cutoff]
            if len(timestamps) >= self.max_requests:
                self._requests[key] = timestamps
                return False, 0
            timestamps.append(now)
            self._requests[key] = timestamps
            return True, self.max_requests - len(timestamps)

    def cleanup(self) -> None:
        """Remove keys with no requests in the current window."""
        now = time.monotonic()
        cutoff = now - self.window
        with self._lock:
            self._last_cleanup = now
            stale_keys = [k for k, timestamps in self._requests.items() if not timestamps or timestamps[-1] < cutoff]
            for k in stale_keys:
                del self._requests[k]


class RequestContextMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, log: logging.Logger) -> None:
        super().__init__(app)
        self.log = log

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or secrets.token_hex(8)
        request.state.request_id = request_id
        start_time = time.time()

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        self.log.info("[%s] %s %s -> %s | Elapsed : %.3f seconds", request_id, request.method,
                      request.url.path, response.status_code, time.time() - start_time)
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, limiter: SlidingWindowRateLimiter, log: logging.Logger,
                 trusted_proxies: Collection[str] = ()) -> None:
        super().__init__(app)
        self.limiter = limiter
        self.log = log
        self.trusted_proxies = frozenset(trusted_proxies)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.limiter.enabled:
            return await call_next(request)

        client_ip = get_client_ip(request, self.trusted_proxies)
        allowed, remaining = self.limiter.hit(client_ip)
        rate_headers = {
            "RateLimit-Limit": str(self.limiter.max_requests),
            "RateLimit-Remaining": str(remaining),
        }

        if not allowed:
            self.log.warning("rate limited: %s (> %s requests / %s s)", client_ip,
                             self.limiter.max_requests, self.limiter.window)
            return error_response(429, "Too many requests, please try again later",
                                  headers={**rate_headers, "Retry-After": str(self.limiter.window)})

        response = await call_next(request)
        response.headers.update(rate_headers)
        return response


class APIKeyMiddleware(BaseHTTPMiddleware):
    """Requires the configured key in the ``X-API-Key`` header on every non-public path."""

    def __init__(self, app: ASGIApp, api_key: str, log: logging.Logger,
                 trusted_proxies: Collection[str] = ()) -> None:
        super().__init__(app)
        self.api_key = api_key
        self.log = log
        self.trusted_proxies = frozenset(trusted_proxies)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.api_key or request.url.path in PUBLIC_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        provided = request.headers.get(API_KEY_HEADER, "")
        if not hmac.compare_digest(provided.encode("utf-8"), self.api_key.encode("utf-8")):
            self.log.warning("unauthorized request to %s from %s", request.url.path,
                             get_client_ip(request, self.trusted_proxies))
            return error_response(401, "Unauthorized")

        return await call_next(request)
