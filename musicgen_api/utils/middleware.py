"""
Request pipeline middleware
Security headers, body size ceiling, per-IP rate limiting and request logging
"""

import time

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse
from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter
from slowapi.util import get_remote_address
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from musicgen_api.utils.errors import PayloadTooLargeError

logger = structlog.get_logger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."

SECURITY_HEADERS = {
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}

CONTENT_SECURITY_POLICY = (
    "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
    "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
    "object-src 'none';script-src 'self';script-src-attr 'none';"
    "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
)

# Interactive docs load assets from a CDN
CSP_EXEMPT_PATHS = ("/docs", "/redoc")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Apply a hardening header set to every response"""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if not request.url.path.startswith(CSP_EXEMPT_PATHS):
            response.headers.setdefault("Content-Security-Policy", CONTENT_SECURITY_POLICY)
        return response


class BodySizeLimitMiddleware:
    """
    Enforce the request body ceiling

    A declared Content-Length over the limit is refused before the app runs.
    Streamed bodies (chunked, no Content-Length) are counted as they are
    received and abort with 413 once the running total passes the limit.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int):
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        content_length = Headers(scope=scope).get("content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                response = JSONResponse(status_code=400, content={"error": "Invalid Content-Length header"})
                await response(scope, receive, send)
                return
            if declared > self.max_body_bytes:
                logger.warning(
                    "Request body too large",
                    path=path,
                    content_length=declared,
                    limit=self.max_body_bytes
                )
                response = JSONResponse(status_code=413, content={"error": "Request entity too large"})
                await response(scope, receive, send)
                return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    logger.warning(
                        "Streamed request body too large",
                        path=path,
                        received=received,
                        limit=self.max_body_bytes
                    )
                    raise PayloadTooLargeError("Request entity too large")
            return message

        await self.app(scope, limited_receive, send)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed-window limiter keyed by client IP

    Only paths under the API prefix are counted; counters live in process
    memory, so each worker enforces its own window.
    """

    def __init__(self, app, max_requests: int, window_seconds: int, path_prefix: str = "/api/"):
        super().__init__(app)
        self.item = RateLimitItemPerSecond(max_requests, window_seconds)
        self.limiter = FixedWindowRateLimiter(MemoryStorage())
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        client_ip = get_remote_address(request)
        if not self.limiter.hit(self.item, client_ip):
            logger.warning("Rate limit exceeded", client_ip=client_ip, path=request.url.path)
            response = PlainTextResponse(RATE_LIMIT_MESSAGE, status_code=429)
            self._set_headers(response, client_ip)
            return response

        response = await call_next(request)
        self._set_headers(response, client_ip)
        return response

    def _set_headers(self, response, client_ip: str) -> None:
        stats = self.limiter.get_window_stats(self.item, client_ip)
        response.headers["X-RateLimit-Limit"] = str(self.item.amount)
        response.headers["X-RateLimit-Remaining"] = str(max(stats.remaining, 0))
        response.headers["X-RateLimit-Reset"] = str(int(stats.reset_time))


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all incoming requests"""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        logger.info(
            "Request received",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else "unknown"
        )

        response = await call_next(request)

        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1)
        )

        return response
