import time
import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .application.ports.rate_limiter import RateLimiter
from .exceptions import create_error_response

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Transport-level limiter per client IP, independent of the OTP business limit."""

    def __init__(self, app: ASGIApp, limiter: RateLimiter, max_requests: int, window_seconds: int):
        super().__init__(app)
        self.limiter = limiter
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    async def dispatch(self, request: Request, call_next):
        if self.max_requests <= 0:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        key = f"ip:{client_ip}"
        if not self.limiter.allow(key, self.max_requests, self.window_seconds):
            logger.warning(f"Rate limit exceeded for IP: {client_ip}")
            return JSONResponse(
                status_code=429,
                content=create_error_response("Too many requests, please try again later"),
                headers={"Retry-After": str(self.window_seconds)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(
            self.limiter.remaining(key, self.max_requests, self.window_seconds)
        )
        return response


class SecurityMiddleware(BaseHTTPMiddleware):
    """Hardening headers; auth responses carry tokens and must never be cached."""

    def __init__(self, app: ASGIApp, auth_prefix: str = "/api/v1/auth"):
        super().__init__(app)
        self.auth_prefix = auth_prefix

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        if request.url.path.startswith(self.auth_prefix):
            response.headers["Cache-Control"] = "no-store"
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        client = request.client.host if request.client else "unknown"
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms) client={client}")
        response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.1f}"
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Last resort for anything the exception handlers did not map."""

    def __init__(self, app: ASGIApp, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}: {e}")
            message = str(e) if self.debug else "Internal server error"
            return JSONResponse(status_code=500, content=create_error_response(message))
