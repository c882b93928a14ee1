"""
FastAPI middleware.

Provides:
- Request correlation ID injection, request logging and timing metrics
- Request timeout protection
- Session guard for protected pages and API routes
"""
import asyncio
import time
from typing import Callable, Iterable
from urllib.parse import quote

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response

from core.observability import (
    get_logger,
    generate_correlation_id,
    set_correlation_id,
    get_correlation_id,
    metrics,
)
from web.services.auth_service import SessionManager, extract_token

logger = get_logger(__name__)

# Request timeout settings (seconds)
DEFAULT_REQUEST_TIMEOUT = 30.0

HEALTH_PATHS = ("/api/v1/health", "/health")

# Paths that bypass the session guard
PUBLIC_PATHS = frozenset({"/", "/login", "/logout"})
PUBLIC_PREFIXES = (
    "/static",
    "/api/v1/auth/login",
    "/api/v1/auth/logout",
    "/api/v1/auth/me",
    "/api/v1/health",
)


def is_api_path(path: str) -> bool:
    return path.startswith("/api/")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that:
    1. Assigns correlation ID to each request
    2. Logs request start/end with timing
    3. Records metrics
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Request-ID") or generate_correlation_id()
        set_correlation_id(correlation_id)

        start_time = time.perf_counter()
        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"

        # Skip logging for health checks to reduce noise
        is_health_check = path in HEALTH_PATHS

        if not is_health_check:
            logger.info(
                f"Request started: {method} {path}",
                extra={"method": method, "path": path, "client_ip": client_ip},
            )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {method} {path}",
                extra={
                    "method": method,
                    "path": path,
                    "duration_ms": round(duration_ms, 2),
                    "error": str(e),
                },
            )
            metrics.record_error(type(e).__name__)
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Request-ID"] = correlation_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        if not is_health_check:
            level_name = "info" if response.status_code < 400 else "warning"
            getattr(logger, level_name)(
                f"Request completed: {method} {path}",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": round(duration_ms, 2),
                },
            )

        endpoint = f"{method} {path}"
        metrics.record_request(endpoint)
        metrics.record_timing(endpoint, duration_ms)
        if response.status_code >= 400:
            metrics.record_error(f"HTTP_{response.status_code}")

        return response


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """
    Middleware that enforces request timeout.

    Returns 504 Gateway Timeout if request exceeds timeout.
    """

    def __init__(self, app, timeout: float = DEFAULT_REQUEST_TIMEOUT):
        super().__init__(app)
        self.timeout = timeout

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path

        # Skip timeout for health checks and static files
        if path.startswith("/static") or path in HEALTH_PATHS:
            return await call_next(request)

        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Request timeout: {request.method} {path}",
                extra={"method": request.method, "path": path, "timeout": self.timeout},
            )
            metrics.record_error("REQUEST_TIMEOUT")
            return JSONResponse(
                status_code=504,
                content={
                    "success": False,
                    "error": "Request Timeout",
                    "message": f"Request exceeded {self.timeout}s timeout",
                    "correlation_id": get_correlation_id(),
                },
            )


class SessionGuardMiddleware(BaseHTTPMiddleware):
    """
    Rejects requests to protected paths without a valid session token.

    - API paths get a 401 JSON envelope
    - Page paths are redirected to `/login?redirect=<path>`
    - An invalid or expired token is also cleared from the cookie

    A valid session payload is exposed to handlers as `request.state.session`.
    """

    def __init__(
        self,
        app,
        sessions: SessionManager,
        cookie_name: str = "auth_token",
        public_paths: Iterable[str] = PUBLIC_PATHS,
        public_prefixes: Iterable[str] = PUBLIC_PREFIXES,
    ):
        super().__init__(app)
        self.sessions = sessions
        self.cookie_name = cookie_name
        self.public_paths = frozenset(public_paths)
        self.public_prefixes = tuple(public_prefixes)

    def _is_public(self, path: str) -> bool:
        return path in self.public_paths or path.startswith(self.public_prefixes)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if self._is_public(path):
            return await call_next(request)

        token = extract_token(request, self.cookie_name)
        session = self.sessions.verify(token)
        if session is not None:
            request.state.session = session
            return await call_next(request)

        if token:
            logger.info(f"Rejected invalid session token for {path}")
        response = self._reject(request)
        if token:
            response.delete_cookie(self.cookie_name, path="/")
        return response

    def _reject(self, request: Request) -> Response:
        path = request.url.path
        if is_api_path(path):
            return JSONResponse(
                status_code=401,
                content={"success": False, "error": "Authentication required"},
            )
        return RedirectResponse(url=f"/login?redirect={quote(path, safe='/')}", status_code=302)
