"""
FastAPI web application for the ads dashboard.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware

from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from core.config import AppConfig, ConfigurationError, load_config, validate_config
from core.exceptions import DashboardError
from core.observability import get_correlation_id, get_logger, metrics, setup_logging
from core.repositories import Database
from web.config import STATIC_DIR
from web.middleware import (
    RequestLoggingMiddleware,
    RequestTimeoutMiddleware,
    SessionGuardMiddleware,
)
from web.routes import auth, pages
from web.routes import api
from web.routes.api._deps import limiter
from web.services.auth_service import SessionManager

logger = get_logger(__name__)

API_PREFIX = "/api/v1"


def _error(status_code: int, error: str, **extra) -> ORJSONResponse:
    return ORJSONResponse(status_code=status_code, content={"success": False, "error": error, **extra})


def _register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(DashboardError)
    async def dashboard_error_handler(request: Request, exc: DashboardError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")
        return _error(exc.status_code, str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        return _error(400, f"{location}: {message}" if location else message)

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.warning(f"Rate limit exceeded for {get_remote_address(request)}")
        return _error(
            429,
            "Rate limit exceeded",
            message="Too many requests. Please try again later.",
            retry_after=exc.detail,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        metrics.record_error(type(exc).__name__)
        return _error(500, "Internal server error", correlation_id=get_correlation_id())


def create_app(config: Optional[AppConfig] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the application.

    `config` defaults to the environment; `database` defaults to a DuckDB
    client at the configured path. Both are kept on `app.state`.
    """
    config = config or load_config()
    db = database or Database(config.database.path)
    sessions = SessionManager(config.auth.secret_key, max_age=config.auth.session_max_age)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(level=config.log_level, json_format=(config.log_format == "json"))
        logger.info("Ads Dashboard starting...")

        # Fail fast with clear errors
        try:
            validate_config(config)
            logger.info("Configuration validated")
        except ConfigurationError as e:
            logger.critical(f"Configuration error: {e}")
            raise SystemExit(1)

        await db.connect()
        stats = await db.get_stats()
        logger.info(
            f"DuckDB ready: {stats['accounts']} accounts, "
            f"{stats['campaigns']} campaigns, "
            f"{stats['orders']} orders, "
            f"{stats['db_size_mb']} MB"
        )
        try:
            yield
        finally:
            await db.close()
            logger.info("Ads Dashboard stopped")

    app = FastAPI(
        title="Ads Dashboard",
        description="Advertising performance dashboard",
        version=config.version,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.db = db
    app.state.sessions = sessions
    app.state.limiter = limiter
    limiter.enabled = config.web.rate_limit_enabled

    _register_exception_handlers(app)

    # Last added runs first: logging wraps the guard so rejected requests are logged too
    app.add_middleware(
        SessionGuardMiddleware,
        sessions=sessions,
        cookie_name=config.auth.cookie_name,
    )
    app.add_middleware(RequestTimeoutMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=500)

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    app.include_router(auth.router)
    app.include_router(pages.router)
    app.include_router(api.router, prefix=API_PREFIX)

    return app


app = create_app()
