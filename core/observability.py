"""
Observability module for structured logging, correlation IDs, and metrics.

Usage:
    from core.observability import setup_logging, get_logger

    # In app startup:
    setup_logging()

    # In handlers:
    logger = get_logger(__name__)

    # In middleware:
    set_correlation_id(request_id)
    logger.info("Processing request", extra={"path": request.url.path})
"""
import asyncio
import functools
import json
import logging
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional, Any, Dict, Callable

# Context variable for request correlation ID
_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# LogRecord attributes that are not user-supplied extras
_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "asctime", "taskName"
}


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set correlation ID in context."""
    _correlation_id.set(correlation_id)


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())[:8]


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: v for k, v in record.__dict__.items()
        if k not in _STANDARD_ATTRS and not k.startswith("_")
    }


class StructuredFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Outputs logs as JSON with timestamp, level, logger, message,
    correlation_id (if set), extra fields and exception info.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            log_entry["correlation_id"] = correlation_id

        log_entry.update(_extras(record))

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Human-readable log formatter with correlation ID.

    Format: TIMESTAMP - LEVEL - LOGGER [CORRELATION_ID] - MESSAGE
    """

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = get_correlation_id()
        correlation_str = f" [{correlation_id}]" if correlation_id else ""

        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        base_msg = f"{timestamp} - {record.levelname:8} - {record.name}{correlation_str} - {record.getMessage()}"

        extras = _extras(record)
        if extras:
            base_msg += f" | {extras}"

        if record.exc_info:
            base_msg += f"\n{self.formatException(record.exc_info)}"

        return base_msg


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    include_libs: bool = False
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: If True, output JSON logs; otherwise human-readable
        include_libs: If True, also log from third-party libraries
    """
    formatter = StructuredFormatter() if json_format else HumanReadableFormatter()

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))

    # Quiet down noisy libraries unless explicitly included
    if not include_libs:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("passlib").setLevel(logging.WARNING)
        logging.getLogger("watchfiles").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)


# ═══════════════════════════════════════════════════════════════════════════════
# TIMING
# ═══════════════════════════════════════════════════════════════════════════════

SLOW_OPERATION_MS = 1000


def _log_duration(logger: logging.Logger, name: str, elapsed_ms: float, threshold_ms: float) -> None:
    level = logging.WARNING if elapsed_ms > threshold_ms else logging.DEBUG
    logger.log(level, f"{name} completed", extra={"duration_ms": round(elapsed_ms, 2)})


class Timer:
    """
    Context manager that measures a block and optionally logs and records it.

    Usage:
        with Timer("health_db_check", collector=metrics) as t:
            stats = await db.get_stats()
        latency = t.elapsed_ms
    """

    def __init__(
        self,
        name: str,
        logger: Optional[logging.Logger] = None,
        collector: Optional["MetricsCollector"] = None,
    ):
        self.name = name
        self.logger = logger
        self.collector = collector
        self.start_time: float = 0
        self.elapsed_ms: float = 0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000
        if self.logger:
            _log_duration(self.logger, self.name, self.elapsed_ms, SLOW_OPERATION_MS)
        if self.collector is not None:
            self.collector.record_timing(self.name, self.elapsed_ms)


def timed(name: Optional[str] = None, warn_threshold_ms: float = SLOW_OPERATION_MS):
    """
    Decorator for async service methods.

    Each call is logged (WARNING above `warn_threshold_ms`) and its duration
    is added to the global `metrics` under the operation name.
    """
    def decorator(func: Callable) -> Callable:
        operation_name = name or func.__name__
        func_logger = get_logger(func.__module__)

        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"timed() expects a coroutine function, got {func!r}")

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                _log_duration(func_logger, operation_name, elapsed_ms, warn_threshold_ms)
                metrics.record_timing(operation_name, elapsed_ms)

        return wrapper

    return decorator


# ═══════════════════════════════════════════════════════════════════════════════
# METRICS COLLECTOR (simple in-memory stats)
# ═══════════════════════════════════════════════════════════════════════════════

class MetricsCollector:
    """
    Simple in-memory metrics collector.

    Tracks request counts by endpoint, error counts and timing samples.
    """

    def __init__(self, max_samples: int = 100):
        self._request_counts: Dict[str, int] = {}
        self._error_counts: Dict[str, int] = {}
        self._timing_samples: Dict[str, list] = {}
        self._max_samples = max_samples

    def record_request(self, endpoint: str) -> None:
        self._request_counts[endpoint] = self._request_counts.get(endpoint, 0) + 1

    def record_error(self, error_type: str) -> None:
        self._error_counts[error_type] = self._error_counts.get(error_type, 0) + 1

    def record_timing(self, operation: str, duration_ms: float) -> None:
        samples = self._timing_samples.setdefault(operation, [])
        samples.append(duration_ms)

        # Keep only last N samples
        if len(samples) > self._max_samples:
            self._timing_samples[operation] = samples[-self._max_samples:]

    def get_stats(self) -> Dict[str, Any]:
        """Get current metrics snapshot."""
        stats = {
            "requests": dict(self._request_counts),
            "errors": dict(self._error_counts),
            "timing": {}
        }

        for operation, samples in self._timing_samples.items():
            if samples:
                sorted_samples = sorted(samples)
                stats["timing"][operation] = {
                    "count": len(samples),
                    "avg_ms": round(sum(samples) / len(samples), 2),
                    "max_ms": round(max(samples), 2),
                    "p50_ms": round(sorted_samples[len(sorted_samples) // 2], 2),
                }

        return stats


# Global metrics instance
metrics = MetricsCollector()
