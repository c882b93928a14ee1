"""Health check endpoint."""
import logging
import time

from fastapi import APIRouter, Request

from core.observability import get_correlation_id, metrics, Timer
from web.schemas import HealthData
from ._deps import limiter, ok, get_config, get_db, START_TIME

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
@limiter.limit("60/minute")
async def health_check(request: Request):
    """Health check endpoint for Docker/load balancer monitoring."""
    db = get_db(request)
    db_latency_ms = None
    try:
        with Timer("health_db_check", logger, collector=metrics) as timer:
            db_stats = await db.get_stats()
        db_status = "connected"
        db_latency_ms = round(timer.elapsed_ms, 2)
    except Exception as e:
        logger.warning(f"Health check database query failed: {e}")
        db_stats = {}
        db_status = f"error: {e}"

    health = HealthData(
        status="healthy" if db_status == "connected" else "degraded",
        version=get_config(request).version,
        uptime_seconds=int(time.time() - START_TIME),
        correlation_id=get_correlation_id(),
        database={"status": db_status, "latency_ms": db_latency_ms, **db_stats},
        metrics=metrics.get_stats(),
    )
    return ok(health.model_dump())
