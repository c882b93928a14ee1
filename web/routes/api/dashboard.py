"""Dashboard overview and order statistics endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.validators import validate_period_days
from web.services.dashboard_service import DashboardService
from web.services.stats_service import StatsAggregator
from ._deps import (
    limiter, ok, current_session,
    get_dashboard_service, get_stats_aggregator,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _scope_user(request: Request, user_id: Optional[str]) -> Optional[str]:
    """Explicit userId, else the signed-in user."""
    if user_id:
        return user_id
    session = current_session(request)
    return session.get("user_id") if session else None


@router.get("/dashboard")
@limiter.limit("30/minute")
async def get_dashboard(
    request: Request,
    userId: Optional[str] = Query(None),
    period: Optional[int] = Query(None),
    dashboard: DashboardService = Depends(get_dashboard_service),
):
    """Ad delivery overview for the accounts granted to the user."""
    period_days = validate_period_days(period, "period")
    data = await dashboard.overview(_scope_user(request, userId), period_days=period_days)
    return ok(data)


@router.get("/dashboard/stats")
@limiter.limit("30/minute")
async def get_dashboard_stats(
    request: Request,
    days: Optional[int] = Query(None),
    userId: Optional[str] = Query(None),
    aggregator: StatsAggregator = Depends(get_stats_aggregator),
    dashboard: DashboardService = Depends(get_dashboard_service),
):
    """Order overview, weekly growth, daily commission and platform breakdown."""
    window_days = validate_period_days(days, "days", default=aggregator.window_days)
    scope = await dashboard.resolve_scope(_scope_user(request, userId))
    data = await aggregator.compute(account_ids=scope, window_days=window_days)
    return ok(data)
