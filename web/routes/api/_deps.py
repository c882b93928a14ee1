"""Shared dependencies for API route modules."""
import time
from typing import Any, Dict, Optional

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import AppConfig
from core.repositories import (
    AccountRepository,
    CampaignRepository,
    Database,
    OrderRepository,
    UserRepository,
)
from web.services.dashboard_service import DashboardService
from web.services.stats_service import StatsAggregator

# Shared limiter instance
limiter = Limiter(key_func=get_remote_address)

# Track startup time for uptime calculation
START_TIME = time.time()


def ok(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Success envelope."""
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_accounts(request: Request) -> AccountRepository:
    return AccountRepository(get_db(request))


def get_orders(request: Request) -> OrderRepository:
    return OrderRepository(get_db(request))


def get_campaigns(request: Request) -> CampaignRepository:
    return CampaignRepository(get_db(request))


def get_users(request: Request) -> UserRepository:
    return UserRepository(get_db(request))


def get_stats_aggregator(request: Request) -> StatsAggregator:
    stats = get_config(request).stats
    return StatsAggregator(
        get_orders(request),
        window_days=stats.window_days,
        growth_window_days=stats.growth_window_days,
        tz_name=stats.timezone,
    )


def get_dashboard_service(request: Request) -> DashboardService:
    stats = get_config(request).stats
    db = get_db(request)
    return DashboardService(
        AccountRepository(db),
        CampaignRepository(db),
        UserRepository(db),
        tz_name=stats.timezone,
        top_campaigns_limit=stats.top_campaigns_limit,
    )


def current_session(request: Request) -> Optional[Dict[str, Any]]:
    """Session payload set by the session guard, if any."""
    return getattr(request.state, "session", None)
