"""
Dashboard statistics aggregator.

Turns the order table into the numbers behind the stats page:

- overview: totals, averages and commission rate over the reporting window
- growth: trailing 7 days against the 7 days before
- dailyCommission: one zero-filled bucket per calendar day in the window
- platformStats: per-platform totals, highest commission first

Day boundaries are taken in the configured reporting time zone.
"""
import asyncio
import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

from core.filters import DateRange, OrderFilter, TimeWindow
from core.models import OrderTotals
from core.observability import timed
from core.repositories import OrderRepository

logger = logging.getLogger(__name__)

# Reported when the previous period is zero
GROWTH_SENTINEL = 100.0


def calculate_growth(current: float, previous: float) -> float:
    """Percentage change from previous to current, rounded to 1 decimal."""
    if not previous:
        return GROWTH_SENTINEL
    return round((current - previous) / previous * 100, 1)


def commission_rate(commission: float, amount: float) -> float:
    """Commission as a percentage of order amount, rounded to 2 decimals."""
    if not amount:
        return 0.0
    return round(commission / amount * 100, 2)


def build_overview(totals: OrderTotals) -> Dict[str, Any]:
    return {
        "totalOrders": totals.count,
        "totalOrderAmount": round(totals.order_amount, 2),
        "totalCommissionAmount": round(totals.commission_amount, 2),
        "avgOrderAmount": round(totals.avg_order_amount, 2),
        "avgCommission": round(totals.avg_commission, 2),
        "commissionRate": commission_rate(totals.commission_amount, totals.order_amount),
    }


def build_growth(current: OrderTotals, previous: OrderTotals) -> Dict[str, float]:
    return {
        "ordersGrowth": calculate_growth(current.count, previous.count),
        "orderAmountGrowth": calculate_growth(current.order_amount, previous.order_amount),
        "commissionGrowth": calculate_growth(current.commission_amount, previous.commission_amount),
    }


def fill_daily_series(days: DateRange, buckets: Dict[date, OrderTotals]) -> List[Dict[str, Any]]:
    """One entry per day in range, ascending; days without orders are zero."""
    series = []
    for day in days.days:
        totals = buckets.get(day) or OrderTotals()
        series.append({
            "date": day.isoformat(),
            "commission": round(totals.commission_amount, 2),
            "orderCount": totals.count,
            "orderAmount": round(totals.order_amount, 2),
        })
    return series


class StatsAggregator:
    """
    Computes the dashboard stats block from the order repository.

    Usage:
        aggregator = StatsAggregator(OrderRepository(db), tz_name="Asia/Shanghai")
        stats = await aggregator.compute(account_ids={"acc-1"}, window_days=30)
    """

    def __init__(
        self,
        orders: OrderRepository,
        window_days: int = 30,
        growth_window_days: int = 7,
        tz_name: str = "UTC",
    ):
        self.orders = orders
        self.window_days = window_days
        self.growth_window_days = growth_window_days
        self.tz_name = tz_name
        self.tz = ZoneInfo(tz_name)

    @timed("dashboard_stats")
    async def compute(
        self,
        account_ids: Iterable[str] = (),
        window_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Compute overview, growth, daily series and platform breakdown.

        Args:
            account_ids: Restrict to orders of these accounts (empty = all)
            window_days: Reporting window length (default from config)
            now: Evaluation time (default: current time)
        """
        window_days = window_days or self.window_days
        now = (now or datetime.now(self.tz)).astimezone(self.tz)
        scope = frozenset(account_ids)

        window = TimeWindow.trailing(now, window_days)
        window_filter = OrderFilter.for_window(window, scope)

        current_week = TimeWindow.trailing(now, self.growth_window_days)
        previous_week = current_week.previous()

        totals = await self.orders.aggregate(window_filter)
        buckets = await self.orders.group_by_day(window_filter, self.tz_name)
        platform_stats = await self.orders.group_by_platform(window_filter)

        current, previous = await asyncio.gather(
            self.orders.aggregate(OrderFilter.for_window(current_week, scope)),
            self.orders.aggregate(OrderFilter.for_window(previous_week, scope)),
        )

        logger.debug(
            "Dashboard stats computed",
            extra={"window_days": window_days, "orders": totals.count, "scoped": bool(scope)},
        )

        return {
            "overview": build_overview(totals),
            "growth": build_growth(current, previous),
            "dailyCommission": fill_daily_series(DateRange.trailing(now.date(), window_days), buckets),
            "platformStats": platform_stats,
        }
