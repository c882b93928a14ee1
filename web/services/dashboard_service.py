"""
Dashboard overview service.

Ad delivery metrics (impressions, clicks, cost, conversions, revenue) come
from the campaign daily performance table. A user's account grants scope
every query; a user without grants sees all accounts.
"""
import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from core.filters import AccountFilter, CampaignFilter, DateRange
from core.models import AccountStatus
from core.repositories import AccountRepository, CampaignRepository, UserRepository
from web.services.stats_service import calculate_growth

logger = logging.getLogger(__name__)


def _ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    if not denominator:
        return 0.0
    return round(numerator / denominator * scale, 2)


def derive_metrics(totals: Dict[str, Any]) -> Dict[str, Any]:
    """CTR, CPC, CPA and ROAS from summed delivery metrics."""
    return {
        "impressions": totals["impressions"],
        "clicks": totals["clicks"],
        "ctr": _ratio(totals["clicks"], totals["impressions"], 100),
        "cpc": _ratio(totals["cost"], totals["clicks"]),
        "cpa": _ratio(totals["cost"], totals["conversions"]),
        "roas": _ratio(totals["revenue"], totals["cost"]),
    }


def fill_daily_performance(days: DateRange, by_day: Dict[date, Dict[str, Any]]) -> List[Dict[str, Any]]:
    """One entry per day in range, ascending; missing days are zero."""
    series = []
    for day in days.days:
        metrics = by_day.get(day, {})
        series.append({
            "date": day.isoformat(),
            "impressions": metrics.get("impressions", 0),
            "clicks": metrics.get("clicks", 0),
            "conversions": metrics.get("conversions", 0),
            "cost": round(metrics.get("cost", 0.0), 2),
            "revenue": round(metrics.get("revenue", 0.0), 2),
        })
    return series


class DashboardService:
    """Builds the `/dashboard` overview payload."""

    def __init__(
        self,
        accounts: AccountRepository,
        campaigns: CampaignRepository,
        users: UserRepository,
        tz_name: str = "UTC",
        top_campaigns_limit: int = 10,
    ):
        self.accounts = accounts
        self.campaigns = campaigns
        self.users = users
        self.tz = ZoneInfo(tz_name)
        self.top_campaigns_limit = top_campaigns_limit

    async def resolve_scope(self, user_id: Optional[str]) -> List[str]:
        """Account IDs granted to the user; empty means unscoped."""
        if not user_id:
            return []
        return await self.users.account_ids(user_id)

    async def overview(
        self,
        user_id: Optional[str] = None,
        period_days: int = 30,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Overview, derived metrics, period-over-period changes, top campaigns
        and a zero-filled daily series for the last `period_days` days.
        """
        today = today or datetime.now(self.tz).date()
        scope = await self.resolve_scope(user_id)

        current_range = DateRange.trailing(today, period_days)
        previous_end = current_range.start - timedelta(days=1)
        previous_range = DateRange(previous_end - timedelta(days=period_days), previous_end)

        current, previous = await asyncio.gather(
            self.campaigns.performance_totals(current_range, scope),
            self.campaigns.performance_totals(previous_range, scope),
        )
        active_accounts = await self.accounts.count(
            AccountFilter(status=AccountStatus.ACTIVE.value, ids=frozenset(scope))
        )
        campaigns_count = await self.campaigns.count(
            CampaignFilter(status=AccountStatus.ACTIVE.value, account_ids=frozenset(scope))
        )
        top = await self.campaigns.top_campaigns(current_range, scope, limit=self.top_campaigns_limit)
        by_day = await self.campaigns.performance_by_day(current_range, scope)

        metrics = derive_metrics(current)
        previous_roas = _ratio(previous["revenue"], previous["cost"])

        return {
            "overview": {
                "totalCost": round(current["cost"], 2),
                "totalRevenue": round(current["revenue"], 2),
                "totalConversions": current["conversions"],
                "roas": metrics["roas"],
                "activeAccounts": active_accounts,
                "campaignsCount": campaigns_count,
            },
            "metrics": metrics,
            "changes": {
                "cost": calculate_growth(current["cost"], previous["cost"]),
                "revenue": calculate_growth(current["revenue"], previous["revenue"]),
                "conversions": calculate_growth(current["conversions"], previous["conversions"]),
                "roas": calculate_growth(metrics["roas"], previous_roas),
            },
            "topCampaigns": [
                {
                    "id": c["id"],
                    "name": c["name"],
                    "platform": c["platform"],
                    "impressions": c["impressions"],
                    "clicks": c["clicks"],
                    "ctr": _ratio(c["clicks"], c["impressions"], 100),
                    "cost": round(c["cost"], 2),
                    "conversions": c["conversions"],
                    "revenue": round(c["revenue"], 2),
                    "roas": _ratio(c["revenue"], c["cost"]),
                }
                for c in top
            ],
            "dailyData": fill_daily_performance(current_range, by_day),
            "period": {
                "days": period_days,
                "startDate": current_range.start_str,
                "endDate": current_range.end_str,
            },
        }
