"""Shared test data builders."""
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict

from core.models import DailyPerformance

TEST_SECRET = "test-secret-key"
TEST_PASSWORD = "correct-horse-battery"

# Fixed evaluation time used by aggregation tests
NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
TODAY = date(2026, 3, 15)


def make_order(
    order_id: str,
    amount: float,
    commission: float,
    conversion_time: datetime,
    platform: str = "google",
    account_id: str = None,
    status: str = "approved",
) -> Dict[str, Any]:
    """Order row in the shape accepted by OrderRepository.add_many."""
    return {
        "platform": platform,
        "order_id": order_id,
        "account_id": account_id,
        "order_amount": amount,
        "commission_amount": commission,
        "conversion_time": conversion_time,
        "status": status,
    }


def make_daily(campaign_id: str, day: date, **metrics) -> DailyPerformance:
    return DailyPerformance(campaign_id=campaign_id, date=day, **metrics)


def days_ago(n: int, hours: int = 0) -> datetime:
    return NOW - timedelta(days=n, hours=hours)
