"""
Tests for the pure helpers in web.services.stats_service and
web.services.dashboard_service.
"""
from datetime import date

import pytest

from core.filters import DateRange
from core.models import OrderTotals
from web.services.dashboard_service import derive_metrics, fill_daily_performance
from web.services.stats_service import (
    GROWTH_SENTINEL,
    build_growth,
    build_overview,
    calculate_growth,
    commission_rate,
    fill_daily_series,
)


class TestCalculateGrowth:
    """Tests for calculate_growth."""

    def test_increase(self):
        assert calculate_growth(150, 100) == 50.0

    def test_decrease(self):
        assert calculate_growth(50, 200) == -75.0

    def test_rounded_to_one_decimal(self):
        assert calculate_growth(1, 3) == -66.7

    def test_previous_zero_is_sentinel(self):
        assert calculate_growth(42, 0) == GROWTH_SENTINEL == 100

    def test_both_zero_is_sentinel(self):
        assert calculate_growth(0, 0) == 100


class TestCommissionRate:
    """Tests for commission_rate."""

    def test_rate(self):
        assert commission_rate(40, 300) == 13.33

    def test_zero_amount(self):
        assert commission_rate(10, 0) == 0.0


class TestBuildOverview:
    """Tests for build_overview."""

    def test_example_orders(self):
        """100/10 and 200/30 give 300 amount, 40 commission, 13.33% rate."""
        overview = build_overview(OrderTotals(count=2, order_amount=300.0, commission_amount=40.0))
        assert overview == {
            "totalOrders": 2,
            "totalOrderAmount": 300.0,
            "totalCommissionAmount": 40.0,
            "avgOrderAmount": 150.0,
            "avgCommission": 20.0,
            "commissionRate": 13.33,
        }

    def test_empty(self):
        overview = build_overview(OrderTotals())
        assert overview["totalOrders"] == 0
        assert overview["avgOrderAmount"] == 0.0
        assert overview["commissionRate"] == 0.0


class TestBuildGrowth:
    """Tests for build_growth."""

    def test_growth_block(self):
        growth = build_growth(OrderTotals(4, 400.0, 40.0), OrderTotals(2, 500.0, 0.0))
        assert growth == {
            "ordersGrowth": 100.0,
            "orderAmountGrowth": -20.0,
            "commissionGrowth": 100.0,
        }


class TestFillDailySeries:
    """Tests for fill_daily_series."""

    def test_zero_fills_missing_days(self):
        days = DateRange.trailing(date(2026, 3, 15), 30)
        buckets = {date(2026, 3, 14): OrderTotals(2, 300.0, 40.0)}
        series = fill_daily_series(days, buckets)

        assert len(series) == 31
        assert [entry["date"] for entry in series] == sorted(entry["date"] for entry in series)
        filled = {entry["date"]: entry for entry in series}
        assert filled["2026-03-14"] == {
            "date": "2026-03-14", "commission": 40.0, "orderCount": 2, "orderAmount": 300.0,
        }
        assert filled["2026-03-15"]["orderCount"] == 0
        assert filled["2026-02-13"]["commission"] == 0.0


class TestDeriveMetrics:
    """Tests for dashboard derived ratios."""

    def test_ratios(self):
        metrics = derive_metrics({
            "impressions": 10000, "clicks": 250, "cost": 500.0,
            "conversions": 20, "revenue": 1500.0,
        })
        assert metrics["ctr"] == 2.5
        assert metrics["cpc"] == 2.0
        assert metrics["cpa"] == 25.0
        assert metrics["roas"] == 3.0

    def test_zero_denominators(self):
        metrics = derive_metrics({
            "impressions": 0, "clicks": 0, "cost": 0.0, "conversions": 0, "revenue": 0.0,
        })
        assert metrics == {"impressions": 0, "clicks": 0, "ctr": 0.0, "cpc": 0.0, "cpa": 0.0, "roas": 0.0}


class TestFillDailyPerformance:
    """Tests for the dashboard daily series."""

    @pytest.mark.parametrize("period", [1, 7, 30])
    def test_length_is_period_plus_one(self, period):
        days = DateRange.trailing(date(2026, 3, 15), period)
        assert len(fill_daily_performance(days, {})) == period + 1
