"""
Integration tests for StatsAggregator and DashboardService against DuckDB.
"""
from datetime import timedelta

import pytest

from web.services.dashboard_service import DashboardService
from web.services.stats_service import StatsAggregator
from tests.helpers import NOW, TODAY, days_ago, make_daily, make_order


@pytest.fixture
def aggregator(orders) -> StatsAggregator:
    return StatsAggregator(orders, window_days=30, growth_window_days=7, tz_name="UTC")


class TestStatsAggregator:
    """Tests for StatsAggregator.compute."""

    @pytest.mark.asyncio
    async def test_empty_order_set(self, aggregator):
        stats = await aggregator.compute(now=NOW)

        assert stats["overview"]["totalOrders"] == 0
        assert stats["overview"]["commissionRate"] == 0.0
        assert stats["growth"] == {"ordersGrowth": 100, "orderAmountGrowth": 100, "commissionGrowth": 100}
        assert len(stats["dailyCommission"]) == 31
        assert all(day["orderCount"] == 0 for day in stats["dailyCommission"])
        assert stats["platformStats"] == []

    @pytest.mark.asyncio
    async def test_example_overview(self, aggregator, orders, sample_orders):
        await orders.add_many(sample_orders)
        stats = await aggregator.compute(now=NOW)

        overview = stats["overview"]
        assert overview["totalOrderAmount"] == 300.0
        assert overview["totalCommissionAmount"] == 40.0
        assert overview["commissionRate"] == 13.33
        assert overview["avgOrderAmount"] == 150.0

    @pytest.mark.asyncio
    async def test_window_excludes_old_orders(self, aggregator, orders):
        await orders.add_many([
            make_order("recent", 100, 10, days_ago(5)),
            make_order("ancient", 900, 90, days_ago(45)),
        ])
        stats = await aggregator.compute(now=NOW)
        assert stats["overview"]["totalOrders"] == 1

    @pytest.mark.asyncio
    async def test_custom_window(self, aggregator, orders):
        await orders.add_many([make_order("o", 100, 10, days_ago(20))])
        stats = await aggregator.compute(now=NOW, window_days=7)
        assert stats["overview"]["totalOrders"] == 0
        assert len(stats["dailyCommission"]) == 8

    @pytest.mark.asyncio
    async def test_daily_series_is_complete_and_ascending(self, aggregator, orders, sample_orders):
        await orders.add_many(sample_orders)
        series = (await aggregator.compute(now=NOW))["dailyCommission"]

        dates = [entry["date"] for entry in series]
        assert dates[0] == (TODAY - timedelta(days=30)).isoformat()
        assert dates[-1] == TODAY.isoformat()
        assert dates == sorted(dates)
        assert len(set(dates)) == 31

        by_date = {entry["date"]: entry for entry in series}
        yesterday = (TODAY - timedelta(days=1)).isoformat()
        assert by_date[yesterday] == {
            "date": yesterday, "commission": 40.0, "orderCount": 2, "orderAmount": 300.0,
        }

    @pytest.mark.asyncio
    async def test_growth_compares_adjacent_weeks(self, aggregator, orders):
        await orders.add_many([
            make_order("this-1", 100, 10, days_ago(1)),
            make_order("this-2", 100, 10, days_ago(2)),
            make_order("prev-1", 100, 40, days_ago(10)),
        ])
        growth = (await aggregator.compute(now=NOW))["growth"]
        assert growth["ordersGrowth"] == 100.0
        assert growth["orderAmountGrowth"] == 100.0
        assert growth["commissionGrowth"] == -50.0

    @pytest.mark.asyncio
    async def test_platform_breakdown(self, aggregator, orders):
        await orders.add_many([
            make_order("g", 100, 5, days_ago(1), platform="google"),
            make_order("t", 100, 15, days_ago(1), platform="tiktok"),
        ])
        platforms = (await aggregator.compute(now=NOW))["platformStats"]
        assert [p["platform"] for p in platforms] == ["tiktok", "google"]

    @pytest.mark.asyncio
    async def test_account_scope(self, aggregator, orders):
        await orders.add_many([
            make_order("mine", 100, 10, days_ago(1), account_id="acc-1"),
            make_order("theirs", 500, 50, days_ago(1), account_id="acc-2"),
        ])
        stats = await aggregator.compute(account_ids={"acc-1"}, now=NOW)
        assert stats["overview"]["totalOrders"] == 1
        assert stats["overview"]["totalOrderAmount"] == 100.0


class TestDashboardService:
    """Tests for DashboardService.overview."""

    @pytest.fixture
    def service(self, accounts, campaigns, users) -> DashboardService:
        return DashboardService(accounts, campaigns, users, tz_name="UTC")

    @pytest.mark.asyncio
    async def test_empty(self, service):
        data = await service.overview(period_days=7, today=TODAY)
        assert data["overview"]["totalCost"] == 0.0
        assert data["overview"]["activeAccounts"] == 0
        assert data["changes"] == {"cost": 100, "revenue": 100, "conversions": 100, "roas": 100}
        assert len(data["dailyData"]) == 8
        assert data["topCampaigns"] == []

    @pytest.mark.asyncio
    async def test_overview_metrics_and_changes(self, service, accounts, campaigns):
        account = await accounts.create("google", "1", "Search")
        await accounts.create("meta", "2", "Paused", status="paused")
        campaign = await campaigns.create(account.id, "c1", "Brand")
        await campaigns.upsert_daily([
            make_daily(campaign.id, TODAY, impressions=1000, clicks=50, cost=100, conversions=5, revenue=400),
            # Previous 7-day period
            make_daily(campaign.id, TODAY - timedelta(days=10), impressions=500, clicks=20, cost=50,
                       conversions=5, revenue=100),
        ])

        data = await service.overview(period_days=7, today=TODAY)

        assert data["overview"] == {
            "totalCost": 100.0,
            "totalRevenue": 400.0,
            "totalConversions": 5,
            "roas": 4.0,
            "activeAccounts": 1,
            "campaignsCount": 1,
        }
        assert data["metrics"]["ctr"] == 5.0
        assert data["metrics"]["cpc"] == 2.0
        assert data["changes"]["cost"] == 100.0
        assert data["changes"]["revenue"] == 300.0
        assert data["changes"]["conversions"] == 0.0
        assert data["changes"]["roas"] == 100.0
        assert data["topCampaigns"][0]["name"] == "Brand"
        assert data["topCampaigns"][0]["ctr"] == 5.0

        daily = {entry["date"]: entry for entry in data["dailyData"]}
        assert daily[TODAY.isoformat()]["clicks"] == 50
        assert daily[(TODAY - timedelta(days=1)).isoformat()]["clicks"] == 0

    @pytest.mark.asyncio
    async def test_scoped_to_user_grants(self, service, accounts, campaigns, users, user):
        mine = await accounts.create("google", "1", "Mine")
        theirs = await accounts.create("google", "2", "Theirs")
        c1 = await campaigns.create(mine.id, "c1", "Mine C")
        c2 = await campaigns.create(theirs.id, "c2", "Theirs C")
        await campaigns.upsert_daily([
            make_daily(c1.id, TODAY, cost=10, revenue=30),
            make_daily(c2.id, TODAY, cost=90, revenue=10),
        ])
        await users.grant_account(user.id, mine.id)

        data = await service.overview(user_id=user.id, period_days=7, today=TODAY)
        assert data["overview"]["totalCost"] == 10.0
        assert data["overview"]["activeAccounts"] == 1
        assert [c["name"] for c in data["topCampaigns"]] == ["Mine C"]

        unscoped = await service.overview(period_days=7, today=TODAY)
        assert unscoped["overview"]["totalCost"] == 100.0
