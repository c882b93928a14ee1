"""
Integration tests for core/repositories against in-memory DuckDB.
"""
from datetime import date, timedelta

import pytest

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.filters import AccountFilter, CampaignFilter, DateRange, OrderFilter
from tests.helpers import NOW, TODAY, days_ago, make_daily, make_order


class TestDatabase:
    """Tests for the Database client."""

    @pytest.mark.asyncio
    async def test_schema_created(self, db):
        stats = await db.get_stats()
        assert stats == {"accounts": 0, "campaigns": 0, "orders": 0, "users": 0, "db_size_mb": 0.0}

    @pytest.mark.asyncio
    async def test_close_and_reconnect(self, db):
        await db.close()
        assert not db.is_connected
        await db.connect()
        assert db.is_connected

    @pytest.mark.asyncio
    async def test_transaction_rolls_back(self, db):
        with pytest.raises(RuntimeError):
            async with db.transaction() as conn:
                conn.execute(
                    "INSERT INTO users (id, email, password_hash) VALUES ('u1', 'a@b.co', 'h')"
                )
                raise RuntimeError("boom")
        row = await db.fetchone("SELECT COUNT(*) FROM users")
        assert row[0] == 0


class TestAccountRepository:
    """Tests for AccountRepository."""

    @pytest.mark.asyncio
    async def test_create_defaults(self, accounts):
        account = await accounts.create("google", "123", "Search")
        assert account.currency == "USD"
        assert account.status == "active"
        assert account.config is None

    @pytest.mark.asyncio
    async def test_config_stored_as_json(self, accounts, db):
        account = await accounts.create("meta", "act_1", "Prospecting", config={"cap": 50})
        raw = await db.fetchone("SELECT config FROM accounts WHERE id = ?", [account.id])
        assert raw[0] == '{"cap": 50}'
        assert account.parsed_config == {"cap": 50}

    @pytest.mark.asyncio
    async def test_duplicate_is_conflict_and_creates_nothing(self, accounts):
        await accounts.create("google", "123", "Search")
        with pytest.raises(ConflictError):
            await accounts.create("google", "123", "Search again")
        assert await accounts.count() == 1

    @pytest.mark.asyncio
    async def test_same_external_id_other_platform(self, accounts):
        await accounts.create("google", "123", "Search")
        await accounts.create("meta", "123", "Meta")
        assert await accounts.count() == 2

    @pytest.mark.asyncio
    async def test_find_many_order_and_filter(self, accounts):
        await accounts.create("meta", "2", "Zeta")
        await accounts.create("google", "1", "Beta")
        await accounts.create("google", "3", "Alpha", status="paused")

        names = [a.account_name for a in await accounts.find_many()]
        assert names == ["Alpha", "Beta", "Zeta"]

        active_google = await accounts.find_many(AccountFilter(platform="google", status="active"))
        assert [a.account_name for a in active_google] == ["Beta"]

    @pytest.mark.asyncio
    async def test_partial_update(self, accounts):
        account = await accounts.create("google", "1", "Search", currency="EUR", config={"a": 1})
        updated = await accounts.update(account.id, status="paused")
        assert updated.status == "paused"
        assert updated.account_name == "Search"
        assert updated.currency == "EUR"
        assert updated.parsed_config == {"a": 1}

    @pytest.mark.asyncio
    async def test_update_missing(self, accounts):
        with pytest.raises(NotFoundError):
            await accounts.update("missing", account_name="x")

    @pytest.mark.asyncio
    async def test_delete_cascades(self, accounts, campaigns, users, user):
        account = await accounts.create("google", "1", "Search")
        campaign = await campaigns.create(account.id, "c1", "Brand")
        await campaigns.upsert_daily([make_daily(campaign.id, TODAY, clicks=5)])
        await users.grant_account(user.id, account.id)

        await accounts.delete(account.id)

        assert await accounts.get(account.id) is None
        assert await campaigns.get(campaign.id) is None
        assert await campaigns.daily(campaign.id) == []
        assert await users.account_ids(user.id) == []

    @pytest.mark.asyncio
    async def test_delete_missing(self, accounts):
        with pytest.raises(NotFoundError):
            await accounts.delete("missing")


class TestOrderRepository:
    """Tests for OrderRepository."""

    @pytest.mark.asyncio
    async def test_add_many_skips_duplicates(self, orders, sample_orders):
        assert await orders.add_many(sample_orders) == 2
        assert await orders.add_many(sample_orders) == 0
        assert await orders.count() == 2

    @pytest.mark.asyncio
    async def test_aggregate(self, orders, sample_orders):
        await orders.add_many(sample_orders)
        totals = await orders.aggregate()
        assert totals.count == 2
        assert totals.order_amount == 300.0
        assert totals.commission_amount == 40.0

    @pytest.mark.asyncio
    async def test_find_many_newest_first_with_paging(self, orders):
        await orders.add_many([
            make_order("old", 10, 1, days_ago(3)),
            make_order("new", 10, 1, days_ago(1)),
            make_order("mid", 10, 1, days_ago(2)),
        ])
        rows = await orders.find_many(offset=0, limit=2)
        assert [o.order_id for o in rows] == ["new", "mid"]
        rows = await orders.find_many(offset=2, limit=2)
        assert [o.order_id for o in rows] == ["old"]

    @pytest.mark.asyncio
    async def test_time_filter(self, orders):
        await orders.add_many([
            make_order("in", 10, 1, days_ago(2)),
            make_order("out", 10, 1, days_ago(10)),
        ])
        filters = OrderFilter(start=days_ago(5), end=NOW)
        assert [o.order_id for o in await orders.find_many(filters)] == ["in"]

    @pytest.mark.asyncio
    async def test_group_by_day_in_timezone(self, orders):
        """23:30 UTC on the 10th is already the 11th in Shanghai."""
        late = NOW.replace(day=10, hour=23, minute=30)
        await orders.add_many([make_order("late", 100, 10, late)])

        utc = await orders.group_by_day(OrderFilter(), "UTC")
        shanghai = await orders.group_by_day(OrderFilter(), "Asia/Shanghai")

        assert list(utc) == [date(2026, 3, 10)]
        assert list(shanghai) == [date(2026, 3, 11)]
        assert shanghai[date(2026, 3, 11)].commission_amount == 10.0

    @pytest.mark.asyncio
    async def test_group_by_platform_sorted_by_commission(self, orders):
        await orders.add_many([
            make_order("g1", 100, 5, days_ago(1), platform="google"),
            make_order("m1", 100, 20, days_ago(1), platform="meta"),
            make_order("m2", 50, 5, days_ago(1), platform="meta"),
        ])
        stats = await orders.group_by_platform()
        assert stats == [
            {"platform": "meta", "orderCount": 2, "orderAmount": 150.0, "commissionAmount": 25.0},
            {"platform": "google", "orderCount": 1, "orderAmount": 100.0, "commissionAmount": 5.0},
        ]


class TestCampaignRepository:
    """Tests for CampaignRepository."""

    @pytest.mark.asyncio
    async def test_create_requires_account(self, campaigns):
        with pytest.raises(NotFoundError):
            await campaigns.create("missing", "c1", "Brand")

    @pytest.mark.asyncio
    async def test_duplicate_campaign(self, accounts, campaigns):
        account = await accounts.create("google", "1", "Search")
        await campaigns.create(account.id, "c1", "Brand")
        with pytest.raises(ConflictError):
            await campaigns.create(account.id, "c1", "Brand 2")

    @pytest.mark.asyncio
    async def test_platform_joined_from_account(self, accounts, campaigns):
        account = await accounts.create("tiktok", "1", "TT")
        campaign = await campaigns.create(account.id, "c1", "Launch", budget=250)
        assert campaign.platform == "tiktok"
        assert campaign.to_dict()["budget"] == 250.0

        found = await campaigns.find_many(CampaignFilter(platform="tiktok"))
        assert [c.id for c in found] == [campaign.id]

    @pytest.mark.asyncio
    async def test_upsert_daily_replaces(self, accounts, campaigns):
        account = await accounts.create("google", "1", "Search")
        campaign = await campaigns.create(account.id, "c1", "Brand")
        await campaigns.upsert_daily([make_daily(campaign.id, TODAY, clicks=5, cost=1.5)])
        await campaigns.upsert_daily([make_daily(campaign.id, TODAY, clicks=9, cost=2.5)])

        rows = await campaigns.daily(campaign.id)
        assert len(rows) == 1
        assert rows[0].clicks == 9
        assert rows[0].cost == 2.5

    @pytest.mark.asyncio
    async def test_performance_scoped_by_account(self, accounts, campaigns):
        a1 = await accounts.create("google", "1", "One")
        a2 = await accounts.create("google", "2", "Two")
        c1 = await campaigns.create(a1.id, "c1", "First")
        c2 = await campaigns.create(a2.id, "c2", "Second")
        await campaigns.upsert_daily([
            make_daily(c1.id, TODAY, impressions=100, clicks=10, cost=5, conversions=1, revenue=20),
            make_daily(c2.id, TODAY, impressions=300, clicks=30, cost=15, conversions=2, revenue=60),
        ])
        days = DateRange.trailing(TODAY, 7)

        everything = await campaigns.performance_totals(days)
        assert everything["impressions"] == 400
        assert everything["revenue"] == 80.0

        scoped = await campaigns.performance_totals(days, [a1.id])
        assert scoped["impressions"] == 100
        assert scoped["cost"] == 5.0

    @pytest.mark.asyncio
    async def test_top_campaigns_by_revenue(self, accounts, campaigns):
        account = await accounts.create("google", "1", "One")
        low = await campaigns.create(account.id, "low", "Low")
        high = await campaigns.create(account.id, "high", "High")
        paused = await campaigns.create(account.id, "p", "Paused", status="paused")
        idle = await campaigns.create(account.id, "idle", "Idle")
        await campaigns.upsert_daily([
            make_daily(low.id, TODAY, revenue=10),
            make_daily(high.id, TODAY - timedelta(days=1), revenue=500),
            make_daily(paused.id, TODAY, revenue=900),
        ])

        top = await campaigns.top_campaigns(DateRange.trailing(TODAY, 7))
        assert [c["name"] for c in top] == ["High", "Low", "Idle"]
        assert top[2]["revenue"] == 0.0
        assert top[0]["platform"] == "google"

        assert len(await campaigns.top_campaigns(DateRange.trailing(TODAY, 7), limit=1)) == 1


class TestUserRepository:
    """Tests for UserRepository."""

    @pytest.mark.asyncio
    async def test_email_lookup_case_insensitive(self, users, user):
        found = await users.get_by_email("ANALYST@example.com")
        assert found is not None
        assert found.id == user.id

    @pytest.mark.asyncio
    async def test_duplicate_email(self, users, user):
        with pytest.raises(ConflictError):
            await users.create("analyst@example.com", "hash")

    @pytest.mark.asyncio
    async def test_create_normalizes_email(self, users):
        created = await users.create("New.User@Example.COM", "hash")
        assert created.email == "new.user@example.com"

    @pytest.mark.asyncio
    async def test_create_rejects_malformed_email(self, users):
        with pytest.raises(ValidationError):
            await users.create("not-an-email", "hash")
        row = await users.db.fetchone("SELECT COUNT(*) FROM users")
        assert row[0] == 0

    @pytest.mark.asyncio
    async def test_grants(self, users, user, accounts):
        account = await accounts.create("google", "1", "One")
        assert await users.grant_account(user.id, account.id) is True
        assert await users.grant_account(user.id, account.id) is False
        assert await users.account_ids(user.id) == [account.id]

    @pytest.mark.asyncio
    async def test_grant_missing_account(self, users, user):
        with pytest.raises(NotFoundError):
            await users.grant_account(user.id, "missing")
