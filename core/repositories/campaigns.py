"""Campaign CRUD and daily performance queries."""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from core.exceptions import ConflictError, NotFoundError
from core.filters import CampaignFilter, DateRange, in_clause
from core.models import AccountStatus, Campaign, DailyPerformance, to_float
from core.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

_METRIC_SUMS = """
    COALESCE(SUM(d.impressions), 0),
    COALESCE(SUM(d.clicks), 0),
    COALESCE(SUM(d.cost), 0),
    COALESCE(SUM(d.conversions), 0),
    COALESCE(SUM(d.revenue), 0)
"""


def _metrics(row) -> Dict[str, Any]:
    return {
        "impressions": int(row[0] or 0),
        "clicks": int(row[1] or 0),
        "cost": to_float(row[2]),
        "conversions": int(row[3] or 0),
        "revenue": to_float(row[4]),
    }


def _scope(account_ids: Iterable[str], params: list) -> str:
    account_ids = frozenset(account_ids)
    if not account_ids:
        return ""
    return "AND " + in_clause("c.account_id", account_ids, params)


class CampaignRepository(BaseRepository):

    _SELECT = f"SELECT {Campaign.COLUMNS} FROM campaigns c LEFT JOIN accounts a ON a.id = c.account_id"

    async def find_many(
        self,
        filters: CampaignFilter = CampaignFilter(),
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[Campaign]:
        where, params = filters.to_sql()
        sql = f"{self._SELECT} {where} ORDER BY c.campaign_name ASC, c.id"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params = params + [limit, offset]
        rows = await self.db.fetchall(sql, params)
        return [Campaign.from_row(row) for row in rows]

    async def count(self, filters: CampaignFilter = CampaignFilter()) -> int:
        where, params = filters.to_sql()
        row = await self.db.fetchone(
            f"SELECT COUNT(*) FROM campaigns c LEFT JOIN accounts a ON a.id = c.account_id {where}",
            params,
        )
        return row[0] if row else 0

    async def get(self, campaign_id: str) -> Optional[Campaign]:
        row = await self.db.fetchone(f"{self._SELECT} WHERE c.id = ?", [campaign_id])
        return Campaign.from_row(row) if row else None

    async def require(self, campaign_id: str) -> Campaign:
        campaign = await self.get(campaign_id)
        if campaign is None:
            raise NotFoundError("Campaign", campaign_id)
        return campaign

    async def create(
        self,
        account_id: str,
        campaign_id: str,
        campaign_name: str,
        status: Optional[str] = None,
        budget: Optional[float] = None,
    ) -> Campaign:
        """
        Create a campaign under an existing account.

        Raises:
            NotFoundError: If the account does not exist
            ConflictError: If the account already has this external campaign id
        """
        account = await self.db.fetchone("SELECT id FROM accounts WHERE id = ?", [account_id])
        if not account:
            raise NotFoundError("Account", account_id)

        duplicate = await self.db.fetchone(
            "SELECT id FROM campaigns WHERE account_id = ? AND campaign_id = ?",
            [account_id, campaign_id],
        )
        if duplicate:
            raise ConflictError("Campaign already exists", campaign_id)

        new_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        await self.db.execute(
            """
            INSERT INTO campaigns (id, account_id, campaign_id, campaign_name, status,
                                   budget, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                new_id, account_id, campaign_id, campaign_name,
                status or AccountStatus.ACTIVE.value,
                Decimal(str(budget)) if budget is not None else None,
                now, now,
            ],
        )
        logger.info(f"Campaign created: {campaign_id} ({new_id}) for account {account_id}")
        return await self.require(new_id)

    async def update(
        self,
        campaign_id: str,
        campaign_name: Optional[str] = None,
        status: Optional[str] = None,
        budget: Optional[float] = None,
    ) -> Campaign:
        """Partially update a campaign. Omitted fields keep their stored values."""
        existing = await self.require(campaign_id)
        await self.db.execute(
            """
            UPDATE campaigns
            SET campaign_name = ?, status = ?, budget = ?, updated_at = ?
            WHERE id = ?
            """,
            [
                campaign_name or existing.campaign_name,
                status or existing.status,
                Decimal(str(budget)) if budget is not None else existing.budget,
                datetime.now(timezone.utc),
                campaign_id,
            ],
        )
        return await self.require(campaign_id)

    async def delete(self, campaign_id: str) -> None:
        """Delete a campaign and its daily rows."""
        await self.require(campaign_id)
        async with self.db.transaction() as conn:
            conn.execute("DELETE FROM campaign_daily WHERE campaign_id = ?", [campaign_id])
            conn.execute("DELETE FROM campaigns WHERE id = ?", [campaign_id])
        logger.info(f"Campaign deleted: {campaign_id}")

    # ─── Daily performance ────────────────────────────────────────────────────

    async def daily(self, campaign_id: str, days: Optional[DateRange] = None) -> List[DailyPerformance]:
        """Daily rows for one campaign, ascending by date."""
        sql = (
            "SELECT campaign_id, date, impressions, clicks, cost, conversions, revenue "
            "FROM campaign_daily WHERE campaign_id = ?"
        )
        params: list = [campaign_id]
        if days is not None:
            sql += " AND date BETWEEN ? AND ?"
            params += [days.start, days.end]
        rows = await self.db.fetchall(sql + " ORDER BY date ASC", params)
        return [DailyPerformance.from_row(row) for row in rows]

    async def upsert_daily(self, rows: Iterable[DailyPerformance]) -> int:
        """Store ingested daily rows; a (campaign, date) pair is replaced, never duplicated."""
        count = 0
        async with self.db.transaction() as conn:
            for row in rows:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO campaign_daily
                        (campaign_id, date, impressions, clicks, cost, conversions, revenue)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        row.campaign_id, row.date, row.impressions, row.clicks,
                        Decimal(str(row.cost)), row.conversions, Decimal(str(row.revenue)),
                    ],
                )
                count += 1
        return count

    async def performance_totals(self, days: DateRange, account_ids: Iterable[str] = ()) -> Dict[str, Any]:
        """Summed delivery metrics over a date range for campaigns in scope."""
        params: list = [days.start, days.end]
        scope = _scope(account_ids, params)
        row = await self.db.fetchone(
            f"""
            SELECT {_METRIC_SUMS}
            FROM campaign_daily d
            JOIN campaigns c ON c.id = d.campaign_id
            WHERE d.date BETWEEN ? AND ? {scope}
            """,
            params,
        )
        return _metrics(row or (0, 0, 0, 0, 0))

    async def performance_by_day(self, days: DateRange, account_ids: Iterable[str] = ()) -> Dict[date, Dict[str, Any]]:
        """Summed delivery metrics per day; days without rows are absent."""
        params: list = [days.start, days.end]
        scope = _scope(account_ids, params)
        rows = await self.db.fetchall(
            f"""
            SELECT d.date, {_METRIC_SUMS}
            FROM campaign_daily d
            JOIN campaigns c ON c.id = d.campaign_id
            WHERE d.date BETWEEN ? AND ? {scope}
            GROUP BY d.date
            ORDER BY d.date ASC
            """,
            params,
        )
        return {row[0]: _metrics(row[1:]) for row in rows}

    async def top_campaigns(
        self,
        days: DateRange,
        account_ids: Iterable[str] = (),
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        """Active campaigns in scope ranked by revenue over the range."""
        params: list = [days.start, days.end, AccountStatus.ACTIVE.value]
        scope = _scope(account_ids, params)
        params.append(limit)
        rows = await self.db.fetchall(
            f"""
            SELECT c.id, c.campaign_name, a.platform, {_METRIC_SUMS}
            FROM campaigns c
            LEFT JOIN accounts a ON a.id = c.account_id
            LEFT JOIN campaign_daily d
                   ON d.campaign_id = c.id AND d.date BETWEEN ? AND ?
            WHERE c.status = ? {scope}
            GROUP BY c.id, c.campaign_name, a.platform
            ORDER BY 8 DESC, c.campaign_name ASC
            LIMIT ?
            """,
            params,
        )
        return [
            {"id": row[0], "name": row[1], "platform": row[2] or "unknown", **_metrics(row[3:])}
            for row in rows
        ]
