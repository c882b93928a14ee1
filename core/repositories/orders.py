"""Order scans, counts and grouped aggregates."""
from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from core.filters import OrderFilter
from core.models import Order, OrderTotals, to_float
from core.repositories.base import BaseRepository, date_in_timezone

logger = logging.getLogger(__name__)


class OrderRepository(BaseRepository):

    async def find_many(
        self,
        filters: OrderFilter = OrderFilter(),
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[Order]:
        """Scan orders, newest conversion first."""
        where, params = filters.to_sql()
        sql = f"SELECT {Order.COLUMNS} FROM orders {where} ORDER BY conversion_time DESC, id"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params = params + [limit, offset]
        rows = await self.db.fetchall(sql, params)
        return [Order.from_row(row) for row in rows]

    async def get(self, order_id: str) -> Optional[Order]:
        row = await self.db.fetchone(f"SELECT {Order.COLUMNS} FROM orders WHERE id = ?", [order_id])
        return Order.from_row(row) if row else None

    async def count(self, filters: OrderFilter = OrderFilter()) -> int:
        where, params = filters.to_sql()
        row = await self.db.fetchone(f"SELECT COUNT(*) FROM orders {where}", params)
        return row[0] if row else 0

    async def aggregate(self, filters: OrderFilter = OrderFilter()) -> OrderTotals:
        """Count and sum order/commission amounts over the filtered set."""
        where, params = filters.to_sql()
        row = await self.db.fetchone(
            f"""
            SELECT COUNT(*),
                   COALESCE(SUM(order_amount), 0),
                   COALESCE(SUM(commission_amount), 0)
            FROM orders {where}
            """,
            params,
        )
        return OrderTotals.from_row(row)

    async def group_by_day(self, filters: OrderFilter, tz_name: str) -> Dict[date, OrderTotals]:
        """
        Totals per calendar day of conversion time in `tz_name`.

        Only days that have orders are returned; callers zero-fill.
        """
        where, params = filters.to_sql()
        day_expr = date_in_timezone("conversion_time")
        rows = await self.db.fetchall(
            f"""
            SELECT {day_expr} AS day,
                   COUNT(*),
                   COALESCE(SUM(order_amount), 0),
                   COALESCE(SUM(commission_amount), 0)
            FROM orders {where}
            GROUP BY 1
            ORDER BY 1 ASC
            """,
            [tz_name] + params,
        )
        return {row[0]: OrderTotals.from_row(row[1:]) for row in rows}

    async def group_by_platform(self, filters: OrderFilter = OrderFilter()) -> List[Dict[str, Any]]:
        """Totals per platform, highest commission first."""
        where, params = filters.to_sql()
        rows = await self.db.fetchall(
            f"""
            SELECT platform,
                   COUNT(*) AS order_count,
                   COALESCE(SUM(order_amount), 0) AS order_amount,
                   COALESCE(SUM(commission_amount), 0) AS commission_amount
            FROM orders {where}
            GROUP BY platform
            ORDER BY 4 DESC, 1 ASC
            """,
            params,
        )
        return [
            {
                "platform": row[0],
                "orderCount": int(row[1]),
                "orderAmount": round(to_float(row[2]), 2),
                "commissionAmount": round(to_float(row[3]), 2),
            }
            for row in rows
        ]

    async def add_many(self, orders: Iterable[Dict[str, Any]]) -> int:
        """
        Insert ingested orders, skipping (platform, order_id) pairs already stored.

        Used by the ingestion/seed tooling; routes never write orders.
        """
        inserted = 0
        async with self.db.transaction() as conn:
            for order in orders:
                exists = conn.execute(
                    "SELECT 1 FROM orders WHERE platform = ? AND order_id = ?",
                    [order["platform"], order["order_id"]],
                ).fetchone()
                if exists:
                    continue
                conn.execute(
                    """
                    INSERT INTO orders (id, platform, order_id, account_id, order_amount,
                                        commission_amount, conversion_time, status)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        order.get("id") or str(uuid.uuid4()),
                        order["platform"],
                        order["order_id"],
                        order.get("account_id"),
                        Decimal(str(order.get("order_amount", 0))),
                        Decimal(str(order.get("commission_amount", 0))),
                        order["conversion_time"],
                        order.get("status", "pending"),
                    ],
                )
                inserted += 1

        logger.info(f"Orders ingested: {inserted}")
        return inserted
