"""
Database client and base repository.

`Database` owns the single DuckDB connection and the schema. It is built
once from configuration at startup, connected in the app lifespan and
closed on shutdown. Every repository receives it explicitly.
"""
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Any, Dict

import duckdb

from core.observability import get_logger

logger = get_logger(__name__)

MEMORY_DB = ":memory:"


def date_in_timezone(column: str) -> str:
    """SQL for the calendar day of a TIMESTAMPTZ column in a time zone given as parameter.

    Orders are stored in UTC; reporting days follow the configured zone so
    daily buckets match what users see in the dashboard.
    """
    return f"CAST(timezone(CAST(? AS VARCHAR), {column}) AS DATE)"


SCHEMA_SQL = """
-- Ad platform accounts
CREATE TABLE IF NOT EXISTS accounts (
    id VARCHAR PRIMARY KEY,
    platform VARCHAR NOT NULL,
    account_id VARCHAR NOT NULL,
    account_name VARCHAR NOT NULL,
    currency VARCHAR NOT NULL DEFAULT 'USD',
    status VARCHAR NOT NULL DEFAULT 'active',
    config VARCHAR,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (platform, account_id)
);

-- Campaigns (one account has many)
CREATE TABLE IF NOT EXISTS campaigns (
    id VARCHAR PRIMARY KEY,
    account_id VARCHAR NOT NULL,
    campaign_id VARCHAR NOT NULL,
    campaign_name VARCHAR NOT NULL,
    status VARCHAR NOT NULL DEFAULT 'active',
    budget DECIMAL(14, 2),
    created_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (account_id, campaign_id)
);

-- Daily delivery metrics per campaign (ingested, read-only here)
CREATE TABLE IF NOT EXISTS campaign_daily (
    campaign_id VARCHAR NOT NULL,
    date DATE NOT NULL,
    impressions BIGINT DEFAULT 0,
    clicks BIGINT DEFAULT 0,
    cost DECIMAL(14, 2) DEFAULT 0,
    conversions INTEGER DEFAULT 0,
    revenue DECIMAL(14, 2) DEFAULT 0,
    PRIMARY KEY (campaign_id, date)
);

-- Attributed orders (ingested, read-only here)
CREATE TABLE IF NOT EXISTS orders (
    id VARCHAR PRIMARY KEY,
    platform VARCHAR NOT NULL,
    order_id VARCHAR NOT NULL,
    account_id VARCHAR,
    order_amount DECIMAL(14, 2) NOT NULL DEFAULT 0,
    commission_amount DECIMAL(14, 2) NOT NULL DEFAULT 0,
    conversion_time TIMESTAMP WITH TIME ZONE NOT NULL,
    status VARCHAR NOT NULL DEFAULT 'pending',
    created_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (platform, order_id)
);

CREATE INDEX IF NOT EXISTS idx_orders_conversion_time ON orders (conversion_time);

-- Dashboard users
CREATE TABLE IF NOT EXISTS users (
    id VARCHAR PRIMARY KEY,
    email VARCHAR NOT NULL UNIQUE,
    name VARCHAR,
    password_hash VARCHAR NOT NULL,
    role VARCHAR NOT NULL DEFAULT 'viewer',
    avatar VARCHAR,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
);

-- Which accounts a user may see on the dashboard
CREATE TABLE IF NOT EXISTS user_accounts (
    user_id VARCHAR NOT NULL,
    account_id VARCHAR NOT NULL,
    PRIMARY KEY (user_id, account_id)
);
"""


class Database:
    """
    DuckDB client with connection management.

    Usage:
        db = Database("data/dashboard.duckdb")
        await db.connect()
        rows = await db.fetchall("SELECT * FROM accounts WHERE platform = ?", ["google"])
        await db.close()
    """

    def __init__(self, path: str = MEMORY_DB):
        self.path = path
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    async def connect(self) -> None:
        """Open the connection and create the schema if needed."""
        async with self._lock:
            if self._connection is not None:
                return
            if self.path != MEMORY_DB:
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            self._connection = duckdb.connect(self.path)
            self._connection.execute(SCHEMA_SQL)
            logger.info(f"DuckDB connected: {self.path}")

    async def close(self) -> None:
        """Close database connection."""
        async with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None
                logger.info("DuckDB connection closed")

    @asynccontextmanager
    async def connection(self):
        """Get database connection, connecting lazily."""
        if self._connection is None:
            await self.connect()
        yield self._connection

    @asynccontextmanager
    async def transaction(self):
        """Run several statements atomically."""
        async with self.connection() as conn:
            conn.begin()
            try:
                yield conn
            except Exception:
                conn.rollback()
                raise
            conn.commit()

    async def execute(self, sql: str, params: list = None) -> Any:
        """Execute SQL query and return result."""
        async with self.connection() as conn:
            if params:
                return conn.execute(sql, params)
            return conn.execute(sql)

    async def fetchone(self, sql: str, params: list = None) -> Optional[tuple]:
        """Execute query and fetch one result."""
        result = await self.execute(sql, params)
        return result.fetchone()

    async def fetchall(self, sql: str, params: list = None) -> list:
        """Execute query and fetch all results."""
        result = await self.execute(sql, params)
        return result.fetchall()

    async def get_stats(self) -> Dict[str, Any]:
        """Row counts per table, used by the health endpoint."""
        stats = {}
        for table in ("accounts", "campaigns", "orders", "users"):
            row = await self.fetchone(f"SELECT COUNT(*) FROM {table}")
            stats[table] = row[0] if row else 0

        db_size_mb = 0.0
        if self.path != MEMORY_DB and Path(self.path).exists():
            db_size_mb = round(Path(self.path).stat().st_size / (1024 * 1024), 2)
        stats["db_size_mb"] = db_size_mb
        return stats


class BaseRepository:
    """
    Base class for domain repositories.

    Usage:
        class AccountRepository(BaseRepository):
            async def get(self, account_id: str):
                row = await self.db.fetchone("SELECT ... WHERE id = ?", [account_id])
    """

    def __init__(self, db: Database):
        self.db = db
