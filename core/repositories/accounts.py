"""Ad account CRUD."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from core.exceptions import ConflictError, NotFoundError
from core.filters import AccountFilter
from core.models import Account, AccountStatus, serialize_config
from core.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class AccountRepository(BaseRepository):

    async def find_many(self, filters: AccountFilter = AccountFilter()) -> List[Account]:
        """List accounts ordered by platform, then name."""
        where, params = filters.to_sql()
        rows = await self.db.fetchall(
            f"SELECT {Account.COLUMNS} FROM accounts {where} "
            f"ORDER BY platform ASC, account_name ASC",
            params,
        )
        return [Account.from_row(row) for row in rows]

    async def count(self, filters: AccountFilter = AccountFilter()) -> int:
        where, params = filters.to_sql()
        row = await self.db.fetchone(f"SELECT COUNT(*) FROM accounts {where}", params)
        return row[0] if row else 0

    async def get(self, account_id: str) -> Optional[Account]:
        """Get account by internal ID."""
        row = await self.db.fetchone(
            f"SELECT {Account.COLUMNS} FROM accounts WHERE id = ?", [account_id]
        )
        return Account.from_row(row) if row else None

    async def require(self, account_id: str) -> Account:
        """Get account or raise NotFoundError."""
        account = await self.get(account_id)
        if account is None:
            raise NotFoundError("Account", account_id)
        return account

    async def find_by_platform_account(self, platform: str, external_id: str) -> Optional[Account]:
        """Look up by the unique (platform, account id) pair."""
        row = await self.db.fetchone(
            f"SELECT {Account.COLUMNS} FROM accounts WHERE platform = ? AND account_id = ?",
            [platform, external_id],
        )
        return Account.from_row(row) if row else None

    async def create(
        self,
        platform: str,
        account_id: str,
        account_name: str,
        currency: Optional[str] = None,
        status: Optional[str] = None,
        config: Any = None,
    ) -> Account:
        """
        Create an account.

        Raises:
            ConflictError: If (platform, account_id) already exists
        """
        if await self.find_by_platform_account(platform, account_id):
            raise ConflictError("Account already exists", f"{platform}/{account_id}")

        new_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        await self.db.execute(
            """
            INSERT INTO accounts (id, platform, account_id, account_name, currency,
                                  status, config, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                new_id, platform, account_id, account_name,
                currency or "USD",
                status or AccountStatus.ACTIVE.value,
                serialize_config(config),
                now, now,
            ],
        )
        logger.info(f"Account created: {platform}/{account_id} ({new_id})")
        return await self.require(new_id)

    async def update(
        self,
        account_id: str,
        account_name: Optional[str] = None,
        currency: Optional[str] = None,
        status: Optional[str] = None,
        config: Any = None,
    ) -> Account:
        """
        Partially update an account. Omitted fields keep their stored values.

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the config has no strict JSON form
        """
        existing = await self.require(account_id)

        stored_config = existing.config if config is None else serialize_config(config)
        await self.db.execute(
            """
            UPDATE accounts
            SET account_name = ?, currency = ?, status = ?, config = ?, updated_at = ?
            WHERE id = ?
            """,
            [
                account_name or existing.account_name,
                currency or existing.currency,
                status or existing.status,
                stored_config,
                datetime.now(timezone.utc),
                account_id,
            ],
        )
        return await self.require(account_id)

    async def delete(self, account_id: str) -> None:
        """
        Delete an account with its campaigns, their daily rows and user grants.

        Orders keep their account reference as historical data.

        Raises:
            NotFoundError: If the account does not exist
        """
        await self.require(account_id)

        async with self.db.transaction() as conn:
            conn.execute(
                "DELETE FROM campaign_daily WHERE campaign_id IN "
                "(SELECT id FROM campaigns WHERE account_id = ?)",
                [account_id],
            )
            conn.execute("DELETE FROM campaigns WHERE account_id = ?", [account_id])
            conn.execute("DELETE FROM user_accounts WHERE account_id = ?", [account_id])
            conn.execute("DELETE FROM accounts WHERE id = ?", [account_id])

        logger.info(f"Account deleted: {account_id}")
