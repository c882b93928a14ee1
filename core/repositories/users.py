"""Dashboard users and their account grants."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from core.exceptions import ConflictError, NotFoundError
from core.models import User, UserRole
from core.repositories.base import BaseRepository
from core.validators import validate_email

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository):

    async def get(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        row = await self.db.fetchone(f"SELECT {User.COLUMNS} FROM users WHERE id = ?", [user_id])
        return User.from_row(row) if row else None

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive), including the password hash."""
        row = await self.db.fetchone(
            f"SELECT {User.COLUMNS} FROM users WHERE lower(email) = lower(?)", [email]
        )
        return User.from_row(row) if row else None

    async def create(
        self,
        email: str,
        password_hash: str,
        name: Optional[str] = None,
        role: str = UserRole.VIEWER.value,
        avatar: Optional[str] = None,
    ) -> User:
        """
        Create a user.

        Raises:
            ConflictError: If the email is already registered
            ValidationError: If the email is malformed
        """
        email = validate_email(email)
        if await self.get_by_email(email):
            raise ConflictError("User already exists", email)

        new_id = str(uuid.uuid4())
        await self.db.execute(
            """
            INSERT INTO users (id, email, name, password_hash, role, avatar, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [new_id, email, name, password_hash, role, avatar, datetime.now(timezone.utc)],
        )
        logger.info(f"User created: {email} ({role})")
        return await self.get(new_id)

    async def account_ids(self, user_id: str) -> List[str]:
        """IDs of accounts the user is granted."""
        rows = await self.db.fetchall(
            "SELECT account_id FROM user_accounts WHERE user_id = ? ORDER BY account_id",
            [user_id],
        )
        return [row[0] for row in rows]

    async def grant_account(self, user_id: str, account_id: str) -> bool:
        """
        Grant a user access to an account.

        Returns False if the grant already existed.

        Raises:
            NotFoundError: If the user or account does not exist
        """
        if not await self.get(user_id):
            raise NotFoundError("User", user_id)
        if not await self.db.fetchone("SELECT id FROM accounts WHERE id = ?", [account_id]):
            raise NotFoundError("Account", account_id)

        existing = await self.db.fetchone(
            "SELECT 1 FROM user_accounts WHERE user_id = ? AND account_id = ?",
            [user_id, account_id],
        )
        if existing:
            return False

        await self.db.execute(
            "INSERT INTO user_accounts (user_id, account_id) VALUES (?, ?)",
            [user_id, account_id],
        )
        logger.info(f"Granted account {account_id} to user {user_id}")
        return True
