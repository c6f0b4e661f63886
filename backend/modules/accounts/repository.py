"""
Account data access.
"""

from typing import Optional

from sqlalchemy import func

from shared.models import UserRole
from shared.repository import BaseRepository

from .entities import Account


class AccountRepository(BaseRepository[Account]):
    """Repository for accounts, keyed by identity-provider UID."""

    model = Account

    async def get_by_uid(self, uid: str) -> Optional[Account]:
        return await self.find_single(Account.uid == uid)

    async def get_by_email(self, email: str) -> Optional[Account]:
        return await self.find_single(func.lower(Account.email) == email.strip().lower())

    async def email_exists(self, email: str, include_deleted: bool = True) -> bool:
        """
        Check whether an email is taken.

        Soft-deleted accounts still hold their email by default, matching
        the unique constraint on the column.
        """
        condition = func.lower(Account.email) == email.strip().lower()
        if not include_deleted:
            return await self.any(condition)

        stmt = self.query_with_deleted().where(condition).limit(1)
        return bool(await self.fetch(stmt))

    async def list_by_role(
        self,
        page_number: int,
        page_size: int,
        role: Optional[UserRole] = None,
    ) -> tuple[list[Account], int]:
        return await self.get_paged(
            page_number,
            page_size,
            filter=Account.role == role if role is not None else None,
        )
