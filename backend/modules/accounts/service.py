"""
Account service implementation.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from shared.config import Settings
from shared.exceptions import InternalError, PreschoolError, ValidationError
from shared.models import UserRole
from shared.orm import utcnow

from modules.auth.cache import ProfileCache
from modules.auth.exceptions import UserNotFoundError
from modules.auth.interfaces import IIdentityProvider
from modules.auth.models import UserProfile

from .entities import Account
from .interfaces import IAccountService
from .models import AccountListResponse, AccountProfileUpdate, AccountSummary
from .repository import AccountRepository

logger = logging.getLogger(__name__)


class AccountService(IAccountService):
    """Profile updates for the account owner and account management for admins."""

    def __init__(
        self,
        accounts: AccountRepository,
        identity: IIdentityProvider,
        cache: ProfileCache,
        settings: Settings,
    ):
        self._accounts = accounts
        self._identity = identity
        self._cache = cache
        self._settings = settings

    async def _require_account(self, uid: str) -> Account:
        account = await self._accounts.get_by_uid(uid)
        if account is None:
            raise UserNotFoundError(uid)
        return account

    async def update_profile(self, uid: str, update: AccountProfileUpdate) -> UserProfile:
        account = await self._require_account(uid)
        changes = update.model_dump(exclude_unset=True)

        accept_terms = changes.pop("accept_terms", None)
        if accept_terms and not account.accepted_terms:
            account.accepted_terms = True
            account.terms_accepted_at = utcnow()

        if "phone_number" in changes and changes["phone_number"] != account.phone_number:
            account.phone_verified = False

        for field, value in changes.items():
            setattr(account, field, value.strip() if isinstance(value, str) else value)

        account.refresh_profile_completion()
        account.updated_by = uid
        await self._accounts.update(account)
        await self._accounts.save_changes()
        self._cache.evict(uid)

        logger.info(
            f"Profile updated for {uid}: fields={sorted(changes)}, "
            f"completion={account.profile_completion_percentage}%"
        )
        return UserProfile.from_account(account, self._settings.enrollment_profile_threshold)

    async def list_accounts(
        self,
        page: int,
        page_size: int,
        role: Optional[str] = None,
    ) -> AccountListResponse:
        role_filter = UserRole.parse(role) if role else None
        accounts, total = await self._accounts.list_by_role(page, page_size, role_filter)
        return AccountListResponse(
            items=[AccountSummary.from_account(a) for a in accounts],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def delete_account(self, uid: str, admin_uid: str) -> bool:
        if uid == admin_uid:
            raise ValidationError("Admins cannot delete their own account", code="SELF_DELETE")

        account = await self._require_account(uid)
        await self._identity.set_disabled(uid, True)

        account.is_active = False
        try:
            await self._accounts.delete(account, deleted_by=admin_uid)
            await self._accounts.save_changes()
        except SQLAlchemyError as e:
            logger.error(f"Soft delete of {uid} failed, re-enabling provider user: {e}")
            try:
                await self._identity.set_disabled(uid, False)
            except PreschoolError as revert_error:
                logger.critical(f"Provider user {uid} left disabled after failed delete: {revert_error.message}")
            raise InternalError("Failed to delete account") from e

        self._cache.evict(uid)
        logger.info(f"Account {uid} soft-deleted by {admin_uid}")
        return True
