"""
Accounts module interface.
"""

from typing import Protocol, Optional, runtime_checkable

from modules.auth.models import UserProfile

from .models import AccountListResponse, AccountProfileUpdate


@runtime_checkable
class IAccountService(Protocol):
    """Profile maintenance and admin account management."""

    async def update_profile(self, uid: str, update: AccountProfileUpdate) -> UserProfile:
        """
        Apply a partial profile update and recompute completion.

        Raises:
            UserNotFoundError: No account for this UID.
        """
        ...

    async def list_accounts(
        self,
        page: int,
        page_size: int,
        role: Optional[str] = None,
    ) -> AccountListResponse:
        ...

    async def delete_account(self, uid: str, admin_uid: str) -> bool:
        """
        Soft delete the account and disable the provider user.

        Raises:
            UserNotFoundError: No account for this UID.
            ValidationError: An admin tried to delete their own account.
        """
        ...
