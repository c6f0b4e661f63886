"""
Accounts module data models.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from pydantic import BaseModel, Field

from shared.models import UserRole

from modules.auth.models import NAME_PATTERN, PHONE_PATTERN

if TYPE_CHECKING:
    from .entities import Account


class AccountProfileUpdate(BaseModel):
    """
    Partial profile update; only fields present in the request change.
    """

    first_name: Optional[str] = Field(None, min_length=1, max_length=50, pattern=NAME_PATTERN)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50, pattern=NAME_PATTERN)
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN)

    address_line1: Optional[str] = Field(None, max_length=200)
    address_line2: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)

    emergency_contact_name: Optional[str] = Field(None, max_length=100)
    emergency_contact_phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    relationship_to_child: Optional[str] = Field(None, max_length=50)

    accept_terms: Optional[bool] = None


class AccountSummary(BaseModel):
    """Row in the admin account listing."""

    uid: str
    email: str
    full_name: str
    role: UserRole
    is_active: bool
    email_verified: bool
    profile_completion_percentage: int
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @classmethod
    def from_account(cls, account: "Account") -> "AccountSummary":
        return cls(
            uid=account.uid,
            email=account.email,
            full_name=account.full_name,
            role=account.role,
            is_active=bool(account.is_active),
            email_verified=bool(account.email_verified),
            profile_completion_percentage=account.profile_completion_percentage or 0,
            created_at=account.created_at,
            last_login_at=account.last_login_at,
        )


class AccountListResponse(BaseModel):
    items: list[AccountSummary]
    total: int
    page: int
    page_size: int
