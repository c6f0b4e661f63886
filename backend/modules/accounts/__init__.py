"""
Accounts module.

Local account records paired 1:1 with identity-provider users: profile
updates, completion tracking and admin listing and deletion.

Public API:
- IAccountService: Interface for account operations
- Account: ORM entity
- AccountRepository: Data access by UID and email
"""

from .entities import Account
from .interfaces import IAccountService
from .models import AccountListResponse, AccountProfileUpdate, AccountSummary
from .repository import AccountRepository

__all__ = [
    "Account",
    "AccountRepository",
    "IAccountService",
    "AccountListResponse",
    "AccountProfileUpdate",
    "AccountSummary",
]
