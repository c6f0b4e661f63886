"""
Authentication module.

Orchestrates the identity provider and local accounts: registration,
sessions, passwords, role claims and the profile cache.

Public API:
- IAuthService: Interface for auth operations
- IIdentityProvider / IEmailSender: External collaborator seams
- UserProfile, LoginResponse: Profile and session shapes
- Auth exceptions: InvalidTokenError, AccountInactiveError, etc.
"""

from .interfaces import IAuthService, IEmailSender, IIdentityProvider
from .models import LoginResponse, RegisterRequest, TokenClaims, UserProfile
from .exceptions import (
    AccountInactiveError,
    AuthNotConfiguredError,
    EmailAlreadyExistsError,
    ExpiredTokenError,
    IdentityProviderError,
    InsufficientPermissionsError,
    InvalidCredentialsError,
    InvalidPasswordError,
    InvalidTokenError,
    MissingTokenError,
    RoleNotAssignedError,
    UserNotFoundError,
    WeakPasswordError,
)

__all__ = [
    # Interfaces
    "IAuthService",
    "IEmailSender",
    "IIdentityProvider",
    # Models
    "LoginResponse",
    "RegisterRequest",
    "TokenClaims",
    "UserProfile",
    # Exceptions
    "AccountInactiveError",
    "AuthNotConfiguredError",
    "EmailAlreadyExistsError",
    "ExpiredTokenError",
    "IdentityProviderError",
    "InsufficientPermissionsError",
    "InvalidCredentialsError",
    "InvalidPasswordError",
    "InvalidTokenError",
    "MissingTokenError",
    "RoleNotAssignedError",
    "UserNotFoundError",
    "WeakPasswordError",
]
