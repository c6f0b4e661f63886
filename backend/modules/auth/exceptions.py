"""
Authentication module exceptions.

These exceptions are raised by the auth module and can be caught
by API error handlers to return appropriate HTTP responses.
"""

from typing import Iterable, Optional

from shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)


class InvalidTokenError(AuthenticationError):
    """Raised when a token is invalid, malformed or carries an unknown role."""

    def __init__(self, message: str = "Invalid authentication token"):
        super().__init__(message, code="INVALID_TOKEN")


class ExpiredTokenError(AuthenticationError):
    """Raised when a token has expired."""

    def __init__(self, message: str = "Authentication token has expired"):
        super().__init__(message, code="TOKEN_EXPIRED")


class AuthNotConfiguredError(AuthenticationError):
    """Raised when the server has no JWT secret to verify tokens with."""

    def __init__(self, message: str = "Server authentication not configured"):
        super().__init__(message, code="AUTH_NOT_CONFIGURED")


class MissingTokenError(AuthenticationError):
    """Raised when no authentication token is provided."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="MISSING_TOKEN")


class InvalidCredentialsError(AuthenticationError):
    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, code="INVALID_CREDENTIALS")


class UserNotFoundError(NotFoundError):
    """Raised when no account exists for a provider UID."""

    def __init__(self, user_id: str):
        super().__init__(
            f"User not found: {user_id}",
            code="USER_NOT_FOUND",
            details={"user_id": user_id},
        )


class AccountInactiveError(AuthorizationError):
    def __init__(self, message: str = "Account is deactivated. Please contact support."):
        super().__init__(message, code="ACCOUNT_INACTIVE")


class InsufficientPermissionsError(AuthorizationError):
    """Raised when the caller's role is not in an endpoint's allow-list."""

    def __init__(self, required_roles: Iterable[str], user_role: str):
        required = ", ".join(required_roles)
        super().__init__(
            f"This resource requires one of the following roles: {required}",
            code="INSUFFICIENT_PERMISSIONS",
            details={"required_roles": required, "user_role": user_role},
        )


class RoleNotAssignedError(AuthorizationError):
    """Raised when a valid session carries no role claim."""

    def __init__(self):
        super().__init__(
            "User role not assigned. Please complete your registration.",
            code="ROLE_NOT_ASSIGNED",
        )


class EmailAlreadyExistsError(ConflictError):
    def __init__(self, email: str):
        super().__init__(
            f"An account with email {email} already exists",
            code="EMAIL_EXISTS",
            details={"email": email},
        )


class WeakPasswordError(ValidationError):
    def __init__(self, message: str = "Password does not meet the strength requirements"):
        super().__init__(message, code="WEAK_PASSWORD")


class InvalidPasswordError(ValidationError):
    """Raised when the current password does not match on password change."""

    def __init__(self, message: str = "Current password is incorrect"):
        super().__init__(message, code="INVALID_PASSWORD")


class IdentityProviderError(ExternalServiceError):
    """Raised for identity provider failures that have no better translation."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, service="supabase", code="IDENTITY_PROVIDER_ERROR", details=details)


class EmailDeliveryError(ExternalServiceError):
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, service="smtp", code="EMAIL_DELIVERY_FAILED", details=details)
