"""
Authentication module interfaces.

Other modules should depend on IAuthService, not the concrete implementation.
The identity provider and email sender are seams as well, so the service
can be exercised against in-memory fakes.
"""

from typing import Protocol, Optional, runtime_checkable

from shared.models import AuthenticatedUser, UserRole

from .models import (
    LoginResponse,
    ProviderSession,
    ProviderUser,
    RegisterRequest,
    TokenClaims,
    UserProfile,
)


@runtime_checkable
class IIdentityProvider(Protocol):
    """
    External identity provider: canonical credentials and session tokens.

    Implementations translate their own errors into the auth exceptions
    (EmailAlreadyExistsError, WeakPasswordError, UserNotFoundError,
    RateLimitError, IdentityProviderError).
    """

    async def create_user(
        self,
        email: str,
        password: str,
        role: UserRole,
        display_name: str,
        phone: Optional[str] = None,
    ) -> ProviderUser:
        ...

    async def delete_user(self, uid: str) -> None:
        ...

    async def get_user(self, uid: str) -> ProviderUser:
        ...

    async def sign_in_with_password(self, email: str, password: str) -> ProviderSession:
        """
        Raises:
            InvalidCredentialsError: If the email/password pair is rejected.
        """
        ...

    async def refresh_session(self, refresh_token: str) -> ProviderSession:
        """
        Raises:
            InvalidTokenError: If the refresh token is rejected.
        """
        ...

    async def sign_out(self, access_token: str) -> None:
        """Revoke every refresh token of the session's user."""
        ...

    async def set_role_claim(self, uid: str, role: UserRole) -> None:
        ...

    async def set_disabled(self, uid: str, disabled: bool) -> None:
        ...

    async def update_password(self, uid: str, password: str) -> None:
        ...

    async def generate_password_reset_link(self, email: str) -> str:
        ...

    async def generate_email_verification_link(self, email: str) -> str:
        ...

    def verify_access_token(self, token: str) -> TokenClaims:
        """
        Raises:
            ExpiredTokenError: If the token has expired.
            InvalidTokenError: If the signature or audience is wrong.
        """
        ...


@runtime_checkable
class IEmailSender(Protocol):
    """Outbound email. Callers treat every send as best-effort."""

    async def send_email_verification(self, to: str, name: str, link: str) -> None:
        ...

    async def send_password_reset(self, to: str, name: str, link: str) -> None:
        ...

    async def send_password_changed(self, to: str, name: str) -> None:
        ...


@runtime_checkable
class IAuthService(Protocol):
    """
    Interface for authentication and session operations.

    This protocol defines the contract that the auth module exposes
    to routes and other modules.
    """

    async def register(self, request: RegisterRequest) -> LoginResponse:
        """
        Create the provider user and the local account as one unit.

        Raises:
            ValidationError: Malformed role, weak password, terms not accepted.
            EmailAlreadyExistsError: Email taken locally or in the provider.
            InternalError: Failure after the provider user was rolled back.
        """
        ...

    async def login(self, email: str, password: str) -> LoginResponse:
        """
        Raises:
            InvalidCredentialsError: Unknown email or wrong password.
            AccountInactiveError: The account is deactivated.
        """
        ...

    async def refresh_token(self, refresh_token: str) -> LoginResponse:
        ...

    async def logout(self, uid: str, access_token: Optional[str] = None) -> bool:
        ...

    async def send_password_reset_email(self, email: str) -> bool:
        """Always True, whether or not the email belongs to an account."""
        ...

    async def change_password(self, uid: str, current_password: str, new_password: str) -> bool:
        """
        Raises:
            InvalidPasswordError: The current password does not match.
        """
        ...

    async def send_verification_email(self, uid: str) -> bool:
        ...

    async def get_profile(self, uid: str) -> UserProfile:
        """
        Raises:
            UserNotFoundError: No account for this UID.
        """
        ...

    async def update_role(self, uid: str, role: str, admin_uid: str) -> UserProfile:
        ...

    async def deactivate_user(self, uid: str, admin_uid: str) -> UserProfile:
        ...

    async def reactivate_user(self, uid: str, admin_uid: str) -> UserProfile:
        ...

    async def validate_token(self, token: Optional[str]) -> AuthenticatedUser:
        """
        Validate a bearer token and return the authenticated user.

        Raises:
            MissingTokenError, ExpiredTokenError, InvalidTokenError
        """
        ...
