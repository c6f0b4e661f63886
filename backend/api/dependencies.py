"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Process-wide collaborators (identity provider, email
sender, profile cache, seed authenticator) live in the container; services
are built per request around that request's database session.

Tests replace any of these through ``app.dependency_overrides``.
"""

from typing import TYPE_CHECKING, AsyncIterator, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import Settings, get_settings
from shared.database import get_session

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.auth.cache import ProfileCache
    from modules.auth.interfaces import IAuthService, IEmailSender, IIdentityProvider
    from modules.auth.seed import SeedAccountAuthenticator
    from modules.accounts.interfaces import IAccountService
    from modules.enrollment.interfaces import IEnrollmentService


class ServiceContainer:
    """
    Container for process-wide service collaborators.

    Collaborators are created lazily on first access and cached.
    Use reset() to clear them for testing.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._identity: "IIdentityProvider | None" = None
        self._email: "IEmailSender | None" = None
        self._profile_cache: "ProfileCache | None" = None
        self._seed: "SeedAccountAuthenticator | None" = None
        self._seed_resolved = False

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def identity(self) -> "IIdentityProvider":
        """Get the identity provider adapter."""
        if self._identity is None:
            from modules.auth.identity import SupabaseIdentityProvider
            from shared.supabase import get_supabase_client
            self._identity = SupabaseIdentityProvider(get_supabase_client(), self._settings)
        return self._identity

    @property
    def email(self) -> "IEmailSender":
        """Get the email sender."""
        if self._email is None:
            from modules.auth.email import create_email_sender
            self._email = create_email_sender(self._settings)
        return self._email

    @property
    def profile_cache(self) -> "ProfileCache":
        """Get the process-wide profile cache."""
        if self._profile_cache is None:
            from modules.auth.cache import ProfileCache
            self._profile_cache = ProfileCache(ttl_seconds=self._settings.profile_cache_ttl_seconds)
        return self._profile_cache

    @property
    def seed(self) -> "SeedAccountAuthenticator | None":
        """Seed-account authenticator, or None outside fixture environments."""
        if not self._seed_resolved:
            from modules.auth.seed import create_seed_authenticator
            self._seed = create_seed_authenticator(self._settings)
            self._seed_resolved = True
        return self._seed

    def reset(self) -> None:
        """Reset all cached collaborators."""
        self._identity = None
        self._email = None
        self._profile_cache = None
        self._seed = None
        self._seed_resolved = False


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    The next call to get_container() creates a fresh container.
    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency for the per-request database session."""
    async with get_session() as session:
        yield session


def get_identity_provider() -> "IIdentityProvider":
    return get_container().identity


def get_email_sender() -> "IEmailSender":
    return get_container().email


def get_profile_cache() -> "ProfileCache":
    return get_container().profile_cache


def get_seed_authenticator() -> "SeedAccountAuthenticator | None":
    return get_container().seed


def get_auth_service(
    session: AsyncSession = Depends(get_db_session),
    identity: "IIdentityProvider" = Depends(get_identity_provider),
    email: "IEmailSender" = Depends(get_email_sender),
    cache: "ProfileCache" = Depends(get_profile_cache),
    seed: "SeedAccountAuthenticator | None" = Depends(get_seed_authenticator),
) -> "IAuthService":
    """FastAPI dependency for the auth service."""
    from modules.accounts.repository import AccountRepository
    from modules.auth.service import AuthService

    return AuthService(
        accounts=AccountRepository(session),
        identity=identity,
        email_sender=email,
        cache=cache,
        settings=get_settings(),
        seed=seed,
    )


def get_account_service(
    session: AsyncSession = Depends(get_db_session),
    identity: "IIdentityProvider" = Depends(get_identity_provider),
    cache: "ProfileCache" = Depends(get_profile_cache),
) -> "IAccountService":
    """FastAPI dependency for the account service."""
    from modules.accounts.repository import AccountRepository
    from modules.accounts.service import AccountService

    return AccountService(
        accounts=AccountRepository(session),
        identity=identity,
        cache=cache,
        settings=get_settings(),
    )


def get_enrollment_service(
    session: AsyncSession = Depends(get_db_session),
) -> "IEnrollmentService":
    """FastAPI dependency for the enrollment service."""
    from modules.enrollment.service import EnrollmentService

    return EnrollmentService(session, settings=get_settings())
