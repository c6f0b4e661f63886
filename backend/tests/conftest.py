"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules:
an in-memory SQLite store, in-memory fakes for the identity provider and
email sender, and helpers for minting access tokens.
"""

import pytest
import pytest_asyncio
from datetime import datetime, timezone, timedelta
from typing import Optional
import jwt  # PyJWT
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from shared.config import Settings, get_settings
from shared.orm import Base

import modules.accounts.entities  # noqa: F401
import modules.enrollment.entities  # noqa: F401

# Test JWT secret (only for testing)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"

# Meets the password policy
STRONG_PASSWORD = "Str0ng!Pass"


def create_test_token(
    user_id: str = "test-user-123",
    email: str = "test@example.com",
    role: Optional[str] = "Parent",
    expired: bool = False,
    secret: str = TEST_JWT_SECRET,
    audience: str = "authenticated",
) -> str:
    """
    Create a test access token shaped like a Supabase JWT.

    Args:
        user_id: Provider UID to include as the subject
        email: Email to include in the token
        role: Value of the app_metadata.role claim; None omits the claim
        expired: If True, creates an expired token

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    exp = now - timedelta(hours=1) if expired else now + timedelta(hours=1)

    payload = {
        "sub": user_id,
        "email": email,
        "aud": audience,
        "role": "authenticated",
        "exp": int(exp.timestamp()),
        "iat": int(now.timestamp()),
        "app_metadata": {"role": role} if role is not None else {},
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def make_settings(**overrides) -> Settings:
    values = {
        "environment": "test",
        "supabase_url": "https://example.supabase.co",
        "supabase_anon_key": "anon-key",
        "supabase_service_role_key": "service-role-key",
        "supabase_jwt_secret": TEST_JWT_SECRET,
        "database_url": "sqlite+aiosqlite:///:memory:",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset cached settings before and after each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(sessionmaker):
    async with sessionmaker() as session:
        yield session


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return "test-user-123"


@pytest.fixture
def test_user_email() -> str:
    """Provide a consistent test user email."""
    return "test@example.com"


@pytest.fixture
def auth_token(test_user_id: str, test_user_email: str) -> str:
    """Create a valid parent token for testing."""
    return create_test_token(user_id=test_user_id, email=test_user_email)


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers with a valid token."""
    return {"Authorization": f"Bearer {auth_token}"}


class ApiHarness:
    """
    The real application with faked external collaborators.

    The lifespan runs against an in-memory SQLite store; ``run`` executes a
    coroutine function on the client's event loop for direct data setup.
    """

    def __init__(self, client, identity, email, cache):
        self.client = client
        self.identity = identity
        self.email = email
        self.cache = cache

    def run(self, fn, *args):
        return self.client.portal.call(fn, *args)

    def add_account(self, account):
        from modules.accounts.repository import AccountRepository
        from shared.database import get_session

        async def _add():
            async with get_session() as session:
                await AccountRepository(session).add(account)
            return account

        return self.run(_add)

    def get_account(self, uid: str):
        from modules.accounts.repository import AccountRepository
        from shared.database import get_session

        async def _get():
            async with get_session() as session:
                return await AccountRepository(session).get_by_uid(uid)

        return self.run(_get)

    @staticmethod
    def headers(user_id: str = "test-user-123", email: str = "test@example.com", role: Optional[str] = "Parent"):
        token = create_test_token(user_id=user_id, email=email, role=role)
        return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def harness(monkeypatch):
    """Application client with fakes for the identity provider, email and cache."""
    from fastapi.testclient import TestClient

    from api.app import create_app
    from api.dependencies import (
        get_email_sender,
        get_identity_provider,
        get_profile_cache,
        get_seed_authenticator,
        reset_container,
    )
    from api.middleware.rate_limit import limiter
    from modules.auth.cache import ProfileCache
    from shared.database import create_all

    from tests.fakes import FakeIdentityProvider, RecordingEmailSender

    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("SUPABASE_URL", "")
    monkeypatch.setenv("SUPABASE_JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setenv("ENABLE_SEED_ACCOUNTS", "false")
    get_settings.cache_clear()
    reset_container()
    limiter.reset()

    identity = FakeIdentityProvider()
    email = RecordingEmailSender()
    cache = ProfileCache()

    app = create_app()
    app.dependency_overrides[get_identity_provider] = lambda: identity
    app.dependency_overrides[get_email_sender] = lambda: email
    app.dependency_overrides[get_profile_cache] = lambda: cache
    app.dependency_overrides[get_seed_authenticator] = lambda: None

    with TestClient(app, raise_server_exceptions=False) as client:
        client.portal.call(create_all)
        yield ApiHarness(client, identity, email, cache)

    reset_container()
