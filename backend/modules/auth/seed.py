"""
Seed-account authentication.

Fixture accounts created by test-data tooling have no provider password;
they carry a local bcrypt hash instead. This authenticator checks that hash
and mints an access token shaped like a provider token so the rest of the
stack treats the session normally.

It is only constructed when ``enable_seed_accounts`` is on and the
environment is not production. Seed sessions cannot be refreshed.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from shared.config import Settings

from modules.accounts.entities import Account

from .identity import JWT_ALGORITHM, JWT_AUDIENCE
from .models import ProviderSession
from .passwords import PasswordHasher

logger = logging.getLogger(__name__)

SEED_TOKEN_TTL_SECONDS = 3600


class SeedAccountAuthenticator:
    """Local password check and token minting for seed accounts."""

    def __init__(self, settings: Settings, hasher: Optional[PasswordHasher] = None):
        if not settings.seed_accounts_allowed:
            raise RuntimeError("Seed accounts are disabled in this environment")
        self._secret = settings.supabase_jwt_secret
        self._hasher = hasher or PasswordHasher()

    def verify_password(self, account: Account, password: str) -> bool:
        if not account.is_seed_account:
            return False
        return self._hasher.verify(password, account.password_hash or "")

    def hash_password(self, password: str) -> str:
        return self._hasher.hash(password)

    def issue_session(self, account: Account) -> ProviderSession:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": account.uid,
            "email": account.email,
            "aud": JWT_AUDIENCE,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=SEED_TOKEN_TTL_SECONDS)).timestamp()),
            "app_metadata": {"role": account.role.value, "seed": True},
            "user_metadata": {"email_verified": bool(account.email_verified)},
        }
        token = jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)
        logger.warning(f"Issued seed-account session for {account.email}")

        return ProviderSession(
            access_token=token,
            refresh_token=f"seed-{secrets.token_urlsafe(24)}",
            expires_in=SEED_TOKEN_TTL_SECONDS,
            user_id=account.uid,
        )


def hash_seed_password(password: str) -> str:
    """Hash a fixture password for storage on a seed account row."""
    return PasswordHasher().hash(password)


def create_seed_authenticator(settings: Settings) -> Optional[SeedAccountAuthenticator]:
    if not settings.seed_accounts_allowed:
        return None
    logger.warning("Seed-account login is enabled; never enable this in production")
    return SeedAccountAuthenticator(settings)
