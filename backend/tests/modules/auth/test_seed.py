import pytest

from modules.auth.identity import SupabaseIdentityProvider
from modules.auth.passwords import PasswordHasher
from modules.auth.seed import SeedAccountAuthenticator, create_seed_authenticator, hash_seed_password
from shared.models import UserRole
from unittest.mock import MagicMock

from tests.conftest import STRONG_PASSWORD, make_settings
from tests.fakes import make_account


@pytest.fixture
def seed():
    return SeedAccountAuthenticator(make_settings(enable_seed_accounts=True), hasher=PasswordHasher(rounds=4))


class TestSeedAuthenticator:
    def test_refused_when_disabled(self):
        with pytest.raises(RuntimeError):
            SeedAccountAuthenticator(make_settings())

    def test_refused_in_production(self):
        """Seed login never runs in production, even when switched on."""
        settings = make_settings(enable_seed_accounts=True, environment="production")
        with pytest.raises(RuntimeError):
            SeedAccountAuthenticator(settings)
        assert create_seed_authenticator(settings) is None

    def test_factory(self):
        assert create_seed_authenticator(make_settings()) is None
        assert isinstance(create_seed_authenticator(make_settings(enable_seed_accounts=True)), SeedAccountAuthenticator)

    def test_verify_password(self, seed):
        account = make_account(
            "seed-1", "seed@example.com", is_seed_account=True, password_hash=seed.hash_password(STRONG_PASSWORD)
        )
        assert seed.verify_password(account, STRONG_PASSWORD) is True
        assert seed.verify_password(account, "Wr0ng!pass") is False

    def test_fixture_hash_verifies(self, seed):
        """Hashes written for seed rows carry their own cost and verify with any hasher."""
        account = make_account(
            "seed-2", "staff@seed.local", is_seed_account=True, password_hash=hash_seed_password(STRONG_PASSWORD)
        )
        assert seed.verify_password(account, STRONG_PASSWORD) is True
        assert seed.verify_password(account, "Wr0ng!pass") is False

    def test_ordinary_account_never_verifies(self, seed):
        account = make_account(
            "uid-1", "parent@example.com", password_hash=seed.hash_password(STRONG_PASSWORD)
        )
        assert seed.verify_password(account, STRONG_PASSWORD) is False

    def test_issued_token_validates(self, seed):
        """Seed sessions carry a token the provider verifier accepts."""
        account = make_account("seed-1", "teacher@seed.local", role=UserRole.TEACHER, is_seed_account=True)
        session = seed.issue_session(account)

        verifier = SupabaseIdentityProvider(MagicMock(), make_settings())
        claims = verifier.verify_access_token(session.access_token)

        assert claims.sub == "seed-1"
        assert claims.role_claim == "Teacher"
        assert session.refresh_token.startswith("seed-")
        assert session.user_id == "seed-1"
