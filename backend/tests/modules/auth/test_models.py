import pytest
from pydantic import ValidationError

from modules.auth.models import (
    ChangePasswordRequest,
    LoginResponse,
    RegisterRequest,
    TokenClaims,
    UserProfile,
)
from shared.models import UserRole

from tests.conftest import STRONG_PASSWORD
from tests.fakes import complete_profile, make_account


def _register(**overrides):
    values = dict(
        email="parent1@example.com",
        password=STRONG_PASSWORD,
        first_name="Mary-Jane",
        last_name="O'Neil",
        role="Parent",
        accept_terms=True,
    )
    values.update(overrides)
    return RegisterRequest(**values)


class TestRegisterRequest:
    def test_valid_request(self):
        request = _register(phone_number="+15551234567")
        assert request.first_name == "Mary-Jane"
        assert request.phone_number == "+15551234567"

    @pytest.mark.parametrize("name", ["", "R2D2", "Bob!", "x" * 51])
    def test_rejects_bad_names(self, name):
        with pytest.raises(ValidationError):
            _register(first_name=name)

    @pytest.mark.parametrize("phone", ["5551234567", "+0123", "+1 555 123"])
    def test_rejects_non_e164_phone(self, phone):
        with pytest.raises(ValidationError):
            _register(phone_number=phone)

    def test_rejects_bad_email(self):
        with pytest.raises(ValidationError):
            _register(email="not-an-email")

    def test_password_max_length(self):
        with pytest.raises(ValidationError):
            _register(password="Aa1!" * 26)

    def test_role_is_not_parsed_by_model(self):
        """The service decides what roles exist."""
        assert _register(role="Superuser").role == "Superuser"


class TestChangePasswordRequest:
    def test_current_password_required(self):
        with pytest.raises(ValidationError):
            ChangePasswordRequest(current_password="", new_password=STRONG_PASSWORD)


class TestTokenClaims:
    def test_parse_supabase_payload(self):
        """Should parse a Supabase access token payload."""
        claims = TokenClaims(
            sub="user-123",
            email="test@example.com",
            exp=1704067200,
            iat=1704063600,
            aud="authenticated",
            role="authenticated",
            app_metadata={"provider": "email", "role": "Staff"},
        )
        assert claims.sub == "user-123"
        assert claims.role_claim == "Staff"
        assert claims.email_verified is False

    def test_missing_role_claim(self):
        claims = TokenClaims(sub="u", exp=1, iat=0)
        assert claims.role_claim is None

    def test_email_verified_from_confirmation(self):
        claims = TokenClaims(sub="u", exp=1, iat=0, email_confirmed_at="2024-01-01T00:00:00Z")
        assert claims.email_verified is True

    def test_email_verified_from_user_metadata(self):
        claims = TokenClaims(sub="u", exp=1, iat=0, user_metadata={"email_verified": True})
        assert claims.email_verified is True

    def test_requires_subject(self):
        with pytest.raises(ValidationError):
            TokenClaims(exp=1, iat=0)


class TestUserProfile:
    def test_from_account(self):
        account = make_account("uid-1", "Parent@Example.com", first_name="Pat", last_name="Lee")
        profile = UserProfile.from_account(account, enrollment_threshold=80)

        assert profile.uid == "uid-1"
        assert profile.email == "parent@example.com"
        assert profile.full_name == "Pat Lee"
        assert profile.role == UserRole.PARENT
        assert profile.can_enroll is False

    def test_complete_verified_parent_can_enroll(self):
        account = complete_profile(make_account("uid-1", "parent@example.com"))
        profile = UserProfile.from_account(account, enrollment_threshold=80)

        assert profile.profile_completion_percentage == 93
        assert profile.can_enroll is True

    def test_staff_never_enrolls(self):
        account = complete_profile(make_account("uid-2", "staff@example.com", role=UserRole.STAFF))
        assert UserProfile.from_account(account, 80).can_enroll is False

    def test_login_response_defaults(self):
        account = make_account("uid-1", "parent@example.com")
        response = LoginResponse(
            access_token="a",
            refresh_token="r",
            expires_in=3600,
            profile=UserProfile.from_account(account, 80),
        )
        assert response.token_type == "bearer"
