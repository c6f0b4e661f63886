"""Tests for shared/models.py."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from shared.exceptions import ValidationError
from shared.models import AuthenticatedUser, UserRole


class TestUserRoleParse:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Parent", UserRole.PARENT),
            ("parent", UserRole.PARENT),
            ("  STAFF ", UserRole.STAFF),
            ("admin", UserRole.ADMIN),
            ("Teacher", UserRole.TEACHER),
        ],
    )
    def test_known_roles(self, raw, expected):
        assert UserRole.parse(raw) is expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "superuser", "Parents"])
    def test_fails_closed(self, raw):
        """Unknown or blank roles are rejected, never defaulted."""
        with pytest.raises(ValidationError) as exc_info:
            UserRole.parse(raw)
        assert exc_info.value.code == "INVALID_ROLE"


class TestAuthenticatedUser:
    def test_role_is_optional(self):
        user = AuthenticatedUser(id="uid-1", email="a@example.com")
        assert user.role is None
        assert user.email_verified is False

    def test_frozen(self):
        """AuthenticatedUser should be immutable."""
        user = AuthenticatedUser(id="uid-1", email="a@example.com", role=UserRole.PARENT)
        with pytest.raises(PydanticValidationError):
            user.role = UserRole.ADMIN

    def test_ignores_extra_claims(self):
        user = AuthenticatedUser(id="uid-1", email="a@example.com", aud="authenticated")
        assert not hasattr(user, "aud")
