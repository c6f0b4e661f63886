"""
Tests for bearer-token authentication and role authorization.
"""

from unittest.mock import MagicMock

import pytest

from api.middleware.auth import require_roles
from modules.auth.identity import SupabaseIdentityProvider
from modules.auth.exceptions import InsufficientPermissionsError, RoleNotAssignedError
from shared.models import AuthenticatedUser, UserRole

from tests.conftest import create_test_token, make_settings


class TestRequireRoles:
    @pytest.mark.asyncio
    async def test_listed_role_admitted(self):
        dependency = require_roles(UserRole.STAFF, UserRole.ADMIN)
        user = AuthenticatedUser(id="u1", role=UserRole.ADMIN)
        assert await dependency(user=user) is user

    @pytest.mark.asyncio
    async def test_unlisted_role_refused(self):
        dependency = require_roles(UserRole.ADMIN)
        with pytest.raises(InsufficientPermissionsError) as exc_info:
            await dependency(user=AuthenticatedUser(id="u1", role=UserRole.PARENT))

        assert exc_info.value.message == "This resource requires one of the following roles: Admin"
        assert exc_info.value.details["user_role"] == "Parent"

    @pytest.mark.asyncio
    async def test_missing_role_refused(self):
        """A session without a role never passes a role gate."""
        dependency = require_roles(*UserRole)
        with pytest.raises(RoleNotAssignedError):
            await dependency(user=AuthenticatedUser(id="u1"))


class TestAuthentication:
    """Role gates through the HTTP surface; GET /api/accounts admits admins only."""

    def test_missing_header(self, harness):
        response = harness.client.get("/api/accounts")

        assert response.status_code == 401
        assert response.json()["error"] == "MISSING_TOKEN"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_expired_token(self, harness):
        token = create_test_token(expired=True)
        response = harness.client.get("/api/accounts", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"] == "TOKEN_EXPIRED"

    def test_malformed_token(self, harness):
        response = harness.client.get("/api/accounts", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_TOKEN"

    def test_unknown_role_claim(self, harness):
        response = harness.client.get("/api/accounts", headers=harness.headers(role="Superuser"))
        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_TOKEN"

    def test_verification_not_configured(self, harness):
        harness.identity._verifier = SupabaseIdentityProvider(MagicMock(), make_settings(supabase_jwt_secret=""))

        response = harness.client.get("/api/accounts", headers=harness.headers(role="Admin"))

        assert response.status_code == 401
        assert response.json()["error"] == "AUTH_NOT_CONFIGURED"

    def test_missing_role_claim(self, harness):
        response = harness.client.get("/api/auth/profile", headers=harness.headers(role=None))

        assert response.status_code == 403
        body = response.json()
        assert body["error"] == "ROLE_NOT_ASSIGNED"
        assert body["message"] == "User role not assigned. Please complete your registration."

    @pytest.mark.parametrize("role", ["Parent", "Staff", "Teacher"])
    def test_wrong_role(self, harness, role):
        response = harness.client.get("/api/accounts", headers=harness.headers(role=role))

        assert response.status_code == 403
        assert response.json()["error"] == "INSUFFICIENT_PERMISSIONS"

    def test_admin_admitted(self, harness):
        response = harness.client.get("/api/accounts", headers=harness.headers(role="admin"))
        assert response.status_code == 200
        assert response.json()["total"] == 0
