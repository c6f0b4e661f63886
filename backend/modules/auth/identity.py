"""
Supabase Auth adapter.

Admin operations (create, delete, claims, bans, links, sign-out) go through
the service-role async client. Password and refresh-token grants go to the
GoTrue token endpoint with the anon key, the same way a browser client
would. Every call is bounded by ``identity_request_timeout``.

Access tokens are verified locally with the project's JWT secret.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

import httpx
import jwt
from pydantic import ValidationError as PydanticValidationError
from supabase import AsyncClient, AuthError

from shared.config import Settings
from shared.exceptions import RateLimitError
from shared.models import UserRole

from .exceptions import (
    AuthNotConfiguredError,
    EmailAlreadyExistsError,
    ExpiredTokenError,
    IdentityProviderError,
    InvalidCredentialsError,
    InvalidTokenError,
    UserNotFoundError,
    WeakPasswordError,
)
from .models import ProviderSession, ProviderUser, TokenClaims

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
JWT_AUDIENCE = "authenticated"

# Supabase has no "disabled" flag; a long ban is the equivalent
BAN_FOREVER = "876000h"
BAN_NONE = "none"

_EMAIL_EXISTS_CODES = {"email_exists", "user_already_exists"}
_RATE_LIMIT_CODES = {"over_request_rate_limit", "over_email_send_rate_limit"}


def _to_provider_user(user: Any) -> ProviderUser:
    app_metadata = getattr(user, "app_metadata", None) or {}
    return ProviderUser(
        uid=str(user.id),
        email=user.email or "",
        email_verified=getattr(user, "email_confirmed_at", None) is not None,
        role=app_metadata.get("role"),
    )


class SupabaseIdentityProvider:
    """IIdentityProvider backed by Supabase Auth."""

    def __init__(self, client: AsyncClient, settings: Settings):
        self._client = client
        self._settings = settings
        self._timeout = settings.identity_request_timeout

    # ------------------------------------------------------------------
    # Error translation
    # ------------------------------------------------------------------

    def _translate(
        self,
        error: AuthError,
        action: str,
        email: Optional[str] = None,
        uid: Optional[str] = None,
    ) -> Exception:
        code = getattr(error, "code", None)
        status = getattr(error, "status", None)

        if code in _EMAIL_EXISTS_CODES:
            return EmailAlreadyExistsError(email or "")
        if code == "weak_password":
            return WeakPasswordError(error.message)
        if code == "user_not_found" or status == 404:
            return UserNotFoundError(uid or email or "")
        if status == 429 or code in _RATE_LIMIT_CODES:
            return RateLimitError()

        logger.error(f"Supabase {action} failed: {error.message} (code={code}, status={status})")
        return IdentityProviderError(
            f"Identity provider error during {action}",
            details={"provider_code": code} if code else None,
        )

    @asynccontextmanager
    async def _provider_call(self, action: str, email: Optional[str] = None, uid: Optional[str] = None):
        try:
            async with asyncio.timeout(self._timeout):
                yield
        except AuthError as e:
            raise self._translate(e, action, email=email, uid=uid) from e
        except TimeoutError as e:
            logger.error(f"Supabase {action} timed out after {self._timeout}s")
            raise IdentityProviderError(f"Identity provider timed out during {action}") from e

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    async def create_user(
        self,
        email: str,
        password: str,
        role: UserRole,
        display_name: str,
        phone: Optional[str] = None,
    ) -> ProviderUser:
        attributes = {
            "email": email,
            "password": password,
            "email_confirm": False,
            "app_metadata": {"role": role.value},
            "user_metadata": {"display_name": display_name},
        }
        if phone:
            attributes["phone"] = phone

        async with self._provider_call("create_user", email=email):
            response = await self._client.auth.admin.create_user(attributes)

        logger.info(f"Created Supabase user {response.user.id} for {email}")
        return _to_provider_user(response.user)

    async def delete_user(self, uid: str) -> None:
        async with self._provider_call("delete_user", uid=uid):
            await self._client.auth.admin.delete_user(uid)
        logger.info(f"Deleted Supabase user {uid}")

    async def get_user(self, uid: str) -> ProviderUser:
        async with self._provider_call("get_user", uid=uid):
            response = await self._client.auth.admin.get_user_by_id(uid)
        if response is None or response.user is None:
            raise UserNotFoundError(uid)
        return _to_provider_user(response.user)

    async def set_role_claim(self, uid: str, role: UserRole) -> None:
        async with self._provider_call("set_role_claim", uid=uid):
            await self._client.auth.admin.update_user_by_id(uid, {"app_metadata": {"role": role.value}})
        logger.info(f"Set role claim {role.value} for {uid}")

    async def set_disabled(self, uid: str, disabled: bool) -> None:
        ban_duration = BAN_FOREVER if disabled else BAN_NONE
        async with self._provider_call("set_disabled", uid=uid):
            await self._client.auth.admin.update_user_by_id(uid, {"ban_duration": ban_duration})
        logger.info(f"{'Disabled' if disabled else 'Enabled'} Supabase user {uid}")

    async def update_password(self, uid: str, password: str) -> None:
        async with self._provider_call("update_password", uid=uid):
            await self._client.auth.admin.update_user_by_id(uid, {"password": password})

    async def sign_out(self, access_token: str) -> None:
        async with self._provider_call("sign_out"):
            await self._client.auth.admin.sign_out(access_token, "global")

    async def _generate_link(self, link_type: str, email: str) -> str:
        params = {
            "type": link_type,
            "email": email,
            "options": {"redirect_to": self._settings.frontend_url},
        }
        async with self._provider_call(f"generate_link:{link_type}", email=email):
            response = await self._client.auth.admin.generate_link(params)
        return response.properties.action_link

    async def generate_password_reset_link(self, email: str) -> str:
        return await self._generate_link("recovery", email)

    async def generate_email_verification_link(self, email: str) -> str:
        # Opening a magic link confirms the address of an existing user
        return await self._generate_link("magiclink", email)

    # ------------------------------------------------------------------
    # Token endpoint
    # ------------------------------------------------------------------

    async def _token_request(self, grant_type: str, payload: dict) -> httpx.Response:
        url = f"{self._settings.supabase_url.rstrip('/')}/auth/v1/token"
        headers = {"apikey": self._settings.supabase_anon_key}

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    url,
                    params={"grant_type": grant_type},
                    json=payload,
                    headers=headers,
                )
        except httpx.TimeoutException as e:
            logger.error(f"Supabase token grant '{grant_type}' timed out")
            raise IdentityProviderError("Identity provider timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Supabase token grant '{grant_type}' failed: {e}")
            raise IdentityProviderError("Identity provider unavailable") from e

        if response.status_code == 429:
            raise RateLimitError()
        if response.status_code >= 500:
            logger.error(f"Supabase token grant '{grant_type}' returned {response.status_code}")
            raise IdentityProviderError(
                "Identity provider error",
                details={"status": response.status_code},
            )
        return response

    @staticmethod
    def _to_session(data: dict) -> ProviderSession:
        user = data.get("user") or {}
        return ProviderSession(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_in=int(data.get("expires_in", 3600)),
            token_type=data.get("token_type", "bearer"),
            user_id=user.get("id"),
        )

    async def sign_in_with_password(self, email: str, password: str) -> ProviderSession:
        response = await self._token_request("password", {"email": email, "password": password})
        if response.status_code != 200:
            body = response.json() if response.content else {}
            error_code = body.get("error_code") or body.get("error")
            logger.info(f"Password sign-in rejected for {email} ({error_code})")
            if error_code == "email_not_confirmed":
                raise InvalidCredentialsError("Email address has not been confirmed")
            raise InvalidCredentialsError()
        return self._to_session(response.json())

    async def refresh_session(self, refresh_token: str) -> ProviderSession:
        response = await self._token_request("refresh_token", {"refresh_token": refresh_token})
        if response.status_code != 200:
            raise InvalidTokenError("Invalid or expired refresh token")
        return self._to_session(response.json())

    # ------------------------------------------------------------------
    # Local verification
    # ------------------------------------------------------------------

    def verify_access_token(self, token: str) -> TokenClaims:
        if not self._settings.supabase_jwt_secret:
            logger.error("SUPABASE_JWT_SECRET is not set; cannot verify access tokens")
            raise AuthNotConfiguredError()

        try:
            payload = jwt.decode(
                token,
                self._settings.supabase_jwt_secret,
                algorithms=[JWT_ALGORITHM],
                audience=JWT_AUDIENCE,
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError()
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(str(e))

        try:
            return TokenClaims(**payload)
        except PydanticValidationError:
            raise InvalidTokenError("Token is missing required claims")
