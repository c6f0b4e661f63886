"""
Authentication service implementation.

Keeps the identity provider and the local account table consistent:
registration is a two-step saga with a guaranteed compensating delete,
admin changes revert the provider when the local save fails, and every
known mutation evicts the profile cache.
"""

import logging
from contextlib import AsyncExitStack
from typing import Awaitable, Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from shared.config import Settings
from shared.exceptions import InternalError, PreschoolError, RateLimitError, ValidationError
from shared.models import AuthenticatedUser, UserRole
from shared.orm import utcnow

from modules.accounts.entities import DEFAULT_COUNTRY, Account
from modules.accounts.repository import AccountRepository

from .cache import ProfileCache
from .exceptions import (
    AccountInactiveError,
    EmailAlreadyExistsError,
    IdentityProviderError,
    InvalidCredentialsError,
    InvalidPasswordError,
    InvalidTokenError,
    MissingTokenError,
    UserNotFoundError,
)
from .interfaces import IAuthService, IEmailSender, IIdentityProvider
from .models import LoginResponse, ProviderSession, RegisterRequest, UserProfile
from .passwords import validate_password_strength
from .seed import SeedAccountAuthenticator

logger = logging.getLogger(__name__)


class AuthService(IAuthService):
    """
    Implementation of the authentication service.

    One instance serves one request: the account repository is bound to
    the request's session, while the provider, email sender and cache are
    process-wide.
    """

    def __init__(
        self,
        accounts: AccountRepository,
        identity: IIdentityProvider,
        email_sender: IEmailSender,
        cache: ProfileCache,
        settings: Settings,
        seed: Optional[SeedAccountAuthenticator] = None,
    ):
        self._accounts = accounts
        self._identity = identity
        self._email = email_sender
        self._cache = cache
        self._settings = settings
        self._seed = seed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def _threshold(self) -> int:
        return self._settings.enrollment_profile_threshold

    def _login_response(self, session: ProviderSession, account: Account) -> LoginResponse:
        return LoginResponse(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_in=session.expires_in,
            token_type=session.token_type,
            profile=UserProfile.from_account(account, self._threshold),
        )

    async def _require_account(self, uid: str) -> Account:
        account = await self._accounts.get_by_uid(uid)
        if account is None:
            raise UserNotFoundError(uid)
        return account

    async def _delete_provider_user(self, uid: str) -> None:
        try:
            await self._identity.delete_user(uid)
            logger.info(f"Rolled back provider user {uid}")
        except PreschoolError as e:
            logger.critical(f"Failed to roll back provider user {uid}; it is now orphaned: {e.message}")

    async def _revert_provider_change(
        self,
        revert: Callable[[], Awaitable[None]],
        uid: str,
        action: str,
    ) -> None:
        try:
            await revert()
            logger.info(f"Reverted provider change for {action} on {uid}")
        except PreschoolError as e:
            logger.critical(f"Provider and local account {uid} are out of sync after {action}: {e.message}")

    async def _sync_email_verification(self, account: Account) -> None:
        try:
            provider_user = await self._identity.get_user(account.uid)
        except PreschoolError as e:
            logger.warning(f"Could not sync email verification for {account.uid}: {e.message}")
            return
        account.email_verified = provider_user.email_verified

    async def _send_verification_best_effort(self, account: Account) -> None:
        try:
            link = await self._identity.generate_email_verification_link(account.email)
            await self._email.send_email_verification(account.email, account.first_name, link)
            logger.info(f"Verification email sent to {account.email}")
        except PreschoolError as e:
            logger.warning(f"Failed to send verification email to {account.email}: {e.message}")

    @staticmethod
    def _new_account(request: RegisterRequest, role: UserRole, uid: str, email: str) -> Account:
        account = Account(
            uid=uid,
            email=email,
            email_verified=False,
            phone_verified=False,
            first_name=request.first_name.strip(),
            last_name=request.last_name.strip(),
            phone_number=request.phone_number,
            role=role,
            is_active=True,
            country=DEFAULT_COUNTRY,
            relationship_to_child=request.relationship_to_child,
            accepted_terms=request.accept_terms,
            terms_accepted_at=utcnow() if request.accept_terms else None,
            job_title=request.job_title,
            employee_id=request.employee_id,
            department=request.department,
            is_seed_account=False,
            is_deleted=False,
            created_by=uid,
        )
        account.refresh_profile_completion()
        return account

    async def _save_synchronized(
        self,
        account: Account,
        admin_uid: str,
        revert_provider: Callable[[], Awaitable[None]],
        action: str,
    ) -> UserProfile:
        """
        Save a local change whose provider half has already been applied.

        If the save fails the provider change is reverted before InternalError
        is raised.
        """
        async with AsyncExitStack() as compensation:
            compensation.push_async_callback(self._revert_provider_change, revert_provider, account.uid, action)
            account.updated_by = admin_uid
            try:
                await self._accounts.update(account)
                await self._accounts.save_changes()
            except SQLAlchemyError as e:
                logger.error(f"{action} for {account.uid} failed locally, reverting provider: {e}")
                raise InternalError(f"Failed to {action.replace('_', ' ')}") from e
            compensation.pop_all()

        self._cache.evict(account.uid)
        return UserProfile.from_account(account, self._threshold)

    # ------------------------------------------------------------------
    # Registration and sessions
    # ------------------------------------------------------------------

    async def register(self, request: RegisterRequest) -> LoginResponse:
        email = str(request.email).strip().lower()
        logger.info(f"Registration attempt for {email}")

        role = UserRole.parse(request.role)
        validate_password_strength(request.password)
        if not request.accept_terms:
            raise ValidationError("You must accept the terms and conditions", code="TERMS_NOT_ACCEPTED")
        if role != UserRole.PARENT and not (request.job_title or "").strip():
            raise ValidationError(
                f"Job title is required for {role.value} registration",
                code="JOB_TITLE_REQUIRED",
            )

        if await self._accounts.email_exists(email):
            logger.warning(f"Registration rejected, email already registered: {email}")
            raise EmailAlreadyExistsError(email)

        provider_user = await self._identity.create_user(
            email=email,
            password=request.password,
            role=role,
            display_name=f"{request.first_name} {request.last_name}".strip(),
            phone=request.phone_number,
        )

        async with AsyncExitStack() as compensation:
            compensation.push_async_callback(self._delete_provider_user, provider_user.uid)
            try:
                session = await self._identity.sign_in_with_password(email, request.password)
                account = self._new_account(request, role, provider_user.uid, email)

                await self._accounts.begin_transaction()
                try:
                    await self._accounts.add(account)
                    await self._accounts.save_changes()
                    await self._accounts.commit_transaction()
                except Exception:
                    if self._accounts.in_transaction:
                        await self._accounts.rollback_transaction()
                    raise
            except IntegrityError as e:
                logger.warning(f"Registration for {email} hit a unique constraint: {e.orig}")
                raise EmailAlreadyExistsError(email) from e
            except PreschoolError:
                logger.error(f"Registration for {email} failed after provider user was created")
                raise
            except Exception as e:
                logger.error(f"Registration for {email} failed: {e}")
                raise InternalError("Registration failed. Please try again.") from e
            compensation.pop_all()

        logger.info(f"Registered {role.value} account {provider_user.uid} for {email}")
        await self._send_verification_best_effort(account)
        return self._login_response(session, account)

    async def login(self, email: str, password: str) -> LoginResponse:
        email = email.strip().lower()
        logger.info(f"Login attempt for {email}")

        account = await self._accounts.get_by_email(email)
        if account is not None and not account.is_active:
            logger.warning(f"Login rejected for inactive account {email}")
            raise AccountInactiveError()

        if account is not None and account.is_seed_account:
            if self._seed is None or not self._seed.verify_password(account, password):
                logger.warning(f"Seed-account login failed for {email}")
                raise InvalidCredentialsError()
            session = self._seed.issue_session(account)
        else:
            session = await self._identity.sign_in_with_password(email, password)
            if account is None and session.user_id:
                account = await self._accounts.get_by_uid(session.user_id)
            if account is None:
                logger.error(f"Provider accepted {email} but no local account exists")
                raise UserNotFoundError(session.user_id or email)
            if not account.is_active:
                raise AccountInactiveError()
            await self._sync_email_verification(account)

        account.record_login()
        account.refresh_profile_completion()
        account.updated_by = account.uid
        await self._accounts.update(account)
        await self._accounts.save_changes()
        self._cache.evict(account.uid)

        logger.info(f"Login successful for {account.uid}")
        return self._login_response(session, account)

    async def refresh_token(self, refresh_token: str) -> LoginResponse:
        try:
            session = await self._identity.refresh_session(refresh_token)
        except IdentityProviderError as e:
            raise InvalidTokenError("Failed to refresh session") from e

        claims = self._identity.verify_access_token(session.access_token)
        account = await self._require_account(claims.sub)
        if not account.is_active:
            raise AccountInactiveError()

        await self._sync_email_verification(account)
        account.refresh_profile_completion()
        await self._accounts.update(account)
        await self._accounts.save_changes()
        self._cache.evict(account.uid)

        logger.info(f"Session refreshed for {account.uid}")
        return self._login_response(session, account)

    async def logout(self, uid: str, access_token: Optional[str] = None) -> bool:
        if access_token:
            try:
                await self._identity.sign_out(access_token)
            except PreschoolError as e:
                logger.warning(f"Failed to revoke provider sessions for {uid}: {e.message}")

        self._cache.evict(uid)
        logger.info(f"User {uid} logged out")
        return True

    # ------------------------------------------------------------------
    # Passwords and verification
    # ------------------------------------------------------------------

    async def send_password_reset_email(self, email: str) -> bool:
        email = email.strip().lower()
        try:
            account = await self._accounts.get_by_email(email)
            if account is None:
                logger.info(f"Password reset requested for unknown email {email}")
                return True

            link = await self._identity.generate_password_reset_link(account.email)
            await self._email.send_password_reset(account.email, account.first_name, link)
            logger.info(f"Password reset email sent to {email}")
        except RateLimitError:
            raise
        except PreschoolError as e:
            logger.warning(f"Password reset for {email} not sent: {e.message}")
        return True

    async def change_password(self, uid: str, current_password: str, new_password: str) -> bool:
        validate_password_strength(new_password)
        account = await self._require_account(uid)

        if account.is_seed_account:
            if self._seed is None or not self._seed.verify_password(account, current_password):
                raise InvalidPasswordError()
            account.password_hash = self._seed.hash_password(new_password)
            account.updated_by = uid
            await self._accounts.update(account)
            await self._accounts.save_changes()
        else:
            try:
                await self._identity.sign_in_with_password(account.email, current_password)
            except InvalidCredentialsError as e:
                logger.warning(f"Password change rejected for {uid}: current password mismatch")
                raise InvalidPasswordError() from e
            await self._identity.update_password(uid, new_password)

        logger.info(f"Password changed for {uid}")
        try:
            await self._email.send_password_changed(account.email, account.first_name)
        except PreschoolError as e:
            logger.warning(f"Password changed notice to {account.email} failed: {e.message}")
        return True

    async def send_verification_email(self, uid: str) -> bool:
        account = await self._require_account(uid)
        if account.email_verified:
            logger.info(f"Email already verified for {uid}, nothing to send")
            return True

        link = await self._identity.generate_email_verification_link(account.email)
        await self._email.send_email_verification(account.email, account.first_name, link)
        logger.info(f"Verification email sent to {account.email}")
        return True

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    async def get_profile(self, uid: str) -> UserProfile:
        cached = self._cache.get(uid)
        if cached is not None:
            return cached

        account = await self._require_account(uid)
        profile = UserProfile.from_account(account, self._threshold)
        self._cache.set(uid, profile)
        return profile

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    async def update_role(self, uid: str, role: str, admin_uid: str) -> UserProfile:
        new_role = UserRole.parse(role)
        account = await self._require_account(uid)
        previous_role = account.role

        await self._identity.set_role_claim(uid, new_role)
        account.role = new_role

        async def revert() -> None:
            await self._identity.set_role_claim(uid, previous_role)

        profile = await self._save_synchronized(account, admin_uid, revert, "update_role")
        logger.info(f"Role for {uid} changed {previous_role.value} -> {new_role.value} by {admin_uid}")
        return profile

    async def deactivate_user(self, uid: str, admin_uid: str) -> UserProfile:
        account = await self._require_account(uid)

        await self._identity.set_disabled(uid, True)
        account.is_active = False

        async def revert() -> None:
            await self._identity.set_disabled(uid, False)

        profile = await self._save_synchronized(account, admin_uid, revert, "deactivate_user")
        logger.info(f"User {uid} deactivated by {admin_uid}")
        return profile

    async def reactivate_user(self, uid: str, admin_uid: str) -> UserProfile:
        account = await self._require_account(uid)

        await self._identity.set_disabled(uid, False)
        account.is_active = True

        async def revert() -> None:
            await self._identity.set_disabled(uid, True)

        profile = await self._save_synchronized(account, admin_uid, revert, "reactivate_user")
        logger.info(f"User {uid} reactivated by {admin_uid}")
        return profile

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    async def validate_token(self, token: Optional[str]) -> AuthenticatedUser:
        """
        Validate a bearer token and return the authenticated user.

        A missing role claim yields ``role=None`` (role-gated endpoints then
        answer 403); a role claim that is present but unknown is rejected.
        """
        if not token:
            raise MissingTokenError()

        claims = self._identity.verify_access_token(token)

        role = None
        raw_role = claims.role_claim
        if raw_role is not None and str(raw_role).strip():
            try:
                role = UserRole.parse(raw_role)
            except ValidationError:
                logger.warning(f"Rejected token for {claims.sub} with unknown role claim {raw_role!r}")
                raise InvalidTokenError("Token carries an unknown role")

        return AuthenticatedUser(
            id=claims.sub,
            email=claims.email or "",
            email_verified=claims.email_verified,
            role=role,
            access_token=token,
        )
