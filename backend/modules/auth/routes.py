"""
Authentication API endpoints.

Registration, sessions, passwords and the caller's own profile.
Errors propagate as auth exceptions and are rendered by the API's
exception handlers.
"""

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_auth_service
from api.middleware.auth import require_roles
from api.middleware.rate_limit import limiter, password_reset_limit
from api.models.errors import ErrorResponse
from shared.models import AuthenticatedUser, UserRole

from .interfaces import IAuthService
from .models import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    PasswordResetRequest,
    RefreshTokenRequest,
    RegisterRequest,
    SuccessResponse,
    UserProfile,
)

router = APIRouter()

any_role = require_roles(*UserRole)


@router.post(
    "/register",
    response_model=LoginResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def register(
    request: RegisterRequest,
    service: IAuthService = Depends(get_auth_service),
) -> LoginResponse:
    """
    Register a new account.

    Creates the identity-provider user and the local account together and
    returns a session. A verification email is sent on a best-effort basis.
    """
    return await service.register(request)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def login(
    request: LoginRequest,
    service: IAuthService = Depends(get_auth_service),
) -> LoginResponse:
    return await service.login(request.email, request.password)


@router.post("/refresh-token", response_model=LoginResponse, responses={401: {"model": ErrorResponse}})
async def refresh_token(
    request: RefreshTokenRequest,
    service: IAuthService = Depends(get_auth_service),
) -> LoginResponse:
    return await service.refresh_token(request.refresh_token)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    user: AuthenticatedUser = Depends(any_role),
    service: IAuthService = Depends(get_auth_service),
) -> SuccessResponse:
    """Revoke the caller's provider sessions (best-effort) and drop the cached profile."""
    await service.logout(user.id, user.access_token)
    return SuccessResponse(message="Logged out successfully")


@router.post("/reset-password", response_model=SuccessResponse, responses={429: {"model": ErrorResponse}})
@limiter.limit(password_reset_limit)
async def reset_password(
    request: Request,
    body: PasswordResetRequest,
    service: IAuthService = Depends(get_auth_service),
) -> SuccessResponse:
    """
    Request a password reset email.

    Always reports success so the endpoint cannot be used to discover
    which emails have accounts.
    """
    await service.send_password_reset_email(body.email)
    return SuccessResponse(message="If an account exists for this email, a reset link has been sent")


@router.post("/change-password", response_model=SuccessResponse, responses={400: {"model": ErrorResponse}})
async def change_password(
    request: ChangePasswordRequest,
    user: AuthenticatedUser = Depends(any_role),
    service: IAuthService = Depends(get_auth_service),
) -> SuccessResponse:
    await service.change_password(user.id, request.current_password, request.new_password)
    return SuccessResponse(message="Password changed successfully")


@router.post("/send-verification-email", response_model=SuccessResponse)
async def send_verification_email(
    user: AuthenticatedUser = Depends(any_role),
    service: IAuthService = Depends(get_auth_service),
) -> SuccessResponse:
    await service.send_verification_email(user.id)
    return SuccessResponse(message="Verification email sent")


@router.get("/profile", response_model=UserProfile, responses={404: {"model": ErrorResponse}})
async def get_profile(
    user: AuthenticatedUser = Depends(any_role),
    service: IAuthService = Depends(get_auth_service),
) -> UserProfile:
    return await service.get_profile(user.id)
