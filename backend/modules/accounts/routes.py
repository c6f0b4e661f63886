"""
Account API endpoints.

The caller's own profile update, plus admin-only account management.
Role changes and activation toggles are delegated to the auth service,
which keeps the provider claim and the local row in step.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_account_service, get_auth_service
from api.middleware.auth import require_roles
from modules.auth.interfaces import IAuthService
from modules.auth.models import SuccessResponse, UpdateRoleRequest, UserProfile
from shared.models import AuthenticatedUser, UserRole

from .interfaces import IAccountService
from .models import AccountListResponse, AccountProfileUpdate

router = APIRouter()

admin_only = require_roles(UserRole.ADMIN)


@router.put("/me/profile", response_model=UserProfile)
async def update_my_profile(
    update: AccountProfileUpdate,
    user: AuthenticatedUser = Depends(require_roles(*UserRole)),
    service: IAccountService = Depends(get_account_service),
) -> UserProfile:
    """
    Update the caller's own profile.

    Completion percentage and enrollment eligibility are recomputed.
    """
    return await service.update_profile(user.id, update)


@router.get("", response_model=AccountListResponse)
async def list_accounts(
    page: int = Query(default=1, description="Page number (1-indexed)"),
    page_size: int = Query(default=20, description="Items per page"),
    role: Optional[str] = Query(default=None, description="Filter by role"),
    admin: AuthenticatedUser = Depends(admin_only),
    service: IAccountService = Depends(get_account_service),
) -> AccountListResponse:
    return await service.list_accounts(page, page_size, role)


@router.put("/{uid}/role", response_model=UserProfile)
async def update_role(
    uid: str,
    request: UpdateRoleRequest,
    admin: AuthenticatedUser = Depends(admin_only),
    auth: IAuthService = Depends(get_auth_service),
) -> UserProfile:
    return await auth.update_role(uid, request.role, admin.id)


@router.post("/{uid}/deactivate", response_model=UserProfile)
async def deactivate(
    uid: str,
    admin: AuthenticatedUser = Depends(admin_only),
    auth: IAuthService = Depends(get_auth_service),
) -> UserProfile:
    return await auth.deactivate_user(uid, admin.id)


@router.post("/{uid}/reactivate", response_model=UserProfile)
async def reactivate(
    uid: str,
    admin: AuthenticatedUser = Depends(admin_only),
    auth: IAuthService = Depends(get_auth_service),
) -> UserProfile:
    return await auth.reactivate_user(uid, admin.id)


@router.delete("/{uid}", response_model=SuccessResponse)
async def delete_account(
    uid: str,
    admin: AuthenticatedUser = Depends(admin_only),
    service: IAccountService = Depends(get_account_service),
) -> SuccessResponse:
    await service.delete_account(uid, admin.id)
    return SuccessResponse(message="Account deleted")
