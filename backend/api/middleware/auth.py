"""
Bearer-token authentication and role authorization.

``get_current_user`` validates the session token; ``require_roles`` builds a
dependency that admits only the listed roles. Authorization is a pure
membership test of the token's role claim against the allow-list.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from modules.auth.exceptions import (
    InsufficientPermissionsError,
    MissingTokenError,
    RoleNotAssignedError,
)
from modules.auth.interfaces import IAuthService
from shared.models import AuthenticatedUser, UserRole

from ..dependencies import get_auth_service

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: IAuthService = Depends(get_auth_service),
) -> AuthenticatedUser:
    """
    Dependency that requires a valid session token.

    Usage:
        @router.get("/protected")
        async def protected_route(user: AuthenticatedUser = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    if credentials is None:
        raise MissingTokenError("Missing authorization header")

    return await auth.validate_token(credentials.credentials)


def require_roles(*roles: UserRole):
    """
    Build a dependency that admits only callers whose role claim is listed.

    A session without a role claim is rejected with ROLE_NOT_ASSIGNED.

    Usage:
        @router.get("/admin-only")
        async def admin_route(user: AuthenticatedUser = Depends(require_roles(UserRole.ADMIN))):
            ...
    """
    allowed = frozenset(roles)
    names = [role.value for role in roles]

    async def dependency(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if user.role is None:
            raise RoleNotAssignedError()
        if user.role not in allowed:
            raise InsufficientPermissionsError(names, user.role.value)
        return user

    return dependency


# Type aliases for cleaner route definitions
RequireAuth = Depends(get_current_user)
RequireAnyRole = Depends(require_roles(*UserRole))
RequireAdmin = Depends(require_roles(UserRole.ADMIN))
RequireStaff = Depends(require_roles(UserRole.STAFF, UserRole.ADMIN))
RequireParent = Depends(require_roles(UserRole.PARENT))
