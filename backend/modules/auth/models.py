"""
Authentication module data models.

These models define the data structures used by the auth module
and exposed to other modules through the interface.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from pydantic import BaseModel, Field, EmailStr

from shared.models import UserRole

if TYPE_CHECKING:
    from modules.accounts.entities import Account

NAME_PATTERN = r"^[a-zA-Z\s\-']+$"
PHONE_PATTERN = r"^\+[1-9]\d{1,14}$"


# ----------------------------------------------------------------------
# Identity provider shapes
# ----------------------------------------------------------------------


class ProviderUser(BaseModel):
    """A user record as the identity provider sees it."""

    uid: str
    email: str = ""
    email_verified: bool = False
    role: Optional[str] = Field(None, description="Raw role claim, unparsed")
    disabled: bool = False


class ProviderSession(BaseModel):
    """Token pair issued by the identity provider."""

    access_token: str
    refresh_token: str
    expires_in: int = 3600
    token_type: str = "bearer"
    user_id: Optional[str] = None


class TokenClaims(BaseModel):
    """
    Decoded access token payload.

    This matches the structure of Supabase Auth JWTs; the role lives in
    ``app_metadata.role``.
    """

    sub: str = Field(..., description="Subject (provider UID)")
    email: Optional[str] = Field(None, description="User's email")
    exp: int = Field(..., description="Expiration timestamp")
    iat: int = Field(..., description="Issued at timestamp")
    aud: str = Field(default="authenticated", description="Audience")
    email_confirmed_at: Optional[str] = None

    app_metadata: dict = Field(default_factory=dict)
    user_metadata: dict = Field(default_factory=dict)

    @property
    def role_claim(self) -> Optional[str]:
        return self.app_metadata.get("role")

    @property
    def email_verified(self) -> bool:
        return self.email_confirmed_at is not None or bool(self.user_metadata.get("email_verified"))


# ----------------------------------------------------------------------
# Requests
# ----------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Account registration; the password policy is enforced by the service."""

    email: EmailStr
    password: str = Field(..., max_length=100)
    first_name: str = Field(..., min_length=1, max_length=50, pattern=NAME_PATTERN)
    last_name: str = Field(..., min_length=1, max_length=50, pattern=NAME_PATTERN)
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN, description="E.164, e.g. +15551234567")
    role: str = Field(..., description="Parent, Staff, Admin or Teacher")
    accept_terms: bool = False

    relationship_to_child: Optional[str] = Field(None, max_length=50)

    # Staff, Admin and Teacher registrations
    job_title: Optional[str] = Field(None, max_length=100)
    employee_id: Optional[str] = Field(None, max_length=50)
    department: Optional[str] = Field(None, max_length=100)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class PasswordResetRequest(BaseModel):
    email: EmailStr


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., max_length=100)


class UpdateRoleRequest(BaseModel):
    role: str


# ----------------------------------------------------------------------
# Responses
# ----------------------------------------------------------------------


class UserProfile(BaseModel):
    """
    Profile summary returned by login, registration and the profile endpoint.

    This is also the value held in the profile cache.
    """

    uid: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone_number: Optional[str] = None
    role: UserRole
    is_active: bool
    email_verified: bool
    phone_verified: bool = False
    profile_completion_percentage: int = 0
    can_enroll: bool = False
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_account(cls, account: "Account", enrollment_threshold: int) -> "UserProfile":
        return cls(
            uid=account.uid,
            email=account.email,
            first_name=account.first_name,
            last_name=account.last_name,
            full_name=account.full_name,
            phone_number=account.phone_number,
            role=account.role,
            is_active=bool(account.is_active),
            email_verified=bool(account.email_verified),
            phone_verified=bool(account.phone_verified),
            profile_completion_percentage=account.profile_completion_percentage or 0,
            can_enroll=account.can_enroll(enrollment_threshold),
            last_login_at=account.last_login_at,
            created_at=account.created_at,
        )


class LoginResponse(BaseModel):
    """Session token pair plus the profile summary."""

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"
    profile: UserProfile


class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
