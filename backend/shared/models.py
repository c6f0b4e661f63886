"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from .exceptions import ValidationError


class UserRole(str, Enum):
    """Account role, carried as the ``app_metadata.role`` token claim."""

    PARENT = "Parent"
    STAFF = "Staff"
    ADMIN = "Admin"
    TEACHER = "Teacher"

    @classmethod
    def parse(cls, value: Optional[str]) -> "UserRole":
        """
        Parse a role name, case-insensitively and ignoring surrounding spaces.

        Unknown or blank values are rejected; there is no default role.

        Raises:
            ValidationError: If the value is not a known role.
        """
        if value is None or not str(value).strip():
            raise ValidationError("Role is required", code="INVALID_ROLE")

        normalized = str(value).strip().lower()
        for role in cls:
            if role.value.lower() == normalized:
                return role

        raise ValidationError(
            f"Invalid role: {value}. Valid roles are: {', '.join(r.value for r in cls)}",
            code="INVALID_ROLE",
            details={"role": str(value)},
        )


class AuthenticatedUser(BaseModel):
    """
    Represents an authenticated user in the system.

    This model is populated from token claims and made available
    to route handlers via dependency injection.
    """

    id: str = Field(..., description="Identity provider UID")
    email: str = Field(default="", description="User's email address")
    email_verified: bool = Field(default=False, description="Whether email is verified")
    role: Optional[UserRole] = Field(None, description="Role claim, None if never assigned")
    access_token: Optional[str] = Field(None, description="Bearer token the request carried", repr=False)

    model_config = {
        "frozen": True,  # Make immutable for safety
        "extra": "ignore",  # Ignore extra fields from the token
    }
