"""
Shared infrastructure for the enrollment backend.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: SQLAlchemy engine and session lifecycle
- supabase: Identity provider client lifecycle
- orm / repository: Entity base and the generic soft-delete repository
- exceptions: Base exception classes
- logging_config: Root logging setup with request IDs

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .exceptions import (
    PreschoolError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ConflictError,
    InvalidStateError,
    RateLimitError,
    InternalError,
    ExternalServiceError,
)
from .models import AuthenticatedUser, UserRole
from .repository import BaseRepository

__all__ = [
    "Settings",
    "get_settings",
    "PreschoolError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "InvalidStateError",
    "RateLimitError",
    "InternalError",
    "ExternalServiceError",
    "AuthenticatedUser",
    "UserRole",
    "BaseRepository",
]
