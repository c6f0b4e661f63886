"""
Base exception classes for the enrollment backend.

Each module should define its own exceptions that inherit from these bases.
Every class carries the HTTP status the API layer responds with, so route
handlers never translate errors themselves.
"""

from typing import Optional, Any


class PreschoolError(Exception):
    """
    Base exception for all enrollment backend errors.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(PreschoolError):
    """Input validation failed."""

    status_code = 400


class AuthenticationError(PreschoolError):
    """Authentication failed (invalid or missing credentials)."""

    status_code = 401


class AuthorizationError(PreschoolError):
    """Authorization failed (insufficient permissions)."""

    status_code = 403


class NotFoundError(PreschoolError):
    """Resource not found."""

    status_code = 404


class ConflictError(PreschoolError):
    """Resource already exists or is in a conflicting state."""

    status_code = 409


class InvalidStateError(PreschoolError):
    """Operation is not valid in the object's current state."""

    status_code = 409

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, code="INVALID_STATE", details=details)


class RateLimitError(PreschoolError):
    """Too many requests."""

    status_code = 429

    def __init__(
        self,
        message: str = "Too many requests. Please try again later.",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code="RATE_LIMIT_EXCEEDED", details=details)


class InternalError(PreschoolError):
    """Unexpected failure, raised after any compensating action has run."""

    status_code = 500

    def __init__(self, message: str = "An internal error occurred", details: Optional[dict[str, Any]] = None):
        super().__init__(message, code="INTERNAL_ERROR", details=details)


class ExternalServiceError(PreschoolError):
    """Error communicating with an external service."""

    status_code = 502

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
