"""API models package."""

from .errors import ErrorResponse, ValidationErrorDetail

__all__ = [
    "ErrorResponse",
    "ValidationErrorDetail",
]
