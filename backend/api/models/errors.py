"""
Error response models.

Documents the JSON body every error handler returns.
"""

from pydantic import BaseModel
from typing import Any, Optional


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str
    message: str
    path: str
    method: str
    timestamp: str
    request_id: str
    details: Optional[dict[str, Any]] = None


class ValidationErrorDetail(BaseModel):
    field: str
    message: str
