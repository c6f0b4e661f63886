"""
Rate limiting using slowapi.

Applied per client IP to unauthenticated endpoints that can be abused,
such as password reset requests.

Example:
    @router.post("/reset-password")
    @limiter.limit(password_reset_limit)
    async def reset_password(request: Request, ...):
        ...
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from shared.config import get_settings
from shared.exceptions import RateLimitError

from .errors import error_response

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")


def password_reset_limit() -> str:
    return get_settings().password_reset_rate_limit


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)} on {request.url.path}")
    return error_response(request, RateLimitError(), details={"limit": str(exc.detail)})
