"""
Exception handlers.

Every error leaves the API in the same JSON shape:

    {"error": <stable code>, "message": ..., "path": ..., "method": ...,
     "timestamp": ..., "request_id": ..., "details": {...}}

``details`` is omitted in production. Unexpected exceptions become
INTERNAL_ERROR with a sanitized message outside development.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.config import get_settings
from shared.exceptions import AuthenticationError, PreschoolError
from shared.logging_config import request_id_var

from ..models.errors import ValidationErrorDetail

logger = logging.getLogger(__name__)

_HTTP_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    429: "RATE_LIMIT_EXCEEDED",
}


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request_id_var.get()


def build_error_body(
    request: Request,
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "error": code,
        "message": message,
        "path": request.url.path,
        "method": request.method,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": _request_id(request),
    }
    if not get_settings().is_production:
        body["details"] = details or {}
    return body


def error_response(
    request: Request,
    error: PreschoolError,
    details: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    merged = {**error.details, **(details or {})}
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(error, AuthenticationError) else None
    return JSONResponse(
        status_code=error.status_code,
        content=build_error_body(request, error.code, error.message, merged),
        headers=headers,
    )


async def preschool_error_handler(request: Request, exc: PreschoolError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return error_response(request, exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        ValidationErrorDetail(
            field=".".join(str(part) for part in err.get("loc", ())),
            message=err.get("msg", ""),
        ).model_dump()
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=build_error_body(
            request,
            "VALIDATION_ERROR",
            "One or more validation errors occurred",
            {"errors": errors},
        ),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _HTTP_CODES.get(exc.status_code, "HTTP_ERROR")
    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_body(request, code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    settings = get_settings()
    message = str(exc) if settings.is_development else "An internal server error occurred"
    details = {"type": type(exc).__name__} if settings.is_development else None
    return JSONResponse(
        status_code=500,
        content=build_error_body(request, "INTERNAL_ERROR", message, details),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PreschoolError, preschool_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
