"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from shared.config import get_settings
from shared.database import check_database_connection
from shared.supabase import get_supabase_client

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    database: str
    identity_provider: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running.
    """
    return HealthResponse(status="healthy", version=get_settings().app_version)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check():
    """
    Readiness check endpoint.

    Returns 503 until the database answers and the identity provider
    client has been initialized.
    """
    database_ok = await check_database_connection()
    try:
        get_supabase_client()
        identity_ok = True
    except RuntimeError:
        identity_ok = False

    ready = database_ok and identity_ok
    body = ReadinessResponse(
        status="ready" if ready else "not_ready",
        database="connected" if database_ok else "unavailable",
        identity_provider="initialized" if identity_ok else "not_initialized",
    )
    return JSONResponse(status_code=200 if ready else 503, content=body.model_dump())
