"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from shared.config import get_settings
from shared.database import close_database, init_database
from shared.logging_config import setup_logging
from shared.supabase import close_supabase, init_supabase

from .middleware.errors import register_exception_handlers
from .middleware.rate_limit import limiter, rate_limit_exceeded_handler
from .middleware.request_context import request_context_middleware
from .routes import health
from modules.auth.routes import router as auth_router
from modules.accounts.routes import router as accounts_router
from modules.enrollment.routes import router as enrollment_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Initializes the database pool and the identity provider client once,
    before any request is served.
    """
    # Startup
    settings = get_settings()
    setup_logging(settings.log_level)
    await init_database(settings)
    if settings.supabase_url:
        await init_supabase(settings)
    else:
        logger.warning("SUPABASE_URL not set; auth endpoints will fail until it is configured")
    logger.info(f"Starting {settings.app_name} on {settings.host}:{settings.port} ({settings.environment})")
    yield
    # Shutdown
    close_supabase()
    await close_database()
    logger.info(f"Shutting down {settings.app_name}")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Preschool enrollment: accounts, children, applications and payments",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    app.middleware("http")(request_context_middleware)

    # Errors and rate limiting
    register_exception_handlers(app)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # Register routes
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(accounts_router, prefix="/api/accounts", tags=["accounts"])
    app.include_router(enrollment_router, prefix="/api/enrollment", tags=["enrollment"])

    return app


# Application instance for uvicorn
app = create_app()
