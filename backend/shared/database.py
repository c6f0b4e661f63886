"""
Relational store connection management using SQLAlchemy async.

The engine and sessionmaker are created once at application startup and
disposed at shutdown. Request handlers get a session per request through
``get_session()``; all data access then goes through repositories.

Example:
    await init_database(get_settings())

    async with get_session() as session:
        accounts = AccountRepository(session)
        account = await accounts.get_by_uid(uid)
"""

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .exceptions import ExternalServiceError

if TYPE_CHECKING:
    from .config import Settings

logger = logging.getLogger(__name__)

# Module-level state for the database connection
_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None


class DatabaseError(ExternalServiceError):
    """Raised when the relational store is unavailable or misconfigured."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message, service="database", code="DATABASE_ERROR")
        self.original_error = original_error


async def init_database(settings: "Settings") -> None:
    """
    Initialize the connection pool.

    Raises:
        DatabaseError: If the engine cannot be created.
    """
    global _engine, _sessionmaker

    engine_kwargs = {"echo": settings.database_echo, "pool_pre_ping": True}
    if not settings.database_url.startswith("sqlite"):
        engine_kwargs.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_recycle=1800,
        )

    try:
        _engine = create_async_engine(settings.database_url, **engine_kwargs)
        _sessionmaker = async_sessionmaker(
            bind=_engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to initialize database connection", e) from e

    logger.info("Database connection pool initialized")


async def close_database() -> None:
    """Dispose the connection pool at shutdown."""
    global _engine, _sessionmaker

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _sessionmaker = None
        logger.info("Database connection pool closed")


def get_engine() -> AsyncEngine:
    if _engine is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    if _sessionmaker is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _sessionmaker


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """
    Get an async session for one unit of work.

    Anything left pending is committed on success; on exception the session
    is rolled back and the exception propagates unchanged.
    """
    sessionmaker = get_sessionmaker()

    async with sessionmaker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_all() -> None:
    """Create every mapped table that does not exist yet."""
    from .orm import Base

    # Register all entity modules with the metadata
    import modules.accounts.entities  # noqa: F401
    import modules.enrollment.entities  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def check_database_connection() -> bool:
    """Return True if the store answers a trivial query."""
    if _engine is None:
        return False

    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning(f"Database health check failed: {e}")
        return False
