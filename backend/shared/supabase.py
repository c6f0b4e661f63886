"""
Supabase client lifecycle.

The identity provider client is created exactly once, at application
startup, before any request is served. Later callers only read it.
"""

import asyncio
import logging
from typing import Optional

from supabase import AsyncClient, acreate_client

from .config import Settings

logger = logging.getLogger(__name__)

# Module-level client and its one-shot guard
_client: Optional[AsyncClient] = None
_init_lock = asyncio.Lock()


async def init_supabase(settings: Settings) -> AsyncClient:
    """
    Create the service-role Supabase client.

    Concurrent callers wait on the same lock; only the first one creates
    the client and the rest return it.

    Raises:
        RuntimeError: If the Supabase configuration is missing.
    """
    global _client

    async with _init_lock:
        if _client is not None:
            return _client

        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise RuntimeError(
                "Supabase configuration missing. "
                "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables."
            )

        _client = await acreate_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )
        logger.info("Supabase client initialized")
        return _client


def get_supabase_client() -> AsyncClient:
    """
    Get the service-role Supabase client.

    Raises:
        RuntimeError: If init_supabase() has not run.
    """
    if _client is None:
        raise RuntimeError("Supabase client not initialized. Call init_supabase() first.")
    return _client


def close_supabase() -> None:
    """Drop the cached client (shutdown and tests)."""
    global _client
    _client = None
