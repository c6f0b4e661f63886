"""
Process-wide profile cache.

A read-through, time-bound snapshot of account profiles keyed by provider
UID. It is never authoritative: entries expire after the TTL and are
evicted whenever the account is known to change.
"""

import logging
import time
from typing import Callable, Optional

from .models import UserProfile

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "UserProfile_"


class ProfileCache:
    """In-memory TTL cache for UserProfile values."""

    def __init__(self, ttl_seconds: int = 600, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, UserProfile]] = {}

    @staticmethod
    def key(uid: str) -> str:
        return f"{CACHE_KEY_PREFIX}{uid}"

    def get(self, uid: str) -> Optional[UserProfile]:
        entry = self._entries.get(self.key(uid))
        if entry is None:
            return None

        expires_at, profile = entry
        if self._clock() >= expires_at:
            self._entries.pop(self.key(uid), None)
            return None
        return profile

    def set(self, uid: str, profile: UserProfile) -> None:
        self._entries[self.key(uid)] = (self._clock() + self._ttl, profile)

    def evict(self, uid: str) -> None:
        if self._entries.pop(self.key(uid), None) is not None:
            logger.debug(f"Evicted cached profile for {uid}")

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
