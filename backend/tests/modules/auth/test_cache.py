from modules.auth.cache import ProfileCache
from modules.auth.models import UserProfile
from shared.models import UserRole


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _profile(uid: str = "uid-1") -> UserProfile:
    return UserProfile(
        uid=uid,
        email="parent@example.com",
        first_name="Pat",
        last_name="Lee",
        full_name="Pat Lee",
        role=UserRole.PARENT,
        is_active=True,
        email_verified=False,
    )


class TestProfileCache:
    def test_key_prefix(self):
        assert ProfileCache.key("abc") == "UserProfile_abc"

    def test_miss(self):
        assert ProfileCache().get("uid-1") is None

    def test_set_and_get(self):
        cache = ProfileCache()
        profile = _profile()
        cache.set("uid-1", profile)
        assert cache.get("uid-1") is profile

    def test_entries_expire(self):
        """Entries disappear once the TTL has passed."""
        clock = FakeClock()
        cache = ProfileCache(ttl_seconds=600, clock=clock)
        cache.set("uid-1", _profile())

        clock.now = 599
        assert cache.get("uid-1") is not None

        clock.now = 600
        assert cache.get("uid-1") is None
        assert len(cache) == 0

    def test_evict(self):
        cache = ProfileCache()
        cache.set("uid-1", _profile("uid-1"))
        cache.set("uid-2", _profile("uid-2"))

        cache.evict("uid-1")
        cache.evict("uid-missing")

        assert cache.get("uid-1") is None
        assert cache.get("uid-2") is not None

    def test_clear(self):
        cache = ProfileCache()
        cache.set("uid-1", _profile())
        cache.clear()
        assert len(cache) == 0
