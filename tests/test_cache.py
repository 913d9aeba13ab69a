import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from fitness_platform.core.cache import CacheError, CacheManager, InMemoryCacheBackend, RedisCacheBackend
from fitness_platform.core.config import get_settings


class _DownRedis:
    def __getattr__(self, name):
        def _fail(*args, **kwargs):
            raise RedisConnectionError("Connection refused")

        return _fail


class _FakeRedis:
    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = str(value).encode("utf-8")

    def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0


def test_in_memory_entry_expires_after_ttl(clock):
    cache = InMemoryCacheBackend(clock=clock.time)
    cache.set("otp:customer:a@example.com", "123456", 300)

    clock.advance(seconds=299)
    assert cache.get("otp:customer:a@example.com") == "123456"
    clock.advance(seconds=1)
    assert cache.get("otp:customer:a@example.com") is None
    assert cache.exists("otp:customer:a@example.com") is False


def test_in_memory_delete_reports_whether_key_existed(clock):
    cache = InMemoryCacheBackend(clock=clock.time)
    cache.set("k", "v", 10)

    assert cache.delete("k") is True
    assert cache.delete("k") is False

    cache.set("gone", "v", 10)
    clock.advance(seconds=10)
    assert cache.delete("gone") is False


def test_in_memory_incr_starts_counter_without_expiry(clock):
    cache = InMemoryCacheBackend(clock=clock.time)

    assert cache.incr("counter") == 1
    assert cache.incr("counter") == 2
    clock.advance(days=1)
    assert cache.get("counter") == "2"

    cache.expire("counter", 5)
    clock.advance(seconds=5)
    assert cache.get("counter") is None


def test_redis_backend_decodes_and_reports_deletes():
    backend = RedisCacheBackend(_FakeRedis())

    backend.set("otp:trainer:t@example.com", "654321", 300)

    assert backend.get("otp:trainer:t@example.com") == "654321"
    assert backend.delete("otp:trainer:t@example.com") is True
    assert backend.delete("otp:trainer:t@example.com") is False
    assert backend.get("otp:trainer:t@example.com") is None


def test_redis_errors_surface_as_cache_errors():
    backend = RedisCacheBackend(_DownRedis())

    for call in (
        lambda: backend.get("k"),
        lambda: backend.set("k", "v", 1),
        lambda: backend.delete("k"),
        lambda: backend.incr("k"),
        lambda: backend.expire("k", 1),
    ):
        with pytest.raises(CacheError):
            call()
    assert backend.ping() is False


def test_manager_uses_in_memory_backend_without_redis_url():
    assert get_settings().REDIS_URL is None
    manager = CacheManager()

    assert isinstance(manager.get_backend(), InMemoryCacheBackend)
