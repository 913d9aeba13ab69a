import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Protocol

from redis import Redis
from redis.exceptions import RedisError

from .config import get_settings

logger = logging.getLogger(__name__)


class CacheError(Exception):
    """Raised when the cache backend cannot be reached or rejects a command."""


class CacheBackend(Protocol):
    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str, ttl: int) -> None:
        ...

    def delete(self, key: str) -> bool:
        """Remove ``key``; return whether it existed. Absent keys are not an error."""
        ...

    def exists(self, key: str) -> bool:
        ...

    def incr(self, key: str) -> int:
        ...

    def expire(self, key: str, ttl: int) -> None:
        ...

    def ping(self) -> bool:
        ...


class RedisCacheBackend:
    def __init__(self, client: Redis):
        self.client = client

    def get(self, key: str) -> str | None:
        try:
            value = self.client.get(key)
        except (RedisError, OSError) as exc:
            raise CacheError(f"GET {key} failed: {exc}") from exc
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else str(value)

    def set(self, key: str, value: str, ttl: int) -> None:
        try:
            self.client.setex(key, ttl, value)
        except (RedisError, OSError) as exc:
            raise CacheError(f"SET {key} failed: {exc}") from exc

    def delete(self, key: str) -> bool:
        try:
            return bool(self.client.delete(key))
        except (RedisError, OSError) as exc:
            raise CacheError(f"DEL {key} failed: {exc}") from exc

    def exists(self, key: str) -> bool:
        try:
            return bool(self.client.exists(key))
        except (RedisError, OSError) as exc:
            raise CacheError(f"EXISTS {key} failed: {exc}") from exc

    def incr(self, key: str) -> int:
        try:
            return int(self.client.incr(key))
        except (RedisError, OSError) as exc:
            raise CacheError(f"INCR {key} failed: {exc}") from exc

    def expire(self, key: str, ttl: int) -> None:
        try:
            self.client.expire(key, ttl)
        except (RedisError, OSError) as exc:
            raise CacheError(f"EXPIRE {key} failed: {exc}") from exc

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except (RedisError, OSError):
            return False


@dataclass
class _InMemoryEntry:
    value: str
    expires_at: float | None


class InMemoryCacheBackend:
    """Process-local backend with Redis-like TTL semantics."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._data: dict[str, _InMemoryEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def _live_entry(self, key: str) -> _InMemoryEntry | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            self._data.pop(key, None)
            return None
        return entry

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live_entry(key)
            return entry.value if entry else None

    def set(self, key: str, value: str, ttl: int) -> None:
        with self._lock:
            self._data[key] = _InMemoryEntry(value=str(value), expires_at=self._clock() + ttl)

    def delete(self, key: str) -> bool:
        with self._lock:
            entry = self._live_entry(key)
            self._data.pop(key, None)
            return entry is not None

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def incr(self, key: str) -> int:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                entry = _InMemoryEntry(value="0", expires_at=None)
                self._data[key] = entry
            entry.value = str(int(entry.value) + 1)
            return int(entry.value)

    def expire(self, key: str, ttl: int) -> None:
        with self._lock:
            entry = self._live_entry(key)
            if entry is not None:
                entry.expires_at = self._clock() + ttl

    def ping(self) -> bool:
        return True


class CacheManager:
    def __init__(self) -> None:
        self.backend: CacheBackend | None = None

    def init_backend(self) -> None:
        if self.backend is not None:
            return

        settings = get_settings()
        if settings.REDIS_URL:
            client = Redis.from_url(
                settings.REDIS_URL,
                socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
                socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
            )
            self.backend = RedisCacheBackend(client)
            if self.backend.ping():
                logger.info("Using Redis cache backend.")
            else:
                # No in-memory fallback once REDIS_URL is configured.
                logger.warning("Redis at REDIS_URL is not reachable yet; cache calls will fail until it is.")
            return
        self.backend = InMemoryCacheBackend()
        logger.info("REDIS_URL not set. Using in-memory cache backend.")

    def get_backend(self) -> CacheBackend:
        if self.backend is None:
            self.init_backend()
        assert self.backend is not None
        return self.backend


cache_manager = CacheManager()
