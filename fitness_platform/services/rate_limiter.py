import logging

from fitness_platform.core.cache import CacheBackend, CacheError

logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed-window counter kept in the cache.

    Fails open: when the cache cannot be reached every request is allowed and
    the failure is logged.
    """

    def __init__(self, cache: CacheBackend, *, limit: int, window_seconds: int):
        self.cache = cache
        self.limit = limit
        self.window_seconds = window_seconds

    def is_allowed(self, key: str) -> bool:
        try:
            raw = self.cache.get(key)
        except CacheError as exc:
            logger.warning("Rate limit check skipped, cache unavailable | key=%s | error=%s", key, exc)
            return True
        if raw is None:
            return True
        try:
            count = int(raw)
        except ValueError:
            # Any other marker value counts as a single hit.
            count = 1
        return count < self.limit

    def increment(self, key: str) -> None:
        try:
            self.cache.incr(key)
            self.cache.expire(key, self.window_seconds)
        except CacheError as exc:
            logger.warning("Rate limit counter not updated | key=%s | error=%s", key, exc)
