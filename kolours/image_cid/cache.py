"""Cache for kolour image CIDs."""

from typing import Protocol

import redis

from kolours.core.logging import get_logger
from kolours.image_cid.exceptions import CacheReadFailure, CacheWriteFailure

logger = get_logger(__name__)


class Cache(Protocol):
    """Key/value store with per-entry expiry.

    A missing entry and an expired entry are indistinguishable: both read as None.
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str, ttl: int) -> None: ...


class RedisCache:
    """Cache backed by Redis GET / SET EX."""

    def __init__(self, redis_client: redis.Redis):
        """Initialize cache.

        Args:
            redis_client: Redis client shared with the lock manager
        """
        self.redis = redis_client

    def get(self, key: str) -> str | None:
        """Get a cached value.

        Raises:
            CacheReadFailure: If Redis cannot be reached
        """
        try:
            value = self.redis.get(key)
        except redis.RedisError as e:
            raise CacheReadFailure(f"Failed to read '{key}': {e}") from e

        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode()
        return str(value)

    def set(self, key: str, value: str, ttl: int) -> None:
        """Store a value that expires after ``ttl`` seconds.

        Raises:
            CacheWriteFailure: If Redis rejects or cannot receive the write
        """
        try:
            self.redis.set(key, value, ex=ttl)
        except redis.RedisError as e:
            raise CacheWriteFailure(f"Failed to write '{key}': {e}") from e

        logger.debug("cache_set", key=key, ttl=ttl)
