"""Distributed locks for kolour image generation."""

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

import redis

from kolours.core.logging import get_logger
from kolours.image_cid.exceptions import LockError, LockTimeout
from kolours.image_cid.models import Lock

logger = get_logger(__name__)

# Delete the key only while it still carries the caller's holder token
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""

DEFAULT_RETRY_INTERVAL = 0.01  # 10ms
DEFAULT_MAX_RETRY_INTERVAL = 0.05  # 50ms
RETRY_BACKOFF_FACTOR = 2.0


class LockManager(Protocol):
    """Cross-process mutual exclusion keyed by string."""

    def acquire(self, key: str, holder: str, ttl: float, max_wait: float) -> Lock: ...

    def release(self, lock: Lock) -> bool: ...


class RedisLockManager:
    """Lock manager using Redis ``SET NX PX`` with a compare-and-delete release.

    The TTL bounds how long a crashed holder can block others; release is only
    an optimization on top of it.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        retry_interval: float = DEFAULT_RETRY_INTERVAL,
        max_retry_interval: float = DEFAULT_MAX_RETRY_INTERVAL,
    ):
        """Initialize lock manager.

        Args:
            redis_client: Redis client
            retry_interval: First sleep between acquisition attempts in seconds
            max_retry_interval: Upper bound for the backoff sleep in seconds
        """
        self.redis = redis_client
        self.retry_interval = retry_interval
        self.max_retry_interval = max_retry_interval

    def _try_acquire(self, key: str, holder: str, ttl: float) -> bool:
        try:
            return bool(self.redis.set(key, holder, nx=True, px=max(1, int(ttl * 1000))))
        except redis.RedisError as e:
            raise LockError(f"Failed to acquire lock '{key}': {e}") from e

    def acquire(self, key: str, holder: str, ttl: float, max_wait: float) -> Lock:
        """Acquire a lock, retrying with exponential backoff until max_wait.

        Args:
            key: Lock key
            holder: Token identifying this caller
            ttl: Lease in seconds after which the lock expires on its own
            max_wait: Wait budget in seconds (0 for a single attempt)

        Returns:
            The held lock

        Raises:
            LockTimeout: If the lock is still held by someone else after max_wait
            LockError: If Redis cannot be reached
        """
        start_time = time.monotonic()
        attempt = 0

        while True:
            if self._try_acquire(key, holder, ttl):
                logger.debug("lock_acquired", key=key, holder=holder, attempts=attempt + 1)
                return Lock(key=key, holder=holder, ttl=ttl, acquired_at=time.time())

            remaining_time = max_wait - (time.monotonic() - start_time)
            if remaining_time <= 0:
                logger.info("lock_timeout", key=key, max_wait=max_wait, attempts=attempt + 1)
                raise LockTimeout(key, max_wait)

            backoff_time = min(
                self.retry_interval * (RETRY_BACKOFF_FACTOR**attempt),
                self.max_retry_interval,
            )
            time.sleep(min(backoff_time, remaining_time))
            attempt += 1

    def release(self, lock: Lock) -> bool:
        """Release a lock. This operation is idempotent.

        Only deletes the key while it is still held by ``lock.holder``, so a
        caller whose lease expired can never free a lock re-acquired by
        someone else.

        Returns:
            True if the lock was held by this holder and is now released,
            False if it had already expired or belongs to another holder.

        Raises:
            LockError: If Redis cannot be reached
        """
        try:
            deleted = self.redis.eval(RELEASE_SCRIPT, 1, lock.key, lock.holder)
        except redis.RedisError as e:
            raise LockError(f"Failed to release lock '{lock.key}': {e}") from e

        if not deleted:
            logger.warning("lock_release_not_owned", key=lock.key, holder=lock.holder)
            return False
        return True

    def is_locked(self, key: str) -> bool:
        """Check whether anyone currently holds the lock."""
        try:
            return bool(self.redis.exists(key))
        except redis.RedisError as e:
            raise LockError(f"Failed to check lock '{key}': {e}") from e


@contextmanager
def held(
    lock_manager: LockManager, key: str, holder: str, ttl: float, max_wait: float
) -> Iterator[Lock]:
    """Hold a lock for the duration of a with-block.

    The lock is released on every exit path, including exceptions raised
    inside the block. Nothing is released if acquisition itself fails.
    A release failure is logged and never replaces the outcome of the block:
    the lease still expires on its own.
    """
    lock = lock_manager.acquire(key, holder, ttl, max_wait)
    try:
        yield lock
    finally:
        try:
            lock_manager.release(lock)
        except LockError:
            logger.exception("lock_release_failed", key=key, holder=holder)
