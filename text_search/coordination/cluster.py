"""Cluster-wide dedup coordinator backed by redis.

Each key maps to a ``redis.asyncio`` lock. Locks carry an expiry so a process
that dies mid-computation cannot starve the key forever; the expiry must
exceed the slowest expected provider call.
"""

from typing import Optional

import redis.asyncio as redis
import structlog
from redis.exceptions import LockNotOwnedError, RedisError

from ..errors import CoordinationError
from .base import DedupCoordinator, LockHandle

logger = structlog.get_logger("text_search.coordination.cluster")


class ClusterDedupCoordinator(DedupCoordinator):
    """Coordinates every process that shares a redis instance."""

    name = "cluster"

    def __init__(
        self,
        redis_client: redis.Redis,
        lock_timeout: Optional[float] = 300.0,
        sleep: float = 0.05,
        key_prefix: str = "lock:"
    ):
        """Configure the coordinator.

        Parameters
        - redis_client: Shared async redis client
        - lock_timeout: Seconds before an unreleased lock expires (``None`` never)
        - sleep: Polling interval while waiting for a held lock
        - key_prefix: Prefix applied to redis key names
        """
        self.redis_client = redis_client
        self.lock_timeout = lock_timeout
        self.sleep = sleep
        self.key_prefix = key_prefix

    async def acquire(self, key: str) -> LockHandle:
        lock = self.redis_client.lock(
            self.key_prefix + key,
            timeout=self.lock_timeout,
            sleep=self.sleep,
            blocking=True,
            blocking_timeout=None,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as e:
            logger.error("Failed to acquire cluster lock", key=key, error=str(e))
            raise CoordinationError(f"Failed to acquire lock {key}: {e}") from e

        if not acquired:
            raise CoordinationError(f"Failed to acquire lock {key}")
        return LockHandle(key, token=lock)

    async def release(self, handle: LockHandle) -> None:
        if handle.released:
            raise RuntimeError(f"Lock {handle.key} released twice")
        handle.released = True
        try:
            await handle.token.release()
        except LockNotOwnedError:
            logger.warning(
                "Cluster lock expired before release",
                key=handle.key,
                lock_timeout=self.lock_timeout
            )
        except RedisError as e:
            logger.error("Failed to release cluster lock", key=handle.key, error=str(e))
            raise CoordinationError(f"Failed to release lock {handle.key}: {e}") from e

    async def close(self) -> None:
        """Close the redis client."""
        await self.redis_client.aclose()
