"""In-process dedup coordinator."""

from .base import DedupCoordinator, LockHandle
from .keyed_lock import KeyedLock


class LocalDedupCoordinator(DedupCoordinator):
    """Coordinates tasks within one event loop using ``KeyedLock``."""

    name = "local"

    def __init__(self) -> None:
        self._locks: KeyedLock[str] = KeyedLock()

    async def acquire(self, key: str) -> LockHandle:
        await self._locks.acquire(key)
        return LockHandle(key)

    async def release(self, handle: LockHandle) -> None:
        if handle.released:
            raise RuntimeError(f"Lock {handle.key} released twice")
        self._locks.release(handle.key)
        handle.released = True

    @property
    def active_keys(self) -> int:
        """Number of keys currently held or waited on."""
        return len(self._locks)
