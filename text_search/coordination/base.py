"""Dedup coordinator interface.

A coordinator serializes work on the same key inside its coordination domain
(one process, or every process sharing a redis). It only reduces duplicate
provider calls; correctness of the cache comes from the store's atomic upsert.

Every successful ``acquire`` must be paired with exactly one ``release`` on
every exit path. A missed release starves the key; prefer ``hold``.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator


@dataclass
class LockHandle:
    """Opaque token returned by ``acquire``."""
    key: str
    token: Any = field(default=None, repr=False)
    released: bool = False


class DedupCoordinator(ABC):
    """Named-lock registry keyed by string."""

    name = "base"

    @abstractmethod
    async def acquire(self, key: str) -> LockHandle:
        """Suspend until no other holder of ``key`` exists, then take it."""
        pass

    @abstractmethod
    async def release(self, handle: LockHandle) -> None:
        """Release a handle obtained from ``acquire``."""
        pass

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[LockHandle]:
        handle = await self.acquire(key)
        try:
            yield handle
        finally:
            await self.release(handle)

    async def close(self) -> None:
        return None
