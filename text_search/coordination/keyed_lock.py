"""Keyed mutual exclusion for asyncio tasks.

``KeyedLock`` hands out one ``asyncio.Lock`` per key. Entries are reference
counted (holders plus waiters) and removed once the count drops to zero, so
the table only ever contains keys with work in flight.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)


class _Entry:
    __slots__ = ("lock", "refs")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.refs = 0


class KeyedLock(Generic[K]):
    """Per-key asyncio locks with automatic cleanup.

    No fairness is promised among waiters for the same key; keys never block
    one another.
    """

    def __init__(self) -> None:
        self._entries: Dict[K, _Entry] = {}

    async def acquire(self, key: K) -> None:
        """Wait until ``key`` is free and take it."""
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _Entry()
        entry.refs += 1
        try:
            await entry.lock.acquire()
        except BaseException:
            # Cancelled while waiting
            self._unref(key, entry)
            raise

    def release(self, key: K) -> None:
        """Release ``key``. Must be called by the task that acquired it."""
        entry = self._entries.get(key)
        if entry is None or not entry.lock.locked():
            raise RuntimeError(f"Lock for key {key!r} is not held")
        entry.lock.release()
        self._unref(key, entry)

    @asynccontextmanager
    async def hold(self, key: K) -> AsyncIterator[None]:
        await self.acquire(key)
        try:
            yield
        finally:
            self.release(key)

    def locked(self, key: K) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        return len(self._entries)

    def _unref(self, key: K, entry: _Entry) -> None:
        entry.refs -= 1
        if entry.refs == 0 and self._entries.get(key) is entry:
            del self._entries[key]
