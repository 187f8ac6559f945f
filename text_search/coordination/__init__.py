"""Dedup coordination for concurrent embedding requests.

- ``keyed_lock``: generic per-key asyncio mutual exclusion.
- ``base``: ``DedupCoordinator`` interface and ``LockHandle``.
- ``local``: single-process implementation.
- ``cluster``: redis-backed implementation.
- ``factory``: selection from configuration.
"""

from .base import DedupCoordinator, LockHandle
from .keyed_lock import KeyedLock
from .local import LocalDedupCoordinator

__all__ = ["DedupCoordinator", "KeyedLock", "LocalDedupCoordinator", "LockHandle"]
