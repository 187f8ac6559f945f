"""In-process implementation of the cache store.

Records live in a dict guarded by an ``asyncio.Lock``, which makes each
upsert atomic within one event loop. Ids are assigned sequentially from 1.
Suitable for tests and single-process deployments; nothing is persisted.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog

from .base import EmbeddingCacheStore, UpsertResult

logger = structlog.get_logger("text_search.store.memory")

Key = Tuple[str, str, str]


class InMemoryEmbeddingCacheStore(EmbeddingCacheStore):
    """Dict-backed cache store."""

    def __init__(self, start_id: int = 1):
        self._lock = asyncio.Lock()
        self._ids: Dict[Key, int] = {}
        self._vectors: Dict[int, List[float]] = {}
        self._next_id = start_id

    async def upsert(
        self,
        fingerprint: str,
        model: str,
        type: str,
        vector: Optional[Sequence[float]] = None,
        *,
        connection: Any = None
    ) -> UpsertResult:
        key = (fingerprint, model, type)
        async with self._lock:
            existing = self._ids.get(key)
            if existing is not None:
                return UpsertResult(existing)

            if vector is None:
                return UpsertResult(None)

            record_id = self._next_id
            self._next_id += 1
            self._ids[key] = record_id
            self._vectors[record_id] = [float(v) for v in vector]

        logger.debug(
            "Stored embedding",
            id=record_id,
            fingerprint=fingerprint,
            model=model,
            type=type
        )
        return UpsertResult(record_id, created=True)

    async def get_vector(self, record_id: int) -> Optional[List[float]]:
        """Return the stored vector for ``record_id``."""
        async with self._lock:
            return self._vectors.get(record_id)

    async def count(self) -> int:
        """Number of stored records."""
        async with self._lock:
            return len(self._ids)

    async def health_check(self) -> bool:
        return True
