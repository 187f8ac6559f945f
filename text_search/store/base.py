"""Base cache store interface.

Defines the single operation the embedding service depends on: an atomic
conditional upsert keyed by ``(fingerprint, model, type)``. Implementations
own the row layout; callers never see it.

All methods are asynchronous.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ..errors import TextSearchError


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of ``EmbeddingCacheStore.upsert``.

    ``id`` is ``None`` when no record exists and no vector was supplied.
    ``created`` is ``True`` only for the call whose insert won.
    """
    id: Optional[int]
    created: bool = False

    @property
    def found(self) -> bool:
        return self.id is not None


class EmbeddingCacheStore(ABC):
    """Abstract base class for embedding cache stores.

    Contract for ``upsert``
    - A record exists for the key: return its id, ignore ``vector``
    - No record, ``vector is None``: return ``UpsertResult(None)``, write nothing
    - No record, ``vector`` given: insert it and return the new id

    The insert must be atomic against concurrent callers on the same key:
    exactly one insert succeeds and every other caller observes its id.
    """

    @abstractmethod
    async def upsert(
        self,
        fingerprint: str,
        model: str,
        type: str,
        vector: Optional[Sequence[float]] = None,
        *,
        connection: Any = None
    ) -> UpsertResult:
        """Look up or create the record for ``(fingerprint, model, type)``.

        Parameters
        - connection: Optional caller-owned handle (e.g. an open transaction)
          used instead of the store's own connections
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        pass

    async def close(self) -> None:
        """Release any pooled resources."""
        return None


class EmbeddingStoreError(TextSearchError):
    """Base exception for cache store operations."""
    pass


class EmbeddingStoreConnectionError(EmbeddingStoreError):
    """Connection error to the cache store."""
    pass


class EmbeddingStoreQueryError(EmbeddingStoreError):
    """Query error in the cache store."""
    pass
