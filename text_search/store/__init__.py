"""Cache store adapters.

Primary components:
- ``base``: abstract ``EmbeddingCacheStore`` interface and common exceptions.
- ``memory``: in-process implementation.
- ``pgvector``: PostgreSQL/pgvector implementation.
- ``factory``: helper to construct a store from configuration.
"""

from .base import (
    EmbeddingCacheStore,
    EmbeddingStoreConnectionError,
    EmbeddingStoreError,
    EmbeddingStoreQueryError,
    UpsertResult,
)
from .memory import InMemoryEmbeddingCacheStore

__all__ = [
    "EmbeddingCacheStore",
    "EmbeddingStoreConnectionError",
    "EmbeddingStoreError",
    "EmbeddingStoreQueryError",
    "InMemoryEmbeddingCacheStore",
    "UpsertResult",
]
