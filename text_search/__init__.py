"""Embedding-creation cache.

Subpackages:
- ``text_search.common``: configuration, logging and metrics.
- ``text_search.store``: cache store contract and backends.
- ``text_search.coordination``: per-fingerprint dedup locks.
- ``text_search.providers``: embedding backends and the dispatcher.

Entry point:
- ``build_service(config)`` returns an ``EmbeddingService`` whose
  ``create_embedding(text)`` yields the id of the cached vector.
"""

from .errors import TextSearchError
from .hashing import fingerprint
from .models import DEFAULT_REGISTRY, EmbeddingModel, ModelRegistry, ProviderType
from .service import EmbeddingResult, EmbeddingService, build_service

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_REGISTRY",
    "EmbeddingModel",
    "EmbeddingResult",
    "EmbeddingService",
    "ModelRegistry",
    "ProviderType",
    "TextSearchError",
    "build_service",
    "fingerprint",
]
