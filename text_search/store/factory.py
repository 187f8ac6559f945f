"""Cache store factory.

Centralizes creation of concrete ``EmbeddingCacheStore`` backends so callers
don't depend on implementation details.
"""

from enum import Enum

import structlog

from ..common.config import TextSearchConfig
from .base import EmbeddingCacheStore
from .memory import InMemoryEmbeddingCacheStore
from .pgvector import PgEmbeddingCacheStore

logger = structlog.get_logger("text_search.store.factory")


class StoreType(Enum):
    """Supported cache store types."""
    MEMORY = "memory"
    PGVECTOR = "pgvector"


def create_store(config: TextSearchConfig) -> EmbeddingCacheStore:
    """Create the cache store selected by ``text_search_store_backend``."""
    try:
        store_type = StoreType(config.text_search_store_backend.lower())
    except ValueError:
        raise ValueError(f"Unsupported cache store backend: {config.text_search_store_backend}")

    if store_type == StoreType.PGVECTOR:
        if not config.text_search_db_dsn:
            raise ValueError("TEXT_SEARCH_DB_DSN environment variable is required for pgvector")

        logger.info("Using PgVector cache store", pool_size=config.text_search_db_pool_size)
        return PgEmbeddingCacheStore(
            dsn=config.text_search_db_dsn,
            pool_size=config.text_search_db_pool_size,
            command_timeout=config.text_search_db_command_timeout,
        )

    logger.info("Using in-memory cache store")
    return InMemoryEmbeddingCacheStore()
