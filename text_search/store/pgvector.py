"""PgVector implementation of the cache store.

Embeddings are stored in PostgreSQL using the pgvector extension. The
lookup-or-insert protocol lives in the ``text_search_create_embedding`` SQL
function (see ``sql/text_search.sql``) so every upsert is a single round trip
and atomic against concurrent racers.

Connection management
- A shared asyncpg pool is created on demand and reused across calls
- A caller-supplied connection (e.g. inside a transaction) bypasses the pool
- Queries are funneled through ``_fetch_row`` for uniform error handling

Vectors are sent in pgvector text form and cast server side, so the query
works on any connection whether or not the binary ``vector`` codec was
registered on it.
"""

from typing import Any, Optional, Sequence

import asyncpg
import structlog
from asyncpg import Connection, Pool
from pgvector import Vector

from .base import (
    EmbeddingCacheStore,
    EmbeddingStoreConnectionError,
    EmbeddingStoreQueryError,
    UpsertResult,
)

logger = structlog.get_logger("text_search.store.pgvector")

CREATE_EMBEDDING_QUERY = "SELECT id, created FROM text_search_create_embedding($1, $2, $3, $4::text::vector)"


class PgEmbeddingCacheStore(EmbeddingCacheStore):
    """PgVector-backed cache store."""

    def __init__(
        self,
        dsn: str,
        pool_size: int = 10,
        command_timeout: int = 60,
    ):
        """Configure a PgVector-backed cache store.

        Parameters
        - dsn: PostgreSQL DSN including database and credentials
        - pool_size: Max size of asyncpg connection pool
        - command_timeout: Seconds to allow per DB command
        """
        self.dsn = dsn
        self.pool_size = pool_size
        self.command_timeout = command_timeout
        self._pool: Optional[Pool] = None

    async def _get_pool(self) -> Pool:
        """Get or create connection pool.

        Lazily initializes an asyncpg pool so callers don't pay startup cost
        unless they make a call that requires the database.
        """
        if self._pool is None:
            try:
                self._pool = await asyncpg.create_pool(
                    self.dsn,
                    min_size=1,
                    max_size=self.pool_size,
                    command_timeout=self.command_timeout,
                )
                logger.info("Created PgVector connection pool", pool_size=self.pool_size)
            except Exception as e:
                logger.error("Failed to create PgVector connection pool", error=str(e))
                raise EmbeddingStoreConnectionError(f"Failed to create connection pool: {e}") from e

        return self._pool

    async def _fetch_row(self, query: str, *args: Any, connection: Optional[Connection] = None) -> Any:
        """Run ``query`` on ``connection`` or a pooled connection.

        Query failures are wrapped in ``EmbeddingStoreQueryError``.
        """
        if connection is not None:
            try:
                return await connection.fetchrow(query, *args)
            except Exception as e:
                logger.error("Query execution failed", query=query, error=str(e))
                raise EmbeddingStoreQueryError(f"Query failed: {e}") from e

        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                return await conn.fetchrow(query, *args)
        except Exception as e:
            logger.error("Query execution failed", query=query, error=str(e))
            raise EmbeddingStoreQueryError(f"Query failed: {e}") from e

    async def upsert(
        self,
        fingerprint: str,
        model: str,
        type: str,
        vector: Optional[Sequence[float]] = None,
        *,
        connection: Any = None
    ) -> UpsertResult:
        vector_text = None if vector is None else Vector(vector).to_text()

        row = await self._fetch_row(
            CREATE_EMBEDDING_QUERY,
            fingerprint,
            model,
            type,
            vector_text,
            connection=connection,
        )

        if row is None or row["id"] is None:
            return UpsertResult(None)

        result = UpsertResult(int(row["id"]), created=bool(row["created"]))
        if result.created:
            logger.info(
                "Stored embedding",
                id=result.id,
                fingerprint=fingerprint,
                model=model,
                type=type
            )
        return result

    async def health_check(self) -> bool:
        """Check if the database is reachable."""
        try:
            await self._fetch_row("SELECT 1")
            return True
        except Exception as e:
            logger.error("Health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Closed PgVector connection pool")
