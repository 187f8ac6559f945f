"""Embedding service: the public create-embedding operation.

Given a text, returns the id of its cached embedding, computing and storing
it only when no record exists yet for ``(fingerprint, model, type)``.

Protocol
1. Phase 1: look up the fingerprint without a vector. A hit returns at once,
   with no lock and no provider call.
2. On a miss, take the dedup lock for the fingerprint.
3. Phase 2: look up again under the lock. A request that finished while we
   waited is returned as is.
4. Still missing: compute the vector and upsert it. The upsert is atomic, so
   a racer from outside the coordination domain cannot cause a duplicate row.
5. The lock is released on every exit path.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import structlog

from .common.config import TextSearchConfig
from .common.logging import configure_logging
from .common.metrics import MetricsCollector
from .coordination.base import DedupCoordinator
from .coordination.factory import create_coordinator
from .errors import TextSearchError
from .hashing import fingerprint as compute_fingerprint
from .models import DEFAULT_REGISTRY, EmbeddingModel, ModelRegistry
from .providers.dispatcher import BackendContext, ProviderDispatcher
from .store.base import EmbeddingCacheStore, EmbeddingStoreQueryError
from .store.factory import create_store
from .tokens import TokenCodec

logger = structlog.get_logger("text_search.service")

SOURCE_CACHE = "cache"
SOURCE_DEDUPLICATED = "deduplicated"
SOURCE_COMPUTED = "computed"


@dataclass(frozen=True)
class EmbeddingResult:
    """Id of the cached embedding plus how this call obtained it."""
    id: int
    fingerprint: str
    model: str
    type: str
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id}


class EmbeddingService:
    """Orchestrates hashing, caching, dedup and backend dispatch.

    Parameters
    - store: Cache store with an atomic conditional upsert
    - coordinator: Dedup coordinator, chosen once at startup
    - dispatcher: Routes model identifiers to backends
    - registry: Model registry used for validation and lookups
    - default_model/default_type: Used when a call omits them
    - lock_prefix: Namespace for dedup lock keys
    - token_codec: Codec behind ``encode_tokens``/``decode_tokens``
    - metrics: Optional ``MetricsCollector``
    """

    def __init__(
        self,
        store: EmbeddingCacheStore,
        coordinator: DedupCoordinator,
        dispatcher: ProviderDispatcher,
        registry: ModelRegistry = DEFAULT_REGISTRY,
        default_model: str = "Xenova/all-MiniLM-L6-v2",
        default_type: str = "text",
        lock_prefix: str = "text-search/create-embedding/",
        token_codec: Optional[TokenCodec] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        self.store = store
        self.coordinator = coordinator
        self.dispatcher = dispatcher
        self.registry = registry
        self.default_model = default_model
        self.default_type = default_type
        self.lock_prefix = lock_prefix
        self.token_codec = token_codec or TokenCodec()
        self.metrics = metrics

    async def create_embedding(
        self,
        text: str,
        *,
        model: Optional[str] = None,
        type: Optional[str] = None,
        connection: Any = None
    ) -> EmbeddingResult:
        """Return the id of the embedding for ``text``, creating it if needed.

        Parameters
        - text: Raw text; no normalization is applied before hashing
        - model: Registry identifier (defaults to ``default_model``)
        - type: Caller-defined record type (defaults to ``default_type``)
        - connection: Store handle (e.g. a transaction) used for every store
          call made by this invocation

        Raises a ``TextSearchError`` subclass on failure; no id is returned
        from a failed path.
        """
        model = model or self.default_model
        type = type or self.default_type

        try:
            result = await self._create_embedding(text, model, type, connection)
        except TextSearchError as e:
            if self.metrics is not None:
                self.metrics.record_embedding_failure(model, e.error_kind)
            raise

        if self.metrics is not None:
            self.metrics.record_embedding(model, result.source)
        return result

    async def _create_embedding(
        self,
        text: str,
        model: str,
        type: str,
        connection: Any
    ) -> EmbeddingResult:
        self.registry.get(model)

        fingerprint = compute_fingerprint(text)
        log = logger.bind(fingerprint=fingerprint, model=model, type=type)

        # Phase 1: lookup only, no lock
        res = await self.store.upsert(fingerprint, model, type, None, connection=connection)
        if res.found:
            self._record_cache("phase1", hit=True)
            return EmbeddingResult(res.id, fingerprint, model, type, SOURCE_CACHE)
        self._record_cache("phase1", hit=False)

        wait_start = time.time()
        async with self.coordinator.hold(self.lock_prefix + fingerprint):
            if self.metrics is not None:
                self.metrics.record_lock_wait(self.coordinator.name, time.time() - wait_start)

            # Phase 2: another holder may have finished while we waited
            res = await self.store.upsert(fingerprint, model, type, None, connection=connection)
            if res.found:
                self._record_cache("phase2", hit=True)
                log.debug("Embedding created by concurrent request", id=res.id)
                return EmbeddingResult(res.id, fingerprint, model, type, SOURCE_DEDUPLICATED)
            self._record_cache("phase2", hit=False)

            vector = await self.dispatcher.compute(model, text)

            res = await self.store.upsert(fingerprint, model, type, vector, connection=connection)

        if not res.found:
            log.error("Cache store returned no id for an inserted embedding")
            raise EmbeddingStoreQueryError("Cache store returned no id for an inserted embedding")

        log.info("Embedding created", id=res.id, created=res.created)
        return EmbeddingResult(res.id, fingerprint, model, type, SOURCE_COMPUTED)

    def _record_cache(self, phase: str, hit: bool) -> None:
        if self.metrics is None:
            return
        if hit:
            self.metrics.record_cache_hit(phase)
        else:
            self.metrics.record_cache_miss(phase)

    def get_model(self, name: str) -> EmbeddingModel:
        """Registry entry for ``name``; raises ``UnknownModelError``."""
        return self.registry.get(name)

    def list_models(self) -> List[Dict[str, object]]:
        return [model.to_dict() for model in self.registry.list()]

    def encode_tokens(self, text: str) -> List[int]:
        return self.token_codec.encode(text)

    def decode_tokens(self, tokens: Sequence[int]) -> str:
        return self.token_codec.decode(tokens)

    async def health_check(self) -> bool:
        return await self.store.health_check()

    async def close(self) -> None:
        """Release backends, coordinator and store resources."""
        await self.dispatcher.context.close()
        await self.coordinator.close()
        await self.store.close()
        logger.info("Embedding service closed")


def build_service(
    config: Optional[TextSearchConfig] = None,
    metrics: Optional[MetricsCollector] = None,
    registry: ModelRegistry = DEFAULT_REGISTRY
) -> EmbeddingService:
    """Wire an ``EmbeddingService`` from configuration.

    Store and coordinator backends are selected here, once.
    """
    config = config or TextSearchConfig()
    configure_logging("text-search", config.text_search_log_level, config.text_search_log_format)
    metrics = metrics or MetricsCollector("text-search")

    if config.text_search_model not in registry:
        raise ValueError(f"Default model {config.text_search_model} is not registered")

    dispatcher = ProviderDispatcher(
        BackendContext.from_config(config),
        registry=registry,
        metrics=metrics,
    )

    service = EmbeddingService(
        store=create_store(config),
        coordinator=create_coordinator(config),
        dispatcher=dispatcher,
        registry=registry,
        default_model=config.text_search_model,
        default_type=config.text_search_type,
        lock_prefix=config.text_search_lock_prefix,
        token_codec=TokenCodec(config.text_search_token_encoding),
        metrics=metrics,
    )

    logger.info(
        "Embedding service configured",
        env=config.text_search_env,
        store=config.text_search_store_backend,
        coordinator=config.text_search_coordinator,
        default_model=config.text_search_model
    )
    return service
