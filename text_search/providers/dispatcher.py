"""Routing from model identifier to embedding backend.

``BackendContext`` owns the process-wide backend instances. Each provider's
backend is built by its factory on first request and then reused; the
context is passed to the dispatcher explicitly rather than living in a
module global.
"""

import time
from typing import Callable, Dict, List, Mapping, Optional

import structlog

from ..common.config import TextSearchConfig
from ..common.metrics import MetricsCollector
from ..errors import DimensionMismatchError, ProviderNotImplementedError
from ..models import DEFAULT_REGISTRY, EmbeddingModel, ModelRegistry, ProviderType
from .base import EmbeddingBackend
from .google import GoogleEmbeddingBackend
from .local import SentenceTransformerBackend
from .openai import OpenAIEmbeddingBackend

logger = structlog.get_logger("text_search.providers.dispatcher")

BackendFactory = Callable[[], EmbeddingBackend]


class BackendContext:
    """Initialize-once holder for embedding backends."""

    def __init__(self, factories: Mapping[ProviderType, BackendFactory]):
        self._factories: Dict[ProviderType, BackendFactory] = dict(factories)
        self._backends: Dict[ProviderType, EmbeddingBackend] = {}

    @classmethod
    def from_config(cls, config: TextSearchConfig) -> "BackendContext":
        """Build a context whose backends are configured from ``config``."""
        return cls({
            ProviderType.LOCAL: lambda: SentenceTransformerBackend(device=config.text_search_device),
            ProviderType.OPENAI: lambda: OpenAIEmbeddingBackend(
                api_key=config.openai_api_key,
                base_url=config.openai_base_url,
                timeout=config.openai_timeout,
            ),
            ProviderType.GOOGLE: GoogleEmbeddingBackend,
        })

    def get(self, provider: ProviderType) -> EmbeddingBackend:
        """Return the backend for ``provider``, creating it on first use."""
        backend = self._backends.get(provider)
        if backend is None:
            factory = self._factories.get(provider)
            if factory is None:
                raise ProviderNotImplementedError(f"No backend registered for provider {provider.value}")
            backend = self._backends[provider] = factory()
            logger.info("Initialized embedding backend", provider=provider.value)
        return backend

    async def close(self) -> None:
        """Close every backend created so far."""
        backends = list(self._backends.values())
        self._backends.clear()
        for backend in backends:
            await backend.close()


class ProviderDispatcher:
    """Computes embeddings by routing each model to its provider's backend."""

    def __init__(
        self,
        context: BackendContext,
        registry: ModelRegistry = DEFAULT_REGISTRY,
        metrics: Optional[MetricsCollector] = None
    ):
        self.context = context
        self.registry = registry
        self.metrics = metrics

    async def compute(self, model_name: str, text: str) -> List[float]:
        """Compute the embedding of ``text`` with ``model_name``.

        Raises
        - ``UnknownModelError`` when the model is not registered
        - ``ProviderConfigurationError``/``ProviderNotImplementedError``/
          ``ProviderRequestError`` from the backend
        - ``DimensionMismatchError`` when the vector length is wrong
        """
        model = self.registry.get(model_name)
        backend = self.context.get(model.provider)

        start_time = time.time()
        try:
            vector = await backend.embed(model, text)
            self._check_dimensions(model, vector)
        except Exception as e:
            self._record(model, "error", start_time)
            logger.warning(
                "Embedding backend failed",
                provider=model.provider.value,
                model_name=model.name,
                error=str(e)
            )
            raise

        self._record(model, "success", start_time)
        logger.debug(
            "Embedding computed",
            provider=model.provider.value,
            model_name=model.name,
            dimensions=len(vector)
        )
        return vector

    @staticmethod
    def _check_dimensions(model: EmbeddingModel, vector: List[float]) -> None:
        if len(vector) != model.dimensions:
            raise DimensionMismatchError(model.name, model.dimensions, len(vector))

    def _record(self, model: EmbeddingModel, status: str, start_time: float) -> None:
        if self.metrics is not None:
            self.metrics.record_provider_call(
                model.provider.value,
                model.name,
                status,
                time.time() - start_time
            )
