"""Shared fixtures for the embedding cache tests."""

import asyncio
from typing import Any, List, Optional, Sequence, Tuple

import pytest
from prometheus_client import CollectorRegistry

from text_search.common.metrics import MetricsCollector
from text_search.coordination.local import LocalDedupCoordinator
from text_search.models import DEFAULT_REGISTRY, EmbeddingModel, ProviderType
from text_search.providers.base import EmbeddingBackend
from text_search.providers.dispatcher import BackendContext, ProviderDispatcher
from text_search.service import EmbeddingService
from text_search.store.base import UpsertResult
from text_search.store.memory import InMemoryEmbeddingCacheStore


class StubBackend(EmbeddingBackend):
    """Backend returning constant vectors of the model's dimensionality."""

    provider = ProviderType.OPENAI

    def __init__(self, delay: float = 0.0, error: Optional[Exception] = None):
        self.delay = delay
        self.error = error
        self.calls: List[Tuple[str, str]] = []
        self.gates = {}

    async def embed(self, model: EmbeddingModel, text: str) -> List[float]:
        self.calls.append((model.name, text))
        gate = self.gates.get(text)
        if gate is not None:
            await gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return [0.5] * model.dimensions


class RecordingStore(InMemoryEmbeddingCacheStore):
    """In-memory store that records every upsert call."""

    def __init__(self, start_id: int = 1):
        super().__init__(start_id=start_id)
        self.calls: List[Tuple[str, str, str, bool, Any]] = []

    async def upsert(
        self,
        fingerprint: str,
        model: str,
        type: str,
        vector: Optional[Sequence[float]] = None,
        *,
        connection: Any = None
    ) -> UpsertResult:
        self.calls.append((fingerprint, model, type, vector is not None, connection))
        return await super().upsert(fingerprint, model, type, vector, connection=connection)


@pytest.fixture
def backend():
    return StubBackend()


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def coordinator():
    return LocalDedupCoordinator()


@pytest.fixture
def metrics():
    return MetricsCollector("test-service", registry=CollectorRegistry())


@pytest.fixture
def dispatcher(backend, metrics):
    context = BackendContext({
        ProviderType.LOCAL: lambda: backend,
        ProviderType.OPENAI: lambda: backend,
    })
    return ProviderDispatcher(context, registry=DEFAULT_REGISTRY, metrics=metrics)


@pytest.fixture
def service(store, coordinator, dispatcher, metrics):
    return EmbeddingService(
        store=store,
        coordinator=coordinator,
        dispatcher=dispatcher,
        default_model="text-embedding-3-small",
        metrics=metrics,
    )
