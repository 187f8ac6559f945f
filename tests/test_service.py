"""Tests for the create-embedding protocol."""

import asyncio

import httpx
import pytest

from text_search.errors import (
    DimensionMismatchError,
    ProviderConfigurationError,
    ProviderNotImplementedError,
    ProviderRequestError,
    UnknownModelError,
)
from text_search.hashing import fingerprint
from text_search.models import ProviderType
from text_search.providers.dispatcher import BackendContext, ProviderDispatcher
from text_search.providers.google import GoogleEmbeddingBackend
from text_search.providers.openai import OpenAIEmbeddingBackend
from text_search.service import EmbeddingService

from .conftest import RecordingStore, StubBackend


@pytest.mark.asyncio
async def test_end_to_end_openai_scenario(coordinator, backend, dispatcher):
    """First call computes and stores, second call is a cache hit."""
    store = RecordingStore(start_id=7)
    service = EmbeddingService(store, coordinator, dispatcher)

    first = await service.create_embedding("hello world", model="text-embedding-3-small")
    assert first.id == 7
    assert first.source == "computed"
    assert first.to_dict() == {"id": 7}
    assert len(backend.calls) == 1
    assert len(await store.get_vector(7)) == 1536

    second = await service.create_embedding("hello world", model="text-embedding-3-small")
    assert second.id == 7
    assert second.source == "cache"
    assert len(backend.calls) == 1

    # phase 1, phase 2, insert, then a single phase-1 hit
    assert [call[3] for call in store.calls] == [False, False, True, False]
    assert coordinator.active_keys == 0


@pytest.mark.asyncio
async def test_repeated_calls_are_idempotent(service, backend, store):
    ids = [(await service.create_embedding("same text")).id for _ in range(5)]

    assert len(set(ids)) == 1
    assert len(backend.calls) == 1
    assert await store.count() == 1


@pytest.mark.asyncio
async def test_defaults_are_used_when_omitted(service, store):
    result = await service.create_embedding("defaults")

    assert result.model == "text-embedding-3-small"
    assert result.type == "text"
    assert result.fingerprint == fingerprint("defaults")
    assert store.calls[0][1:3] == ("text-embedding-3-small", "text")


@pytest.mark.asyncio
async def test_type_and_model_partition_the_cache(service, backend):
    a = await service.create_embedding("text", type="query")
    b = await service.create_embedding("text", type="document")
    c = await service.create_embedding("text", model="text-embedding-3-large", type="query")

    assert len({a.id, b.id, c.id}) == 3
    assert len(backend.calls) == 3


@pytest.mark.asyncio
async def test_concurrent_duplicates_invoke_provider_once(store, coordinator, metrics):
    backend = StubBackend(delay=0.05)
    context = BackendContext({ProviderType.OPENAI: lambda: backend})
    service = EmbeddingService(
        store,
        coordinator,
        ProviderDispatcher(context),
        default_model="text-embedding-3-small",
        metrics=metrics,
    )

    results = await asyncio.gather(*[
        service.create_embedding("popular text") for _ in range(10)
    ])

    assert len(backend.calls) == 1
    assert len({r.id for r in results}) == 1
    assert sorted(r.source for r in results).count("computed") == 1
    assert await store.count() == 1
    assert coordinator.active_keys == 0
    assert 'source="deduplicated"' in metrics.get_metrics()


@pytest.mark.asyncio
async def test_distinct_fingerprints_do_not_block_each_other(service, backend):
    gate = asyncio.Event()
    backend.gates["slow"] = gate

    slow = asyncio.create_task(service.create_embedding("slow"))
    await asyncio.sleep(0.01)

    fast = await asyncio.wait_for(service.create_embedding("fast"), timeout=1.0)
    assert fast.source == "computed"
    assert not slow.done()

    gate.set()
    slow_result = await slow
    assert slow_result.id != fast.id


@pytest.mark.asyncio
async def test_provider_failure_releases_lock(store, coordinator):
    backend = StubBackend(error=ProviderRequestError("boom"))
    service = EmbeddingService(
        store,
        coordinator,
        ProviderDispatcher(BackendContext({ProviderType.OPENAI: lambda: backend})),
        default_model="text-embedding-3-small",
    )

    with pytest.raises(ProviderRequestError):
        await service.create_embedding("flaky")

    assert coordinator.active_keys == 0
    assert await store.count() == 0

    backend.error = None
    result = await asyncio.wait_for(service.create_embedding("flaky"), timeout=1.0)
    assert result.source == "computed"
    assert len(backend.calls) == 2


@pytest.mark.asyncio
async def test_cancellation_releases_lock(service, backend, coordinator):
    backend.gates["cancel me"] = asyncio.Event()

    task = asyncio.create_task(service.create_embedding("cancel me"))
    await asyncio.sleep(0.01)
    assert coordinator.active_keys == 1

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert coordinator.active_keys == 0

    del backend.gates["cancel me"]
    result = await asyncio.wait_for(service.create_embedding("cancel me"), timeout=1.0)
    assert result.source == "computed"


@pytest.mark.asyncio
async def test_unknown_model_writes_nothing(service, store, backend, metrics):
    with pytest.raises(UnknownModelError) as exc_info:
        await service.create_embedding("text", model="no-such-model")

    assert exc_info.value.to_dict()["errorKind"] == "validation_failure"
    assert store.calls == []
    assert backend.calls == []
    assert 'error_kind="validation_failure"' in metrics.get_metrics()


@pytest.mark.asyncio
async def test_missing_credential_fails_before_network(store, coordinator):
    requests = []

    def handler(request):
        requests.append(request)
        raise AssertionError("no request expected")

    openai_backend = OpenAIEmbeddingBackend(api_key=None, transport=httpx.MockTransport(handler))
    service = EmbeddingService(
        store,
        coordinator,
        ProviderDispatcher(BackendContext({ProviderType.OPENAI: lambda: openai_backend})),
        default_model="text-embedding-3-small",
    )

    with pytest.raises(ProviderConfigurationError):
        await service.create_embedding("hello world")

    assert requests == []
    assert await store.count() == 0
    assert coordinator.active_keys == 0


@pytest.mark.asyncio
async def test_reserved_provider_is_not_implemented(store, coordinator):
    service = EmbeddingService(
        store,
        coordinator,
        ProviderDispatcher(BackendContext({ProviderType.GOOGLE: GoogleEmbeddingBackend})),
    )

    with pytest.raises(ProviderNotImplementedError):
        await service.create_embedding("hallo", model="text-embedding-004")

    assert coordinator.active_keys == 0
    assert await store.count() == 0


@pytest.mark.asyncio
async def test_wrong_dimensions_are_not_stored(store, coordinator):
    class ShortBackend(StubBackend):
        async def embed(self, model, text):
            return [1.0, 2.0]

    service = EmbeddingService(
        store,
        coordinator,
        ProviderDispatcher(BackendContext({ProviderType.OPENAI: ShortBackend})),
        default_model="text-embedding-3-small",
    )

    with pytest.raises(DimensionMismatchError):
        await service.create_embedding("short")

    assert await store.count() == 0


@pytest.mark.asyncio
async def test_connection_is_used_for_every_store_call(service, store):
    connection = object()

    await service.create_embedding("in a transaction", connection=connection)
    await service.create_embedding("in a transaction", connection=connection)

    assert len(store.calls) == 4
    assert all(call[4] is connection for call in store.calls)


@pytest.mark.asyncio
async def test_store_error_propagates_without_id(coordinator, dispatcher, backend):
    from text_search.store.base import EmbeddingStoreQueryError

    class BrokenStore(RecordingStore):
        async def upsert(self, *args, **kwargs):
            raise EmbeddingStoreQueryError("connection reset")

    service = EmbeddingService(BrokenStore(), coordinator, dispatcher)

    with pytest.raises(EmbeddingStoreQueryError):
        await service.create_embedding("text", model="text-embedding-3-small")

    assert backend.calls == []


def test_model_lookups(service):
    assert service.get_model("text-embedding-3-large").dimensions == 3072
    names = [m["name"] for m in service.list_models()]
    assert "Xenova/all-MiniLM-L6-v2" in names
    with pytest.raises(UnknownModelError):
        service.get_model("missing")


@pytest.mark.asyncio
async def test_close_releases_backends(service, dispatcher, backend):
    await service.create_embedding("warm up")
    await service.close()

    # Backends are rebuilt on next use
    result = await service.create_embedding("after close")
    assert result.source == "computed"


@pytest.mark.asyncio
async def test_local_model_by_stored_identifier(service, backend):
    result = await service.create_embedding("x", model="Xenova/all-MiniLM-L6-v2")

    assert result.source == "computed"
    assert backend.calls == [("Xenova/all-MiniLM-L6-v2", "x")]
