"""Metrics collection for the embedding cache.

Provides a thin convenience wrapper around ``prometheus_client`` so the
service records cache, provider and coordination metrics consistently.

Design notes
- Metrics and labels are predeclared to avoid cardinality explosions
- A registry is kept per collector (inject one in tests)
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
import structlog

logger = structlog.get_logger("text_search.metrics")


class MetricsCollector:
    """Centralized metrics collection for the embedding cache.

    Parameters
    - service_name: Logical name used for scoping
    - registry: Optional custom ``CollectorRegistry`` (e.g. for testing)
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()

        self.embedding_requests = Counter(
            'text_search_embedding_requests_total',
            'Total create_embedding calls partitioned by how they were served',
            ['model_name', 'source'],
            registry=self.registry
        )

        self.embedding_failures = Counter(
            'text_search_embedding_failures_total',
            'Total create_embedding calls that raised',
            ['model_name', 'error_kind'],
            registry=self.registry
        )

        self.provider_requests = Counter(
            'text_search_provider_requests_total',
            'Total embedding backend invocations',
            ['provider', 'model_name', 'status'],
            registry=self.registry
        )

        self.provider_duration = Histogram(
            'text_search_provider_duration_seconds',
            'Embedding backend duration',
            ['provider', 'model_name'],
            registry=self.registry
        )

        self.lock_wait_duration = Histogram(
            'text_search_lock_wait_seconds',
            'Time spent waiting for the dedup lock',
            ['coordinator'],
            registry=self.registry
        )

        self.cache_hits = Counter(
            'text_search_cache_hits_total',
            'Total cache store hits',
            ['phase'],
            registry=self.registry
        )

        self.cache_misses = Counter(
            'text_search_cache_misses_total',
            'Total cache store misses',
            ['phase'],
            registry=self.registry
        )

    def record_embedding(self, model_name: str, source: str) -> None:
        """Record a successful create_embedding call."""
        self.embedding_requests.labels(model_name=model_name, source=source).inc()

    def record_embedding_failure(self, model_name: str, error_kind: str) -> None:
        """Record a failed create_embedding call."""
        self.embedding_failures.labels(model_name=model_name, error_kind=error_kind).inc()

    def record_provider_call(
        self,
        provider: str,
        model_name: str,
        status: str,
        duration: float
    ) -> None:
        """Record an embedding backend invocation.

        duration is expected in seconds to match Prometheus histogram units.
        """
        self.provider_requests.labels(provider=provider, model_name=model_name, status=status).inc()
        self.provider_duration.labels(provider=provider, model_name=model_name).observe(duration)

    def record_lock_wait(self, coordinator: str, duration: float) -> None:
        """Record time spent acquiring a dedup lock."""
        self.lock_wait_duration.labels(coordinator=coordinator).observe(duration)

    def record_cache_hit(self, phase: str) -> None:
        """Record cache hit."""
        self.cache_hits.labels(phase=phase).inc()

    def record_cache_miss(self, phase: str) -> None:
        """Record cache miss."""
        self.cache_misses.labels(phase=phase).inc()

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format for scraping."""
        return generate_latest(self.registry).decode('utf-8')

