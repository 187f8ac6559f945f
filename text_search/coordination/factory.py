"""Dedup coordinator selection.

The coordinator is chosen once from configuration and injected into the
service; nothing branches on it per call.
"""

import redis.asyncio as redis
import structlog

from ..common.config import TextSearchConfig
from .base import DedupCoordinator
from .cluster import ClusterDedupCoordinator
from .local import LocalDedupCoordinator

logger = structlog.get_logger("text_search.coordination.factory")


def create_coordinator(config: TextSearchConfig) -> DedupCoordinator:
    """Create the coordinator selected by ``text_search_coordinator``."""
    kind = config.text_search_coordinator.lower()

    if kind == "local":
        logger.info("Using in-process dedup coordinator")
        return LocalDedupCoordinator()

    if kind == "cluster":
        logger.info(
            "Using cluster dedup coordinator",
            redis_url=config.text_search_redis_url,
            lock_timeout=config.text_search_lock_timeout
        )
        return ClusterDedupCoordinator(
            redis.from_url(config.text_search_redis_url),
            lock_timeout=config.text_search_lock_timeout,
        )

    raise ValueError(f"Unsupported dedup coordinator: {config.text_search_coordinator}")
