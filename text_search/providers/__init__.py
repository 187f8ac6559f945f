"""Embedding backends and the dispatcher that routes models to them."""

from .base import EmbeddingBackend
from .dispatcher import BackendContext, ProviderDispatcher

__all__ = ["BackendContext", "EmbeddingBackend", "ProviderDispatcher"]
