"""Base interface for embedding backends.

A backend turns one text into one vector for a given registry entry. Backends
are long-lived and shared process-wide; any per-model state they build lazily
must be safe to reuse across concurrent calls.
"""

from abc import ABC, abstractmethod
from typing import List

from ..models import EmbeddingModel, ProviderType


class EmbeddingBackend(ABC):
    """Abstract base class for all embedding backends."""

    provider: ProviderType

    @abstractmethod
    async def embed(self, model: EmbeddingModel, text: str) -> List[float]:
        """Compute the embedding of ``text`` with ``model``."""
        pass

    async def close(self) -> None:
        """Release clients or loaded models."""
        return None
