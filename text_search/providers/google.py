"""Google embeddings backend (not implemented).

The Google models stay in the registry so their identifiers and dimensions
are known, but no client exists yet. Every call fails with
``ProviderNotImplementedError``.
"""

from typing import List

from ..errors import ProviderNotImplementedError
from ..models import EmbeddingModel, ProviderType
from .base import EmbeddingBackend


class GoogleEmbeddingBackend(EmbeddingBackend):
    """Placeholder for Vertex AI text embedding models."""

    provider = ProviderType.GOOGLE

    async def embed(self, model: EmbeddingModel, text: str) -> List[float]:
        # TODO: call the Vertex AI text-embedding predict endpoint
        raise ProviderNotImplementedError(
            f"Provider {self.provider.value} is not implemented (model {model.name})"
        )
