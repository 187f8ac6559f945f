"""Local embedding backend using sentence-transformers.

Models are loaded on first use, one per identifier, and kept for the life of
the process. Loading and encoding are blocking, so both run in a worker
thread. Vectors are mean pooled (as configured by the model) and
L2-normalized.
"""

import asyncio
import time
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import structlog
from sentence_transformers import SentenceTransformer

from ..coordination.keyed_lock import KeyedLock
from ..models import EmbeddingModel, ProviderType
from .base import EmbeddingBackend

logger = structlog.get_logger("text_search.providers.local")

ModelLoader = Callable[[str], Any]


class SentenceTransformerBackend(EmbeddingBackend):
    """Feature-extraction backend running in this process.

    Notes
    - Models are cached by name; each is loaded at most once even when many
      requests for a cold model arrive together
    - ``loader`` may be injected to build something with an ``encode`` method
      compatible with ``SentenceTransformer.encode``
    """

    provider = ProviderType.LOCAL

    def __init__(self, device: Optional[str] = None, loader: Optional[ModelLoader] = None):
        self.device = device
        self._loader = loader or self._load_sentence_transformer
        self._models: Dict[str, Any] = {}
        self._loading: KeyedLock[str] = KeyedLock()

    def _load_sentence_transformer(self, model_name: str) -> SentenceTransformer:
        return SentenceTransformer(model_name, device=self.device)

    async def get_model(self, model_name: str) -> Any:
        """Return the loaded model, loading it on first use."""
        model = self._models.get(model_name)
        if model is not None:
            return model

        async with self._loading.hold(model_name):
            model = self._models.get(model_name)
            if model is None:
                start_time = time.time()
                try:
                    model = await asyncio.to_thread(self._loader, model_name)
                except Exception as e:
                    logger.error("Failed to load model", model_name=model_name, error=str(e))
                    raise
                self._models[model_name] = model
                logger.info(
                    "Loaded embedding model",
                    model_name=model_name,
                    duration_ms=(time.time() - start_time) * 1000
                )
        return model

    async def embed(self, model: EmbeddingModel, text: str) -> List[float]:
        encoder = await self.get_model(model.load_name)
        embedding = await asyncio.to_thread(
            encoder.encode,
            text,
            normalize_embeddings=True,
            convert_to_numpy=True,
        )
        return np.asarray(embedding, dtype=np.float32).reshape(-1).tolist()

    @property
    def loaded_models(self) -> List[str]:
        return list(self._models)

    async def close(self) -> None:
        self._models.clear()
