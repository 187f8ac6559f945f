"""Static registry of supported embedding models.

Each entry names the provider that computes it and the dimensionality of its
vectors. The registry is immutable once built; services receive it
explicitly instead of reading a module global.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from .errors import UnknownModelError


class ProviderType(Enum):
    """Supported embedding providers."""
    LOCAL = "local"
    OPENAI = "openai"
    GOOGLE = "google"  # Registered, no backend yet


@dataclass(frozen=True)
class EmbeddingModel:
    """Registry entry for one model identifier.

    ``source_name`` is what the backend loads when it differs from the
    identifier records are keyed by.
    """
    name: str
    provider: ProviderType
    dimensions: int
    source_name: Optional[str] = None

    @property
    def load_name(self) -> str:
        return self.source_name or self.name

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "provider": self.provider.value,
            "dimensions": self.dimensions,
        }


class ModelRegistry:
    """Read-only lookup of ``EmbeddingModel`` by identifier."""

    def __init__(self, models: Iterable[EmbeddingModel]):
        table: Dict[str, EmbeddingModel] = {}
        for model in models:
            if model.name in table:
                raise ValueError(f"Duplicate model identifier: {model.name}")
            if model.dimensions <= 0:
                raise ValueError(f"Model {model.name} must have positive dimensions")
            table[model.name] = model
        self._models: Mapping[str, EmbeddingModel] = MappingProxyType(table)

    def get(self, name: str) -> EmbeddingModel:
        """Return the entry for ``name`` or raise ``UnknownModelError``."""
        model = self._models.get(name)
        if model is None:
            raise UnknownModelError(name)
        return model

    def find(self, name: str) -> Optional[EmbeddingModel]:
        return self._models.get(name)

    def list(self) -> List[EmbeddingModel]:
        return list(self._models.values())

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)


DEFAULT_MODELS = (
    EmbeddingModel(
        "Xenova/all-MiniLM-L6-v2",
        ProviderType.LOCAL,
        384,
        source_name="sentence-transformers/all-MiniLM-L6-v2",
    ),

    # google english / multilingual
    EmbeddingModel("text-embedding-004", ProviderType.GOOGLE, 768),
    EmbeddingModel("text-multilingual-embedding-002", ProviderType.GOOGLE, 768),

    EmbeddingModel("text-embedding-3-small", ProviderType.OPENAI, 1536),
    EmbeddingModel("text-embedding-3-large", ProviderType.OPENAI, 3072),
)

DEFAULT_REGISTRY = ModelRegistry(DEFAULT_MODELS)
