"""OpenAI embeddings backend.

Talks to the ``/embeddings`` endpoint over a shared ``httpx.AsyncClient``
created on first use. Requires an API key; without one every call fails with
``ProviderConfigurationError`` before any network I/O.
"""

from typing import Any, List, Optional

import httpx
import structlog

from ..errors import ProviderConfigurationError, ProviderRequestError
from ..models import EmbeddingModel, ProviderType
from .base import EmbeddingBackend

logger = structlog.get_logger("text_search.providers.openai")


class OpenAIEmbeddingBackend(EmbeddingBackend):
    """Remote backend for OpenAI embedding models."""

    provider = ProviderType.OPENAI

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Configure the backend.

        Parameters
        - api_key: OpenAI API key; ``None`` leaves the backend unusable
        - base_url: API root, without trailing ``/embeddings``
        - timeout: Per-request timeout in seconds
        - transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Authorization": f"Bearer {self.api_key}"},
                transport=self._transport,
            )
        return self._client

    async def embed(self, model: EmbeddingModel, text: str) -> List[float]:
        if not self.api_key:
            raise ProviderConfigurationError(
                f"OpenAI API key is required for model {model.name}"
            )

        try:
            response = await self._get_client().post(
                "/embeddings",
                json={"model": model.name, "input": text}
            )
        except httpx.HTTPError as e:
            logger.error("OpenAI request failed", model_name=model.name, error=str(e))
            raise ProviderRequestError(f"OpenAI request failed: {e}") from e

        if response.status_code != 200:
            logger.error(
                "OpenAI returned an error",
                model_name=model.name,
                status_code=response.status_code,
                body=response.text[:500]
            )
            raise ProviderRequestError(
                f"OpenAI returned status {response.status_code}"
            )

        return self._first_embedding(response.json())

    @staticmethod
    def _first_embedding(payload: Any) -> List[float]:
        try:
            embedding = payload["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderRequestError("OpenAI response has no embedding") from e
        return [float(v) for v in embedding]

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
