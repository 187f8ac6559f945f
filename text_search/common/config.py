"""Configuration management for the text-search embedding cache.

This module centralizes environment-driven configuration. It builds on
``pydantic_settings.BaseSettings`` so configuration can be provided via
environment variables, ``.env`` files, or defaults.

Highlights
- Strongly-typed settings with sensible defaults
- Field names match the environment variable names (case-insensitive)
- Backend selection (store, coordinator) happens once, from these values

Usage
- ``config = TextSearchConfig()``
- ``service = build_service(config)``
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TextSearchConfig(BaseSettings):
    """Configuration for the embedding cache.

    Parameters are read from the process environment with the same names as
    the fields (``TEXT_SEARCH_MODEL``, ``OPENAI_API_KEY`` and so on).

    Notes
    - ``text_search_model``/``text_search_type`` are the defaults used when a
      caller omits them on ``create_embedding``.
    - ``openai_api_key`` is optional; models served by OpenAI fail with a
      configuration error until it is set.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    text_search_env: str = Field(default="local")

    # Logging
    text_search_log_level: str = Field(default="INFO")
    text_search_log_format: str = Field(default="json")

    # Defaults for create_embedding
    text_search_model: str = Field(default="Xenova/all-MiniLM-L6-v2")
    text_search_type: str = Field(default="text")

    # Cache store
    text_search_store_backend: str = Field(default="memory")
    text_search_db_dsn: Optional[str] = Field(default=None)
    text_search_db_pool_size: int = Field(default=10)
    text_search_db_command_timeout: int = Field(default=60)

    # Dedup coordination
    text_search_coordinator: str = Field(default="local")
    text_search_redis_url: str = Field(default="redis://localhost:6379")
    text_search_lock_timeout: float = Field(default=300.0)
    text_search_lock_prefix: str = Field(default="text-search/create-embedding/")

    # Local backend
    text_search_device: Optional[str] = Field(default=None)

    # Token codec
    text_search_token_encoding: str = Field(default="cl100k_base")

    # OpenAI
    openai_api_key: Optional[str] = Field(default=None)
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    openai_timeout: float = Field(default=30.0)

