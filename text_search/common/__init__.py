"""Common utilities shared across the embedding cache.

Includes:
- ``config``: Pydantic-based configuration from environment variables.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus metrics helpers.

Import pattern:
- from text_search.common.config import TextSearchConfig
- from text_search.common.logging import configure_logging
"""
