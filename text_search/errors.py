"""Error taxonomy for the embedding cache.

Every failure raised by this package derives from ``TextSearchError`` and
carries an ``error_kind`` so callers can map it onto a response without
inspecting the class hierarchy.
"""

from typing import Any, Dict


class ErrorKind:
    """Stable identifiers for error categories."""
    VALIDATION_FAILURE = "validation_failure"
    CONFIGURATION_FAILURE = "configuration_failure"
    NOT_IMPLEMENTED = "not_implemented"
    TRANSIENT_BACKEND_FAILURE = "transient_backend_failure"


class TextSearchError(Exception):
    """Base exception for embedding cache operations."""

    error_kind = ErrorKind.TRANSIENT_BACKEND_FAILURE

    def to_dict(self) -> Dict[str, Any]:
        """Render the error as ``{"errorKind", "message"}``."""
        return {"errorKind": self.error_kind, "message": str(self)}


class UnknownModelError(TextSearchError):
    """Model identifier is not in the registry."""
    error_kind = ErrorKind.VALIDATION_FAILURE

    def __init__(self, model: str):
        super().__init__(f"Unknown embedding model: {model}")
        self.model = model


class DimensionMismatchError(TextSearchError):
    """Backend returned a vector of the wrong length for its model."""
    error_kind = ErrorKind.VALIDATION_FAILURE

    def __init__(self, model: str, expected: int, actual: int):
        super().__init__(
            f"Expected vector dimension {expected} for model {model}, got {actual}"
        )
        self.model = model
        self.expected = expected
        self.actual = actual


class ProviderConfigurationError(TextSearchError):
    """Provider cannot be used with the current configuration."""
    error_kind = ErrorKind.CONFIGURATION_FAILURE


class ProviderNotImplementedError(TextSearchError):
    """Provider is registered but has no backend yet."""
    error_kind = ErrorKind.NOT_IMPLEMENTED


class ProviderRequestError(TextSearchError):
    """Provider call failed (network, HTTP status, malformed response)."""
    pass


class CoordinationError(TextSearchError):
    """Dedup coordinator could not acquire a lock."""
    pass
