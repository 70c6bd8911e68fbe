"""
Error taxonomy for document ingestion, with detailed error context.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class DetailedError(Exception):
    """Enhanced error with context information."""

    error_type = "ERROR"

    def __init__(
        self,
        message: str,
        error_type: Optional[str] = None,
        context: Optional[dict] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.error_type = error_type or type(self).error_type
        self.context = context or {}
        self.original_error = original_error

        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.message,
            "type": self.error_type,
            "context": self.context,
        }


class InvalidInputError(DetailedError):
    """Document text is missing, not a string, or empty."""

    error_type = "INVALID_INPUT"


class ChunkTooLargeError(DetailedError):
    """A chunk is over the hard byte ceiling and cannot be inserted."""

    error_type = "CHUNK_TOO_LARGE"


class StoreInsertError(DetailedError):
    """The store collaborator rejected a document."""

    error_type = "STORE_INSERT_FAILED"


class PayloadTooLargeError(StoreInsertError):
    """The store collaborator rejected a document for its size."""

    error_type = "PAYLOAD_TOO_LARGE"


class StoreClosedError(DetailedError):
    error_type = "STORE_CLOSED"


class IngestionFailedError(DetailedError):
    """No chunk of the document could be inserted."""

    error_type = "INGESTION_FAILED"

    def __init__(self, message: str, result=None, **kwargs):
        self.result = result
        super().__init__(message, **kwargs)


class UnsupportedFileTypeError(DetailedError):
    error_type = "UNSUPPORTED_FILE_TYPE"


_PAYLOAD_MARKERS = (
    "payload",
    "too large",
    "request entity",
    "request size",
    "maximum context length",
    "token limit",
    "exceeds the limit",
)


def is_payload_error(exc: BaseException) -> bool:
    """
    True when a store/embedding failure is about request size rather than
    anything else (auth, network, quota).
    """
    if isinstance(exc, PayloadTooLargeError):
        return True
    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    if status == 413:
        return True
    msg = str(exc).lower()
    return any(marker in msg for marker in _PAYLOAD_MARKERS)
