"""
Exception classes for Chunked Upload.

Provides the error taxonomy used by transmitters, the retry loop and the
session controller.
"""

from typing import Any, Dict, Optional


class ChunkUploadError(Exception):
    """Base exception for all Chunked Upload errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class TransientTransmissionError(ChunkUploadError):
    """Raised for network or server hiccups that are worth retrying."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        details = {"status_code": status_code} if status_code else {}
        super().__init__(message, details)
        self.status_code = status_code


class FatalTransmissionError(ChunkUploadError):
    """Raised when the endpoint explicitly rejects a chunk."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        details = {"status_code": status_code} if status_code else {}
        super().__init__(message, details)
        self.status_code = status_code


class UploadCancelledError(ChunkUploadError):
    """Raised when cancellation is requested mid-transmission."""

    def __init__(self, message: str = "Upload cancelled") -> None:
        super().__init__(message)


class ConfigurationError(ChunkUploadError):
    """Raised for invalid construction inputs or settings."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, details)
        self.field = field


class ChunkUploadFailedError(ChunkUploadError):
    """Raised (or reported) when a chunk exhausted its retry budget."""

    def __init__(
        self,
        chunk_index: int,
        attempts: int,
        retry_limit: int,
        cause: Optional[BaseException] = None,
    ) -> None:
        message = (
            f"Chunk {chunk_index} failed after {attempts} attempts "
            f"(retry limit {retry_limit})"
        )
        details: Dict[str, Any] = {"chunk_index": chunk_index, "attempts": attempts}
        if cause is not None:
            details["cause"] = str(cause)
        super().__init__(message, details)
        self.chunk_index = chunk_index
        self.attempts = attempts
        self.retry_limit = retry_limit
        self.cause = cause


class SessionStateError(ChunkUploadError):
    """Raised when a control operation is invalid for the session's state."""

    def __init__(self, operation: str, state: str) -> None:
        super().__init__(
            f"Cannot {operation} a session that is {state}",
            {"operation": operation, "state": state},
        )
        self.operation = operation
        self.state = state


class ProgressStoreError(ChunkUploadError):
    """Raised when persisted progress cannot be read or written."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        details = {"path": path} if path else {}
        super().__init__(message, details)
        self.path = path
