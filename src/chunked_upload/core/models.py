"""
Pydantic models for Chunked Upload.

These models describe chunks, the metadata sent with each chunk and the
outcome of uploading one chunk.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SessionStatus(str, Enum):
    """Upload session lifecycle states."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (
            SessionStatus.SUCCEEDED,
            SessionStatus.FAILED,
            SessionStatus.CANCELLED,
        )


class OutcomeStatus(str, Enum):
    """Final status of a single chunk upload."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class Chunk(BaseModel):
    """A contiguous byte range ``[start, end)`` of the source file."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Ordinal of the chunk in the file")
    start: int = Field(..., ge=0, description="First byte offset (inclusive)")
    end: int = Field(..., ge=0, description="Last byte offset (exclusive)")

    @model_validator(mode="after")
    def validate_range(self) -> "Chunk":
        """Validate that the range is not inverted."""
        if self.end < self.start:
            raise ValueError("Chunk end must not precede its start")
        return self

    @property
    def size(self) -> int:
        return self.end - self.start


class ChunkMetadata(BaseModel):
    """Fields the remote endpoint needs to reassemble the upload."""

    model_config = ConfigDict(frozen=True)

    session_key: str = Field(..., min_length=1, description="URL-safe session key")
    chunk_index: int = Field(..., ge=0, description="Index of this chunk")
    total_chunks: int = Field(..., ge=1, description="Number of chunks in the file")

    def as_form_fields(self) -> dict:
        """Return the multipart form fields in the endpoint's wire naming."""
        return {
            "fileName": self.session_key,
            "chunkIndex": str(self.chunk_index),
            "totalChunks": str(self.total_chunks),
        }


class ChunkOutcome(BaseModel):
    """Result of uploading one chunk, retries included."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    chunk_index: int = Field(..., ge=0)
    status: OutcomeStatus
    attempts: int = Field(..., ge=0, description="Number of transmission attempts made")
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED


class ProgressSnapshot(BaseModel):
    """Persisted progress for one session key."""

    session_key: str
    total_chunks: int = Field(..., ge=0)
    completed_chunks: int = Field(..., ge=0)

    @property
    def percent(self) -> float:
        if self.total_chunks == 0:
            return 100.0
        return self.completed_chunks / self.total_chunks * 100
