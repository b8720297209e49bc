"""
Chunked Upload - resumable, concurrency-bounded uploads of large files.

This package provides:
- Chunk planning and a bounded worker pool with per-chunk retry
- Pause, continue and cancel for running uploads
- Persisted per-chunk progress so interrupted uploads resume
- HTTP transmitter and a CLI tool
"""

__version__ = "1.0.0"

from .core.api import ChunkedUploadAPI, upload_file
from .core.config import UploadSettings
from .core.exceptions import (
    ChunkUploadError,
    ChunkUploadFailedError,
    ConfigurationError,
    FatalTransmissionError,
    ProgressStoreError,
    SessionStateError,
    TransientTransmissionError,
    UploadCancelledError,
)
from .core.models import Chunk, ChunkMetadata, ChunkOutcome, SessionStatus
from .core.planner import CHUNK_SIZE, plan_chunks, total_chunks
from .core.session import UploadSession
from .core.sources import BytesSource, FileSource, LocalFileSource, session_key_for
from .core.store import JsonFileProgressStore, MemoryProgressStore, ProgressStore
from .core.transmitter import ChunkTransmitter, HttpChunkTransmitter

__all__ = [
    # Core classes
    "UploadSession",
    "ChunkedUploadAPI",
    "UploadSettings",
    # Sources, stores and transmitters
    "FileSource",
    "LocalFileSource",
    "BytesSource",
    "ProgressStore",
    "MemoryProgressStore",
    "JsonFileProgressStore",
    "ChunkTransmitter",
    "HttpChunkTransmitter",
    # Models
    "Chunk",
    "ChunkMetadata",
    "ChunkOutcome",
    "SessionStatus",
    # Exceptions
    "ChunkUploadError",
    "ChunkUploadFailedError",
    "ConfigurationError",
    "FatalTransmissionError",
    "ProgressStoreError",
    "SessionStateError",
    "TransientTransmissionError",
    "UploadCancelledError",
    # Convenience functions
    "CHUNK_SIZE",
    "plan_chunks",
    "total_chunks",
    "session_key_for",
    "upload_file",
    # Metadata
    "__version__",
]
