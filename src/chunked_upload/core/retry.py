"""Per-chunk retry loop around a chunk transmitter."""

import logging
from typing import Callable, Optional

from .exceptions import (
    ChunkUploadFailedError,
    FatalTransmissionError,
    UploadCancelledError,
)
from .models import Chunk, ChunkMetadata, ChunkOutcome, OutcomeStatus
from .sources import FileSource
from .state import SessionState, invoke_callback
from .transmitter import ChunkTransmitter

logger = logging.getLogger(__name__)


class RetryingUploader:
    """Upload one chunk, retrying failed attempts up to a fixed budget."""

    def __init__(
        self,
        *,
        source: FileSource,
        transmitter: ChunkTransmitter,
        state: SessionState,
        on_progress: Optional[Callable[[float], None]] = None,
        retry_backoff: float = 0.0,
    ) -> None:
        """Initialize the uploader.

        Args:
            source: Bytes being uploaded
            transmitter: Sends a single chunk
            state: Session state used to persist completions
            on_progress: Called with the completed percentage after each chunk
            retry_backoff: Base delay in seconds before a retry, doubled per
                attempt. ``0`` retries immediately.
        """
        self.source = source
        self.transmitter = transmitter
        self.state = state
        self.on_progress = on_progress
        self.retry_backoff = retry_backoff

    def _cancelled(self, chunk: Chunk, attempts: int) -> ChunkOutcome:
        logger.info(f"Chunk {chunk.index}: cancelled after {attempts} attempts")
        return ChunkOutcome(
            chunk_index=chunk.index,
            status=OutcomeStatus.CANCELLED,
            attempts=attempts,
            error=UploadCancelledError(),
        )

    def upload_with_retry(self, chunk: Chunk, retry_limit: int) -> ChunkOutcome:
        """Transmit ``chunk`` at most ``retry_limit + 1`` times."""
        metadata = ChunkMetadata(
            session_key=self.state.session_key,
            chunk_index=chunk.index,
            total_chunks=self.state.total_chunks,
        )
        cancel_event = self.state.cancel_event
        data: Optional[bytes] = None
        last_error: Optional[Exception] = None
        attempts = 0

        for attempt in range(1, retry_limit + 2):
            if cancel_event.is_set():
                return self._cancelled(chunk, attempts)
            attempts = attempt
            try:
                if data is None:
                    data = self.source.read_range(chunk.start, chunk.end)
                logger.debug(
                    f"Chunk {chunk.index}: sending bytes {chunk.start}-{chunk.end} (attempt {attempt})"
                )
                self.transmitter.transmit(chunk, data, metadata, cancel_event)
            except UploadCancelledError:
                return self._cancelled(chunk, attempts)
            except FatalTransmissionError as exc:
                last_error = exc
                logger.error(f"Chunk {chunk.index}: rejected by endpoint: {exc}")
                break
            except Exception as exc:
                last_error = exc
                logger.warning(f"Chunk {chunk.index}: attempt {attempt} failed: {exc}")
                if attempt <= retry_limit and self.retry_backoff > 0:
                    delay = self.retry_backoff * 2 ** (attempt - 1)
                    logger.info(f"Chunk {chunk.index}: retrying in {delay}s...")
                    if cancel_event.wait(delay):
                        return self._cancelled(chunk, attempts)
                continue

            completed = self.state.record_completion(chunk.index)
            if completed is None:
                return self._cancelled(chunk, attempts)
            progress = self.state.percent(completed)
            logger.info(f"Chunk {chunk.index}: uploaded, progress: {progress:.1f}%")
            invoke_callback(self.on_progress, progress, description="Progress callback")
            return ChunkOutcome(
                chunk_index=chunk.index,
                status=OutcomeStatus.SUCCEEDED,
                attempts=attempts,
            )

        logger.error(f"Chunk {chunk.index}: giving up after {attempts} attempts")
        return ChunkOutcome(
            chunk_index=chunk.index,
            status=OutcomeStatus.FAILED,
            attempts=attempts,
            error=ChunkUploadFailedError(chunk.index, attempts, retry_limit, last_error),
        )
