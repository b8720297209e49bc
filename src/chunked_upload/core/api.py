"""Programmatic API for chunked uploads."""

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from .config import UploadSettings
from .exceptions import ConfigurationError, UploadCancelledError
from .models import ProgressSnapshot, SessionStatus
from .planner import total_chunks
from .session import UploadSession
from .sources import LocalFileSource
from .store import JsonFileProgressStore, ProgressStore
from .transmitter import ChunkTransmitter, HttpChunkTransmitter

logger = logging.getLogger(__name__)


class ChunkedUploadAPI:
    """High-level API tying settings, transmitter and progress store together."""

    def __init__(
        self,
        settings: Optional[UploadSettings] = None,
        transmitter: Optional[ChunkTransmitter] = None,
        store: Optional[ProgressStore] = None,
    ):
        """Initialize the API.

        Args:
            settings: Upload settings (read from CHUNKED_UPLOAD_* env vars if omitted)
            transmitter: Chunk transmitter (HTTP to ``settings.endpoint_url`` if omitted)
            store: Progress store (JSON file at ``settings.state_path`` if omitted)
        """
        self.settings = settings or UploadSettings.from_env()
        self.store = store or JsonFileProgressStore(self.settings.state_path)
        self._transmitter = transmitter

    @property
    def transmitter(self) -> ChunkTransmitter:
        if self._transmitter is None:
            if not self.settings.endpoint_url:
                raise ConfigurationError(
                    "Endpoint URL required. Set CHUNKED_UPLOAD_ENDPOINT_URL "
                    "or pass endpoint_url.",
                    "endpoint_url",
                )
            self._transmitter = HttpChunkTransmitter(
                self.settings.endpoint_url, timeout=self.settings.request_timeout
            )
        return self._transmitter

    def create_session(
        self,
        local_path: Union[str, Path],
        on_progress: Optional[Callable[[float], None]] = None,
        on_fail: Optional[Callable[[Exception], None]] = None,
        on_succeed: Optional[Callable[[], None]] = None,
    ) -> UploadSession:
        """Build an idle session for a local file."""
        return UploadSession(
            LocalFileSource(local_path),
            self.settings.max_concurrent,
            on_progress=on_progress,
            on_fail=on_fail,
            on_succeed=on_succeed,
            retry_times=self.settings.retry_times,
            transmitter=self.transmitter,
            store=self.store,
            chunk_size=self.settings.chunk_size,
            retry_backoff=self.settings.retry_backoff,
        )

    def upload_file(
        self,
        local_path: Union[str, Path],
        progress_callback: Optional[Callable[[float], None]] = None,
        poll_interval: float = 0.5,
    ) -> bool:
        """Upload a file and block until it finishes.

        Interrupting with Ctrl-C pauses the session so the completed chunks
        stay persisted for the next run.

        Returns:
            True if every chunk was uploaded

        Raises:
            ChunkUploadFailedError: first chunk that exhausted its retries
            UploadCancelledError: the session was cancelled meanwhile
        """
        session = self.create_session(local_path, on_progress=progress_callback)
        session.start()
        try:
            while not session.join(timeout=poll_interval):
                pass
        except KeyboardInterrupt:
            logger.warning("Interrupted; pausing so the upload can be resumed")
            if session.status is SessionStatus.RUNNING:
                session.stop()
            session.join()
            raise

        status = session.status
        if status is SessionStatus.SUCCEEDED:
            return True
        if status is SessionStatus.FAILED:
            raise session.failures[0]
        if status is SessionStatus.CANCELLED:
            raise UploadCancelledError()
        return False

    def get_progress(self, local_path: Union[str, Path]) -> ProgressSnapshot:
        """Return the persisted progress for a local file."""
        source = LocalFileSource(local_path)
        total = total_chunks(source.size, self.settings.chunk_size)
        session_key = source.session_key_at(self.settings.chunk_size)
        completed = {i for i in self.store.load(session_key) if 0 <= i < total}
        return ProgressSnapshot(
            session_key=session_key,
            total_chunks=total,
            completed_chunks=len(completed),
        )

    def clear_progress(self, local_path: Union[str, Path]) -> None:
        """Discard persisted progress so the next upload starts from scratch."""
        source = LocalFileSource(local_path)
        self.store.clear(source.session_key_at(self.settings.chunk_size))


# Convenience function for quick usage
def upload_file(
    local_path: Union[str, Path],
    endpoint_url: Optional[str] = None,
    max_concurrent: Optional[int] = None,
    retry_times: Optional[int] = None,
    progress_callback: Optional[Callable[[float], None]] = None,
) -> bool:
    """Quick function to upload a file."""
    settings = UploadSettings.from_env(
        endpoint_url=endpoint_url,
        max_concurrent=max_concurrent,
        retry_times=retry_times,
    )
    api = ChunkedUploadAPI(settings)
    return api.upload_file(local_path, progress_callback=progress_callback)
