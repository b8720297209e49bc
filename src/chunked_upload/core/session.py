"""Upload session controller: start, stop, continue and cancel."""

import logging
import threading
from typing import Callable, List, Optional

from .exceptions import ConfigurationError, SessionStateError
from .models import ChunkOutcome, OutcomeStatus, SessionStatus
from .planner import CHUNK_SIZE, plan_chunks, total_chunks
from .pool import ConcurrencyPool
from .retry import RetryingUploader
from .sources import FileSource
from .state import SessionState, invoke_callback
from .store import MemoryProgressStore, ProgressStore
from .transmitter import ChunkTransmitter

logger = logging.getLogger(__name__)


def _require_int(field: str, value, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigurationError(
            f"{field} must be an integer >= {minimum}, got {value!r}", field
        )


class UploadSession:
    """Resumable chunked upload of one file.

    ``start()`` returns immediately; chunks are uploaded by background worker
    threads and results are reported through the callbacks, which run on
    those worker threads. ``on_fail`` fires once per chunk that exhausts its
    retries and does not stop the other workers; call :meth:`cancel` from it
    to stop on the first failure.

    Example::

        session = UploadSession(
            LocalFileSource("video.mp4"),
            max_concurrent=3,
            on_progress=lambda pct: print(f"{pct:.0f}%"),
            on_fail=print,
            on_succeed=lambda: print("done"),
            retry_times=2,
            transmitter=HttpChunkTransmitter("https://example.com/upload"),
            store=JsonFileProgressStore("~/.chunked_upload/progress.json"),
        )
        session.start()
        session.join()
    """

    def __init__(
        self,
        source: FileSource,
        max_concurrent: int,
        on_progress: Optional[Callable[[float], None]] = None,
        on_fail: Optional[Callable[[Exception], None]] = None,
        on_succeed: Optional[Callable[[], None]] = None,
        retry_times: int = 0,
        *,
        transmitter: ChunkTransmitter,
        store: Optional[ProgressStore] = None,
        chunk_size: int = CHUNK_SIZE,
        retry_backoff: float = 0.0,
    ) -> None:
        _require_int("max_concurrent", max_concurrent, 1)
        _require_int("retry_times", retry_times, 0)
        _require_int("chunk_size", chunk_size, 1)
        if retry_backoff < 0:
            raise ConfigurationError("retry_backoff must not be negative", "retry_backoff")
        if transmitter is None:
            raise ConfigurationError("A chunk transmitter is required", "transmitter")
        for field, callback in (
            ("on_progress", on_progress),
            ("on_fail", on_fail),
            ("on_succeed", on_succeed),
        ):
            if callback is not None and not callable(callback):
                raise ConfigurationError(f"{field} must be callable", field)

        self.source = source
        self.max_concurrent = max_concurrent
        self.retry_times = retry_times
        self.chunk_size = chunk_size
        self.retry_backoff = retry_backoff
        self.on_progress = on_progress
        self.on_fail = on_fail
        self.on_succeed = on_succeed
        self.transmitter = transmitter
        self.store = store if store is not None else MemoryProgressStore()

        self.session_key = source.session_key_at(chunk_size)
        self.total_chunks = total_chunks(source.size, chunk_size)

        self._pool = ConcurrencyPool(max_concurrent)
        self._status = SessionStatus.IDLE
        self._state: Optional[SessionState] = None
        self._uploader: Optional[RetryingUploader] = None
        self._lock = threading.Lock()
        self._drained = threading.Condition(self._lock)
        self._active_runs = 0
        self._finalizing = 0
        self._threads: List[threading.Thread] = []

    @property
    def status(self) -> SessionStatus:
        with self._lock:
            return self._status

    @property
    def completed_count(self) -> int:
        if self._state is None:
            return 0
        return self._state.completed_count

    @property
    def progress(self) -> float:
        """Completed percentage, counting chunks finished in earlier runs."""
        if self._state is None:
            return 0.0
        return self._state.percent(self._state.completed_count)

    @property
    def failures(self) -> List[BaseException]:
        if self._state is None:
            return []
        return list(self._state.failures)

    def start(self) -> None:
        """Load persisted progress, plan the remaining chunks and start uploading."""
        with self._lock:
            if self._status is not SessionStatus.IDLE:
                raise SessionStateError("start", self._status.value)

            completed = {
                i for i in self.store.load(self.session_key) if 0 <= i < self.total_chunks
            }
            plan = plan_chunks(self.source.size, self.chunk_size, completed)
            self._state = SessionState(
                session_key=self.session_key,
                total_chunks=self.total_chunks,
                plan=plan,
                completed=completed,
                store=self.store,
                retry_limit=self.retry_times,
                concurrency=self.max_concurrent,
            )
            self._uploader = RetryingUploader(
                source=self.source,
                transmitter=self.transmitter,
                state=self._state,
                on_progress=self.on_progress,
                retry_backoff=self.retry_backoff,
            )
            if completed:
                logger.info(
                    f"Resuming {self.session_key}: {len(completed)} of "
                    f"{self.total_chunks} chunks already uploaded"
                )
            logger.info(
                f"Uploading {self.source.size} bytes as {self.total_chunks} chunks "
                f"of up to {self.chunk_size} bytes; {len(plan)} to send with "
                f"{self.max_concurrent} workers"
            )
            self._status = SessionStatus.RUNNING
            self._launch_locked()

    def stop(self) -> None:
        """Pause: stop claiming new chunks, let in-flight chunks finish."""
        with self._lock:
            if self._status is not SessionStatus.RUNNING:
                raise SessionStateError("stop", self._status.value)
            self._state.pause()
            self._status = SessionStatus.PAUSED
        logger.info(f"Paused {self.session_key}")

    def continue_(self) -> None:
        """Resume a paused session from the current cursor."""
        with self._lock:
            if self._status is not SessionStatus.PAUSED:
                raise SessionStateError("continue", self._status.value)
            self._state.resume()
            self._status = SessionStatus.RUNNING
            self._launch_locked()
        logger.info(f"Continuing {self.session_key}")

    resume = continue_

    def cancel(self) -> None:
        """Abort the session and discard its persisted progress."""
        with self._lock:
            if self._status.is_terminal:
                raise SessionStateError("cancel", self._status.value)
            self._status = SessionStatus.CANCELLED
            try:
                if self._state is None:
                    self.store.clear(self.session_key)
                else:
                    self._state.cancel()
            finally:
                self._drained.notify_all()
                self.transmitter.cancel()
        logger.info(f"Cancelled {self.session_key}; persisted progress cleared")

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait until no run is active. Returns False on timeout."""
        with self._drained:
            return self._drained.wait_for(
                lambda: self._active_runs == 0 and self._finalizing == 0, timeout
            )

    def _launch_locked(self) -> None:
        self._active_runs += 1
        thread = threading.Thread(
            target=self._run,
            name=f"upload-{len(self._threads)}",
            daemon=True,
        )
        self._threads.append(thread)
        thread.start()

    def _handle_outcome(self, outcome: ChunkOutcome) -> None:
        if outcome.status is OutcomeStatus.FAILED:
            self._state.record_failure(outcome.error)
            invoke_callback(self.on_fail, outcome.error, description="Failure callback")

    def _run(self) -> None:
        try:
            self._pool.run(self._state, self._uploader, self._handle_outcome)
        except Exception as e:
            logger.error(f"Upload run for {self.session_key} crashed: {e}")
            self._state.record_failure(e)
            invoke_callback(self.on_fail, e, description="Failure callback")
        self._finish_run()

    def _finish_run(self) -> None:
        succeeded = False
        with self._lock:
            self._active_runs -= 1
            if self._active_runs > 0:
                # Another run is still draining; it decides the outcome
                self._drained.notify_all()
                return

            state = self._state
            if state.cancelled:
                self._status = SessionStatus.CANCELLED
            elif state.failed:
                self._status = SessionStatus.FAILED
            elif state.exhausted:
                self._status = SessionStatus.SUCCEEDED
                succeeded = True
            else:
                self._status = SessionStatus.PAUSED
            status = self._status
            self._finalizing += 1

        logger.info(f"Upload run for {self.session_key} drained: {status.value}")
        try:
            if succeeded:
                invoke_callback(self.on_succeed, description="Success callback")
        finally:
            with self._lock:
                self._finalizing -= 1
                self._drained.notify_all()
