"""Shared mutable state of one upload session."""

import logging
from threading import BoundedSemaphore, Event, Lock
from typing import Callable, Iterable, List, Optional, Sequence

from .models import Chunk
from .store import ProgressStore

logger = logging.getLogger(__name__)


def invoke_callback(callback: Optional[Callable], *args, description: str = "callback") -> None:
    """Call a user callback, logging instead of propagating its errors."""
    if callback is None:
        return
    try:
        callback(*args)
    except Exception as e:
        logger.warning(f"{description} error: {e}")


class SessionState:
    """Cursor, flags and completed indices shared by every worker.

    All mutations happen under one lock so workers running on real threads
    never claim the same chunk twice or lose a completion.
    """

    def __init__(
        self,
        *,
        session_key: str,
        total_chunks: int,
        plan: Sequence[Chunk],
        completed: Iterable[int],
        store: ProgressStore,
        retry_limit: int,
        concurrency: int,
    ) -> None:
        self.session_key = session_key
        self.total_chunks = total_chunks
        self.plan = list(plan)
        self.store = store
        self.retry_limit = retry_limit
        self.concurrency = concurrency

        self.cursor = 0
        self.paused = False
        self.cancelled = False
        self.completed = set(completed)
        self.failures: List[BaseException] = []

        self.cancel_event = Event()
        # Bounds claimed-but-unfinished chunks across overlapping runs
        self.slots = BoundedSemaphore(concurrency)
        self._lock = Lock()

    def claim_next(self) -> Optional[Chunk]:
        """Advance the cursor and return the claimed chunk, or None."""
        with self._lock:
            if self.paused or self.cancelled or self.cursor >= len(self.plan):
                return None
            chunk = self.plan[self.cursor]
            self.cursor += 1
            return chunk

    def record_completion(self, index: int) -> Optional[int]:
        """Persist a completed index and return the new completed count.

        Returns None when the session was cancelled meanwhile; nothing is
        persisted in that case.
        """
        with self._lock:
            if self.cancelled:
                return None
            if index not in self.completed:
                self.store.add(self.session_key, index)
                self.completed.add(index)
            return len(self.completed)

    def record_failure(self, error: BaseException) -> None:
        with self._lock:
            self.failures.append(error)

    def pause(self) -> None:
        with self._lock:
            self.paused = True

    def resume(self) -> None:
        with self._lock:
            self.paused = False

    def cancel(self) -> None:
        """Flag the session cancelled, signal workers and drop persisted progress."""
        with self._lock:
            self.cancelled = True
            self.paused = False
            self.cancel_event.set()
            self.store.clear(self.session_key)

    @property
    def completed_count(self) -> int:
        with self._lock:
            return len(self.completed)

    @property
    def exhausted(self) -> bool:
        """True once every planned chunk has been claimed."""
        with self._lock:
            return self.cursor >= len(self.plan)

    @property
    def failed(self) -> bool:
        with self._lock:
            return bool(self.failures)

    def percent(self, completed_count: int) -> float:
        if self.total_chunks == 0:
            return 100.0
        return completed_count / self.total_chunks * 100
