"""Fixed-size pool of workers that pull chunks from the shared cursor."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable

from .models import ChunkOutcome
from .retry import RetryingUploader
from .state import SessionState

logger = logging.getLogger(__name__)


class ConcurrencyPool:
    """Run exactly ``max_concurrent`` worker loops until the plan is drained."""

    def __init__(self, max_concurrent: int) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.max_concurrent = max_concurrent

    def _worker(
        self,
        worker_id: int,
        state: SessionState,
        uploader: RetryingUploader,
        on_outcome: Callable[[ChunkOutcome], None],
    ) -> int:
        handled = 0
        while True:
            with state.slots:
                chunk = state.claim_next()
                if chunk is None:
                    break
                outcome = uploader.upload_with_retry(chunk, state.retry_limit)
            handled += 1
            on_outcome(outcome)
        logger.debug(f"Worker {worker_id}: exiting after {handled} chunks")
        return handled

    def run(
        self,
        state: SessionState,
        uploader: RetryingUploader,
        on_outcome: Callable[[ChunkOutcome], None],
    ) -> int:
        """Block until every worker has exited; return the chunks handled."""
        handled = 0
        with ThreadPoolExecutor(
            max_workers=self.max_concurrent, thread_name_prefix="chunk-worker"
        ) as executor:
            futures = [
                executor.submit(self._worker, worker_id, state, uploader, on_outcome)
                for worker_id in range(self.max_concurrent)
            ]
            for fut in as_completed(futures):
                handled += fut.result()
        return handled
