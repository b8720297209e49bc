"""Stub collaborators shared by the test modules."""

import threading
import time

from chunked_upload.core.exceptions import (
    FatalTransmissionError,
    TransientTransmissionError,
    UploadCancelledError,
)
from chunked_upload.core.store import MemoryProgressStore
from chunked_upload.core.transmitter import ChunkTransmitter

MIB = 1024 * 1024


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class StubTransmitter(ChunkTransmitter):
    """Records every attempt; can fail, reject, delay or hold chunks."""

    def __init__(self, transient_failures=None, fatal=(), delay=0.0, gate=None):
        self.transient_failures = dict(transient_failures or {})
        self.fatal = set(fatal)
        self.delay = delay
        self.gate = gate
        self.calls = []
        self.metadata = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.cancel_requested = False
        self._lock = threading.Lock()

    def transmit(self, chunk, data, metadata, cancel_event):
        with self._lock:
            self.calls.append(chunk.index)
            self.metadata.append(metadata)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                while not self.gate.wait(0.005):
                    if cancel_event.is_set():
                        raise UploadCancelledError()
            elif self.delay:
                time.sleep(self.delay)
            assert len(data) == chunk.size
            with self._lock:
                remaining = self.transient_failures.get(chunk.index, 0)
                if remaining:
                    self.transient_failures[chunk.index] = remaining - 1
                    raise TransientTransmissionError(f"hiccup on chunk {chunk.index}", 503)
            if chunk.index in self.fatal:
                raise FatalTransmissionError(f"chunk {chunk.index} rejected", 400)
        finally:
            with self._lock:
                self.in_flight -= 1

    def cancel(self):
        self.cancel_requested = True

    def attempts_for(self, index):
        with self._lock:
            return self.calls.count(index)


class RecordingStore(MemoryProgressStore):
    """In-memory store that remembers which keys were cleared."""

    def __init__(self):
        super().__init__()
        self.cleared = []

    def clear(self, key):
        self.cleared.append(key)
        super().clear(key)


class Callbacks:
    """Collects session callbacks."""

    def __init__(self):
        self.progress = []
        self.failures = []
        self.successes = 0
        self._lock = threading.Lock()

    def on_progress(self, percent):
        with self._lock:
            self.progress.append(percent)

    def on_fail(self, error):
        with self._lock:
            self.failures.append(error)

    def on_succeed(self):
        with self._lock:
            self.successes += 1

    def kwargs(self):
        return {
            "on_progress": self.on_progress,
            "on_fail": self.on_fail,
            "on_succeed": self.on_succeed,
        }
