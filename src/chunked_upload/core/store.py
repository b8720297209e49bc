"""Durable record of which chunks of a session have completed."""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from threading import RLock
from typing import Dict, Iterable, List, Set, Union

from .exceptions import ProgressStoreError

logger = logging.getLogger(__name__)


class ProgressStore(ABC):
    """Mapping from a session key to the set of completed chunk indices.

    Implementations must be safe to call from several worker threads.
    """

    def __init__(self) -> None:
        self._lock = RLock()

    @abstractmethod
    def load(self, key: str) -> Set[int]:
        """Return the completed indices for ``key`` (empty if none)."""

    @abstractmethod
    def save(self, key: str, indices: Iterable[int]) -> None:
        """Overwrite the completed indices for ``key``."""

    @abstractmethod
    def clear(self, key: str) -> None:
        """Forget everything recorded for ``key``."""

    def add(self, key: str, index: int) -> None:
        """Record one more completed index without losing concurrent updates."""
        with self._lock:
            indices = self.load(key)
            indices.add(index)
            self.save(key, indices)


class MemoryProgressStore(ProgressStore):
    """Process-local store, mainly for tests and short-lived uploads."""

    def __init__(self) -> None:
        super().__init__()
        self._data: Dict[str, List[int]] = {}

    def load(self, key: str) -> Set[int]:
        return set(self._data.get(key, []))

    def save(self, key: str, indices: Iterable[int]) -> None:
        self._data[key] = sorted(set(indices))

    def clear(self, key: str) -> None:
        self._data.pop(key, None)

    def add(self, key: str, index: int) -> None:
        with self._lock:
            current = self._data.setdefault(key, [])
            if index not in current:
                current.append(index)

    def keys(self) -> List[str]:
        return list(self._data)


class JsonFileProgressStore(ProgressStore):
    """All sessions in one JSON document on disk.

    The document maps each session key to a flat list of completed indices.
    Writes go to a temporary file first and are moved into place.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__()
        self.path = Path(path).expanduser()

    def _read_all(self) -> Dict[str, List[int]]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as e:
            raise ProgressStoreError(
                f"Progress file is not valid JSON: {e}", str(self.path)
            ) from e
        except OSError as e:
            raise ProgressStoreError(
                f"Failed to read progress file: {e}", str(self.path)
            ) from e
        if not isinstance(payload, dict):
            raise ProgressStoreError("Progress file must hold a JSON object", str(self.path))
        return payload

    def _write_all(self, payload: Dict[str, List[int]]) -> None:
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise ProgressStoreError(
                f"Failed to write progress file: {e}", str(self.path)
            ) from e

    def load(self, key: str) -> Set[int]:
        return {int(i) for i in self._read_all().get(key, [])}

    def save(self, key: str, indices: Iterable[int]) -> None:
        with self._lock:
            payload = self._read_all()
            payload[key] = sorted(set(indices))
            self._write_all(payload)

    def clear(self, key: str) -> None:
        with self._lock:
            payload = self._read_all()
            if payload.pop(key, None) is not None:
                self._write_all(payload)
                logger.debug(f"Cleared persisted progress for {key}")

    def add(self, key: str, index: int) -> None:
        with self._lock:
            payload = self._read_all()
            current = payload.setdefault(key, [])
            if index not in current:
                current.append(index)
                self._write_all(payload)

    def keys(self) -> List[str]:
        return list(self._read_all())
