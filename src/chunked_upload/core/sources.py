"""Byte sources that can be split into chunks."""

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote

from .planner import CHUNK_SIZE

# Characters encodeURIComponent leaves untouched besides alphanumerics
_UNRESERVED = "-_.!~*'()"


def session_key_for(name: str, size: int, chunk_size: int = CHUNK_SIZE) -> str:
    """Derive the URL-safe session key for a file from its name and size.

    Progress recorded at one chunk size means nothing at another, so a
    non-default ``chunk_size`` is appended as a ``~c<bytes>`` suffix.
    """
    key = quote(f"{name}{size}", safe=_UNRESERVED)
    if chunk_size != CHUNK_SIZE:
        key = f"{key}~c{chunk_size}"
    return key


class FileSource(ABC):
    """Immutable handle on the bytes being uploaded."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Logical file name used to derive the session key."""

    @property
    @abstractmethod
    def size(self) -> int:
        """Total size in bytes."""

    @abstractmethod
    def read_range(self, start: int, end: int) -> bytes:
        """Return the bytes in ``[start, end)``."""

    @property
    def session_key(self) -> str:
        return session_key_for(self.name, self.size)

    def session_key_at(self, chunk_size: int) -> str:
        return session_key_for(self.name, self.size, chunk_size)

    def _check_range(self, start: int, end: int) -> None:
        if start < 0 or end < start or end > self.size:
            raise ValueError(
                f"Invalid range [{start}, {end}) for source of {self.size} bytes"
            )


class LocalFileSource(FileSource):
    """A file on disk, read lazily one range at a time."""

    def __init__(self, path: Union[str, Path], name: Optional[str] = None) -> None:
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Local file not found: {self.path}")
        if self.path.is_dir():
            raise ValueError(f"Path is a directory, not a file: {self.path}")
        self._name = name or self.path.name
        self._size = self.path.stat().st_size

    @property
    def name(self) -> str:
        return self._name

    @property
    def size(self) -> int:
        return self._size

    def read_range(self, start: int, end: int) -> bytes:
        self._check_range(start, end)
        with open(self.path, "rb") as f:
            f.seek(start)
            return f.read(end - start)

    def __repr__(self) -> str:
        return f"LocalFileSource({os.fspath(self.path)!r}, size={self._size})"


class BytesSource(FileSource):
    """In-memory bytes, mostly useful for embedding and tests."""

    def __init__(self, data: bytes, name: str) -> None:
        self._data = bytes(data)
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def size(self) -> int:
        return len(self._data)

    def read_range(self, start: int, end: int) -> bytes:
        self._check_range(start, end)
        return self._data[start:end]

    def __repr__(self) -> str:
        return f"BytesSource(name={self._name!r}, size={len(self._data)})"
