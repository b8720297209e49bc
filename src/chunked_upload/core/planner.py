"""Chunk planning: split a byte range into fixed-size chunks."""

import math
from typing import Iterable, Iterator, List

from .models import Chunk

CHUNK_SIZE = 5 * 1024 * 1024


def total_chunks(size: int, chunk_size: int = CHUNK_SIZE) -> int:
    """Number of chunks needed to cover ``size`` bytes."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if size < 0:
        raise ValueError("size must not be negative")
    return math.ceil(size / chunk_size)


def iter_chunks(size: int, chunk_size: int = CHUNK_SIZE) -> Iterator[Chunk]:
    """Yield every chunk of the partition of ``[0, size)`` in index order."""
    for index in range(total_chunks(size, chunk_size)):
        start = index * chunk_size
        yield Chunk(index=index, start=start, end=min(size, start + chunk_size))


def plan_chunks(
    size: int, chunk_size: int = CHUNK_SIZE, completed: Iterable[int] = ()
) -> List[Chunk]:
    """Return the chunks still to upload, ascending by index.

    Indices in ``completed`` are treated as already satisfied; they still
    count toward the total but are left out of the plan.
    """
    done = set(completed)
    return [chunk for chunk in iter_chunks(size, chunk_size) if chunk.index not in done]
