import pytest

from chunked_upload.core.planner import CHUNK_SIZE, iter_chunks, plan_chunks, total_chunks

from helpers import MIB


def test_chunk_size_is_five_mib():
    assert CHUNK_SIZE == 5 * MIB


@pytest.mark.parametrize(
    "size,chunk_size",
    [(0, 4), (1, 4), (3, 4), (4, 4), (5, 4), (17, 4), (10 * MIB, CHUNK_SIZE), (12 * MIB + 1, CHUNK_SIZE)],
)
def test_chunks_partition_the_file(size, chunk_size):
    chunks = list(iter_chunks(size, chunk_size))

    assert len(chunks) == total_chunks(size, chunk_size) == -(-size // chunk_size)
    assert [c.index for c in chunks] == list(range(len(chunks)))
    position = 0
    for chunk in chunks:
        assert chunk.start == position
        assert 0 < chunk.size <= chunk_size
        position = chunk.end
    assert position == size
    # every chunk but the last is full
    assert all(c.size == chunk_size for c in chunks[:-1])


def test_ten_mib_file_has_two_chunks():
    chunks = plan_chunks(10 * MIB)
    assert [(c.start, c.end) for c in chunks] == [(0, 5 * MIB), (5 * MIB, 10 * MIB)]


def test_plan_excludes_completed_indices():
    plan = plan_chunks(40, 4, completed={0, 3, 9})

    assert [c.index for c in plan] == [1, 2, 4, 5, 6, 7, 8]
    assert len(plan) == total_chunks(40, 4) - 3


def test_plan_ignores_indices_outside_the_file():
    plan = plan_chunks(8, 4, completed={5, 42})
    assert [c.index for c in plan] == [0, 1]


def test_plan_is_empty_when_everything_completed():
    assert plan_chunks(8, 4, completed=[0, 1]) == []


def test_invalid_chunk_size_is_rejected():
    with pytest.raises(ValueError):
        total_chunks(10, 0)
