import pytest

from chunked_upload.core.api import ChunkedUploadAPI
from chunked_upload.core.config import UploadSettings
from chunked_upload.core.exceptions import ChunkUploadFailedError, ConfigurationError
from chunked_upload.core.store import MemoryProgressStore

from helpers import StubTransmitter


@pytest.fixture
def local_file(tmp_path):
    path = tmp_path / "archive.tar"
    path.write_bytes(b"0123456789abcdef")
    return path


def make_api(transmitter, **settings):
    values = {"chunk_size": 4, "max_concurrent": 2, "state_path": "/unused.json"}
    values.update(settings)
    return ChunkedUploadAPI(
        UploadSettings.build(**values), transmitter=transmitter, store=MemoryProgressStore()
    )


def test_upload_file_blocks_until_done(local_file):
    transmitter = StubTransmitter()
    api = make_api(transmitter)
    progress = []

    assert api.upload_file(local_file, progress_callback=progress.append) is True
    assert sorted(transmitter.calls) == [0, 1, 2, 3]
    assert max(progress) == 100.0
    assert api.get_progress(local_file).completed_chunks == 4


def test_upload_file_raises_first_chunk_failure(local_file):
    api = make_api(StubTransmitter(transient_failures={2: 10}), retry_times=1)

    with pytest.raises(ChunkUploadFailedError) as excinfo:
        api.upload_file(local_file)
    assert excinfo.value.chunk_index == 2
    assert excinfo.value.attempts == 2

    snapshot = api.get_progress(local_file)
    assert snapshot.completed_chunks == 3
    assert snapshot.total_chunks == 4
    assert snapshot.percent == 75.0


def test_clear_progress_forgets_completed_chunks(local_file):
    api = make_api(StubTransmitter(fatal={0}))
    with pytest.raises(ChunkUploadFailedError):
        api.upload_file(local_file)
    assert api.get_progress(local_file).completed_chunks == 3

    api.clear_progress(local_file)

    assert api.get_progress(local_file).completed_chunks == 0


def test_missing_endpoint_is_a_configuration_error(local_file):
    api = ChunkedUploadAPI(UploadSettings.build(), store=MemoryProgressStore())

    with pytest.raises(ConfigurationError):
        api.upload_file(local_file)
