from pathlib import Path

import pytest

from chunked_upload.core.config import UploadSettings
from chunked_upload.core.exceptions import ConfigurationError
from chunked_upload.core.planner import CHUNK_SIZE


def test_defaults():
    settings = UploadSettings.from_env(environ={})

    assert settings.endpoint_url is None
    assert settings.chunk_size == CHUNK_SIZE
    assert settings.max_concurrent == 3
    assert settings.retry_times == 0
    assert settings.retry_backoff == 0.0
    assert settings.state_path == Path("~/.chunked_upload/progress.json").expanduser()
    assert "~" not in str(settings.state_path)


def test_reads_prefixed_environment_variables():
    settings = UploadSettings.from_env(
        environ={
            "CHUNKED_UPLOAD_ENDPOINT_URL": "https://uploads.example.com/chunks",
            "CHUNKED_UPLOAD_MAX_CONCURRENT": "6",
            "CHUNKED_UPLOAD_RETRY_TIMES": "2",
            "CHUNKED_UPLOAD_STATE_PATH": "/tmp/progress.json",
            "CHUNKED_UPLOAD_CHUNK_SIZE": "",
        }
    )

    assert settings.endpoint_url == "https://uploads.example.com/chunks"
    assert settings.max_concurrent == 6
    assert settings.retry_times == 2
    assert settings.state_path == Path("/tmp/progress.json")
    assert settings.chunk_size == CHUNK_SIZE


def test_overrides_win_over_environment():
    settings = UploadSettings.from_env(
        environ={"CHUNKED_UPLOAD_MAX_CONCURRENT": "6"},
        max_concurrent=1,
        retry_times=None,
    )

    assert settings.max_concurrent == 1
    assert settings.retry_times == 0


@pytest.mark.parametrize(
    "env,field",
    [
        ({"CHUNKED_UPLOAD_MAX_CONCURRENT": "0"}, "max_concurrent"),
        ({"CHUNKED_UPLOAD_RETRY_TIMES": "-1"}, "retry_times"),
        ({"CHUNKED_UPLOAD_CHUNK_SIZE": "lots"}, "chunk_size"),
        ({"CHUNKED_UPLOAD_ENDPOINT_URL": "ftp://example.com"}, "endpoint_url"),
    ],
)
def test_invalid_values_raise_configuration_error(env, field):
    with pytest.raises(ConfigurationError) as excinfo:
        UploadSettings.from_env(environ=env)
    assert excinfo.value.field == field
