import pytest

from chunked_upload.core.sources import BytesSource, LocalFileSource, session_key_for


def test_session_key_combines_name_and_size():
    assert session_key_for("movie.mp4", 1024) == "movie.mp41024"


def test_session_key_is_url_safe():
    assert session_key_for("my file/v2.bin", 7) == "my%20file%2Fv2.bin7"
    assert session_key_for("résumé.pdf", 1) == "r%C3%A9sum%C3%A9.pdf1"


def test_session_key_keeps_unreserved_marks():
    assert session_key_for("a-b_c.d!e~f*g'h(i)", 0) == "a-b_c.d!e~f*g'h(i)0"


def test_session_key_tracks_non_default_chunk_size():
    assert session_key_for("movie.mp4", 1024, 5 * 1024 * 1024) == "movie.mp41024"
    assert session_key_for("movie.mp4", 1024, 256) == "movie.mp41024~c256"
    source = BytesSource(b"z" * 4, "tiny.bin")
    assert source.session_key_at(2) != source.session_key


def test_local_file_source_reads_ranges(tmp_path):
    path = tmp_path / "data.bin"
    path.write_bytes(b"0123456789")
    source = LocalFileSource(path)

    assert source.name == "data.bin"
    assert source.size == 10
    assert source.session_key == "data.bin10"
    assert source.read_range(0, 4) == b"0123"
    assert source.read_range(8, 10) == b"89"
    assert source.read_range(5, 5) == b""


def test_local_file_source_rejects_missing_and_directories(tmp_path):
    with pytest.raises(FileNotFoundError):
        LocalFileSource(tmp_path / "missing.bin")
    with pytest.raises(ValueError):
        LocalFileSource(tmp_path)


def test_bytes_source_rejects_out_of_range_reads():
    source = BytesSource(b"abc", "abc.txt")

    assert source.read_range(1, 3) == b"bc"
    with pytest.raises(ValueError):
        source.read_range(2, 4)
    with pytest.raises(ValueError):
        source.read_range(2, 1)
