import io

import pytest

from docimporter.io.stream import CachedInputStream, CachedStreamFactory
from docimporter.pipeline.errors import StreamError


@pytest.fixture
def small_factory(tmp_path):
    return CachedStreamFactory(max_memory_instance=10, max_memory_pool=16, temp_dir=tmp_path)


def test_small_content_stays_in_memory(small_factory):
    stream = small_factory.new_input_stream(b"hello")
    assert stream.is_in_memory
    assert stream.temp_path is None
    assert stream.read() == b"hello"
    stream.dispose()


def test_content_over_instance_limit_spills_to_disk(small_factory, tmp_path):
    with small_factory.new_output_stream() as out:
        out.write(b"12345")
        out.write(b"6789012345")
        stream = out.get_input_stream()

    assert not stream.is_in_memory
    assert stream.temp_path.parent == tmp_path
    assert stream.temp_path.name.startswith("docimporter-")
    assert stream.read_all() == b"123456789012345"
    assert small_factory.pool_used == 0

    path = stream.temp_path
    stream.dispose()
    assert not path.exists()


def test_pool_limit_spills_new_streams(small_factory):
    first = small_factory.new_input_stream(b"x" * 10)
    second = small_factory.new_input_stream(b"y" * 10)

    assert first.is_in_memory
    assert not second.is_in_memory
    assert small_factory.pool_used == 10

    first.dispose()
    assert small_factory.pool_used == 0
    second.dispose()


def test_no_silent_truncation(tmp_path):
    factory = CachedStreamFactory(max_memory_instance=1024, max_memory_pool=4096, temp_dir=tmp_path)
    payload = bytes(range(256)) * 400
    stream = factory.new_input_stream(io.BytesIO(payload))
    assert stream.size == len(payload)
    assert stream.read_all() == payload
    stream.dispose()


def test_rewind_is_idempotent(stream_factory):
    stream = stream_factory.new_input_stream(b"line one\nline two\n")
    first = stream.read()
    stream.rewind()
    stream.rewind()
    assert stream.read() == first
    stream.rewind()
    assert stream.readline() == b"line one\n"
    assert list(stream) == [b"line two\n"]
    stream.dispose()


def test_read_all_leaves_stream_rewound(stream_factory):
    stream = stream_factory.new_input_stream(b"abc")
    stream.read(1)
    assert stream.read_all() == b"abc"
    assert stream.tell() == 0
    stream.dispose()


@pytest.mark.parametrize(
    "source, expected",
    [
        (b"bytes", b"bytes"),
        (bytearray(b"array"), b"array"),
        ("text é", "text é".encode("utf-8")),
        (io.BytesIO(b"file object"), b"file object"),
        (None, b""),
    ],
)
def test_new_input_stream_sources(stream_factory, source, expected):
    stream = stream_factory.new_input_stream(source)
    assert stream.read_all() == expected
    assert stream.is_empty == (expected == b"")
    stream.dispose()


def test_new_input_stream_copies_cached_stream(stream_factory):
    original = stream_factory.new_input_stream(b"shared")
    copy = stream_factory.new_input_stream(original)
    original.dispose()
    assert copy.read_all() == b"shared"
    copy.dispose()


def test_unsupported_source_type(stream_factory):
    with pytest.raises(TypeError):
        stream_factory.new_input_stream(42)


def test_dispose_is_idempotent(small_factory):
    stream = small_factory.new_input_stream(b"z" * 30)
    path = stream.temp_path
    stream.dispose()
    stream.dispose()
    assert stream.is_disposed
    assert not path.exists()
    with pytest.raises(StreamError):
        stream.read()


def test_output_stream_closed_without_hand_over_is_disposed(small_factory):
    out = small_factory.new_output_stream()
    out.write(b"1234567890")
    assert small_factory.pool_used == 10
    out.close()
    out.close()
    assert small_factory.pool_used == 0
    with pytest.raises(StreamError):
        out.write(b"more")


def test_output_stream_hands_over_once(stream_factory):
    out = stream_factory.new_output_stream()
    assert out.is_cache_empty
    out.write_text("héllo", "utf-8")
    assert not out.is_cache_empty
    stream = out.get_input_stream()
    out.close()
    assert not stream.is_disposed
    assert stream.read_text("utf-8") == "héllo"
    with pytest.raises(StreamError):
        out.get_input_stream()
    stream.dispose()


def test_input_stream_context_manager(stream_factory):
    with stream_factory.new_input_stream(b"ctx") as stream:
        assert isinstance(stream, CachedInputStream)
    assert stream.is_disposed


def test_temp_dir_created_on_spill(tmp_path):
    target = tmp_path / "not" / "yet"
    factory = CachedStreamFactory(max_memory_instance=0, max_memory_pool=0, temp_dir=target)
    stream = factory.new_input_stream(b"spill")
    assert stream.temp_path.parent == target
    stream.dispose()
