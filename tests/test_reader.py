import io

import pytest

from ordinal.core.exceptions import TruncatedImage
from ordinal.parsers.reader import ImageReader, describe_source, open_image


def test_read_at_returns_exact_bytes():
    reader = ImageReader(io.BytesIO(b"0123456789"))
    assert reader.size == 10
    assert reader.read_at(2, 3, "test") == b"234"


def test_read_past_end_raises_truncated_with_stage():
    reader = ImageReader(io.BytesIO(b"abcd"), path="x.dll")
    with pytest.raises(TruncatedImage) as info:
        reader.read_at(2, 4, "file_header")
    err = info.value
    assert err.stage == "file_header"
    assert err.offset == 2
    assert err.wanted == 4
    assert err.available == 2
    assert "x.dll" in str(err)


def test_little_endian_integers():
    reader = ImageReader(io.BytesIO(b"\x34\x12\x78\x56\x34\x12"))
    assert reader.u16_at(0, "test") == 0x1234
    assert reader.u32_at(2, "test") == 0x12345678


def test_read_cstring_stops_at_nul():
    reader = ImageReader(io.BytesIO(b"xxHello\x00World\x00"))
    assert reader.read_cstring(2) == b"Hello"


def test_read_cstring_spanning_chunks():
    name = b"A" * 150
    reader = ImageReader(io.BytesIO(name + b"\x00tail"))
    assert reader.read_cstring(0) == name


def test_read_cstring_unterminated_stops_at_eof():
    reader = ImageReader(io.BytesIO(b"NoTerminator"))
    assert reader.read_cstring(2) == b"Terminator"


def test_read_cstring_respects_limit():
    reader = ImageReader(io.BytesIO(b"B" * 100))
    assert reader.read_cstring(0, limit=10) == b"B" * 10


def test_read_cstring_past_eof_is_empty():
    reader = ImageReader(io.BytesIO(b"abc"))
    assert reader.read_cstring(3) == b""
    assert reader.read_cstring(100) == b""


def test_open_image_closes_file(tmp_path):
    path = tmp_path / "image.bin"
    path.write_bytes(b"MZ")
    with open_image(path) as reader:
        stream = reader._stream
        assert reader.path == str(path)
    assert stream.closed


def test_open_image_closes_file_on_error(tmp_path):
    path = tmp_path / "image.bin"
    path.write_bytes(b"MZ")
    with pytest.raises(TruncatedImage):
        with open_image(path) as reader:
            stream = reader._stream
            reader.u32_at(0x3C, "dos_header")
    assert stream.closed


def test_open_image_leaves_caller_stream_open():
    stream = io.BytesIO(b"MZ")
    with open_image(stream) as reader:
        assert reader.size == 2
    assert not stream.closed


def test_open_image_missing_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        with open_image(tmp_path / "missing.dll"):
            pass


def test_describe_source():
    assert describe_source(b"MZ") == "<memory>"
    assert describe_source("a/b.dll") == "a/b.dll"
    assert describe_source(io.BytesIO()) == "<stream>"
