import io

import pytest

from edgewire.reader import BoundedReader, Reader, make_reader


def test_reads_bytes_then_end():
    reader = Reader(b"\x01\xff")
    assert reader.read() == 1
    assert reader.read() == 0xFF
    assert reader.read() == -1


def test_read_bytes_returns_available():
    reader = Reader(b"abcdef")
    assert reader.read_bytes(4) == b"abcd"
    assert reader.read_bytes(4) == b"ef"
    assert reader.read_bytes(4) == b""


def test_string_source_is_utf8():
    text = "h\u00e9"
    reader = Reader(text)
    assert reader.read_bytes(10) == text.encode("utf-8")


def test_none_source_is_empty():
    assert Reader(None).read() == -1


def test_iterable_of_ints():
    reader = Reader([65, 66])
    assert reader.read_bytes(2) == b"AB"
    assert reader.read() == -1


def test_iterable_of_chars():
    reader = Reader(["x", "y"])
    assert reader.read_bytes(5) == b"xy"


def test_unsupported_source():
    with pytest.raises(TypeError):
        Reader(12)


def test_binary_stream():
    reader = Reader(io.BytesIO(b"\x00\x10rest"))
    assert reader.read() == 0
    assert reader.read() == 0x10
    assert reader.read_bytes(10) == b"rest"
    assert reader.read() == -1


def test_text_stream_multibyte_characters():
    text = "\u00e9\u00e8"
    reader = Reader(io.StringIO(text))
    encoded = text.encode("utf-8")
    assert reader.read() == encoded[0]
    assert reader.read_bytes(10) == encoded[1:]


def test_bounded_reader_stops_at_size():
    reader = BoundedReader(b"abcdef", 3)
    assert reader.read_bytes(10) == b"abc"
    assert reader.read() == -1


def test_bounded_reader_size_larger_than_data():
    reader = BoundedReader(b"ab", 10)
    assert reader.read() == ord("a")
    assert reader.read() == ord("b")
    assert reader.read() == -1


def test_bounded_reader_negative_size():
    with pytest.raises(ValueError):
        BoundedReader(b"ab", -1)


def test_make_reader_dispatch():
    unbounded = make_reader(b"abc")
    bounded = make_reader(b"abc", 2)
    assert isinstance(unbounded, Reader)
    assert isinstance(bounded, BoundedReader)
    assert bounded.read_bytes(5) == b"ab"
    assert unbounded.read_bytes(5) == b"abc"