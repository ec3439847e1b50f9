import io
import struct

import pytest

from hexascene.chunk import (
    ChunkError,
    read_chunk,
    read_chunk_bytes,
    write_chunk,
    write_chunk_bytes,
)


def test_bytes_wire_format():
    buf = io.BytesIO()
    write_chunk_bytes(buf, "str0", b"abc")
    assert buf.getvalue() == b"str0\x03\x00\x00\x00abc"


def test_bytes_round_trip():
    buf = io.BytesIO()
    write_chunk_bytes(buf, b"str0", b"hello world")
    buf.seek(0)
    assert read_chunk_bytes(buf, "str0") == b"hello world"


def test_records_round_trip():
    items = [(1, 2.5, b"pers"), (7, -1.0, b"orth")]
    buf = io.BytesIO()
    write_chunk(buf, "cam0", "<If4s", items)
    buf.seek(0)
    assert read_chunk(buf, "cam0", struct.Struct("<If4s")) == items


def test_consecutive_chunks():
    buf = io.BytesIO()
    write_chunk(buf, "aaaa", "<I", [(1,), (2,)])
    write_chunk_bytes(buf, "bbbb", b"xy")
    buf.seek(0)
    assert read_chunk(buf, "aaaa", "<I") == [(1,), (2,)]
    assert read_chunk_bytes(buf, "bbbb") == b"xy"


def test_empty_chunk():
    buf = io.BytesIO()
    write_chunk(buf, "msh0", "<III", [])
    buf.seek(0)
    assert read_chunk(buf, "msh0", "<III") == []


def test_wrong_magic():
    buf = io.BytesIO()
    write_chunk_bytes(buf, "str0", b"abc")
    buf.seek(0)
    with pytest.raises(ChunkError, match="magic"):
        read_chunk_bytes(buf, "xfh0")


def test_short_header():
    with pytest.raises(ChunkError, match="header"):
        read_chunk(io.BytesIO(b"str"), "str0", "<I")


def test_size_not_divisible():
    buf = io.BytesIO()
    write_chunk_bytes(buf, "msh0", b"\x00" * 5)
    buf.seek(0)
    with pytest.raises(ChunkError, match="divisible"):
        read_chunk(buf, "msh0", "<I")


def test_truncated_data():
    buf = io.BytesIO()
    write_chunk_bytes(buf, "msh0", b"\x00" * 8)
    truncated = io.BytesIO(buf.getvalue()[:-3])
    with pytest.raises(ChunkError, match="data"):
        read_chunk(truncated, "msh0", "<I")


def test_write_bad_magic_length():
    with pytest.raises(ChunkError):
        write_chunk_bytes(io.BytesIO(), "toolong", b"")