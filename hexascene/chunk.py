"""Length-prefixed binary chunks: a four-byte magic, a 32-bit size, then packed records."""

from __future__ import annotations

import struct
from typing import BinaryIO, Iterable, Union

_HEADER = struct.Struct("<4sI")

Layout = Union[str, struct.Struct]


class ChunkError(ValueError):
    """Raised when a chunk cannot be read or written."""


def _magic_bytes(magic: str | bytes) -> bytes:
    return magic if isinstance(magic, bytes) else magic.encode("latin-1")


def _as_struct(layout: Layout) -> struct.Struct:
    return layout if isinstance(layout, struct.Struct) else struct.Struct(layout)


def read_chunk_bytes(stream: BinaryIO, magic: str | bytes) -> bytes:
    """Read one chunk with the given magic and return its payload."""
    header = stream.read(_HEADER.size)
    if len(header) < _HEADER.size:
        raise ChunkError("Failed to read chunk header")
    found, size = _HEADER.unpack(header)
    if found != _magic_bytes(magic):
        raise ChunkError("Unexpected magic number in chunk")
    data = stream.read(size)
    if len(data) < size:
        raise ChunkError("Failed to read chunk data.")
    return data


def read_chunk(stream: BinaryIO, magic: str | bytes, layout: Layout) -> list[tuple]:
    """Read one chunk and unpack it as a list of records of the given struct layout."""
    record = _as_struct(layout)
    header = stream.read(_HEADER.size)
    if len(header) < _HEADER.size:
        raise ChunkError("Failed to read chunk header")
    found, size = _HEADER.unpack(header)
    if found != _magic_bytes(magic):
        raise ChunkError("Unexpected magic number in chunk")
    if size % record.size != 0:
        raise ChunkError("Size of chunk not divisible by element size")
    data = stream.read(size)
    if len(data) < size:
        raise ChunkError("Failed to read chunk data.")
    return list(record.iter_unpack(data))


def write_chunk_bytes(stream: BinaryIO, magic: str | bytes, data: bytes) -> None:
    """Write a raw payload as one chunk."""
    tag = _magic_bytes(magic)
    if len(tag) != 4:
        raise ChunkError("Chunk magic must be exactly four bytes")
    stream.write(_HEADER.pack(tag, len(data)))
    stream.write(bytes(data))


def write_chunk(stream: BinaryIO, magic: str | bytes, layout: Layout, items: Iterable[tuple]) -> None:
    """Pack records with the given struct layout and write them as one chunk."""
    record = _as_struct(layout)
    payload = b"".join(record.pack(*item) for item in items)
    write_chunk_bytes(stream, magic, payload)