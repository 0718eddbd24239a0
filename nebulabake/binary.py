"""Helpers that store encoded values as single chunks."""

from __future__ import annotations

from dataclasses import dataclass

from .bincode import BincodeError, Decoder, Encoder
from .chunk import ChunkError, Compression, write_chunk


class BinarySerError(Exception):
    """Raised when a value cannot be written to or read from a chunk."""


@dataclass
class NebulaBinarySerializer:
    """Settings for the compact binary ``.nebula`` format."""

    compression: Compression = Compression.BALANCED


def write_bincode_chunk(w, tag, value, compression):
    """Encode ``value`` (which provides ``encode(encoder)``) as one chunk."""
    encoder = Encoder()
    try:
        value.encode(encoder)
    except BincodeError as exc:
        raise BinarySerError(f"bincode: {exc}") from exc
    try:
        write_chunk(w, tag, encoder.to_bytes(), compression)
    except ChunkError as exc:
        raise BinarySerError(str(exc)) from exc


def read_bincode_chunk(data, cls):
    """Decode chunk data into an instance of ``cls`` via ``cls.decode``."""
    try:
        return cls.decode(Decoder(data))
    except BincodeError as exc:
        raise BinarySerError(f"bincode: {exc}") from exc