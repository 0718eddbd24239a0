"""Chunked binary container format for bake outputs.

On-disk layout of a chunk::

    [tag: u32 BE] [flags: u32 LE] [uncompressed_len: u64 LE]
    [compressed_len: u64 LE] [data: bytes]

Flag bit 0 marks a zstd-compressed payload.
"""

from __future__ import annotations

import io
import struct
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Iterator, Optional

import zstandard

FORMAT_VERSION = 1
MAGIC = b"NEBULA\0\0"
FLAG_COMPRESSED = 0x01

_CHUNK_FIELDS = struct.Struct("<IQQ")


class Compression(Enum):
    """Per-chunk compression level."""

    NONE = 0
    FAST = 1
    BALANCED = 9
    BEST = 19

    def zstd_level(self):
        return self.value

    @classmethod
    def default(cls):
        return cls.BALANCED


@dataclass(frozen=True)
class ChunkTag:
    """An open, extensible four-byte chunk type tag (big-endian u32)."""

    value: int

    HEADER: ClassVar["ChunkTag"]
    METADATA: ClassVar["ChunkTag"]
    END: ClassVar["ChunkTag"]

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"chunk tag value must be an int, got {self.value!r}")
        if not 0 <= self.value <= 0xFFFF_FFFF:
            raise ValueError(f"chunk tag value {self.value} is out of u32 range")

    @classmethod
    def from_bytes(cls, b):
        raw = bytes(b)
        if len(raw) != 4:
            raise ValueError(f"chunk tag needs exactly 4 bytes, got {len(raw)}")
        return cls(int.from_bytes(raw, "big"))

    def to_bytes(self):
        return self.value.to_bytes(4, "big")

    def is_end(self):
        return self == ChunkTag.END

    def __repr__(self):
        return f"ChunkTag({self.to_bytes()!r})"


ChunkTag.HEADER = ChunkTag.from_bytes(b"NEBU")
ChunkTag.METADATA = ChunkTag.from_bytes(b"META")
ChunkTag.END = ChunkTag.from_bytes(b"END\0")


class ChunkError(Exception):
    """Raised when a chunk stream cannot be written or read."""


class MagicMismatchError(ChunkError):
    """The stream does not start with the expected magic bytes."""

    def __init__(self, magic):
        self.magic = bytes(magic)
        super().__init__(
            f"magic mismatch: expected NEBULA\\0\\0, got {list(self.magic)}"
        )


class UnsupportedVersionError(ChunkError):
    """The stream declares a format version newer than supported."""

    def __init__(self, version):
        self.version = version
        super().__init__(f"version unsupported: {version}")


@dataclass
class RawChunk:
    """A decoded chunk: its tag and uncompressed payload."""

    tag: ChunkTag
    data: bytes


def _write(w, data):
    try:
        w.write(data)
    except OSError as exc:
        raise ChunkError(f"I/O: {exc}") from exc


def _read_up_to(r, n):
    buf = bytearray()
    try:
        while len(buf) < n:
            piece = r.read(n - len(buf))
            if not piece:
                break
            buf += piece
    except OSError as exc:
        raise ChunkError(f"I/O: {exc}") from exc
    return bytes(buf)


def _read_exact(r, n):
    data = _read_up_to(r, n)
    if len(data) < n:
        raise ChunkError("I/O: failed to fill whole buffer")
    return data


def _decompress(payload):
    try:
        dctx = zstandard.ZstdDecompressor()
        out = bytearray()
        with dctx.stream_reader(io.BytesIO(payload), read_across_frames=True) as reader:
            while True:
                piece = reader.read(1 << 16)
                if not piece:
                    break
                out += piece
        return bytes(out)
    except zstandard.ZstdError as exc:
        raise ChunkError(f"I/O: {exc}") from exc


def write_file_header(w):
    _write(w, MAGIC)
    _write(w, struct.pack("<I", FORMAT_VERSION))


def write_chunk(w, tag, data, compression):
    data = bytes(data)
    if compression is Compression.NONE:
        flags, payload = 0, data
    else:
        try:
            payload = zstandard.ZstdCompressor(level=compression.zstd_level()).compress(data)
        except zstandard.ZstdError as exc:
            raise ChunkError(f"I/O: {exc}") from exc
        flags = FLAG_COMPRESSED
    _write(w, tag.to_bytes())
    _write(w, _CHUNK_FIELDS.pack(flags, len(data), len(payload)))
    _write(w, payload)


def write_end_chunk(w):
    _write(w, ChunkTag.END.to_bytes())
    _write(w, _CHUNK_FIELDS.pack(0, 0, 0))


def read_file_header(r):
    """Validate the file header and return the stored format version."""
    magic = _read_exact(r, len(MAGIC))
    if magic != MAGIC:
        raise MagicMismatchError(magic)
    (version,) = struct.unpack("<I", _read_exact(r, 4))
    if version > FORMAT_VERSION:
        raise UnsupportedVersionError(version)
    return version


def read_next_chunk(r) -> Optional[RawChunk]:
    """Read one chunk; return None at end of stream or at the END chunk."""
    tag_bytes = _read_up_to(r, 4)
    if len(tag_bytes) < 4:
        return None
    tag = ChunkTag.from_bytes(tag_bytes)
    if tag.is_end():
        return None

    flags, uncompressed_len, compressed_len = _CHUNK_FIELDS.unpack(
        _read_exact(r, _CHUNK_FIELDS.size)
    )
    payload = _read_exact(r, compressed_len)
    data = _decompress(payload) if flags & FLAG_COMPRESSED else payload
    if len(data) != uncompressed_len:
        raise ChunkError(
            f"chunk decompressed size mismatch: expected {uncompressed_len}, got {len(data)}"
        )
    return RawChunk(tag, data)


def iter_chunks(r) -> Iterator[RawChunk]:
    """Yield chunks until end of stream or the END chunk."""
    while (chunk := read_next_chunk(r)) is not None:
        yield chunk