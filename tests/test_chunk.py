import io
import struct

import pytest

from nebulabake.chunk import (
    FLAG_COMPRESSED,
    FORMAT_VERSION,
    MAGIC,
    ChunkError,
    ChunkTag,
    Compression,
    MagicMismatchError,
    RawChunk,
    UnsupportedVersionError,
    iter_chunks,
    read_file_header,
    read_next_chunk,
    write_chunk,
    write_end_chunk,
    write_file_header,
)

# ── ChunkTag ──────────────────────────────────────────────────────────────────


def test_chunk_tag_from_bytes_roundtrip():
    assert ChunkTag.from_bytes(b"LMAP").to_bytes() == b"LMAP"


def test_chunk_tag_equality():
    a = ChunkTag.from_bytes(b"LMAP")
    b = ChunkTag.from_bytes(b"LMAP")
    assert a == b
    assert hash(a) == hash(b)
    assert a.value == 0x4C4D4150
    assert b.to_bytes() == b"LMAP"


def test_chunk_tag_inequality():
    assert ChunkTag.from_bytes(b"LMAP") != ChunkTag.from_bytes(b"NAVM")


def test_chunk_tag_infrastructure_header():
    assert ChunkTag.HEADER.to_bytes() == b"NEBU"


def test_chunk_tag_infrastructure_metadata():
    assert ChunkTag.METADATA.to_bytes() == b"META"


def test_chunk_tag_infrastructure_end():
    assert ChunkTag.END.is_end() is True


def test_chunk_tag_non_end_is_not_end():
    assert ChunkTag.from_bytes(b"LMAP").is_end() is False


def test_chunk_tag_u32_inner_is_big_endian():
    assert ChunkTag.from_bytes(b"LMAP").value == 0x4C4D4150


def test_chunk_tag_hash_is_consistent():
    tags = {
        ChunkTag.from_bytes(b"LMAP"),
        ChunkTag.from_bytes(b"NAVM"),
        ChunkTag.from_bytes(b"AUIR"),
    }
    assert len(tags) == 3
    assert ChunkTag.from_bytes(b"LMAP") in tags


def test_chunk_tag_repr_includes_tag():
    assert "ChunkTag" in repr(ChunkTag.from_bytes(b"PVSS"))


def test_chunk_tag_wrong_length_rejected():
    with pytest.raises(ValueError):
        ChunkTag.from_bytes(b"ABC")


def test_chunk_tag_from_prelude_roundtrips():
    assert ChunkTag.from_bytes(b"TEST").to_bytes() == b"TEST"


# ── Compression ───────────────────────────────────────────────────────────────


def test_compression_none_level_is_zero():
    assert Compression.NONE.zstd_level() == 0


def test_compression_fast_level_is_1():
    assert Compression.FAST.zstd_level() == 1


def test_compression_balanced_level_is_9():
    assert Compression.BALANCED.zstd_level() == 9


def test_compression_best_level_is_19():
    assert Compression.BEST.zstd_level() == 19


def test_compression_levels_are_monotone():
    levels = [
        c.zstd_level()
        for c in (Compression.NONE, Compression.FAST, Compression.BALANCED, Compression.BEST)
    ]
    assert levels == sorted(levels)
    assert len(set(levels)) == 4


def test_compression_default_is_balanced():
    assert Compression.default() is Compression.BALANCED


def test_compression_equality():
    assert Compression.default() == Compression.BALANCED
    assert Compression.default() != Compression.BEST
    assert Compression.default().zstd_level() == 9


# ── File header ───────────────────────────────────────────────────────────────


def test_write_file_header_writes_magic_bytes():
    buf = io.BytesIO()
    write_file_header(buf)
    assert buf.getvalue().startswith(MAGIC)


def test_write_then_read_file_header():
    buf = io.BytesIO()
    write_file_header(buf)
    buf.seek(0)
    assert read_file_header(buf) == FORMAT_VERSION


def test_file_header_wrong_magic_returns_error():
    with pytest.raises(MagicMismatchError) as info:
        read_file_header(io.BytesIO(b"GARBAGE!"))
    assert info.value.magic == b"GARBAGE!"


def test_file_header_newer_version_rejected():
    data = MAGIC + struct.pack("<I", FORMAT_VERSION + 1)
    with pytest.raises(UnsupportedVersionError) as info:
        read_file_header(io.BytesIO(data))
    assert info.value.version == FORMAT_VERSION + 1


def test_file_header_truncated_is_io_error():
    with pytest.raises(ChunkError) as info:
        read_file_header(io.BytesIO(b"NEB"))
    assert not isinstance(info.value, MagicMismatchError)


def test_format_version_is_at_least_one():
    buf = io.BytesIO()
    write_file_header(buf)
    raw = buf.getvalue()
    assert len(raw) == 12
    (written,) = struct.unpack("<I", raw[8:12])
    assert written >= 1
    buf.seek(0)
    assert read_file_header(buf) == written


# ── Chunks ────────────────────────────────────────────────────────────────────


def test_uncompressed_chunk_layout():
    buf = io.BytesIO()
    tag = ChunkTag.from_bytes(b"LMAP")
    write_chunk(buf, tag, b"hello", Compression.NONE)
    assert buf.getvalue() == b"LMAP" + struct.pack("<IQQ", 0, 5, 5) + b"hello"


def test_compressed_chunk_sets_flag():
    buf = io.BytesIO()
    write_chunk(buf, ChunkTag.from_bytes(b"LMAP"), b"x" * 1000, Compression.FAST)
    raw = buf.getvalue()
    flags, uncompressed_len, compressed_len = struct.unpack("<IQQ", raw[4:24])
    assert flags == FLAG_COMPRESSED
    assert uncompressed_len == 1000
    assert compressed_len == len(raw) - 24
    assert compressed_len < 1000


@pytest.mark.parametrize("compression", list(Compression))
def test_chunk_roundtrip(compression):
    payload = bytes(range(256)) * 8
    tag = ChunkTag.from_bytes(b"NAVM")
    buf = io.BytesIO()
    write_chunk(buf, tag, payload, compression)
    buf.seek(0)
    chunk = read_next_chunk(buf)
    assert chunk == RawChunk(tag, payload)


@pytest.mark.parametrize("compression", [Compression.NONE, Compression.BALANCED])
def test_empty_chunk_roundtrip(compression):
    buf = io.BytesIO()
    write_chunk(buf, ChunkTag.METADATA, b"", compression)
    buf.seek(0)
    assert read_next_chunk(buf).data == b""


def test_end_chunk_layout_and_read():
    buf = io.BytesIO()
    write_end_chunk(buf)
    raw = buf.getvalue()
    assert raw.startswith(ChunkTag.END.to_bytes())
    assert len(raw) == 24
    buf.seek(0)
    assert read_next_chunk(buf) is None


def test_read_next_chunk_at_eof_returns_none():
    assert read_next_chunk(io.BytesIO(b"")) is None


def test_read_next_chunk_partial_tag_returns_none():
    assert read_next_chunk(io.BytesIO(b"LM")) is None


def test_truncated_payload_is_error():
    buf = io.BytesIO()
    write_chunk(buf, ChunkTag.from_bytes(b"LMAP"), b"hello world", Compression.NONE)
    with pytest.raises(ChunkError):
        read_next_chunk(io.BytesIO(buf.getvalue()[:-3]))


def test_corrupt_compressed_payload_is_error():
    junk = b"not zstd"
    data = b"LMAP" + struct.pack("<IQQ", FLAG_COMPRESSED, 10, len(junk)) + junk
    with pytest.raises(ChunkError):
        read_next_chunk(io.BytesIO(data))


def test_length_mismatch_is_error():
    data = b"LMAP" + struct.pack("<IQQ", 0, 9, 3) + b"abc"
    with pytest.raises(ChunkError):
        read_next_chunk(io.BytesIO(data))


def test_full_file_roundtrip_with_iter_chunks():
    tags = [ChunkTag.from_bytes(b"LMAP"), ChunkTag.METADATA, ChunkTag.from_bytes(b"PVSS")]
    payloads = [b"first", b'{"k": 1}', b"\x00" * 100]
    buf = io.BytesIO()
    write_file_header(buf)
    for tag, payload in zip(tags, payloads):
        write_chunk(buf, tag, payload, Compression.BALANCED)
    write_end_chunk(buf)
    buf.write(b"trailing bytes after end")
    buf.seek(0)
    assert read_file_header(buf) == FORMAT_VERSION
    chunks = list(iter_chunks(buf))
    assert [c.tag for c in chunks] == tags
    assert [c.data for c in chunks] == payloads


def test_write_failure_is_chunk_error():
    class _BrokenWriter:
        def write(self, data):
            raise OSError("disk full")

    with pytest.raises(ChunkError, match="disk full"):
        write_file_header(_BrokenWriter())