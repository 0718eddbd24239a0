"""Baked potentially-visible-set data and its binary encoding."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .bincode import BincodeError, Decoder, Encoder
from .chunk import ChunkTag

CHUNK_TAG = ChunkTag.from_bytes(b"PVSS")
PVS_TAG = CHUNK_TAG

_U32_MAX = 0xFFFF_FFFF
_U64_MAX = (1 << 64) - 1
_I32_MIN = -(1 << 31)
_I32_MAX = (1 << 31) - 1


def _write_bounded(encoder, value, limit):
    if isinstance(value, int) and not isinstance(value, bool) and value > limit:
        raise BincodeError(f"value {value} is out of range")
    encoder.write_uint(value)


def _read_bounded(decoder, limit):
    value = decoder.read_uint()
    if value > limit:
        raise BincodeError(f"value {value} is out of range")
    return value


def _write_vec3(encoder, v):
    if len(v) != 3:
        raise BincodeError(f"expected three components, got {v!r}")
    for c in v:
        encoder.write_f32(c)


def _read_vec3(decoder):
    return tuple(decoder.read_f32() for _ in range(3))


def _to_i32(value):
    """Convert a float to i32 with saturation, NaN becoming 0."""
    if math.isnan(value):
        return 0
    if value >= _I32_MAX:
        return _I32_MAX
    if value <= _I32_MIN:
        return _I32_MIN
    return int(value)


@dataclass(frozen=True)
class CellIndex:
    """A 3-D grid cell index."""

    x: int
    y: int
    z: int


@dataclass
class PvsOutput:
    """Per-cell bitfields of visible cells, stored x-fastest in ``u64`` words."""

    world_min: Tuple[float, float, float]
    world_max: Tuple[float, float, float]
    grid_dims: Tuple[int, int, int]
    cell_size: float
    cell_count: int
    words_per_cell: int
    bits: List[int] = field(default_factory=list)
    config_json: str = ""

    def is_visible(self, from_cell, to_cell):
        """Return True if cell ``from_cell`` can see cell ``to_cell``."""
        if from_cell < 0 or to_cell < 0:
            return False
        word = from_cell * self.words_per_cell + to_cell // 64
        if word >= len(self.bits):
            return False
        return (self.bits[word] >> (to_cell % 64)) & 1 == 1

    def cell_at(self, p) -> Optional[int]:
        """Return the flat cell index containing world point ``p``, or None."""
        dx, dy, dz = (
            _to_i32(math.floor((p[i] - self.world_min[i]) / self.cell_size))
            if math.isfinite((p[i] - self.world_min[i]) / self.cell_size)
            else _to_i32((p[i] - self.world_min[i]) / self.cell_size)
            for i in range(3)
        )
        gx, gy, gz = self.grid_dims
        if dx < 0 or dy < 0 or dz < 0 or dx >= gx or dy >= gy or dz >= gz:
            return None
        return (dz * gy + dy) * gx + dx

    @classmethod
    def kind_name(cls):
        return "pvs"

    def encode(self, encoder):
        _write_vec3(encoder, self.world_min)
        _write_vec3(encoder, self.world_max)
        if len(self.grid_dims) != 3:
            raise BincodeError(f"expected three grid dimensions, got {self.grid_dims!r}")
        for d in self.grid_dims:
            _write_bounded(encoder, d, _U32_MAX)
        encoder.write_f32(self.cell_size)
        _write_bounded(encoder, self.cell_count, _U32_MAX)
        _write_bounded(encoder, self.words_per_cell, _U32_MAX)
        encoder.write_len(len(self.bits))
        for word in self.bits:
            _write_bounded(encoder, word, _U64_MAX)
        encoder.write_str(self.config_json)

    @classmethod
    def decode(cls, decoder):
        world_min = _read_vec3(decoder)
        world_max = _read_vec3(decoder)
        grid_dims = tuple(_read_bounded(decoder, _U32_MAX) for _ in range(3))
        cell_size = decoder.read_f32()
        cell_count = _read_bounded(decoder, _U32_MAX)
        words_per_cell = _read_bounded(decoder, _U32_MAX)
        bits = [_read_bounded(decoder, _U64_MAX) for _ in range(decoder.read_len())]
        config_json = decoder.read_str()
        return cls(
            world_min, world_max, grid_dims, cell_size,
            cell_count, words_per_cell, bits, config_json,
        )

    def serialize_to_bytes(self):
        encoder = Encoder()
        self.encode(encoder)
        return encoder.to_bytes()

    @classmethod
    def deserialize_from_bytes(cls, data):
        return cls.decode(Decoder(data))