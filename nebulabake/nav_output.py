"""Baked navigation mesh data and its binary encoding."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from .bincode import BincodeError, Decoder, Encoder
from .chunk import ChunkTag

CHUNK_TAG = ChunkTag.from_bytes(b"NAVM")
NAV_TAG = CHUNK_TAG

NO_NEIGHBOUR = 0xFFFF_FFFF
"""Neighbour index meaning that a polygon edge lies on the mesh border."""

_U32_MAX = 0xFFFF_FFFF


def _write_vec3(encoder, v):
    if len(v) != 3:
        raise BincodeError(f"expected three components, got {v!r}")
    for c in v:
        encoder.write_f32(c)


def _read_vec3(decoder):
    return tuple(decoder.read_f32() for _ in range(3))


def _write_u32(encoder, value):
    if isinstance(value, int) and not isinstance(value, bool) and value > _U32_MAX:
        raise BincodeError(f"value {value} does not fit in u32")
    encoder.write_uint(value)


def _read_u32(decoder):
    value = decoder.read_uint()
    if value > _U32_MAX:
        raise BincodeError(f"value {value} does not fit in u32")
    return value


def _write_u32_list(encoder, values):
    encoder.write_len(len(values))
    for v in values:
        _write_u32(encoder, v)


def _read_u32_list(decoder):
    return [_read_u32(decoder) for _ in range(decoder.read_len())]


@dataclass(frozen=True)
class NavVertex:
    """A single vertex in the navigation mesh."""

    position: Tuple[float, float, float]

    def __post_init__(self):
        pos = tuple(float(c) for c in self.position)
        if len(pos) != 3:
            raise ValueError(f"a vertex position needs three coordinates, got {self.position!r}")
        object.__setattr__(self, "position", pos)


@dataclass
class NavPolygon:
    """A polygon referencing shared vertices, with one neighbour per edge."""

    vertex_indices: List[int]
    neighbour_indices: List[int]
    area_flags: int = 0


@dataclass
class NavOutput:
    """Baked navigation mesh output."""

    vertices: List[NavVertex] = field(default_factory=list)
    polygons: List[NavPolygon] = field(default_factory=list)
    aabb_min: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    aabb_max: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    walkable_area: float = 0.0
    config_json: str = ""

    @classmethod
    def kind_name(cls):
        return "navmesh"

    def encode(self, encoder):
        encoder.write_len(len(self.vertices))
        for vertex in self.vertices:
            _write_vec3(encoder, vertex.position)
        encoder.write_len(len(self.polygons))
        for poly in self.polygons:
            _write_u32_list(encoder, poly.vertex_indices)
            _write_u32_list(encoder, poly.neighbour_indices)
            _write_u32(encoder, poly.area_flags)
        _write_vec3(encoder, self.aabb_min)
        _write_vec3(encoder, self.aabb_max)
        encoder.write_f32(self.walkable_area)
        encoder.write_str(self.config_json)

    @classmethod
    def decode(cls, decoder):
        vertices = [NavVertex(_read_vec3(decoder)) for _ in range(decoder.read_len())]
        polygons = []
        for _ in range(decoder.read_len()):
            vertex_indices = _read_u32_list(decoder)
            neighbour_indices = _read_u32_list(decoder)
            polygons.append(NavPolygon(vertex_indices, neighbour_indices, _read_u32(decoder)))
        aabb_min = _read_vec3(decoder)
        aabb_max = _read_vec3(decoder)
        walkable_area = decoder.read_f32()
        config_json = decoder.read_str()
        return cls(vertices, polygons, aabb_min, aabb_max, walkable_area, config_json)

    def serialize_to_bytes(self):
        encoder = Encoder()
        self.encode(encoder)
        return encoder.to_bytes()

    @classmethod
    def deserialize_from_bytes(cls, data):
        return cls.decode(Decoder(data))