"""Baked reflection cubemaps and irradiance SH coefficients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .bincode import BincodeError, Decoder, Encoder
from .chunk import ChunkTag

REFLECTION_CHUNK_TAG = ChunkTag.from_bytes(b"RPRO")
IRRADIANCE_CHUNK_TAG = ChunkTag.from_bytes(b"IRSH")
REFLECTION_TAG = REFLECTION_CHUNK_TAG
IRRADIANCE_TAG = IRRADIANCE_CHUNK_TAG

_U32_MAX = 0xFFFF_FFFF


def _write_u32(encoder, value):
    if isinstance(value, int) and not isinstance(value, bool) and value > _U32_MAX:
        raise BincodeError(f"value {value} does not fit in u32")
    encoder.write_uint(value)


def _read_u32(decoder):
    value = decoder.read_uint()
    if value > _U32_MAX:
        raise BincodeError(f"value {value} does not fit in u32")
    return value


@dataclass(frozen=True)
class ShCoeff:
    """A single RGB spherical-harmonic coefficient."""

    r: float
    g: float
    b: float


@dataclass
class ReflectionOutput:
    """Six cubemap faces (+X, -X, +Y, -Y, +Z, -Z) of RGBA32F or RGBE texels."""

    face_resolution: int
    mip_levels: int
    is_rgbe: bool
    face_data: bytes = b""
    config_json: str = ""

    @classmethod
    def kind_name(cls):
        return "reflection_probe"

    def encode(self, encoder):
        _write_u32(encoder, self.face_resolution)
        _write_u32(encoder, self.mip_levels)
        encoder.write_bool(self.is_rgbe)
        encoder.write_bytes(self.face_data)
        encoder.write_str(self.config_json)

    @classmethod
    def decode(cls, decoder):
        face_resolution = _read_u32(decoder)
        mip_levels = _read_u32(decoder)
        is_rgbe = decoder.read_bool()
        face_data = decoder.read_bytes()
        config_json = decoder.read_str()
        return cls(face_resolution, mip_levels, is_rgbe, face_data, config_json)

    def serialize_to_bytes(self):
        encoder = Encoder()
        self.encode(encoder)
        return encoder.to_bytes()

    @classmethod
    def deserialize_from_bytes(cls, data):
        return cls.decode(Decoder(data))


@dataclass
class IrradianceOutput:
    """Diffuse irradiance as ``(sh_order + 1)**2`` band-major RGB coefficients."""

    sh_order: int
    coefficients: List[ShCoeff] = field(default_factory=list)
    config_json: str = ""

    @classmethod
    def kind_name(cls):
        return "irradiance_probe"

    def encode(self, encoder):
        _write_u32(encoder, self.sh_order)
        encoder.write_len(len(self.coefficients))
        for c in self.coefficients:
            encoder.write_f32(c.r)
            encoder.write_f32(c.g)
            encoder.write_f32(c.b)
        encoder.write_str(self.config_json)

    @classmethod
    def decode(cls, decoder):
        sh_order = _read_u32(decoder)
        coefficients = [
            ShCoeff(decoder.read_f32(), decoder.read_f32(), decoder.read_f32())
            for _ in range(decoder.read_len())
        ]
        config_json = decoder.read_str()
        return cls(sh_order, coefficients, config_json)

    def serialize_to_bytes(self):
        encoder = Encoder()
        self.encode(encoder)
        return encoder.to_bytes()

    @classmethod
    def deserialize_from_bytes(cls, data):
        return cls.decode(Decoder(data))