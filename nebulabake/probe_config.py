"""Settings for reflection and irradiance probe baking."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields

_U32_MAX = 0xFFFF_FFFF
_UINT_FIELDS = ("face_resolution", "specular_mip_levels", "sh_order", "samples_per_face")


@dataclass
class ProbeConfig:
    """Configuration for cubemap capture and SH irradiance projection."""

    face_resolution: int = 256
    specular_mip_levels: int = 8
    sh_order: int = 3
    samples_per_face: int = 1024
    exposure: float = 1.0
    use_rgbe: bool = False

    @classmethod
    def fast(cls):
        """Low-quality fast preview preset."""
        return cls(face_resolution=64, specular_mip_levels=4, samples_per_face=128)

    @classmethod
    def ultra(cls):
        """Production quality preset."""
        return cls(face_resolution=512, specular_mip_levels=10, samples_per_face=8192)

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise ValueError("invalid type: expected a map for ProbeConfig")
        values = {}
        for f in fields(cls):
            if f.name not in data:
                raise ValueError(f"missing field `{f.name}`")
            raw = data[f.name]
            if f.name in _UINT_FIELDS:
                values[f.name] = _parse_u32(f.name, raw)
            elif f.name == "use_rgbe":
                if not isinstance(raw, bool):
                    raise ValueError(f"field `use_rgbe` must be a boolean, got {raw!r}")
                values[f.name] = raw
            else:
                if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                    raise ValueError(f"field `{f.name}` must be a number, got {raw!r}")
                values[f.name] = float(raw)
        return cls(**values)

    def to_json(self):
        return json.dumps(self.to_dict(), allow_nan=False)

    @classmethod
    def from_json(cls, text):
        return cls.from_dict(json.loads(text))


def _parse_u32(name, raw):
    if isinstance(raw, bool) or not isinstance(raw, int) or not 0 <= raw <= _U32_MAX:
        raise ValueError(f"field `{name}` must be an unsigned 32-bit integer, got {raw!r}")
    return raw