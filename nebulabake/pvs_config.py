"""Settings for potentially-visible-set (PVS) baking."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields

_U32_MAX = 0xFFFF_FFFF
_UINT_FIELDS = ("ray_budget", "visibility_threshold")
_FLOAT_FIELDS = ("cell_size", "max_ray_distance")


@dataclass
class PvsConfig:
    """Configuration for grid-based visibility baking."""

    cell_size: float = 3.0
    ray_budget: int = 256
    conservative: bool = True
    visibility_threshold: int = 1
    max_ray_distance: float = 500.0

    @classmethod
    def fast(cls):
        """Coarse fast-preview preset (large cells, few rays)."""
        return cls(cell_size=8.0, ray_budget=32, conservative=False)

    @classmethod
    def ultra(cls):
        """High-precision production preset."""
        return cls(cell_size=1.5, ray_budget=2048, conservative=True)

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise ValueError("invalid type: expected a map for PvsConfig")
        values = {}
        for f in fields(cls):
            if f.name not in data:
                raise ValueError(f"missing field `{f.name}`")
            raw = data[f.name]
            if f.name in _UINT_FIELDS:
                if isinstance(raw, bool) or not isinstance(raw, int) or not 0 <= raw <= _U32_MAX:
                    raise ValueError(
                        f"field `{f.name}` must be an unsigned 32-bit integer, got {raw!r}"
                    )
                values[f.name] = raw
            elif f.name in _FLOAT_FIELDS:
                if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                    raise ValueError(f"field `{f.name}` must be a number, got {raw!r}")
                values[f.name] = float(raw)
            else:
                if not isinstance(raw, bool):
                    raise ValueError(f"field `{f.name}` must be a boolean, got {raw!r}")
                values[f.name] = raw
        return cls(**values)

    def to_json(self):
        return json.dumps(self.to_dict(), allow_nan=False)

    @classmethod
    def from_json(cls, text):
        return cls.from_dict(json.loads(text))