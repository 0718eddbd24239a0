"""Settings for navigation mesh baking."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from typing import Optional, Tuple

Vec3 = Tuple[float, float, float]

_U32_MAX = 0xFFFF_FFFF
_UINT_FIELDS = ("min_region_area", "merge_region_area")


@dataclass
class NavConfig:
    """Configuration for voxelisation and region-growing navmesh baking."""

    agent_radius: float = 0.4
    agent_height: float = 1.8
    max_step_height: float = 0.4
    max_slope_deg: float = 45.0
    cell_size: float = 0.3
    cell_height: float = 0.2
    min_region_area: int = 8
    merge_region_area: int = 20
    max_edge_length: float = 12.0
    max_edge_error: float = 1.3
    detail_sample_dist: float = 6.0
    detail_sample_max_error: float = 1.0
    bake_aabb: Optional[Tuple[Vec3, Vec3]] = None

    @classmethod
    def fast(cls):
        """Coarse fast-preview preset."""
        return cls(cell_size=1.0, cell_height=0.5, min_region_area=4, max_edge_length=24.0)

    @classmethod
    def ultra(cls):
        """High-precision production preset."""
        return cls(
            cell_size=0.15,
            cell_height=0.1,
            min_region_area=16,
            max_edge_length=6.0,
            max_edge_error=0.5,
        )

    def to_dict(self):
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if self.bake_aabb is not None:
            lo, hi = self.bake_aabb
            data["bake_aabb"] = [list(lo), list(hi)]
        return data

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise ValueError("invalid type: expected a map for NavConfig")
        values = {}
        for f in fields(cls):
            if f.name == "bake_aabb":
                values[f.name] = _parse_aabb(data.get("bake_aabb"))
                continue
            if f.name not in data:
                raise ValueError(f"missing field `{f.name}`")
            raw = data[f.name]
            if f.name in _UINT_FIELDS:
                values[f.name] = _parse_u32(f.name, raw)
            else:
                values[f.name] = _parse_float(f.name, raw)
        return cls(**values)

    def to_json(self):
        return json.dumps(self.to_dict(), allow_nan=False)

    @classmethod
    def from_json(cls, text):
        return cls.from_dict(json.loads(text))


def _parse_float(name, raw):
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ValueError(f"field `{name}` must be a number, got {raw!r}")
    return float(raw)


def _parse_u32(name, raw):
    if isinstance(raw, bool) or not isinstance(raw, int) or not 0 <= raw <= _U32_MAX:
        raise ValueError(f"field `{name}` must be an unsigned 32-bit integer, got {raw!r}")
    return raw


def _parse_vec3(raw):
    if not isinstance(raw, (list, tuple)) or len(raw) != 3:
        raise ValueError(f"expected three coordinates, got {raw!r}")
    return tuple(_parse_float("bake_aabb", c) for c in raw)


def _parse_aabb(raw):
    if raw is None:
        return None
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise ValueError(f"field `bake_aabb` must hold two corners, got {raw!r}")
    lo, hi = raw
    return (_parse_vec3(lo), _parse_vec3(hi))