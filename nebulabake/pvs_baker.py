"""CPU stages of PVS baking: grid construction and conservative dilation."""

from __future__ import annotations

import math

_F32_MAX = 3.4028234663852886e38
_F32_MIN = -_F32_MAX
_U32_MAX = 0xFFFF_FFFF


def _dim(extent, cell_size):
    cells = extent / cell_size
    if math.isnan(cells) or cells < 1.0:
        return 1
    if cells >= _U32_MAX:
        return _U32_MAX
    return min(math.ceil(cells), _U32_MAX)


def compute_grid(points, config):
    """Return ``(world_min, world_max, grid_dims)`` for world-space points.

    The bounding box of the points is grown by one cell on every side.
    """
    s = config.cell_size
    if s <= 0.0:
        raise ValueError("cell_size must be positive")
    mn = [_F32_MAX] * 3
    mx = [_F32_MIN] * 3
    for p in points:
        mn = [min(a, float(b)) for a, b in zip(mn, p)]
        mx = [max(a, float(b)) for a, b in zip(mx, p)]
    world_min = tuple(v - s for v in mn)
    world_max = tuple(v + s for v in mx)
    dims = tuple(_dim(hi - lo, s) for lo, hi in zip(world_min, world_max))
    return world_min, world_max, dims


def words_per_cell(cell_count):
    """Number of 64-bit words needed for one bit per cell."""
    if cell_count < 0:
        raise ValueError(f"cell count must not be negative, got {cell_count}")
    return -(-cell_count // 64)


def apply_conservative_dilation(bits, dims, wpc):
    """OR each cell's visibility bits into its six face neighbours."""
    gx, gy, gz = dims
    source = list(bits)
    needed = gx * gy * gz * wpc
    if len(source) < needed:
        raise ValueError(f"bitfield holds {len(source)} words, need {needed}")
    out = list(source)

    def cell(x, y, z):
        return z * gy * gx + y * gx + x

    for z in range(gz):
        for y in range(gy):
            for x in range(gx):
                src = cell(x, y, z) * wpc
                words = source[src:src + wpc]
                if not any(words):
                    continue
                for nx, ny, nz in ((x - 1, y, z), (x + 1, y, z),
                                   (x, y - 1, z), (x, y + 1, z),
                                   (x, y, z - 1), (x, y, z + 1)):
                    if 0 <= nx < gx and 0 <= ny < gy and 0 <= nz < gz:
                        dst = cell(nx, ny, nz) * wpc
                        for w, word in enumerate(words):
                            out[dst + w] |= word
    return out