"""Navigation mesh baking: voxelisation, walkability, regions and polygons."""

from __future__ import annotations

import logging
import math
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import List, NamedTuple, Tuple

from .nav_output import NO_NEIGHBOUR, NavOutput, NavPolygon, NavVertex

log = logging.getLogger(__name__)

_F32_MAX = 3.4028234663852886e38
_F32_MIN = -_F32_MAX


@dataclass
class Span:
    """One solid span in a height-field column."""

    y_min: float
    y_max: float
    walkable: bool
    region: int = 0


@dataclass
class HeightField:
    """Columns of spans over an XZ grid, stored row-major (``z * gx + x``)."""

    cols: List[List[Span]]
    gx: int
    gz: int
    world_min: Tuple[float, float, float]
    cell_size: float
    cell_height: float

    def column(self, x, z):
        return self.cols[z * self.gx + x]


@dataclass
class WalkableSpan:
    """The top surface of a walkable span with enough head clearance."""

    x: int
    z: int
    y: float
    region: int = 0


@dataclass
class Contour:
    """Cell-centre points belonging to one region."""

    verts: List[Tuple[float, float, float]] = field(default_factory=list)
    region: int = 0


class _TriangleBounds(NamedTuple):
    x_min: float
    x_max: float
    y_min: float
    y_max: float
    z_min: float
    z_max: float
    up: float


def _sub(a, b):
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _cross(a, b):
    return (a[1] * b[2] - a[2] * b[1], a[2] * b[0] - a[0] * b[2], a[0] * b[1] - a[1] * b[0])


def _normalize_or_zero(v):
    length = math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])
    if length > 0.0 and math.isfinite(length):
        return (v[0] / length, v[1] / length, v[2] / length)
    return (0.0, 0.0, 0.0)


def _round_to(value, step):
    q = value / step
    return math.copysign(math.floor(abs(q) + 0.5), q) * step


def _cell_count(extent, cell_size):
    cells = extent / cell_size
    if math.isnan(cells) or cells < 1.0:
        return 1
    if math.isinf(cells):
        raise ValueError("bake extent is unbounded")
    return math.ceil(cells)


def _bounds(triangle):
    v0, v1, v2 = triangle
    normal = _normalize_or_zero(_cross(_sub(v1, v0), _sub(v2, v0)))
    xs, ys, zs = zip(v0, v1, v2)
    return _TriangleBounds(min(xs), max(xs), min(ys), max(ys), min(zs), max(zs), normal[1])


def _tri_vs_column(tri, col_min, col_max):
    if (tri.x_max < col_min[0] or tri.x_min > col_max[0]
            or tri.z_max < col_min[2] or tri.z_min > col_max[2]):
        return None
    if tri.y_max < col_min[1] or tri.y_min > col_max[1]:
        return None
    return tri.y_min, tri.y_max


def _merge_span(spans, new, ch):
    for s in spans:
        if s.y_max + ch >= new.y_min and new.y_max + ch >= s.y_min:
            s.y_min = min(s.y_min, new.y_min)
            s.y_max = max(s.y_max, new.y_max)
            s.walkable = s.walkable or new.walkable
            return
    spans.append(new)


def scene_aabb(triangles, config):
    """Return the bake bounds: the configured box or the scene box grown by 0.5."""
    if config.bake_aabb is not None:
        lo, hi = config.bake_aabb
        return tuple(lo), tuple(hi)
    mn = [_F32_MAX] * 3
    mx = [_F32_MIN] * 3
    for triangle in triangles:
        for p in triangle:
            mn = [min(a, b) for a, b in zip(mn, p)]
            mx = [max(a, b) for a, b in zip(mx, p)]
    return tuple(v - 0.5 for v in mn), tuple(v + 0.5 for v in mx)


def voxelise(triangles, config, aabb_min, aabb_max):
    """Rasterise world-space triangles into a height field of merged spans."""
    cs = config.cell_size
    ch = config.cell_height
    if cs <= 0.0 or ch <= 0.0:
        raise ValueError("cell_size and cell_height must be positive")
    gx = _cell_count(aabb_max[0] - aabb_min[0], cs)
    gz = _cell_count(aabb_max[2] - aabb_min[2], cs)
    max_cos = math.cos(math.radians(90.0 - config.max_slope_deg))
    tris = [_bounds(t) for t in triangles]

    cols = []
    for z in range(gz):
        for x in range(gx):
            col_min = (aabb_min[0] + x * cs, aabb_min[1], aabb_min[2] + z * cs)
            col_max = (col_min[0] + cs, aabb_max[1], col_min[2] + cs)
            spans: List[Span] = []
            for tri in tris:
                hit = _tri_vs_column(tri, col_min, col_max)
                if hit is None:
                    continue
                ymin, ymax = hit
                span = Span(_round_to(ymin, ch), _round_to(ymax, ch), tri.up >= max_cos)
                _merge_span(spans, span, ch)
            spans.sort(key=lambda s: s.y_min)
            cols.append(spans)

    return HeightField(cols, gx, gz, tuple(aabb_min), cs, ch)


def filter_walkable(hf, config):
    """Collect walkable span tops that leave at least ``agent_height`` of headroom."""
    out = []
    for z in range(hf.gz):
        for x in range(hf.gx):
            column = hf.column(x, z)
            for span in column:
                if not span.walkable:
                    continue
                next_y = next((s.y_min for s in column if s.y_min > span.y_max), _F32_MAX)
                if next_y - span.y_max < config.agent_height:
                    continue
                out.append(WalkableSpan(x, z, span.y_max))
    return out


def grow_regions_and_trace(walkable, hf, config):
    """Label connected walkable spans and gather cell centres of large regions."""
    if not walkable:
        return []

    lookup = defaultdict(list)
    for i, s in enumerate(walkable):
        lookup[(s.x, s.z)].append((s.y, i))

    regions: List[int | None] = [None] * len(walkable)
    region_id = 0
    max_step = config.max_step_height
    cs = hf.cell_size

    for start in range(len(walkable)):
        if regions[start] is not None:
            continue
        regions[start] = region_id
        queue = deque([start])
        while queue:
            cur = walkable[queue.popleft()]
            for nx, nz in ((cur.x - 1, cur.z), (cur.x + 1, cur.z),
                           (cur.x, cur.z - 1), (cur.x, cur.z + 1)):
                if not (0 <= nx < hf.gx and 0 <= nz < hf.gz):
                    continue
                for ny, ni in lookup.get((nx, nz), ()):
                    if regions[ni] is None and abs(ny - cur.y) <= max_step:
                        regions[ni] = region_id
                        queue.append(ni)
        region_id += 1

    counts = [0] * region_id
    for r in regions:
        counts[r] += 1

    contours = {}
    for s, r in zip(walkable, regions):
        if counts[r] < config.min_region_area:
            continue
        wx = hf.world_min[0] + (s.x + 0.5) * cs
        wz = hf.world_min[2] + (s.z + 0.5) * cs
        contours.setdefault(r, Contour(region=r)).verts.append((wx, s.y, wz))
    return list(contours.values())


def _edges(indices):
    return zip(indices, indices[1:] + indices[:1])


def _link_neighbours(polygons):
    owners = defaultdict(list)
    for p, poly in enumerate(polygons):
        for a, b in _edges(poly.vertex_indices):
            owners[(min(a, b), max(a, b))].append(p)

    for p, poly in enumerate(polygons):
        for e, (a, b) in enumerate(_edges(poly.vertex_indices)):
            others = [q for q in owners[(min(a, b), max(a, b))] if q != p]
            later = [q for q in others if q > p]
            if later:
                poly.neighbour_indices[e] = max(later)
            elif others:
                poly.neighbour_indices[e] = max(others)


def build_polygon_mesh(contours):
    """Fan-triangulate each contour around its centroid.

    Returns ``(vertices, polygons, walkable_area)``.
    """
    vertices: List[NavVertex] = []
    polygons: List[NavPolygon] = []
    walkable_area = 0.0

    for contour in contours:
        verts = contour.verts
        n = len(verts)
        if n < 3:
            continue
        sx, sy, sz = (sum(axis) for axis in zip(*verts))
        centroid = (sx / n, sy / n, sz / n)
        c_idx = len(vertices)
        vertices.append(NavVertex(centroid))
        base = len(vertices)
        vertices.extend(NavVertex(v) for v in verts)

        for i, (v, w) in enumerate(zip(verts, verts[1:] + verts[:1])):
            dx, dz = v[0] - centroid[0], v[2] - centroid[2]
            dx2, dz2 = w[0] - centroid[0], w[2] - centroid[2]
            walkable_area += 0.5 * abs(dx * dz2 - dx2 * dz)
            polygons.append(NavPolygon(
                vertex_indices=[c_idx, base + i, base + (i + 1) % n],
                neighbour_indices=[NO_NEIGHBOUR] * 3,
                area_flags=0,
            ))

    _link_neighbours(polygons)
    return vertices, polygons, walkable_area


class NavBaker:
    """Builds a navigation mesh from world-space triangles."""

    def name(self):
        return "navmesh"

    def execute(self, triangles, config):
        """Bake ``triangles`` (each three XYZ points) into a :class:`NavOutput`."""
        tris = [tuple(tuple(float(c) for c in p) for p in t) for t in triangles]
        log.debug("navmesh: computing scene AABB")
        aabb_min, aabb_max = scene_aabb(tris, config)
        log.debug("navmesh: voxelising scene")
        hf = voxelise(tris, config, aabb_min, aabb_max)
        log.debug("navmesh: filtering walkable spans")
        walkable = filter_walkable(hf, config)
        log.debug("navmesh: growing regions and tracing contours")
        contours = grow_regions_and_trace(walkable, hf, config)
        log.debug("navmesh: building polygon mesh")
        vertices, polygons, walkable_area = build_polygon_mesh(contours)
        return NavOutput(
            vertices=vertices,
            polygons=polygons,
            aabb_min=aabb_min,
            aabb_max=aabb_max,
            walkable_area=walkable_area,
            config_json=config.to_json(),
        )