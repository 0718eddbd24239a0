# nebulabake

Data formats and CPU-side bake steps for offline scene baking.

- `nebulabake.chunk` – the chunked `.nebula` container: a magic header,
  tagged chunks with optional zstd compression, and an end sentinel.
- `nebulabake.bincode` – a compact value encoding (varint unsigned integers,
  little-endian `f32`, length-prefixed strings and bytes).
- `nebulabake.binary` – helpers that store an encoded value as one chunk.
- `nebulabake.json_meta` – JSON metadata sidecars (`NebulaJsonSerializer`,
  `NebulaMeta`).
- `nebulabake.nav_config`, `nebulabake.nav_output`, `nebulabake.nav_baker` –
  navigation mesh baking from world-space triangles.
- `nebulabake.probe_config`, `nebulabake.probe_output`,
  `nebulabake.probe_baker` – probe outputs, spherical-harmonic projection of
  cubemap faces and RGBE encoding.
- `nebulabake.pvs_config`, `nebulabake.pvs_output`, `nebulabake.pvs_baker` –
  potentially-visible-set grids, bit-packed visibility queries and
  conservative dilation.

## Installation

```
pip install nebulabake
```

## Chunk files

```python
import io
from nebulabake.chunk import (
    ChunkTag, Compression, write_file_header, write_chunk,
    write_end_chunk, read_file_header, iter_chunks,
)

buf = io.BytesIO()
write_file_header(buf)
write_chunk(buf, ChunkTag.from_bytes(b"NAVM"), b"payload", Compression.FAST)
write_end_chunk(buf)

buf.seek(0)
version = read_file_header(buf)          # 1
for chunk in iter_chunks(buf):
    print(chunk.tag.to_bytes(), chunk.data)
```

`Compression` has the levels `NONE` (0, stored uncompressed), `FAST` (1),
`BALANCED` (9, the default from `Compression.default()`) and `BEST` (19).
`ChunkTag.HEADER`, `ChunkTag.METADATA` and `ChunkTag.END` are the built-in
tags. Reading stops at the end of the stream or at the `END` chunk.

Errors are `ChunkError`s: a wrong magic raises `MagicMismatchError`, a newer
format version raises `UnsupportedVersionError`, and truncated data or a
payload whose size does not match its header raises `ChunkError`.

To store a bake output as a chunk, use `write_bincode_chunk(w, tag, value,
compression)` and read it back with `read_bincode_chunk(data, cls)`; failures
raise `BinarySerError`.

## Navigation meshes

```python
from nebulabake.nav_baker import NavBaker
from nebulabake.nav_config import NavConfig
from nebulabake.nav_output import NavOutput

floor = [
    ((0, 0, 0), (10, 0, 0), (10, 0, 10)),
    ((0, 0, 0), (10, 0, 10), (0, 0, 10)),
]
output = NavBaker().execute(floor, NavConfig.fast())
print(len(output.vertices), len(output.polygons), output.walkable_area)

data = output.serialize_to_bytes()
same = NavOutput.deserialize_from_bytes(data)
```

The baker voxelises the triangles into a height field, keeps walkable spans
with at least `agent_height` of headroom, grows regions joined by steps no
higher than `max_step_height`, drops regions smaller than `min_region_area`
cells, and fan-triangulates each region's cell centres around their
centroid. Polygon edges without a neighbour hold `NO_NEIGHBOUR`
(`0xFFFFFFFF`). The stages are also available as functions: `scene_aabb`,
`voxelise`, `filter_walkable`, `grow_regions_and_trace` and
`build_polygon_mesh`. Progress is logged at debug level.

## Probes

```python
from nebulabake.probe_baker import project_sh, rgba32f_to_rgbe, clamp_resolution

res = clamp_resolution(4)                 # 16
faces = bytes(6 * res * res * 16)         # six RGBA32F faces
coefficients = project_sh(faces, res, 3)  # 16 ShCoeff values
rgbe = rgba32f_to_rgbe(faces)             # 4 bytes per texel
```

`ReflectionOutput` and `IrradianceOutput` hold the results and encode with
`serialize_to_bytes()` / `deserialize_from_bytes()`.

## Visibility sets

```python
from nebulabake.pvs_output import PvsOutput

pvs = PvsOutput(
    world_min=(0.0, 0.0, 0.0), world_max=(6.0, 3.0, 6.0),
    grid_dims=(2, 1, 2), cell_size=3.0,
    cell_count=4, words_per_cell=1,
    bits=[0b10, 0, 0, 0],
)
cell = pvs.cell_at((3.5, 0.5, 0.5))       # 1
print(pvs.is_visible(0, cell))            # True
```

`nebulabake.pvs_baker` provides `compute_grid(points, config)`,
`words_per_cell(cell_count)` and `apply_conservative_dilation(bits, dims,
wpc)`.

## Configuration presets

`NavConfig`, `ProbeConfig` and `PvsConfig` each have default values plus
`fast()` and `ultra()` presets, and round-trip through `to_json()` /
`from_json()` and `to_dict()` / `from_dict()`.

## What this package does not do

There is no GPU work here. Probe cubemap faces are not rendered: you supply
the RGBA32F face data, and the package projects it onto spherical harmonics
or converts it to RGBE. Visibility is not ray cast: you supply the bitfield,
and the package sizes the grid, dilates and queries it. There are no scene
or mesh objects with transforms; the navigation baker takes triangles that
are already in world space. There is no command-line tool.

## Running the tests

```
pip install nebulabake[test]
pytest
```