import copy
import io

import pytest

from nebulabake.binary import read_bincode_chunk, write_bincode_chunk
from nebulabake.bincode import BincodeError, Decoder, Encoder
from nebulabake.chunk import Compression, read_next_chunk
from nebulabake.nav_output import (
    CHUNK_TAG,
    NAV_TAG,
    NO_NEIGHBOUR,
    NavOutput,
    NavPolygon,
    NavVertex,
)


def make_triangle_navmesh():
    return NavOutput(
        vertices=[
            NavVertex((0.0, 0.0, 0.0)),
            NavVertex((1.0, 0.0, 0.0)),
            NavVertex((0.5, 0.0, 1.0)),
        ],
        polygons=[
            NavPolygon(
                vertex_indices=[0, 1, 2],
                neighbour_indices=[NO_NEIGHBOUR, NO_NEIGHBOUR, NO_NEIGHBOUR],
                area_flags=0,
            )
        ],
        aabb_min=(0.0, 0.0, 0.0),
        aabb_max=(1.0, 0.0, 1.0),
        walkable_area=0.5,
        config_json="{}",
    )


def test_chunk_tag_is_navm():
    assert CHUNK_TAG.to_bytes() == b"NAVM"
    assert NAV_TAG == CHUNK_TAG


def test_no_neighbour_is_u32_max():
    enc = Encoder()
    enc.write_uint(NO_NEIGHBOUR)
    raw = enc.to_bytes()
    assert raw == b"\xfc\xff\xff\xff\xff"
    assert Decoder(raw).read_uint() == 0xFFFF_FFFF


def test_kind_name_is_navmesh():
    assert NavOutput.kind_name() == "navmesh"


def test_triangle_navmesh_shape():
    nav = make_triangle_navmesh()
    assert len(nav.vertices) == 3
    assert len(nav.polygons) == 1
    poly = nav.polygons[0]
    assert len(poly.vertex_indices) == 3
    assert len(poly.vertex_indices) == len(poly.neighbour_indices)
    assert all(n == NO_NEIGHBOUR for n in poly.neighbour_indices)


def test_vertex_position_accessible():
    v = NavVertex((1.0, 2.0, 3.0))
    assert v.position == (1.0, 2.0, 3.0)


def test_vertex_copy():
    v = NavVertex((1.0, 0.0, 0.0))
    assert copy.copy(v).position[0] == 1.0


def test_vertex_requires_three_coordinates():
    with pytest.raises(ValueError):
        NavVertex((1.0, 2.0))


def test_serialize_deserialize_roundtrip():
    nav = make_triangle_navmesh()
    back = NavOutput.deserialize_from_bytes(nav.serialize_to_bytes())
    assert len(back.vertices) == 3
    assert len(back.polygons) == 1
    assert back.polygons[0].vertex_indices == [0, 1, 2]
    assert abs(back.walkable_area - 0.5) < 1e-6
    assert back == nav


def test_serialize_produces_nonempty_bytes():
    assert len(make_triangle_navmesh().serialize_to_bytes()) > 0


def test_deserialize_corrupt_raises():
    with pytest.raises(BincodeError):
        NavOutput.deserialize_from_bytes(b"\xDE\xAD\xBE\xEF")


def test_empty_mesh_roundtrip():
    nav = NavOutput(config_json="{}")
    back = NavOutput.deserialize_from_bytes(nav.serialize_to_bytes())
    assert back.vertices == []
    assert back.polygons == []
    assert back.walkable_area == 0.0


def test_empty_mesh_wire_bytes():
    nav = NavOutput(config_json="{}")
    expected = b"\x00\x00" + b"\x00" * 28 + b"\x02{}"
    assert nav.serialize_to_bytes() == expected


def test_u32_max_neighbour_survives_roundtrip():
    nav = make_triangle_navmesh()
    back = NavOutput.deserialize_from_bytes(nav.serialize_to_bytes())
    assert back.polygons[0].neighbour_indices == [NO_NEIGHBOUR] * 3


def test_out_of_range_index_rejected_on_encode():
    nav = make_triangle_navmesh()
    nav.polygons[0].area_flags = 1 << 40
    with pytest.raises(BincodeError):
        nav.serialize_to_bytes()


def test_chunk_roundtrip():
    nav = make_triangle_navmesh()
    buf = io.BytesIO()
    write_bincode_chunk(buf, CHUNK_TAG, nav, Compression.FAST)
    buf.seek(0)
    chunk = read_next_chunk(buf)
    assert chunk.tag == CHUNK_TAG
    assert read_bincode_chunk(chunk.data, NavOutput) == nav