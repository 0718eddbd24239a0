"""CPU stages of probe baking: resolution limits, SH projection and RGBE encoding."""

from __future__ import annotations

import math
import struct

from .probe_output import ShCoeff

MIN_FACE_RESOLUTION = 16
MAX_FACE_RESOLUTION = 2048
CUBE_FACES = 6

_PIXEL = struct.Struct("<4f")


def clamp_resolution(face_resolution):
    """Clamp a requested face resolution to the supported range."""
    return max(MIN_FACE_RESOLUTION, min(MAX_FACE_RESOLUTION, face_resolution))


def mip_count(res, specular_mip_levels):
    """Number of specular mips, limited by the full chain for ``res``."""
    if res < 1:
        raise ValueError(f"resolution must be positive, got {res}")
    return min(specular_mip_levels, res.bit_length())


def sh_coefficient_count(order):
    """Number of coefficients of an SH expansion of ``order``."""
    return (order + 1) * (order + 1)


def face_to_direction(face, u, v):
    """Map a cubemap face (+X, -X, +Y, -Y, +Z, -Z) and face coords to a direction."""
    if face == 0:
        return (1.0, v, -u)
    if face == 1:
        return (-1.0, v, u)
    if face == 2:
        return (u, 1.0, -v)
    if face == 3:
        return (u, -1.0, v)
    if face == 4:
        return (u, v, 1.0)
    return (-u, v, -1.0)


def eval_sh_basis(d, order):
    """Evaluate the real SH basis (up to band 3) for direction ``d``."""
    x, y, z = d
    length = math.sqrt(x * x + y * y + z * z)
    if length == 0.0:
        raise ValueError("cannot evaluate SH basis for a zero-length direction")
    x, y, z = x / length, y / length, z / length
    out = [0.2820948]
    if order >= 1:
        out += [0.4886025 * y, 0.4886025 * z, 0.4886025 * x]
    if order >= 2:
        out += [
            1.0925484 * x * y,
            1.0925484 * y * z,
            0.3153916 * (3.0 * z * z - 1.0),
            1.0925484 * x * z,
            0.5462742 * (x * x - y * y),
        ]
    if order >= 3:
        out += [
            0.5900436 * y * (3.0 * x * x - y * y),
            2.8906114 * x * y * z,
            0.4570458 * y * (5.0 * z * z - 1.0),
            0.3731763 * z * (5.0 * z * z - 3.0),
            0.4570458 * x * (5.0 * z * z - 1.0),
            1.4453057 * z * (x * x - y * y),
            0.5900436 * x * (x * x - 3.0 * y * y),
        ]
    return out


def project_sh(face_data, res, sh_order):
    """Project six RGBA32F faces of ``res``×``res`` texels onto SH coefficients."""
    data = bytes(face_data)
    face_size = res * res * _PIXEL.size
    if len(data) < CUBE_FACES * face_size:
        raise ValueError(
            f"face data holds {len(data)} bytes, need {CUBE_FACES * face_size}"
        )
    sums = [[0.0, 0.0, 0.0] for _ in range(sh_coefficient_count(sh_order))]
    texel_area = res * res

    for face in range(CUBE_FACES):
        block = data[face * face_size:(face + 1) * face_size]
        for i, (r, g, b, _a) in enumerate(_PIXEL.iter_unpack(block)):
            y, x = divmod(i, res)
            u = (x + 0.5) / res * 2.0 - 1.0
            v = (y + 0.5) / res * 2.0 - 1.0
            d = math.sqrt(1.0 + u * u + v * v)
            solid_angle = 4.0 / (d * d * d * texel_area)
            basis = eval_sh_basis(face_to_direction(face, u, v), sh_order)
            for acc, s in zip(sums, basis):
                w = s * solid_angle
                acc[0] += r * w
                acc[1] += g * w
                acc[2] += b * w

    return [ShCoeff(*acc) for acc in sums]


def _fmax(*values):
    present = [v for v in values if not math.isnan(v)]
    return max(present) if present else math.nan


def _sat_u8(value):
    if math.isnan(value):
        return 0
    return int(min(max(value, 0.0), 255.0))


def encode_rgbe(r, g, b):
    """Encode one linear RGB colour as four RGBE bytes."""
    m = _fmax(r, g, b)
    if m < 1e-32:
        return bytes(4)
    if math.isinf(m):
        raise ValueError("cannot RGBE-encode an infinite colour")
    e = 1 if math.isnan(m) else math.ceil(math.log2(m)) + 1
    scale = 2.0 ** (-e + 8)
    return bytes((_sat_u8(r * scale), _sat_u8(g * scale), _sat_u8(b * scale), (e + 128) & 0xFF))


def rgba32f_to_rgbe(face_data):
    """Convert packed RGBA32F texels to packed RGBE texels (alpha dropped)."""
    data = bytes(face_data)
    if len(data) % _PIXEL.size:
        raise ValueError(f"texel data length {len(data)} is not a multiple of {_PIXEL.size}")
    return b"".join(encode_rgbe(r, g, b) for r, g, b, _a in _PIXEL.iter_unpack(data))