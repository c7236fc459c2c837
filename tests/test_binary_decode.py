from __future__ import annotations

import struct

import numpy as np
import pytest

from plycloud import ColorKind, ParsingError, parse_ply
from plycloud.parsing import decode_binary, vertex_dtype

POSITIONS = np.array(
    [
        [0.1, -3.5e-7, 123456.789],
        [-0.0, 1.0e30, 2.5],
        [float("inf"), -7.25, 3.0e-38],
    ],
    dtype=np.float32,
)


def _header(order: str, n: int, color: str | None) -> bytes:
    fmt = {"<": "binary_little_endian", ">": "binary_big_endian"}[order]
    lines = ["ply", f"format {fmt} 1.0", "comment synthetic", f"element vertex {n}",
             "property float x", "property float y", "property float z"]
    if color:
        lines += [f"property {color} red", f"property {color} green", f"property {color} blue"]
    lines.append("end_header")
    return ("\n".join(lines) + "\n").encode("ascii")


def _payload(order: str, positions: np.ndarray, colors=None, color: str | None = None) -> bytes:
    out = bytearray()
    for i, p in enumerate(positions):
        out += struct.pack(order + "fff", *p)
        if color == "uchar":
            out += bytes(colors[i])
        elif color == "float":
            out += struct.pack(order + "fff", *colors[i])
    return bytes(out)


@pytest.mark.parametrize("order", ["<", ">"])
def test_positions_round_trip_bit_exact(order):
    data = _header(order, 3, None) + _payload(order, POSITIONS)
    cloud = parse_ply(data)
    assert len(cloud) == 3
    np.testing.assert_array_equal(cloud.positions.view(np.uint32), POSITIONS.view(np.uint32))
    np.testing.assert_array_equal(cloud.colors, np.ones((3, 3), dtype=np.float32))


@pytest.mark.parametrize("order", ["<", ">"])
def test_uchar_colors(order):
    colors = [(255, 128, 0), (0, 0, 255), (10, 20, 30)]
    data = _header(order, 3, "uchar") + _payload(order, POSITIONS, colors, "uchar")
    cloud = parse_ply(data)
    np.testing.assert_allclose(cloud.colors[0], [1.0, 128.0 / 255.0, 0.0], atol=1e-6)
    np.testing.assert_allclose(cloud.colors[2], np.array([10, 20, 30]) / 255.0, atol=1e-6)
    np.testing.assert_array_equal(cloud.positions.view(np.uint32), POSITIONS.view(np.uint32))


@pytest.mark.parametrize("order", ["<", ">"])
def test_float_colors_unclamped(order):
    colors = [(0.25, 1.5, -0.5), (0.0, 0.0, 0.0), (1.0, 1.0, 1.0)]
    data = _header(order, 3, "float") + _payload(order, POSITIONS, colors, "float")
    cloud = parse_ply(data)
    np.testing.assert_array_equal(cloud.colors, np.array(colors, dtype=np.float32))


def test_big_endian_is_not_read_natively():
    data = _header(">", 1, None) + struct.pack(">fff", 1.0, 2.0, 3.0)
    cloud = parse_ply(data)
    assert cloud[0].position == (1.0, 2.0, 3.0)


@pytest.mark.parametrize("color, record", [(None, 12), ("uchar", 15), ("float", 24)])
@pytest.mark.parametrize("cut", [1, 2, 3, 4, 5])
def test_truncated_payload_fails(color, record, cut):
    colors = [(1, 2, 3)] * 3 if color == "uchar" else [(0.5, 0.5, 0.5)] * 3
    head = _header("<", 3, color)
    payload = _payload("<", POSITIONS, colors, color)
    assert len(payload) == 3 * record
    with pytest.raises(ParsingError):
        parse_ply(head + payload[:-cut])


def test_truncation_reports_field_offset():
    head = _header("<", 3, None)
    payload = _payload("<", POSITIONS)
    with pytest.raises(ParsingError) as excinfo:
        parse_ply(head + payload[:-1])
    # z of the last vertex starts 32 bytes into the payload
    assert excinfo.value.offset == len(head) + 32
    assert "z of vertex 2" in str(excinfo.value)


def test_truncated_uchar_color_reports_channel():
    head = _header("<", 2, "uchar")
    payload = _payload("<", POSITIONS[:2], [(1, 2, 3), (4, 5, 6)], "uchar")
    with pytest.raises(ParsingError) as excinfo:
        parse_ply(head + payload[:-1])
    assert excinfo.value.offset == len(head) + 15 + 14
    assert "blue of vertex 1" in str(excinfo.value)


def test_trailing_face_bytes_are_ignored():
    head = _header("<", 3, None)
    data = head + _payload("<", POSITIONS) + struct.pack("<Biii", 3, 0, 1, 2)
    assert len(parse_ply(data)) == 3


@pytest.mark.parametrize("color", [None, "uchar", "float"])
@pytest.mark.parametrize("order", ["<", ">"])
def test_walk_matches_vectorized(order, color):
    colors = [(255, 128, 0), (0, 64, 255), (7, 8, 9)] if color == "uchar" else [(0.1, 0.2, 0.3)] * 3
    head = _header(order, 3, color)
    data = head + _payload(order, POSITIONS, colors, color)
    kind = ColorKind.UCHAR if color == "uchar" else ColorKind.FLOAT32
    fast = decode_binary(data, len(head), 3, color is not None, kind, order)
    slow = decode_binary(data, len(head), 3, color is not None, kind, order, vectorized=False)
    np.testing.assert_array_equal(fast.positions.view(np.uint32), slow.positions.view(np.uint32))
    np.testing.assert_array_equal(fast.colors, slow.colors)


def test_input_buffer_is_not_modified():
    head = _header("<", 3, None)
    data = bytearray(head + _payload("<", POSITIONS))
    snapshot = bytes(data)
    parse_ply(data)
    parse_ply(memoryview(data))
    assert bytes(data) == snapshot


def test_vertex_dtype_layout():
    assert vertex_dtype(False, ColorKind.FLOAT32, "<").itemsize == 12
    assert vertex_dtype(True, ColorKind.UCHAR, ">").itemsize == 15
    assert vertex_dtype(True, ColorKind.FLOAT32, "<").itemsize == 24
    with pytest.raises(ValueError):
        vertex_dtype(False, ColorKind.FLOAT32, "=")


def test_rejects_non_bytes_input():
    with pytest.raises(TypeError):
        parse_ply("ply\nformat ascii 1.0\n")
