from __future__ import annotations

import logging
import struct
from typing import List

import numpy as np

from ..errors import ParsingError
from ..models import ColorKind, PointCloud
from .common import PROGRESS_EVERY, BufferLike, as_buffer, build_cloud

logger = logging.getLogger(__name__)

_AXES = ("x", "y", "z")
_CHANNELS = ("red", "green", "blue")


def _check_byte_order(byte_order: str) -> str:
    if byte_order not in ("<", ">"):
        raise ValueError(f"byte_order must be '<' or '>', got {byte_order!r}.")
    return byte_order


def vertex_dtype(has_color: bool, color_kind: ColorKind, byte_order: str) -> np.dtype:
    """Packed numpy record type matching one binary vertex."""
    bo = _check_byte_order(byte_order)
    fields = [(axis, bo + "f4") for axis in _AXES]
    if has_color:
        ctype = "u1" if color_kind is ColorKind.UCHAR else bo + "f4"
        fields += [(ch, ctype) for ch in _CHANNELS]
    return np.dtype(fields)


def _walk(view: memoryview, start: int, vertex_count: int, has_color: bool, color_kind: ColorKind, byte_order: str):
    """
    Read vertices field by field, checking bounds before every read so a
    truncated payload reports the exact offset of the first missing field.
    """
    float_fmt = byte_order + "f"
    end = len(view)
    cursor = start
    positions: List[float] = []
    colors: List[float] = []

    for i in range(vertex_count):
        for axis in _AXES:
            if cursor + 4 > end:
                raise ParsingError(
                    f"Unexpected end of data at offset {cursor} reading {axis} of vertex {i}.",
                    offset=cursor,
                )
            positions.append(struct.unpack_from(float_fmt, view, cursor)[0])
            cursor += 4

        if has_color:
            width = color_kind.width
            for channel in _CHANNELS:
                if cursor + width > end:
                    raise ParsingError(
                        f"Unexpected end of data at offset {cursor} reading {channel} of vertex {i}.",
                        offset=cursor,
                    )
                if color_kind is ColorKind.UCHAR:
                    colors.append(view[cursor])
                else:
                    colors.append(struct.unpack_from(float_fmt, view, cursor)[0])
                cursor += width

        if i % PROGRESS_EVERY == 0:
            logger.debug("processed %d of %d points", i, vertex_count)

    return positions, colors


def decode_binary(
    buffer: BufferLike,
    header_byte_length: int,
    vertex_count: int,
    has_color: bool,
    color_kind: ColorKind,
    byte_order: str,
    *,
    vectorized: bool = True,
) -> PointCloud:
    """
    Decode fixed-width binary vertex records.

    Args:
        byte_order: '<' for binary_little_endian, '>' for binary_big_endian
        vectorized: read with numpy when the payload holds every record; the result
                    is identical to the field-by-field walk, which is always used
                    when the payload is short.

    Returns exactly ``vertex_count`` points or raises ParsingError carrying the
    absolute buffer offset of the first field that could not be read. Bytes after
    the last vertex (face data) are left unread.
    """
    _check_byte_order(byte_order)
    view = as_buffer(buffer)
    start = min(header_byte_length, len(view))
    available = len(view) - start
    size = 12 + (3 * color_kind.width if has_color else 0)
    expected = vertex_count * size
    logger.debug(
        "binary payload %d bytes, expected %d (%d vertices x %d bytes)",
        available, expected, vertex_count, size,
    )
    if available < expected:
        logger.warning("binary payload is %d bytes, smaller than the expected %d", available, expected)

    if vectorized and available >= expected:
        records = np.frombuffer(view, dtype=vertex_dtype(has_color, color_kind, byte_order), count=vertex_count, offset=start)
        positions = np.column_stack([records[axis] for axis in _AXES]).astype(np.float32)
        colors = None
        if has_color:
            colors = np.column_stack([records[ch] for ch in _CHANNELS]).astype(np.float32)
    else:
        flat_pos, flat_col = _walk(view, start, vertex_count, has_color, color_kind, byte_order)
        positions = np.asarray(flat_pos, dtype=np.float32)
        colors = np.asarray(flat_col, dtype=np.float32) if has_color else None

    if colors is not None and color_kind is ColorKind.UCHAR:
        colors = colors / np.float32(255.0)

    logger.debug("decoded %d binary points", vertex_count)
    return build_cloud(positions, colors, vertex_count)


__all__ = ["decode_binary", "vertex_dtype"]
