"""
PLY buffer parsing: header scan followed by exactly one vertex decoder.
"""
from __future__ import annotations

import logging

from ..models import PlyEncoding, PointCloud
from .ascii import decode_ascii
from .binary import decode_binary, vertex_dtype
from .common import BufferLike, as_buffer
from .header import (
    HEADER_PROBE_BYTES,
    HEADER_TEXT_ENCODINGS,
    HeaderDirective,
    classify_line,
    decode_header_text,
    scan_header,
)

logger = logging.getLogger(__name__)


def parse_ply(buffer: BufferLike) -> PointCloud:
    """
    Parse a complete PLY file held in memory.

    Returns every declared vertex in file order, or raises a PlyError subclass.
    Face elements are never decoded. The input buffer is only read.
    """
    view = as_buffer(buffer)
    meta = scan_header(view)
    if meta.encoding is PlyEncoding.ASCII:
        cloud = decode_ascii(
            view,
            meta.header_byte_length,
            meta.vertex_count,
            meta.has_color,
            meta.color_kind,
        )
    else:
        cloud = decode_binary(
            view,
            meta.header_byte_length,
            meta.vertex_count,
            meta.has_color,
            meta.color_kind,
            meta.encoding.byte_order,
        )
    logger.debug("parsed %d points", len(cloud))
    return cloud


__all__ = [
    "HEADER_PROBE_BYTES",
    "HEADER_TEXT_ENCODINGS",
    "HeaderDirective",
    "classify_line",
    "decode_header_text",
    "scan_header",
    "decode_ascii",
    "decode_binary",
    "vertex_dtype",
    "parse_ply",
]
