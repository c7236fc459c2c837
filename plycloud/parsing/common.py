from __future__ import annotations

import re
from typing import List, Sequence, Union

import numpy as np

from ..models import PointCloud

BufferLike = Union[bytes, bytearray, memoryview]

# Decoders log a progress line every this many vertices.
PROGRESS_EVERY = 10000

# Plain ASCII numerals only; float()/int() alone also accept "1_0" and non-ASCII digits.
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)
_INT_RE = re.compile(r"[+-]?[0-9]+")


def parse_float(token: str) -> float:
    """Parse a decimal float token; raises ValueError for anything else."""
    if not _FLOAT_RE.fullmatch(token):
        raise ValueError(f"not a float: {token!r}")
    return float(token)


def parse_int(token: str) -> int:
    """Parse a base-10 integer token; raises ValueError for anything else."""
    if not _INT_RE.fullmatch(token):
        raise ValueError(f"not an integer: {token!r}")
    return int(token)


def as_buffer(buffer: BufferLike) -> memoryview:
    """Read-only byte view of ``buffer``; the caller's object is never modified."""
    if isinstance(buffer, str) or not isinstance(buffer, (bytes, bytearray, memoryview)):
        raise TypeError(f"Expected a bytes-like PLY buffer, got {type(buffer).__name__}.")
    view = memoryview(buffer)
    if view.ndim != 1 or view.itemsize != 1:
        view = view.cast("B")
    return view.toreadonly()


def build_cloud(positions: Sequence, colors: List | None, count: int) -> PointCloud:
    """Assemble a PointCloud; missing colors default to white."""
    pos = np.asarray(positions, dtype=np.float32).reshape(count, 3)
    if colors is None:
        col = np.ones((count, 3), dtype=np.float32)
    else:
        col = np.asarray(colors, dtype=np.float32).reshape(count, 3)
    return PointCloud(positions=pos, colors=col)
