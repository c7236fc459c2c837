"""
plycloud: PLY point cloud reader.

This package exposes:
- Core dataclasses (PointCloud, Point, HeaderMetadata) and the encoding enums
- parse_ply for in-memory buffers and load_ply for files
- The PlyError family raised for malformed input
"""

from .errors import (
    HeaderDecodeError,
    InvalidFormatError,
    MissingHeaderTerminatorError,
    MissingVertexDataError,
    ParsingError,
    PlyColorWarning,
    PlyError,
    UnsupportedFormatError,
)
from .models import ColorKind, HeaderMetadata, PlyEncoding, Point, PointCloud
from .parsing import parse_ply, scan_header

__all__ = [
    "ColorKind",
    "HeaderMetadata",
    "PlyEncoding",
    "Point",
    "PointCloud",
    "parse_ply",
    "scan_header",
    "PlyError",
    "InvalidFormatError",
    "MissingHeaderTerminatorError",
    "UnsupportedFormatError",
    "MissingVertexDataError",
    "HeaderDecodeError",
    "ParsingError",
    "PlyColorWarning",
]

__version__ = "0.1.0"
