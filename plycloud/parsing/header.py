from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ..errors import (
    HeaderDecodeError,
    InvalidFormatError,
    MissingHeaderTerminatorError,
    MissingVertexDataError,
    UnsupportedFormatError,
)
from ..models import ColorKind, HeaderMetadata, PlyEncoding
from .common import parse_int

logger = logging.getLogger(__name__)

# Size of the region searched for the header; end_header must appear inside it.
HEADER_PROBE_BYTES = 4096

# Tried in order, first successful decode wins.
HEADER_TEXT_ENCODINGS: Tuple[str, ...] = ("ascii", "utf-8", "latin-1")

_COLOR_CHANNELS = ("red", "green", "blue")


class HeaderDirective(Enum):
    BLANK = "blank"
    COMMENT = "comment"
    FORMAT = "format"
    ELEMENT_VERTEX = "element vertex"
    ELEMENT_FACE = "element face"
    ELEMENT_OTHER = "element"
    PROPERTY = "property"
    END_HEADER = "end_header"
    UNKNOWN = "unknown"


def classify_line(line: str) -> Tuple[HeaderDirective, List[str]]:
    """
    Map one header line onto the closed set of directives the scanner understands.
    Returns (directive, whitespace tokens of the stripped line).
    """
    stripped = line.strip()
    if not stripped:
        return HeaderDirective.BLANK, []
    tokens = stripped.split()
    head = tokens[0]
    if head == "comment":
        return HeaderDirective.COMMENT, tokens
    if head == "format":
        return HeaderDirective.FORMAT, tokens
    if head == "element":
        kind = tokens[1] if len(tokens) > 1 else ""
        if kind == "vertex":
            return HeaderDirective.ELEMENT_VERTEX, tokens
        if kind == "face":
            return HeaderDirective.ELEMENT_FACE, tokens
        return HeaderDirective.ELEMENT_OTHER, tokens
    if head == "property":
        return HeaderDirective.PROPERTY, tokens
    if stripped == "end_header":
        return HeaderDirective.END_HEADER, tokens
    return HeaderDirective.UNKNOWN, tokens


def decode_header_text(
    buffer: bytes,
    limit: int = HEADER_PROBE_BYTES,
    encodings: Sequence[str] = HEADER_TEXT_ENCODINGS,
) -> Tuple[str, str]:
    """
    Decode the first ``limit`` bytes of ``buffer`` as text.
    Returns (text, codec name). The first codec that decodes without error is used
    as-is; no attempt is made to check the others.
    """
    probe = bytes(buffer[:limit])
    for codec in encodings:
        try:
            return probe.decode(codec), codec
        except UnicodeDecodeError:
            continue
    preview = " ".join(f"{b:02X}" for b in probe[:100])
    logger.debug("header undecodable, first bytes: %s", preview)
    raise HeaderDecodeError(f"Failed to decode PLY header with any of {tuple(encodings)}.")


def _payload_offset(buffer: bytes, text: str, codec: str, line_start: int, raw_line: str) -> int:
    """Byte offset of the first payload byte following the end_header line."""
    body = raw_line.splitlines()[0]
    end_char = line_start + len(raw_line)
    offset = len(text[:end_char].encode(codec))
    if len(body) == len(raw_line):
        # The probe ended on this line; its terminator lies past the probe.
        if bytes(buffer[offset:offset + 2]) == b"\r\n":
            offset += 2
        else:
            offset += 1
    elif raw_line.endswith("\r") and bytes(buffer[offset:offset + 1]) == b"\n":
        # CRLF split by the probe boundary: the LF is the first byte past the probe.
        offset += 1
    return min(offset, len(buffer))


def scan_header(buffer: bytes, *, probe_bytes: int = HEADER_PROBE_BYTES) -> HeaderMetadata:
    """
    Scan the text header of a PLY buffer.

    Only the first ``probe_bytes`` bytes are examined; a header whose
    ``end_header`` line does not fit there is rejected.

    Raises:
        HeaderDecodeError, InvalidFormatError, MissingHeaderTerminatorError,
        UnsupportedFormatError, MissingVertexDataError
    """
    logger.debug("scanning PLY header, buffer size %d bytes", len(buffer))
    if len(buffer):
        logger.debug("first bytes: %s", " ".join(f"{b:02X}" for b in bytes(buffer[:20])))

    text, codec = decode_header_text(buffer, probe_bytes)
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != "ply":
        first = lines[0].strip() if lines else ""
        raise InvalidFormatError(f"Buffer does not start with 'ply' (first line: {first[:40]!r}).")

    format_token: Optional[str] = None
    vertex_count = 0
    has_color = False
    color_kind = ColorKind.FLOAT32
    has_faces = False
    comments: List[str] = []
    element: Optional[str] = None
    header_byte_length: Optional[int] = None

    line_start = len(lines[0])
    for raw in lines[1:]:
        directive, tokens = classify_line(raw)
        if directive is HeaderDirective.COMMENT:
            comments.append(raw.strip()[len("comment"):].strip())
        elif directive is HeaderDirective.FORMAT:
            if len(tokens) >= 2:
                format_token = tokens[1]
                logger.debug("format: %s", format_token)
        elif directive is HeaderDirective.ELEMENT_VERTEX:
            element = "vertex"
            if len(tokens) >= 3:
                try:
                    vertex_count = parse_int(tokens[2])
                except ValueError:
                    logger.debug("ignoring malformed vertex count %r", tokens[2])
                else:
                    logger.debug("vertex count: %d", vertex_count)
        elif directive is HeaderDirective.ELEMENT_FACE:
            element = "face"
            has_faces = True
            logger.debug("face element present, face data will be skipped")
        elif directive is HeaderDirective.ELEMENT_OTHER:
            element = tokens[1] if len(tokens) > 1 else None
        elif directive is HeaderDirective.PROPERTY:
            stripped = raw.strip()
            if element in (None, "vertex") and any(ch in stripped for ch in _COLOR_CHANNELS):
                has_color = True
                if len(tokens) >= 2:
                    color_kind = ColorKind.from_token(tokens[1])
                    logger.debug("color property %r read as %s", stripped, color_kind.value)
        elif directive is HeaderDirective.END_HEADER:
            header_byte_length = _payload_offset(buffer, text, codec, line_start, raw)
            break
        elif directive is HeaderDirective.UNKNOWN:
            logger.debug("unknown header line: %s", raw.strip())
        line_start += len(raw)

    if header_byte_length is None:
        raise MissingHeaderTerminatorError(
            f"No 'end_header' line within the first {probe_bytes} bytes."
        )

    encoding = PlyEncoding.from_token(format_token)
    if encoding is None:
        raise UnsupportedFormatError(f"Unsupported or missing PLY format: {format_token!r}.")
    if vertex_count <= 0:
        raise MissingVertexDataError(f"PLY header declares no vertices (count={vertex_count}).")

    meta = HeaderMetadata(
        encoding=encoding,
        vertex_count=vertex_count,
        has_color=has_color,
        color_kind=color_kind,
        header_byte_length=header_byte_length,
        text_encoding=codec,
        has_faces=has_faces,
        comments=comments,
    )
    logger.debug(
        "header: %d vertices, color=%s, format=%s, %d header bytes",
        meta.vertex_count,
        meta.color_kind.value if meta.has_color else "no",
        meta.encoding.value,
        meta.header_byte_length,
    )
    return meta


__all__ = [
    "HEADER_PROBE_BYTES",
    "HEADER_TEXT_ENCODINGS",
    "HeaderDirective",
    "classify_line",
    "decode_header_text",
    "scan_header",
]
