from __future__ import annotations

import logging
import warnings
from typing import List, Optional, Tuple

from ..errors import ParsingError, PlyColorWarning
from ..models import WHITE, ColorKind, PointCloud
from .common import PROGRESS_EVERY, BufferLike, as_buffer, build_cloud, parse_float, parse_int

logger = logging.getLogger(__name__)


def _parse_color(tokens: List[str], color_kind: ColorKind) -> Optional[Tuple[float, float, float]]:
    """Color triple from tokens 3..5, or None when any channel is malformed."""
    raw = tokens[3:6]
    try:
        if color_kind is ColorKind.UCHAR:
            values = [parse_int(tok) for tok in raw]
            if any(v < 0 or v > 255 for v in values):
                return None
            return (values[0] / 255.0, values[1] / 255.0, values[2] / 255.0)
        return (parse_float(raw[0]), parse_float(raw[1]), parse_float(raw[2]))
    except ValueError:
        return None


def decode_ascii(
    buffer: BufferLike,
    header_byte_length: int,
    vertex_count: int,
    has_color: bool,
    color_kind: ColorKind,
) -> PointCloud:
    """
    Decode a text vertex block.

    Lines after the header are read one vertex per line; blank lines are skipped
    without consuming a vertex. Lines after the last vertex (face data) are never parsed.
    A malformed color triple keeps the point (colored white) and is reported as a
    single PlyColorWarning; malformed or missing positions raise ParsingError.
    """
    view = as_buffer(buffer)
    payload = bytes(view[header_byte_length:])
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        logger.warning("ASCII payload is not valid UTF-8 (%s); treating it as empty", exc)
        text = ""

    lines = text.splitlines()
    positions: List[Tuple[float, float, float]] = []
    colors: List[Tuple[float, float, float]] = []
    bad_color_lines: List[int] = []

    index = 0
    while len(positions) < vertex_count:
        if index >= len(lines):
            raise ParsingError(
                f"Unexpected end of data at line {index}: "
                f"{len(positions)} of {vertex_count} vertices read.",
                line=index,
            )
        line = lines[index].strip()
        if not line:
            index += 1
            continue

        tokens = line.split()
        if len(tokens) < 3:
            raise ParsingError(
                f"Not enough components in line {index}: {line!r}",
                line=index,
                content=line,
            )
        try:
            x, y, z = parse_float(tokens[0]), parse_float(tokens[1]), parse_float(tokens[2])
        except ValueError:
            raise ParsingError(
                f"Invalid coordinate format in line {index}: {line!r}",
                line=index,
                content=line,
            ) from None

        color = WHITE
        if has_color and len(tokens) >= 6:
            parsed = _parse_color(tokens, color_kind)
            if parsed is None:
                logger.debug("invalid color values at line %d: %r", index, line)
                bad_color_lines.append(index)
            else:
                color = parsed

        if len(positions) % PROGRESS_EVERY == 0:
            logger.debug("processed %d of %d points", len(positions), vertex_count)
        positions.append((x, y, z))
        colors.append(color)
        index += 1

    remaining = len(lines) - index
    if remaining > 0:
        logger.debug("skipping %d trailing lines (face data)", remaining)

    if bad_color_lines:
        warnings.warn(
            f"{len(bad_color_lines)} vertex line(s) had malformed color values and were "
            f"colored white (first at line {bad_color_lines[0]}).",
            PlyColorWarning,
            stacklevel=2,
        )

    logger.debug("decoded %d ASCII points", len(positions))
    return build_cloud(positions, colors, vertex_count)


__all__ = ["decode_ascii"]
