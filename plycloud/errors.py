from __future__ import annotations

from typing import Optional


class PlyError(ValueError):
    """Base class for every failure raised while reading a PLY buffer."""


class InvalidFormatError(PlyError):
    """The buffer does not start with the ``ply`` magic line."""


class MissingHeaderTerminatorError(InvalidFormatError):
    """No ``end_header`` line inside the bounded header probe."""


class UnsupportedFormatError(PlyError):
    """The ``format`` line is absent or names an unknown encoding."""


class MissingVertexDataError(PlyError):
    """The header declares no vertices."""


class HeaderDecodeError(PlyError):
    """The header probe could not be decoded as text."""


class ParsingError(PlyError):
    """
    Malformed or truncated vertex data.

    Attributes:
        line:    index of the offending payload line (ASCII payloads)
        content: text of the offending line (ASCII payloads)
        offset:  absolute byte offset into the input buffer (binary payloads)
    """

    def __init__(
        self,
        message: str,
        *,
        line: Optional[int] = None,
        content: Optional[str] = None,
        offset: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.line = line
        self.content = content
        self.offset = offset


class PlyColorWarning(UserWarning):
    """ASCII color triples were malformed and replaced by white."""


__all__ = [
    "PlyError",
    "InvalidFormatError",
    "MissingHeaderTerminatorError",
    "UnsupportedFormatError",
    "MissingVertexDataError",
    "HeaderDecodeError",
    "ParsingError",
    "PlyColorWarning",
]
