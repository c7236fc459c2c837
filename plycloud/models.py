from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple
import numpy as np

Triple = Tuple[float, float, float]

WHITE: Triple = (1.0, 1.0, 1.0)


class PlyEncoding(str, Enum):
    """Payload encoding declared by the ``format`` header line."""

    ASCII = "ascii"
    BINARY_LITTLE_ENDIAN = "binary_little_endian"
    BINARY_BIG_ENDIAN = "binary_big_endian"

    @classmethod
    def from_token(cls, token: str | None) -> Optional["PlyEncoding"]:
        for member in cls:
            if member.value == token:
                return member
        return None

    @property
    def byte_order(self) -> Optional[str]:
        """``struct`` byte-order prefix, ``None`` for text payloads."""
        if self is PlyEncoding.BINARY_LITTLE_ENDIAN:
            return "<"
        if self is PlyEncoding.BINARY_BIG_ENDIAN:
            return ">"
        return None


class ColorKind(str, Enum):
    FLOAT32 = "float"
    UCHAR = "uchar"

    @classmethod
    def from_token(cls, token: str) -> "ColorKind":
        # Anything that is not uchar is read as float.
        return cls.UCHAR if token == cls.UCHAR.value else cls.FLOAT32

    @property
    def width(self) -> int:
        return 1 if self is ColorKind.UCHAR else 4


@dataclass
class HeaderMetadata:
    """
    Structural description of a PLY buffer recovered from its text header.

    - header_byte_length: offset of the first payload byte in the raw buffer
    - text_encoding:      codec that decoded the header probe
    """
    encoding: PlyEncoding
    vertex_count: int
    has_color: bool = False
    color_kind: ColorKind = ColorKind.FLOAT32
    header_byte_length: int = 0
    text_encoding: str = "ascii"
    has_faces: bool = False
    comments: List[str] = field(default_factory=list)

    @property
    def record_size(self) -> int:
        """Bytes per binary vertex record: xyz floats plus the optional color triple."""
        size = 12
        if self.has_color:
            size += 3 * self.color_kind.width
        return size


@dataclass(frozen=True)
class Point:
    position: Triple
    color: Triple = WHITE


@dataclass
class PointCloud:
    """
    Ordered vertices decoded from a PLY buffer.
    - positions: (N,3) float32 array, file order
    - colors:    (N,3) float32 array, linear RGB, not clamped
    """
    positions: np.ndarray
    colors: np.ndarray

    def __post_init__(self) -> None:
        self.positions = np.asarray(self.positions, dtype=np.float32).reshape(-1, 3)
        self.colors = np.asarray(self.colors, dtype=np.float32).reshape(-1, 3)
        if self.positions.shape != self.colors.shape:
            raise ValueError(
                f"positions {self.positions.shape} and colors {self.colors.shape} must have the same shape."
            )

    def __len__(self) -> int:
        return int(self.positions.shape[0])

    def __getitem__(self, index: int) -> Point:
        p = self.positions[index]
        c = self.colors[index]
        return Point(
            position=(float(p[0]), float(p[1]), float(p[2])),
            color=(float(c[0]), float(c[1]), float(c[2])),
        )

    def __iter__(self) -> Iterator[Point]:
        for i in range(len(self)):
            yield self[i]

    @classmethod
    def from_points(cls, points: Iterable[Point]) -> "PointCloud":
        pts = list(points)
        if not pts:
            return cls(positions=np.empty((0, 3), np.float32), colors=np.empty((0, 3), np.float32))
        return cls(
            positions=np.array([p.position for p in pts], dtype=np.float32),
            colors=np.array([p.color for p in pts], dtype=np.float32),
        )

    def bounds(self) -> np.ndarray:
        """Return (2,3) array [min, max] of the positions."""
        if len(self) == 0:
            raise ValueError("bounds() of an empty point cloud is undefined.")
        return np.vstack((self.positions.min(axis=0), self.positions.max(axis=0)))

    def centroid(self) -> np.ndarray:
        if len(self) == 0:
            raise ValueError("centroid() of an empty point cloud is undefined.")
        return self.positions.astype(np.float64).mean(axis=0)

    def rgba(self, alpha: float = 1.0) -> np.ndarray:
        """
        Colors as an (N,4) float32 render buffer with a constant alpha channel.
        """
        alpha = float(alpha)
        if not 0.0 <= alpha <= 1.0:
            raise ValueError(f"alpha must lie in [0, 1], got {alpha}.")
        out = np.empty((len(self), 4), dtype=np.float32)
        out[:, :3] = self.colors
        out[:, 3] = alpha
        return out
