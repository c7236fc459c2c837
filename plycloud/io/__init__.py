from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Tuple

import numpy as np
import trimesh

from ..models import HeaderMetadata, PointCloud
from ..parsing import HEADER_PROBE_BYTES, parse_ply, scan_header

logger = logging.getLogger(__name__)


# ---------- Internal utilities ----------

def _read_bytes(path: str | Path, limit: int | None = None) -> bytes:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"PLY file '{path}' not found.")
    with path.open("rb") as handle:
        data = handle.read() if limit is None else handle.read(limit)
    logger.debug("read %d bytes from %s", len(data), path)
    return data


# ---------- Public API ----------

def load_ply(path: str | Path) -> PointCloud:
    """
    Read a .ply file fully into memory and decode its vertices.
    Raises FileNotFoundError for a missing file and PlyError for malformed content.
    """
    return parse_ply(_read_bytes(path))


def read_ply(path: str | Path) -> Tuple[HeaderMetadata, PointCloud]:
    """Read a .ply file once and return both its header metadata and its vertices."""
    data = _read_bytes(path)
    return scan_header(data), parse_ply(data)


def read_header(path: str | Path) -> HeaderMetadata:
    """Scan only the header of a .ply file."""
    return scan_header(_read_bytes(path, HEADER_PROBE_BYTES))


def to_trimesh(cloud: PointCloud, alpha: float = 1.0) -> trimesh.PointCloud:
    """
    Hand a decoded cloud to trimesh for rendering. Colors are clipped to [0,1]
    and quantized to RGBA uint8 with a constant alpha.
    """
    rgba = np.clip(cloud.rgba(alpha), 0.0, 1.0)
    colors = np.round(rgba * 255.0).astype(np.uint8)
    return trimesh.PointCloud(vertices=np.asarray(cloud.positions, dtype=np.float64), colors=colors)


def save_npz(cloud: PointCloud, path: str | Path, meta: Dict[str, Any] | None = None) -> None:
    """Cache a decoded PointCloud as NPZ (positions, colors, JSON meta)."""
    path = Path(path)
    if path.parent and path.parent != Path("."):
        path.parent.mkdir(parents=True, exist_ok=True)
    meta_json = json.dumps(dict(meta or {}), sort_keys=True)
    payload: Dict[str, Any] = {
        "positions": np.asarray(cloud.positions, dtype=np.float32),
        "colors": np.asarray(cloud.colors, dtype=np.float32),
        "meta_json": np.asarray(meta_json),
    }
    np.savez(path, **payload)


def load_npz(resource: str | Path) -> tuple[PointCloud, Dict[str, Any]]:
    """Load a cloud written by :func:`save_npz`. Returns (cloud, meta)."""
    path = Path(resource)
    with np.load(path, allow_pickle=False) as data:
        positions = np.asarray(data["positions"], dtype=np.float32)
        colors = np.asarray(data["colors"], dtype=np.float32)
        meta_raw = data.get("meta_json")
        if meta_raw is None:
            meta: Dict[str, Any] = {}
        else:
            meta = json.loads(str(np.asarray(meta_raw).item()))
    return PointCloud(positions=positions, colors=colors), meta


__all__ = ["load_ply", "read_ply", "read_header", "to_trimesh", "save_npz", "load_npz"]
