from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg", force=True)
matplotlib.rcParams["figure.facecolor"] = "white"
matplotlib.rcParams["savefig.facecolor"] = "white"

import matplotlib.pyplot as plt
import numpy as np
from mpl_toolkits.mplot3d import Axes3D  # noqa: F401 (required for 3D projection)

from .models import PointCloud


def _subsample(n: int, max_points: int) -> np.ndarray:
    if max_points <= 0 or n <= max_points:
        return np.arange(n)
    return np.linspace(0, n - 1, max_points).astype(np.int64)


def make_preview(
    cloud: PointCloud,
    out_path: str | Path,
    *,
    max_points: int = 50000,
    point_size: float = 1.0,
    dpi: int = 200,
    elev: float = 20.0,
    azim: float = -60.0,
) -> Path:
    """
    Render a 3D scatter preview of ``cloud`` colored by its vertex colors.
    Large clouds are evenly subsampled to ``max_points``. Returns the output path.
    """
    if len(cloud) == 0:
        raise ValueError("Cannot preview an empty point cloud.")
    out_path = Path(out_path)
    if out_path.parent and out_path.parent != Path("."):
        out_path.parent.mkdir(parents=True, exist_ok=True)

    idx = _subsample(len(cloud), int(max_points))
    P = cloud.positions[idx].astype(float)
    C = np.clip(cloud.colors[idx].astype(float), 0.0, 1.0)

    fig = plt.figure(figsize=(6.4, 6.4), dpi=dpi)
    ax = fig.add_subplot(111, projection="3d")
    ax.scatter(P[:, 0], P[:, 1], P[:, 2], c=C, s=point_size, linewidths=0, depthshade=False)

    # Equal aspect from the bounding box
    lo, hi = P.min(axis=0), P.max(axis=0)
    ax.set_box_aspect(np.maximum(hi - lo, 1e-9))
    ax.view_init(elev=elev, azim=azim)
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_zlabel("z")
    ax.set_title(f"{len(cloud)} points" + (f" ({idx.size} shown)" if idx.size < len(cloud) else ""))

    fig.savefig(out_path, dpi=dpi, facecolor="white", bbox_inches="tight")
    plt.close(fig)
    return out_path


__all__ = ["make_preview"]
