#!/usr/bin/env python
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

import numpy as np

from plycloud.errors import PlyError
from plycloud.io import load_ply, read_header, read_ply, save_npz
from plycloud.figures import make_preview

EXIT_UNREADABLE = 2


def _ensure_parent(path: str | os.PathLike[str]) -> None:
    parent = Path(path).expanduser().parent
    if parent != Path('.'):
        parent.mkdir(parents=True, exist_ok=True)


def _add_info_arguments(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("ply", help="Input PLY file path.")
    sub.add_argument("--header-only", action="store_true", help="Only scan the header, do not decode vertices.")


def _add_preview_arguments(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("ply", help="Input PLY file path.")
    sub.add_argument("--out", required=True, help="Output image path.")
    sub.add_argument("--max-points", type=int, default=50000, help="Subsample to at most this many points (0 = all).")
    sub.add_argument("--point-size", type=float, default=1.0, help="Marker size.")
    sub.add_argument("--dpi", type=int, default=200, help="Figure DPI for raster outputs.")
    sub.add_argument("--elev", type=float, default=20.0, help="Camera elevation (degrees).")
    sub.add_argument("--azim", type=float, default=-60.0, help="Camera azimuth (degrees).")


def _add_export_arguments(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("ply", help="Input PLY file path.")
    sub.add_argument("--npz", required=True, help="Output NPZ file path.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="plycloud", description="PLY point cloud inspection CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    info_parser = subparsers.add_parser("info", help="Print header and bounds of a PLY file.")
    _add_info_arguments(info_parser)

    preview_parser = subparsers.add_parser("preview", help="Render a scatter preview image.")
    _add_preview_arguments(preview_parser)

    export_parser = subparsers.add_parser("export", help="Decode a PLY file into an NPZ cache.")
    _add_export_arguments(export_parser)

    return parser


def _run_info(args: argparse.Namespace) -> None:
    if args.header_only:
        meta, cloud = read_header(args.ply), None
    else:
        meta, cloud = read_ply(args.ply)
    print(f"[info] {args.ply}")
    print(f"  format:       {meta.encoding.value}")
    print(f"  vertices:     {meta.vertex_count}")
    print(f"  color:        {meta.color_kind.value if meta.has_color else 'none'}")
    print(f"  faces:        {'yes (skipped)' if meta.has_faces else 'no'}")
    print(f"  header bytes: {meta.header_byte_length} ({meta.text_encoding})")
    for comment in meta.comments:
        print(f"  comment:      {comment}")
    if cloud is None:
        return
    lo, hi = cloud.bounds()
    print(f"  points:       {len(cloud)}")
    print(f"  bounds min:   {np.array2string(lo, precision=4)}")
    print(f"  bounds max:   {np.array2string(hi, precision=4)}")


def _run_preview(args: argparse.Namespace) -> None:
    cloud = load_ply(args.ply)
    _ensure_parent(args.out)
    make_preview(
        cloud,
        args.out,
        max_points=int(args.max_points),
        point_size=float(args.point_size),
        dpi=int(args.dpi),
        elev=float(args.elev),
        azim=float(args.azim),
    )
    print(f"[preview] wrote {args.out}")


def _run_export(args: argparse.Namespace) -> None:
    meta, cloud = read_ply(args.ply)
    _ensure_parent(args.npz)
    save_npz(
        cloud,
        args.npz,
        meta={
            "source": str(args.ply),
            "format": meta.encoding.value,
            "color": meta.color_kind.value if meta.has_color else None,
        },
    )
    print(f"[export] wrote {args.npz}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    commands = {"info": _run_info, "preview": _run_preview, "export": _run_export}
    try:
        commands[args.command](args)
    except (PlyError, FileNotFoundError) as exc:
        print(f"[plycloud] cannot read {args.ply}: {exc}", file=sys.stderr)
        return EXIT_UNREADABLE
    return 0


if __name__ == "__main__":
    sys.exit(main())
