#!/usr/bin/env python3
"""
Render Iwamoto 3D-CAD geometry to a wireframe PNG without the editor.

Polygons are walked through their point rings, projected with one of the
editor's view orientations and rasterised with Pillow. Example:

    python render_cad_png.py SHIP.cad --out SHIP_front.png --view front --size 512
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable, List, Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw

from iwacad.arena import CadArena
from iwacad.errors import CadError
from iwacad.view import ViewType, outline_bounds, palette_rgb, polygon_outlines, project


def load_arena(path: Path) -> CadArena:
    arena = CadArena()
    arena.load_file(path)
    return arena


def _build_transform(
    bounds: Tuple[float, float, float, float],
    size_px: int,
    padding_ratio: float,
) -> Callable[[np.ndarray], List[Tuple[float, float]]]:
    min_x, max_x, min_y, max_y = bounds
    width = max(max_x - min_x, 1e-9)
    height = max(max_y - min_y, 1e-9)
    pad = max(width, height) * padding_ratio

    world_min_x = min_x - pad
    world_min_y = min_y - pad
    world_width = width + 2 * pad
    world_height = height + 2 * pad

    scale = min(size_px / world_width, size_px / world_height)
    offset_x = (size_px - world_width * scale) / 2.0
    offset_y = (size_px - world_height * scale) / 2.0

    def transform(points: np.ndarray) -> List[Tuple[float, float]]:
        px = (points[:, 0] - world_min_x) * scale + offset_x
        py = size_px - ((points[:, 1] - world_min_y) * scale + offset_y)
        return list(zip(px.tolist(), py.tolist()))

    return transform


def _rgb255(color_idx: int, *, use_palette: bool) -> Tuple[int, int, int]:
    if not use_palette:
        return (0, 0, 0)
    r, g, b = palette_rgb(color_idx)
    return (int(r * 255), int(g * 255), int(b * 255))


def render_png(
    arena: CadArena,
    destination: Path,
    size_px: int,
    *,
    view: ViewType = ViewType.FRONT,
    padding_ratio: float = 0.05,
    use_palette: bool = False,
) -> int:
    """Draw every polygon outline and return how many were drawn."""

    outlines = [(color, project(coords, view)) for color, coords in polygon_outlines(arena)]
    if not outlines:
        raise RuntimeError("No renderable polygons were found in the arena.")
    bounds = outline_bounds([pts for _color, pts in outlines])
    transform = _build_transform(bounds, size_px, padding_ratio)

    image = Image.new("RGBA", (size_px, size_px), (255, 255, 255, 0))
    draw = ImageDraw.Draw(image)
    stroke = max(1, int(size_px / 256))
    for color, pts in outlines:
        screen = transform(pts)
        if len(screen) > 2:
            screen.append(screen[0])
        draw.line(screen, fill=_rgb255(color, use_palette=use_palette), width=stroke)

    destination.parent.mkdir(parents=True, exist_ok=True)
    image.save(destination)
    return len(outlines)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render an Iwamoto 3D-CAD .cad file to a wireframe PNG.")
    parser.add_argument("input", type=Path, help="Source .cad file")
    parser.add_argument("--out", type=Path, required=True, help="Destination PNG")
    parser.add_argument("--size", type=int, default=512, help="Image size in pixels (square)")
    parser.add_argument(
        "--view",
        choices=[v.value for v in ViewType],
        default=ViewType.FRONT.value,
        help="Projection to use (default: front)",
    )
    parser.add_argument("--palette", action="store_true", help="Colour edges with the polygon palette index")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        arena = load_arena(args.input)
    except CadError as exc:
        print(f"Failed to load '{args.input}': {exc}", file=sys.stderr)
        return 2
    try:
        drawn = render_png(arena, args.out, args.size, view=ViewType(args.view), use_palette=args.palette)
    except RuntimeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"[+] {drawn} polygon outline(s) written to {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
