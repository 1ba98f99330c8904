"""
Orthographic and rotated projections of arena geometry for previews.

The axis conventions follow the editor's four panes: TOP looks down Y,
FRONT looks down Z, RIGHT looks down -X, and ISO applies a rotation about X
then Y before dropping depth.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import TYPE_CHECKING, List, Sequence, Tuple

import numpy as np

from .chain import polygon_coordinates

if TYPE_CHECKING:
    from .arena import CadArena

DEFAULT_ISO_ROT_X = 30.0
DEFAULT_ISO_ROT_Y = -45.0
MAX_ROT_X = 90.0


class ViewType(Enum):
    TOP = "top"
    FRONT = "front"
    RIGHT = "right"
    ISO = "iso"


def palette_rgb(color_idx: int) -> Tuple[float, float, float]:
    """
    Map a palette index to RGB in [0, 1].

    Indices 0-15 are a grey ramp; the rest cycle through six saturated hues.
    """

    if color_idx < 16:
        gray = color_idx / 15.0
        return (gray, gray, gray)
    sat = 0.7
    val = 0.8
    low = val * (1 - sat)
    hue = (color_idx - 16) % 6
    return (
        (val, low, low),
        (low, val, low),
        (low, low, val),
        (val, val, low),
        (val, low, val),
        (low, val, val),
    )[hue]


def project(
    coords: np.ndarray | Sequence[Sequence[float]],
    view: ViewType = ViewType.FRONT,
    *,
    rot_x: float = DEFAULT_ISO_ROT_X,
    rot_y: float = DEFAULT_ISO_ROT_Y,
) -> np.ndarray:
    """Project an ``(N, 3)`` array to ``(N, 2)`` screen-plane coordinates (y up)."""

    pts = np.asarray(coords, dtype=float).reshape(-1, 3)
    x, y, z = pts[:, 0], pts[:, 1], pts[:, 2]
    if view is ViewType.TOP:
        return np.column_stack((x, -z))
    if view is ViewType.FRONT:
        return np.column_stack((x, y))
    if view is ViewType.RIGHT:
        return np.column_stack((z, y))

    rx = math.radians(max(-MAX_ROT_X, min(MAX_ROT_X, rot_x)))
    ry = math.radians(rot_y)
    y1 = y * math.cos(rx) - z * math.sin(rx)
    z1 = y * math.sin(rx) + z * math.cos(rx)
    px = x * math.cos(ry) + z1 * math.sin(ry)
    return np.column_stack((px, y1))


def polygon_outlines(arena: "CadArena") -> List[Tuple[int, np.ndarray]]:
    """``(color, (N, 3) array)`` for every valid polygon with at least two reachable points."""

    outlines: List[Tuple[int, np.ndarray]] = []
    for poly_index, polygon in arena.iter_polygons():
        coords = polygon_coordinates(arena, poly_index)
        if len(coords) < 2:
            continue
        outlines.append((polygon.color, np.array(coords, dtype=float)))
    return outlines


def outline_bounds(outlines: Sequence[np.ndarray]) -> Tuple[float, float, float, float]:
    if not outlines:
        raise RuntimeError("No geometry available to compute bounds.")
    stacked = np.vstack(outlines)
    min_x, min_y = stacked.min(axis=0)
    max_x, max_y = stacked.max(axis=0)
    return float(min_x), float(max_x), float(min_y), float(max_y)
