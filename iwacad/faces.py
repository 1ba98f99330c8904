from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence, Tuple

from .chain import polygon_point_indices
from .errors import CapacityExceeded, FaceError
from .records import INVALID_INDEX, MAX_FACE_POINTS, MAX_POINTS, MAX_POLYGONS, MIN_FACE_POINTS

if TYPE_CHECKING:
    from .arena import CadArena
    from .selection import PointSelection

COINCIDENT_TOL = 1e-6

Vec3 = Tuple[float, float, float]


def fuzzy_eq(a: float, b: float, tol: float = COINCIDENT_TOL) -> bool:
    return abs(a - b) <= tol


def points_match(p1: Sequence[float], p2: Sequence[float], tol: float = COINCIDENT_TOL) -> bool:
    return fuzzy_eq(p1[0], p2[0], tol) and fuzzy_eq(p1[1], p2[1], tol) and fuzzy_eq(p1[2], p2[2], tol)


def find_coincident_points(arena: "CadArena", location: Sequence[float], tol: float = COINCIDENT_TOL) -> List[int]:
    """
    Indices of every valid point at ``location``.

    Polygons never share point records, so this is the only way to find the
    corners that meet at one vertex.
    """

    return [index for index, point in arena.iter_points() if points_match(point.coords, location, tol)]


def add_face(arena: "CadArena", coords: Sequence[Sequence[float]], color: int = 0) -> int:
    """
    Create a polygon with its own freshly allocated point chain.

    Vertex count and free space are checked first so a rejected face leaves
    the arena untouched.
    """

    count = len(coords)
    if not MIN_FACE_POINTS <= count <= MAX_FACE_POINTS:
        raise FaceError(f"a face needs {MIN_FACE_POINTS}-{MAX_FACE_POINTS} points, got {count}")
    if not 0 <= color <= 0xFF:
        raise FaceError(f"color must be a palette index 0-255, got {color}")
    if arena.point_count + count > MAX_POINTS:
        raise CapacityExceeded("point", MAX_POINTS)
    if arena.polygon_count >= MAX_POLYGONS:
        raise CapacityExceeded("polygon", MAX_POLYGONS)

    new_points = [arena.add_point(*vertex) for vertex in coords]
    for current, following in zip(new_points, new_points[1:]):
        arena.get_point(current).next_point = following
    arena.get_point(new_points[-1]).next_point = INVALID_INDEX
    return arena.add_polygon(new_points[0], color, count)


def find_polygon_with_chain(arena: "CadArena", point_indices: Sequence[int]) -> int | None:
    """Return the first polygon whose point ring is exactly ``point_indices``, in order."""

    wanted = list(point_indices)
    for poly_index, polygon in arena.iter_polygons():
        if polygon.npoints != len(wanted):
            continue
        if polygon_point_indices(arena, poly_index, max_steps=len(wanted)) == wanted:
            return poly_index
    return None


def face_from_selection(arena: "CadArena", selection: "PointSelection", color: int = 0) -> int:
    """
    Build a face from the selected points, in selection order.

    The selected records are not linked into the face; their coordinates are
    copied into a new private chain. The selection is cleared whether or not
    a face is created.
    """

    try:
        if len(selection) < MIN_FACE_POINTS:
            raise FaceError(f"need at least {MIN_FACE_POINTS} points to create a face")
        if len(selection) > MAX_FACE_POINTS:
            raise FaceError(f"maximum {MAX_FACE_POINTS} points allowed per face")
        chosen = []
        for index in selection:
            point = arena.get_point(index)
            if point is not None and point.valid:
                chosen.append(index)
        if len(chosen) < MIN_FACE_POINTS:
            raise FaceError(f"need at least {MIN_FACE_POINTS} valid points to create a face")
        if find_polygon_with_chain(arena, chosen) is not None:
            raise FaceError("a polygon with these points already exists")
        coords = [arena.get_point(index).coords for index in chosen]
        return add_face(arena, coords, color)
    finally:
        selection.clear()
