"""
Fixed-capacity geometry store.

Points, polygons and objects live in parallel tables addressed by 16-bit
signed indices. Each table keeps a high-water ``count``: slots below it may
still be empty (flag cleared), so iteration always checks ``valid``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Sequence, Tuple

from . import codec
from .chain import DEFAULT_MAX_STEPS
from .errors import CapacityExceeded, RecordNotFound
from .records import (
    INVALID_INDEX,
    MAX_FACE_POINTS,
    MAX_OBJECTS,
    MAX_POINTS,
    MAX_POLYGONS,
    MIN_FACE_POINTS,
    CadObject,
    CadPoint,
    CadPolygon,
    ObjectIndex,
    PointIndex,
    PolygonIndex,
)


def _in_table(index: int, count: int, capacity: int) -> bool:
    return 0 <= index < capacity and index < count


class CadArena:
    def __init__(self) -> None:
        self.points: List[CadPoint] = [CadPoint() for _ in range(MAX_POINTS)]
        self.polygons: List[CadPolygon] = [CadPolygon() for _ in range(MAX_POLYGONS)]
        self.objects: List[CadObject] = [CadObject() for _ in range(MAX_OBJECTS)]
        self.point_count = 0
        self.polygon_count = 0
        self.object_count = 0

    def clear(self) -> None:
        self.points[:] = [CadPoint() for _ in range(MAX_POINTS)]
        self.polygons[:] = [CadPolygon() for _ in range(MAX_POLYGONS)]
        self.objects[:] = [CadObject() for _ in range(MAX_OBJECTS)]
        self.point_count = 0
        self.polygon_count = 0
        self.object_count = 0

    # -- allocation -----------------------------------------------------

    def add_point(self, x: float, y: float, z: float) -> PointIndex:
        if self.point_count >= MAX_POINTS:
            raise CapacityExceeded("point", MAX_POINTS)
        index = self.point_count
        self.points[index] = CadPoint(flags=1, next_point=INVALID_INDEX, x=float(x), y=float(y), z=float(z))
        self.point_count += 1
        return PointIndex(index)

    def add_polygon(self, first_point: int, color: int, npoints: int) -> PolygonIndex:
        if not MIN_FACE_POINTS <= npoints <= MAX_FACE_POINTS:
            raise ValueError(f"npoints must be between {MIN_FACE_POINTS} and {MAX_FACE_POINTS}, got {npoints}")
        if not 0 <= color <= 0xFF:
            raise ValueError(f"color must be a palette index 0-255, got {color}")
        if self.polygon_count >= MAX_POLYGONS:
            raise CapacityExceeded("polygon", MAX_POLYGONS)
        index = self.polygon_count
        self.polygons[index] = CadPolygon(
            flags=1,
            next_polygon=INVALID_INDEX,
            first_point=first_point,
            animation=0,
            both=INVALID_INDEX,
            side=0,
            color=color,
            npoints=npoints,
        )
        self.polygon_count += 1
        return PolygonIndex(index)

    def add_object(
        self,
        parent: int = INVALID_INDEX,
        offset: Sequence[float] = (0.0, 0.0, 0.0),
        first_polygon: int = INVALID_INDEX,
    ) -> ObjectIndex:
        """
        Append an object and hook it onto the end of ``parent``'s child list.

        A ``parent`` of -1 makes a root object. Unknown parents are rejected
        before anything is written.
        """

        parent_obj = None
        if parent != INVALID_INDEX:
            parent_obj = self.get_object(parent)
            if parent_obj is None or not parent_obj.valid:
                raise RecordNotFound("object", parent)
        if self.object_count >= MAX_OBJECTS:
            raise CapacityExceeded("object", MAX_OBJECTS)

        tail = self._last_child(parent_obj) if parent_obj is not None else None
        index = self.object_count
        ox, oy, oz = (float(v) for v in offset)
        self.objects[index] = CadObject(
            flags=1,
            parent_object=parent,
            next_brother=INVALID_INDEX,
            child_object=INVALID_INDEX,
            first_polygon=first_polygon,
            offset_x=ox,
            offset_y=oy,
            offset_z=oz,
        )
        self.object_count += 1

        if parent_obj is not None:
            if tail is None:
                parent_obj.child_object = index
            else:
                tail.next_brother = index
        return ObjectIndex(index)

    def _last_child(self, parent_obj: CadObject) -> CadObject | None:
        # Deleted siblings stay linked, so follow next_brother regardless of flags.
        current = parent_obj.child_object
        tail = None
        seen = set()
        for _ in range(DEFAULT_MAX_STEPS):
            obj = self.get_object(current)
            if obj is None or current in seen:
                break
            seen.add(current)
            tail = obj
            current = obj.next_brother
        return tail

    # -- bounds-checked access ------------------------------------------

    def get_point(self, index: int) -> CadPoint | None:
        if not _in_table(index, self.point_count, MAX_POINTS):
            return None
        return self.points[index]

    def get_polygon(self, index: int) -> CadPolygon | None:
        if not _in_table(index, self.polygon_count, MAX_POLYGONS):
            return None
        return self.polygons[index]

    def get_object(self, index: int) -> CadObject | None:
        if not _in_table(index, self.object_count, MAX_OBJECTS):
            return None
        return self.objects[index]

    def require_point(self, index: int) -> CadPoint:
        point = self.get_point(index)
        if point is None or not point.valid:
            raise RecordNotFound("point", index)
        return point

    def require_polygon(self, index: int) -> CadPolygon:
        polygon = self.get_polygon(index)
        if polygon is None or not polygon.valid:
            raise RecordNotFound("polygon", index)
        return polygon

    def require_object(self, index: int) -> CadObject:
        obj = self.get_object(index)
        if obj is None or not obj.valid:
            raise RecordNotFound("object", index)
        return obj

    # -- deletion leaves a hole; slots are never reused --------------------

    def delete_point(self, index: int) -> None:
        self.require_point(index).flags = 0

    def delete_polygon(self, index: int) -> None:
        self.require_polygon(index).flags = 0

    def delete_object(self, index: int) -> None:
        self.require_object(index).flags = 0

    # -- iteration -------------------------------------------------------

    def iter_points(self) -> Iterator[Tuple[int, CadPoint]]:
        for index in range(self.point_count):
            point = self.points[index]
            if point.valid:
                yield index, point

    def iter_polygons(self) -> Iterator[Tuple[int, CadPolygon]]:
        for index in range(self.polygon_count):
            polygon = self.polygons[index]
            if polygon.valid:
                yield index, polygon

    def iter_objects(self) -> Iterator[Tuple[int, CadObject]]:
        for index in range(self.object_count):
            obj = self.objects[index]
            if obj.valid:
                yield index, obj

    def stats(self) -> dict[str, int]:
        return {
            "points": sum(1 for _ in self.iter_points()),
            "polygons": sum(1 for _ in self.iter_polygons()),
            "objects": sum(1 for _ in self.iter_objects()),
        }

    # -- placement hooks for the loader ----------------------------------

    def place_point(self, index: int, record: CadPoint) -> None:
        if not 0 <= index < MAX_POINTS:
            raise IndexError(f"point index {index} outside 0-{MAX_POINTS - 1}")
        self.points[index] = record
        self.point_count = max(self.point_count, index + 1)

    def place_polygon(self, index: int, record: CadPolygon) -> None:
        if not 0 <= index < MAX_POLYGONS:
            raise IndexError(f"polygon index {index} outside 0-{MAX_POLYGONS - 1}")
        self.polygons[index] = record
        self.polygon_count = max(self.polygon_count, index + 1)

    def place_object(self, index: int, record: CadObject) -> None:
        if not 0 <= index < MAX_OBJECTS:
            raise IndexError(f"object index {index} outside 0-{MAX_OBJECTS - 1}")
        self.objects[index] = record
        self.object_count = max(self.object_count, index + 1)

    # -- persistence -----------------------------------------------------

    def load_bytes(self, data: bytes) -> "codec.LoadReport":
        return codec.decode_into(self, data)

    def save_bytes(self) -> bytes:
        return codec.encode(self)

    def load_file(self, path: Path) -> "codec.LoadReport":
        return codec.load_file(self, path)

    def save_file(self, path: Path) -> int:
        return codec.save_file(self, path)
