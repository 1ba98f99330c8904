"""
Record types and table limits shared by the arena and the codec.

Points, polygons and objects are flat records linked by signed 16-bit table
indices, with -1 as the end marker. A polygon owns a ring of points reached
through ``first_point``/``next_point``; objects form a tree through
``parent_object``, ``child_object`` and ``next_brother`` and point at their
first polygon. A record with ``flags == 0`` is an empty or deleted slot.
Field order matches the on-disk layout in ``codec``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NewType

INVALID_INDEX = -1

MAX_OBJECTS = 256
MAX_POLYGONS = 1024
MAX_POINTS = 1024

MIN_FACE_POINTS = 2
MAX_FACE_POINTS = 12

TAG_OBJECT = 0
TAG_POLYGON = 1
TAG_POINT = 2

TAG_NAMES = {
    TAG_OBJECT: "object",
    TAG_POLYGON: "polygon",
    TAG_POINT: "point",
}

PointIndex = NewType("PointIndex", int)
PolygonIndex = NewType("PolygonIndex", int)
ObjectIndex = NewType("ObjectIndex", int)


@dataclass
class CadPoint:
    flags: int = 0
    select_flag: int = 0
    next_point: int = 0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @property
    def valid(self) -> bool:
        return self.flags != 0

    @property
    def selected(self) -> bool:
        return self.select_flag != 0

    @property
    def coords(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass
class CadPolygon:
    flags: int = 0
    select_flag: int = 0
    next_polygon: int = 0
    first_point: int = 0
    animation: int = 0
    both: int = 0
    side: int = 0
    color: int = 0
    npoints: int = 0

    @property
    def valid(self) -> bool:
        return self.flags != 0

    @property
    def selected(self) -> bool:
        return self.select_flag != 0


@dataclass
class CadObject:
    flags: int = 0
    select_flag: int = 0
    parent_object: int = 0
    next_brother: int = 0
    child_object: int = 0
    first_polygon: int = 0
    offset_x: float = 0.0
    offset_y: float = 0.0
    offset_z: float = 0.0

    @property
    def valid(self) -> bool:
        return self.flags != 0

    @property
    def selected(self) -> bool:
        return self.select_flag != 0

    @property
    def offset(self) -> tuple[float, float, float]:
        return (self.offset_x, self.offset_y, self.offset_z)
