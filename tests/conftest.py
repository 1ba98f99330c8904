from __future__ import annotations

import struct

import pytest

from iwacad.arena import CadArena
from iwacad.codec import OBJECT_STRUCT, POINT_STRUCT, POLYGON_STRUCT
from iwacad.faces import add_face
from iwacad.records import TAG_OBJECT, TAG_POINT, TAG_POLYGON

TRIANGLE = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)]


def header(tag: int, raw_index: int) -> bytes:
    return struct.pack(">Bh", tag, raw_index)


def point_record(raw_index: int, x: float = 0.0, y: float = 0.0, z: float = 0.0, *, flags: int = 1, next_point: int = -1) -> bytes:
    return header(TAG_POINT, raw_index) + POINT_STRUCT.pack(flags, 0, next_point, x, y, z)


def polygon_record(raw_index: int, *, first_point: int = 0, color: int = 0, npoints: int = 3, flags: int = 1) -> bytes:
    return header(TAG_POLYGON, raw_index) + POLYGON_STRUCT.pack(flags, 0, -1, first_point, 0, -1, 0, color, npoints)


def object_record(raw_index: int, *, parent: int = -1, flags: int = 1) -> bytes:
    return header(TAG_OBJECT, raw_index) + OBJECT_STRUCT.pack(flags, 0, parent, -1, -1, -1, 0.0, 0.0, 0.0)


@pytest.fixture
def arena() -> CadArena:
    return CadArena()


@pytest.fixture
def triangle_arena() -> CadArena:
    arena = CadArena()
    add_face(arena, TRIANGLE, color=5)
    return arena
