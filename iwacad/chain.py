"""
Walk index-linked chains (polygon point rings, polygon groups, object
sibling lists) without trusting the stored links.

Every walk stops at the first of: a -1 link, an index the accessor rejects,
a record whose flag is cleared, an index already seen, or the step cap.

Cycle protection only covers the first ``VISITED_WINDOW`` indices of a walk.
Longer chains keep going, but a loop that closes entirely beyond that window
is only stopped by the step cap.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Generic, Iterator, List, Optional, Tuple, TypeVar

from .records import INVALID_INDEX, CadObject, CadPoint, CadPolygon

if TYPE_CHECKING:
    from .arena import CadArena

VISITED_WINDOW = 64
DEFAULT_MAX_STEPS = 1024

R = TypeVar("R", CadPoint, CadPolygon, CadObject)


class ChainWalker(Generic[R]):
    """
    Single-use iterator over ``(index, record)`` pairs of one chain.

    ``fetch`` is a bounds-checked accessor returning ``None`` for indices it
    will not hand out; ``link`` reads the next index from a record.
    """

    def __init__(
        self,
        fetch: Callable[[int], Optional[R]],
        link: Callable[[R], int],
        start: int,
        *,
        max_steps: int = DEFAULT_MAX_STEPS,
        window: int = VISITED_WINDOW,
    ) -> None:
        self._fetch = fetch
        self._link = link
        self._next = start
        self._max_steps = max_steps
        self._window = window
        self._visited: set[int] = set()
        self._steps = 0
        self._done = False
        self.stop_reason: str | None = None

    def __iter__(self) -> "ChainWalker[R]":
        return self

    def _finish(self, reason: str) -> None:
        self._done = True
        self.stop_reason = reason
        raise StopIteration

    def __next__(self) -> Tuple[int, R]:
        if self._done:
            raise StopIteration
        index = self._next
        if index == INVALID_INDEX:
            self._finish("end")
        if self._steps >= self._max_steps:
            self._finish("cap")
        if index in self._visited:
            self._finish("cycle")
        record = self._fetch(index)
        if record is None:
            self._finish("out-of-range")
        if not record.valid:
            self._finish("invalid")

        if len(self._visited) < self._window:
            self._visited.add(index)
        self._steps += 1
        self._next = self._link(record)
        return index, record


def walk_points(arena: "CadArena", start: int, *, max_steps: int = DEFAULT_MAX_STEPS) -> ChainWalker[CadPoint]:
    return ChainWalker(arena.get_point, lambda pt: pt.next_point, start, max_steps=max_steps)


def walk_polygon(arena: "CadArena", polygon_index: int, *, max_steps: int = DEFAULT_MAX_STEPS) -> ChainWalker[CadPoint]:
    """Walk the private point ring of one polygon (empty if the polygon is missing)."""

    polygon = arena.get_polygon(polygon_index)
    start = polygon.first_point if polygon is not None and polygon.valid else INVALID_INDEX
    return walk_points(arena, start, max_steps=max_steps)


def walk_polygon_group(arena: "CadArena", start: int, *, max_steps: int = DEFAULT_MAX_STEPS) -> ChainWalker[CadPolygon]:
    return ChainWalker(arena.get_polygon, lambda poly: poly.next_polygon, start, max_steps=max_steps)


def walk_children(arena: "CadArena", object_index: int, *, max_steps: int = DEFAULT_MAX_STEPS) -> ChainWalker[CadObject]:
    parent = arena.get_object(object_index)
    start = parent.child_object if parent is not None and parent.valid else INVALID_INDEX
    return ChainWalker(arena.get_object, lambda obj: obj.next_brother, start, max_steps=max_steps)


def polygon_point_indices(arena: "CadArena", polygon_index: int, *, max_steps: int = DEFAULT_MAX_STEPS) -> List[int]:
    return [index for index, _pt in walk_polygon(arena, polygon_index, max_steps=max_steps)]


def polygon_coordinates(
    arena: "CadArena", polygon_index: int, *, max_steps: int = DEFAULT_MAX_STEPS
) -> List[Tuple[float, float, float]]:
    return [pt.coords for _index, pt in walk_polygon(arena, polygon_index, max_steps=max_steps)]


def iter_object_polygons(arena: "CadArena", object_index: int) -> Iterator[Tuple[int, CadPolygon]]:
    obj = arena.get_object(object_index)
    if obj is None or not obj.valid:
        return iter(())
    return walk_polygon_group(arena, obj.first_polygon)


def npoints_mismatch(arena: "CadArena", polygon_index: int) -> int:
    """Reachable point count minus the declared ``npoints`` (0 when they agree)."""

    polygon = arena.require_polygon(polygon_index)
    return len(polygon_point_indices(arena, polygon_index)) - polygon.npoints
