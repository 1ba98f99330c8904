from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, List

if TYPE_CHECKING:
    from .arena import CadArena


class PointSelection:
    """Insertion-ordered set of selected point indices."""

    def __init__(self) -> None:
        self._order: List[int] = []
        self._members: set[int] = set()

    def add(self, index: int) -> bool:
        if index in self._members:
            return False
        self._members.add(index)
        self._order.append(index)
        return True

    def remove(self, index: int) -> bool:
        if index not in self._members:
            return False
        self._members.discard(index)
        self._order.remove(index)
        return True

    def toggle(self, index: int) -> bool:
        """Flip membership; returns True when ``index`` ends up selected."""

        if self.remove(index):
            return False
        self.add(index)
        return True

    def clear(self) -> None:
        self._order.clear()
        self._members.clear()

    def indices(self) -> List[int]:
        return list(self._order)

    def __contains__(self, index: object) -> bool:
        return index in self._members

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._order))

    def __len__(self) -> int:
        return len(self._order)

    def select_all(self, arena: "CadArena") -> int:
        added = 0
        for index, _point in arena.iter_points():
            if self.add(index):
                added += 1
        return added

    def apply_flags(self, arena: "CadArena") -> None:
        # Mirror membership into the records so it survives a save.
        for index, point in arena.iter_points():
            point.select_flag = 1 if index in self._members else 0
