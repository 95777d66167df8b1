from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator
from typing import Generic, TypeVar

"""Order-preserving deduplicating set.

Explicit sequence plus a set of seen keys; membership is checked before appending so
iteration order is first-seen order.
"""

__all__ = [
    "OrderedSet",
]

T = TypeVar("T", bound=Hashable)


class OrderedSet(Generic[T]):
    def __init__(self, items: Iterable[T] | None = None) -> None:
        self._items: list[T] = []
        self._seen: set[T] = set()
        if items is not None:
            for item in items:
                self.add(item)

    def add(self, item: T) -> bool:
        """Add item; returns False if an equal item was already present."""
        if item in self._seen:
            return False
        self._seen.add(item)
        self._items.append(item)
        return True

    def values(self) -> list[T]:
        return list(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._seen

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)
