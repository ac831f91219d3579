"""Comparator-based entry matching.

Two entries are the same logical entry when ``compare(a, b) == 0``. The
default comparer uses the entry type's rich comparisons, so identity is
whatever the type says it is. A dataclass with ``order=True`` and
``field(compare=False)`` on its payload fields is the usual way to get an
id-keyed entry::

    @dataclass(order=True)
    class Item:
        id: int
        name: str = field(default="", compare=False)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Generic, Protocol, TypeVar

from entrydb.core.exceptions import require

T = TypeVar("T")

Comparer = Callable[[Any, Any], int]


class Comparable(Protocol):
    """Entries must provide equality and a total order."""

    def __eq__(self, other: object) -> bool: ...

    def __lt__(self, other: Any) -> bool: ...


def default_compare(a: Any, b: Any) -> int:
    """Three-way comparison built on ``__eq__`` and ``__lt__``."""
    if a == b:
        return 0
    if a < b:
        return -1
    return 1


class EntryMatcher(Generic[T]):
    """Finds the first stored entry that is logically equal to a target."""

    def __init__(self, comparer: Comparer | None = None):
        self.comparer: Comparer = comparer or default_compare

    def same(self, a: T, b: T) -> bool:
        return self.comparer(a, b) == 0

    def find(self, target: T, source: Iterable[T]) -> T | None:
        """Return the first entry in *source* matching *target*, or None.

        Raises:
            ContractViolationError: if *target* is None.
        """
        require(target, "target")
        for candidate in source:
            if self.same(candidate, target):
                return candidate
        return None

    def index(self, target: T, source: list[T]) -> int:
        """Position of the first match in *source*, or -1."""
        require(target, "target")
        for i, candidate in enumerate(source):
            if self.same(candidate, target):
                return i
        return -1
