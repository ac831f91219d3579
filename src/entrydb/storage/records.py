"""Record — a schemaless entry identified by one key field.

Lets tools open any store file without a Python entry class. Identity is
the value under ``key`` (``"id"`` by default); every other field is payload.
"""

from __future__ import annotations

import functools
from collections.abc import Mapping
from typing import Any


def _sort_key(value: Any) -> tuple[str, Any]:
    # Mixed-type keys fall back to string ordering so comparisons never raise
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return ("0", value)
    return ("1", str(value))


@functools.total_ordering
class Record:
    """Dict-backed entry compared by ``data[key]``."""

    def __init__(self, data: Mapping[str, Any], key: str = "id"):
        self.data = dict(data)
        self.key = key

    @property
    def identity(self) -> Any:
        return self.data.get(self.key)

    def __getitem__(self, field: str) -> Any:
        return self.data[field]

    def __setitem__(self, field: str, value: Any) -> None:
        self.data[field] = value

    def get(self, field: str, default: Any = None) -> Any:
        return self.data.get(field, default)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return _sort_key(self.identity) == _sort_key(other.identity)

    def __lt__(self, other: Record) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return _sort_key(self.identity) < _sort_key(other.identity)

    def __hash__(self) -> int:
        return hash(_sort_key(self.identity))

    def __repr__(self) -> str:
        return f"Record({self.key}={self.identity!r})"

    def to_dict(self) -> dict[str, Any]:
        return dict(self.data)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Record:
        return cls(data)


def record_type(key: str = "id") -> type[Record]:
    """Return a Record subclass whose instances decode with *key* as identity."""
    if key == "id":
        return Record

    class KeyedRecord(Record):
        def __init__(self, data: Mapping[str, Any], key: str = key):
            super().__init__(data, key)

    KeyedRecord.__name__ = f"Record_{key}"
    return KeyedRecord
