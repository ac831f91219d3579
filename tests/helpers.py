"""Entry types and codec doubles shared by the test suite."""

from dataclasses import dataclass, field

from entrydb.storage import JsonCodec


@dataclass(order=True)
class Item:
    """Test entry: identity is ``id``; ``name`` and ``tags`` are payload."""

    id: int
    name: str = field(default="", compare=False)
    tags: list[str] = field(default_factory=list, compare=False)


class CountingCodec(JsonCodec):
    """JsonCodec that counts encode calls (one per attempted write)."""

    def __init__(self, entry_type=None):
        super().__init__(entry_type)
        self.writes = 0

    def encode(self, entries):
        self.writes += 1
        return super().encode(entries)


class ExplodingCodec(JsonCodec):
    """JsonCodec whose encode always fails."""

    def encode(self, entries):
        raise RuntimeError("encoder exploded")
