"""
File-backed entry storage.

An :class:`EntryStore` keeps an ordered collection of entries in a single
text document, guarded by a per-store :class:`FileGuard` and serialized by a
pluggable :class:`DocumentCodec`.
"""

from .codec import DocumentCodec, EntryAdapter, JsonCodec, YamlCodec, get_codec
from .entry_store import EntryStore, open_store
from .guard import FileGuard, GuardState
from .matcher import Comparable, EntryMatcher, default_compare
from .records import Record, record_type

__all__ = [
    "Comparable",
    "DocumentCodec",
    "EntryAdapter",
    "EntryMatcher",
    "EntryStore",
    "FileGuard",
    "GuardState",
    "JsonCodec",
    "Record",
    "YamlCodec",
    "default_compare",
    "get_codec",
    "open_store",
    "record_type",
]
