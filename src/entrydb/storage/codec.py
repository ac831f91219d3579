"""
Document codecs: turn an ordered sequence of entries into text and back.

The entry store depends only on the :class:`DocumentCodec` protocol. Two
implementations ship here:

- :class:`JsonCodec` — an indented JSON array (the default on-disk format).
- :class:`YamlCodec` — a block-style YAML list.

Both accept a blank document as "no entries" and raise
:class:`~entrydb.core.exceptions.CodecError` for anything they cannot decode.
Conversion between entry objects and plain data is handled by
:class:`EntryAdapter`.
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

import yaml

from entrydb.core.exceptions import CodecError, ConfigurationError


@runtime_checkable
class DocumentCodec(Protocol):
    """Protocol for whole-document serialization."""

    def encode(self, entries: Iterable[Any]) -> str:
        """Serialize *entries*, in order, to a text document."""
        ...

    def decode(self, text: str) -> list[Any]:
        """Parse a text document. Blank text returns an empty list."""
        ...


class EntryAdapter:
    """Convert entries of one type to plain data and back.

    Supported entry types, checked in this order:

    - ``None`` or ``dict``: entries are passed through unchanged.
    - dataclasses: ``dataclasses.asdict`` / ``entry_type(**data)``.
    - types with ``from_dict`` (and instances with ``to_dict``).
    - types with ``model_validate`` (and instances with ``model_dump``),
      i.e. pydantic v2 models.
    """

    def __init__(self, entry_type: type | None = None):
        self.entry_type = entry_type

    def to_data(self, entry: Any) -> Any:
        if isinstance(entry, dict):
            return entry
        if hasattr(entry, "to_dict"):
            return entry.to_dict()
        if hasattr(entry, "model_dump"):
            return entry.model_dump(mode="json")
        if dataclasses.is_dataclass(entry) and not isinstance(entry, type):
            return dataclasses.asdict(entry)
        return entry

    def from_data(self, data: Any) -> Any:
        entry_type = self.entry_type
        if entry_type is None or entry_type is dict:
            return data
        if hasattr(entry_type, "from_dict"):
            return entry_type.from_dict(data)
        if hasattr(entry_type, "model_validate"):
            return entry_type.model_validate(data)
        if not isinstance(data, dict):
            raise CodecError(f"Expected an object for {entry_type.__name__}, got {type(data).__name__}")
        if dataclasses.is_dataclass(entry_type):
            names = {f.name for f in dataclasses.fields(entry_type) if f.init}
            return entry_type(**{k: v for k, v in data.items() if k in names})
        return entry_type(**data)


class _BaseCodec:
    format_name = ""

    def __init__(self, entry_type: type | None = None):
        self.adapter = EntryAdapter(entry_type)

    def _to_document(self, entries: Iterable[Any]) -> list[Any]:
        return [self.adapter.to_data(entry) for entry in entries]

    def _from_document(self, document: Any) -> list[Any]:
        if document is None:
            return []
        if not isinstance(document, list):
            raise CodecError(f"{self.format_name} document must be a list, got {type(document).__name__}")
        try:
            return [self.adapter.from_data(item) for item in document]
        except CodecError:
            raise
        except (TypeError, ValueError, KeyError) as e:
            raise CodecError(f"Cannot build entry from {self.format_name} data: {e}") from e


class JsonCodec(_BaseCodec):
    """Indented JSON array codec."""

    format_name = "JSON"

    def __init__(self, entry_type: type | None = None, indent: int | None = 2):
        super().__init__(entry_type)
        self.indent = indent

    def encode(self, entries: Iterable[Any]) -> str:
        try:
            return json.dumps(self._to_document(entries), indent=self.indent, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise CodecError(f"Cannot encode entries as JSON: {e}") from e

    def decode(self, text: str) -> list[Any]:
        if not text or not text.strip():
            return []
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise CodecError(f"Malformed JSON document: {e}") from e
        return self._from_document(document)


class YamlCodec(_BaseCodec):
    """Block-style YAML list codec."""

    format_name = "YAML"

    def encode(self, entries: Iterable[Any]) -> str:
        try:
            return yaml.safe_dump(
                self._to_document(entries),
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )
        except yaml.YAMLError as e:
            raise CodecError(f"Cannot encode entries as YAML: {e}") from e

    def decode(self, text: str) -> list[Any]:
        if not text or not text.strip():
            return []
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise CodecError(f"Malformed YAML document: {e}") from e
        return self._from_document(document)


_CODECS = {
    "json": JsonCodec,
    "yaml": YamlCodec,
    "yml": YamlCodec,
}


def get_codec(name: str, entry_type: type | None = None, indent: int | None = 2) -> DocumentCodec:
    """Resolve a codec by name ("json" or "yaml")."""
    codec_cls = _CODECS.get(name.strip().lower())
    if codec_cls is None:
        raise ConfigurationError(f"Unknown codec '{name}'. Valid: {', '.join(sorted(_CODECS))}")
    if codec_cls is JsonCodec:
        return JsonCodec(entry_type, indent=indent)
    return codec_cls(entry_type)
