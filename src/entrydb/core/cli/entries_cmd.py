"""entrydb entry commands — init, list, get, add, delete, count.

Entries are handled as schemaless records identified by one key field
(``--key``, default ``id``). Soft errors reported by the store are echoed
to stderr and turn into exit status 1.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import click
import yaml

from entrydb.core.config import Config
from entrydb.core.events import ErrorChannel
from entrydb.storage import EntryStore, Record, get_codec, record_type

_YAML_SUFFIXES = (".yaml", ".yml")

file_argument = click.argument("file", type=click.Path(dir_okay=False))
key_option = click.option("--key", default="id", show_default=True, help="Field that identifies an entry.")


@contextmanager
def _reporting(errors: ErrorChannel) -> Iterator[None]:
    """Exit with status 1 if the block reported any soft error."""
    with errors.collect() as reports:
        yield
    if reports:
        for report in reports:
            click.echo(report.message, err=True)
        sys.exit(1)


def _open(config: Config, file: str, key: str, errors: ErrorChannel) -> EntryStore[Record]:
    entry_type = record_type(key)
    codec_name = "yaml" if Path(file).suffix.lower() in _YAML_SUFFIXES else config.get("store.codec", "json")
    codec = get_codec(codec_name, entry_type, indent=config.get_int("store.indent", 2))
    return EntryStore(
        file,
        entry_type,
        codec=codec,
        errors=errors,
        atomic_writes=config.get_bool("store.atomic_writes"),
        encoding=config.get("store.encoding", "utf-8"),
    )


def _parse_value(raw: str) -> Any:
    """Interpret a command-line identity value as JSON, falling back to text."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _dump(data: Any, fmt: str) -> str:
    if fmt == "yaml":
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True).rstrip()
    return json.dumps(data, indent=2, ensure_ascii=False)


@click.command()
@file_argument
@click.pass_obj
def init(config: Config, file: str) -> None:
    """Create an empty store FILE if it does not exist."""
    errors = ErrorChannel()
    with _reporting(errors):
        store = _open(config, file, "id", errors)
    click.echo(f"Store ready: {store.path}")


@click.command("list")
@file_argument
@key_option
@click.option("--format", "fmt", type=click.Choice(["json", "yaml"]), default="json", show_default=True)
@click.pass_obj
def list_entries(config: Config, file: str, key: str, fmt: str) -> None:
    """Print every entry in FILE."""
    errors = ErrorChannel()
    with _reporting(errors):
        store = _open(config, file, key, errors)
        entries = store.get_entries()
    click.echo(_dump([entry.to_dict() for entry in entries], fmt))


@click.command()
@file_argument
@click.argument("value")
@key_option
@click.pass_obj
def get(config: Config, file: str, value: str, key: str) -> None:
    """Print the entry in FILE whose KEY field equals VALUE."""
    errors = ErrorChannel()
    with _reporting(errors):
        store = _open(config, file, key, errors)
        found = store.find_direct(store.entry_type({key: _parse_value(value)}))
    if found is None:
        click.echo(f"No entry with {key}={value}", err=True)
        sys.exit(1)
    click.echo(_dump(found.to_dict(), "json"))


@click.command()
@file_argument
@click.argument("data")
@key_option
@click.option("--no-overwrite", is_flag=True, help="Keep the stored entry if one with the same key exists.")
@click.pass_obj
def add(config: Config, file: str, data: str, key: str, no_overwrite: bool) -> None:
    """Add the JSON object DATA to FILE, replacing an entry with the same key."""
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="DATA") from e
    if not isinstance(payload, dict) or key not in payload:
        raise click.BadParameter(f"must be a JSON object with a '{key}' field", param_hint="DATA")

    errors = ErrorChannel()
    with _reporting(errors):
        store = _open(config, file, key, errors)
        store.add_entry(store.entry_type(payload), overwrite_existing=not no_overwrite)
    click.echo(f"Saved {key}={payload[key]!r}")


@click.command()
@file_argument
@click.argument("value")
@key_option
@click.pass_obj
def delete(config: Config, file: str, value: str, key: str) -> None:
    """Delete the entry in FILE whose KEY field equals VALUE."""
    errors = ErrorChannel()
    with _reporting(errors):
        store = _open(config, file, key, errors)
        target = store.entry_type({key: _parse_value(value)})
        existed = store.exists(target)
        if existed:
            store.delete_entry(target)
    click.echo(f"Deleted {key}={value}" if existed else f"Nothing to delete for {key}={value}")


@click.command()
@file_argument
@click.pass_obj
def count(config: Config, file: str) -> None:
    """Print the number of entries in FILE."""
    errors = ErrorChannel()
    with _reporting(errors):
        store = _open(config, file, "id", errors)
        total = len(store.get_entries())
    click.echo(str(total))
