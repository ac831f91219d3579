"""EntryStore — a typed record collection persisted as one text document.

Every operation reads the whole document, computes the new sequence of
entries in memory, and rewrites the whole document. Entries are matched by
comparator (see :mod:`entrydb.storage.matcher`), never by reference.

Failure model:

- Missing or ``None`` required arguments raise
  :class:`~entrydb.core.exceptions.ContractViolationError` immediately.
- Everything else (I/O errors, malformed documents, failing callbacks) is
  reported on :attr:`EntryStore.errors` and absorbed: reads return ``[]``,
  writes are abandoned, ``edit_entry`` returns the entry it was given.
- Targeting an entry that is not stored is a silent no-op with no write.

Concurrency: the :class:`~entrydb.storage.guard.FileGuard` serializes each
file access, and a per-store mutation lock makes each read-modify-write
cycle atomic with respect to other threads using the same store. Errors are
reported after the guard is released, so an error handler may call the
store again.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
import threading
import traceback
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from typing import Any, Generic, TypeVar

import aiofiles
from loguru import logger

from entrydb.core.config import Config, get_config
from entrydb.core.events import ErrorChannel, ErrorHandler
from entrydb.core.exceptions import ContractViolationError, require
from entrydb.core.utils.file_io import read_encoding

from .codec import DocumentCodec, JsonCodec, get_codec
from .guard import FileGuard
from .matcher import Comparer, EntryMatcher

T = TypeVar("T")

Predicate = Callable[[T], bool]


def _format_detail(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


class EntryStore(Generic[T]):
    """File-backed store of ``T`` entries.

    Args:
        path: Backing file. Created (with parent directories) if missing.
        entry_type: Entry class used to rebuild entries when decoding.
            ``None`` keeps decoded entries as plain data.
        codec: Document codec. Defaults to an indented :class:`JsonCodec`.
        comparer: ``(a, b) -> int`` identity comparison. Defaults to the
            entry type's ``__eq__``/``__lt__``.
        errors: Channel for soft errors. Each store gets its own by default.
        atomic_writes: Write through a temp file and ``os.replace`` instead of
            truncating the backing file in place.
        encoding: Text encoding of the backing file.
    """

    def __init__(
        self,
        path: str | Path,
        entry_type: type[T] | None = None,
        *,
        codec: DocumentCodec | None = None,
        comparer: Comparer | None = None,
        errors: ErrorChannel | None = None,
        atomic_writes: bool = False,
        encoding: str = "utf-8",
    ) -> None:
        require(path, "path")
        self.entry_type = entry_type
        self.errors = errors if errors is not None else ErrorChannel()
        self.codec: DocumentCodec = codec if codec is not None else JsonCodec(entry_type)
        self.matcher: EntryMatcher[T] = EntryMatcher(comparer)
        self.atomic_writes = atomic_writes
        self.encoding = encoding
        self._guard = FileGuard(path, self.errors, encoding=encoding)
        self._mutation_lock = threading.RLock()
        self._guard.ensure_exists()

    @property
    def path(self) -> Path:
        return self._guard.path

    @property
    def guard(self) -> FileGuard:
        return self._guard

    def __str__(self) -> str:
        return self.path.name

    def __repr__(self) -> str:
        return f"EntryStore(path='{self.path}', codec={type(self.codec).__name__})"

    def on_error(self, handler: ErrorHandler) -> None:
        """Subscribe *handler* to this store's soft errors."""
        self.errors.subscribe(handler)

    def ensure_exists(self) -> bool:
        """Create the backing file if it is missing. False means it could not be created."""
        return self._guard.ensure_exists()

    # -- Error reporting -----------------------------------------------------

    def _report(self, message: str, exc: BaseException, operation: str) -> None:
        self.errors.notify(f"{message}\nMessage: {exc}", _format_detail(exc), operation=operation)

    @contextlib.contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        """Run a read-modify-write cycle: serialized, with soft error reporting.

        Exceptions other than contract violations are reported and
        suppressed; the caller's code after the ``with`` block supplies the
        fallback return value.
        """
        with self._mutation_lock:
            try:
                yield
            except ContractViolationError:
                raise
            except Exception as e:
                self._report(f"An error occurred while executing {name}.", e, name)

    # -- Read path -----------------------------------------------------------

    def _decode(self, content: str, message: str, operation: str) -> list[T]:
        if not content.strip():
            return []
        try:
            return list(self.codec.decode(content))
        except Exception as e:
            self._report(message, e, operation)
            return []

    def _read_internal(self) -> list[T]:
        # report only after the guard is released
        try:
            with self._guard.hold() as path:
                with open(path, encoding=read_encoding(self.encoding)) as f:
                    content = f.read()
        except FileNotFoundError:
            self._guard.ensure_exists()
            return []
        except Exception as e:
            self._report("An error occurred while reading the document.", e, "get_entries")
            return []
        return self._decode(content, "An error occurred while reading the document.", "get_entries")

    def get_entries(self, predicate: Predicate | None = None) -> list[T]:
        """Return all stored entries, or those matching *predicate*.

        An empty list means the store is empty or the read failed; failures
        are reported on :attr:`errors`.
        """
        entries = self._read_internal()
        if predicate is None:
            return entries
        return [entry for entry in entries if predicate(entry)]

    async def _read_text_async(self, path: Path) -> str:
        async with aiofiles.open(path, encoding=read_encoding(self.encoding)) as f:
            return await f.read()

    async def get_entries_async(self) -> list[T]:
        """Coroutine version of :meth:`get_entries`, reading with aiofiles.

        Never blocks the event loop and never observes a half-written
        document: see :meth:`FileGuard.read_async`.
        """
        message = "An error occurred while asynchronously reading the document."
        try:
            content = await self._guard.read_async(self._read_text_async)
        except FileNotFoundError:
            self._guard.ensure_exists()
            return []
        except Exception as e:
            self._report(message, e, "get_entries_async")
            return []
        return self._decode(content, message, "get_entries_async")

    def get_entry(self, predicate: Predicate) -> T | None:
        """Return the first entry matching *predicate*, or None."""
        require(predicate, "predicate")
        return next((entry for entry in self._read_internal() if predicate(entry)), None)

    def find_direct(self, entry: T, source: Iterable[T] | None = None) -> T | None:
        """Return the stored entry logically equal to *entry*, or None.

        Searches *source* when given, otherwise the current document.

        Raises:
            ContractViolationError: if *entry* is None.
        """
        require(entry, "entry")
        if source is None:
            source = self.get_entries()
        return self.matcher.find(entry, source)

    def exists(self, entry: T, source: Iterable[T] | None = None) -> bool:
        """True if an entry logically equal to *entry* is stored (or in *source*)."""
        return self.find_direct(entry, source) is not None

    def exists_where(self, predicate: Predicate) -> bool:
        """True if any stored entry matches *predicate*."""
        return self.get_entry(predicate) is not None

    def try_get(self, predicate: Predicate) -> tuple[bool, T | None]:
        """Return ``(found, entry)`` for the first entry matching *predicate*."""
        entry = self.get_entry(predicate)
        return entry is not None, entry

    # -- Write path ----------------------------------------------------------

    def _rewrite_file(self, document: str) -> None:
        # r+ never creates: a missing file surfaces as FileNotFoundError
        with open(self.path, "r+", encoding=self.encoding) as f:
            f.truncate(0)
            f.write(document)

    def _replace_file(self, document: str) -> None:
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding=self.encoding) as f:
                f.write(document)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)
            raise

    def _write(self, entries: Iterable[T], retry: bool = True) -> bool:
        try:
            entries = list(entries)
            document = self.codec.encode(entries)
            with self._guard.hold(writing=True):
                if self.atomic_writes:
                    self._replace_file(document)
                else:
                    self._rewrite_file(document)
        except FileNotFoundError as e:
            if retry and self._guard.ensure_exists():
                return self._write(entries, retry=False)
            self._report("An error occurred while writing the document.", e, "write_all")
            return False
        except Exception as e:
            self._report("An error occurred while writing the document.", e, "write_all")
            return False

        logger.debug(f"Wrote {len(entries)} entries to {self.path}")
        return True

    def write_all(self, entries: Iterable[T]) -> bool:
        """Rewrite the whole document with *entries*.

        Makes at most one retry, after recreating a missing file. Returns
        False when the write was abandoned (the failure has been reported).
        """
        require(entries, "entries")
        with self._mutation_lock:
            return self._write(entries)

    def add_or_replace(self, entry: T, source: list[T], overwrite_existing: bool = True) -> None:
        """Merge *entry* into the in-memory list *source*.

        Appends when nothing matches. When a match exists, replaces it in
        place if *overwrite_existing*, otherwise leaves *source* unchanged.
        """
        require(entry, "entry")
        require(source, "source")
        index = self.matcher.index(entry, source)
        if index == -1:
            source.append(entry)
        elif overwrite_existing:
            source[index] = entry

    def add_entry(self, entry: T, overwrite_existing: bool = True) -> None:
        """Add *entry*, replacing a stored equal entry if *overwrite_existing*."""
        require(entry, "entry")
        with self._operation("add_entry"):
            entries = self.get_entries()
            self.add_or_replace(entry, entries, overwrite_existing)
            self.write_all(entries)

    def add_entries(self, entries: Iterable[T], overwrite_existing: bool = True) -> None:
        """Add several entries with a single rewrite.

        Each entry is merged against the result of merging the ones before
        it, so duplicates within *entries* follow the same overwrite rule.
        """
        require(entries, "entries")
        new_entries = list(entries)
        if any(entry is None for entry in new_entries):
            raise ContractViolationError("Argument 'entries' must not contain None.")

        with self._operation("add_entries"):
            stored = self.get_entries()
            for entry in new_entries:
                self.add_or_replace(entry, stored, overwrite_existing)
            self.write_all(stored)

    def delete_entry(self, entry: T) -> None:
        """Remove the first stored entry logically equal to *entry*."""
        require(entry, "entry")
        with self._operation("delete_entry"):
            stored = self.get_entries()
            index = self.matcher.index(entry, stored)
            if index == -1:
                return
            del stored[index]
            self.write_all(stored)

    def delete_entry_where(self, predicate: Predicate) -> None:
        """Remove the first stored entry matching *predicate*."""
        require(predicate, "predicate")
        with self._operation("delete_entry_where"):
            stored = self.get_entries()
            index = next((i for i, entry in enumerate(stored) if predicate(entry)), -1)
            if index == -1:
                return
            del stored[index]
            self.write_all(stored)

    def delete_entries_where(self, predicate: Predicate) -> None:
        """Remove every stored entry matching *predicate* in one rewrite."""
        require(predicate, "predicate")
        with self._operation("delete_entries_where"):
            stored = self.get_entries()
            kept = [entry for entry in stored if not predicate(entry)]
            if len(kept) == len(stored):
                return
            self.write_all(kept)

    def delete_entries(self, entries: Iterable[T]) -> None:
        """Remove every stored entry logically equal to any of *entries*."""
        require(entries, "entries")
        targets = [entry for entry in entries if entry is not None]
        with self._operation("delete_entries"):
            stored = self.get_entries()
            kept = [entry for entry in stored if not any(self.matcher.same(entry, t) for t in targets)]
            if len(kept) == len(stored):
                return
            self.write_all(kept)

    def edit_entry(
        self,
        entry: T,
        mutate: Callable[[T], Any],
        source: Iterable[T] | None = None,
    ) -> T:
        """Apply *mutate* to the stored entry equal to *entry* and persist it.

        With *source*, the match is looked up in *source* and *source* is what
        gets written back. Returns the edited entry; returns *entry* itself
        when nothing matched (no write happens) or the edit failed.
        """
        require(entry, "entry")
        require(mutate, "mutate")
        with self._operation("edit_entry"):
            stored = self.get_entries() if source is None else list(source)
            found = self.matcher.find(entry, stored)
            if found is None:
                return entry
            mutate(found)
            self.write_all(stored)
            return found
        return entry

    def replace_entry(self, old_entry: T | None, new_entry: T | None) -> None:
        """Put *new_entry* at the position of the stored entry equal to *old_entry*."""
        if old_entry is None or new_entry is None:
            return
        with self._operation("replace_entry"):
            stored = self.get_entries()
            index = self.matcher.index(old_entry, stored)
            if index == -1:
                return
            stored[index] = new_entry
            self.write_all(stored)

    def replace_all(self, entries: Iterable[T]) -> None:
        """Overwrite the whole document with *entries*."""
        require(entries, "entries")
        with self._operation("replace_all"):
            self.write_all(entries)


def open_store(
    path: str | Path | None = None,
    entry_type: type[T] | None = None,
    *,
    config: Config | None = None,
    codec: DocumentCodec | None = None,
    comparer: Comparer | None = None,
    errors: ErrorChannel | None = None,
) -> EntryStore[T]:
    """Create an :class:`EntryStore` using defaults from *config*.

    Reads ``store.path``, ``store.codec``, ``store.indent``,
    ``store.encoding`` and ``store.atomic_writes``. Explicit arguments win.
    """
    config = config or get_config()
    if path is None:
        path = config.get_store_path()
    if codec is None:
        codec = get_codec(config.get("store.codec", "json"), entry_type, indent=config.get_int("store.indent", 2))
    return EntryStore(
        path,
        entry_type,
        codec=codec,
        comparer=comparer,
        errors=errors,
        atomic_writes=config.get_bool("store.atomic_writes"),
        encoding=config.get("store.encoding", "utf-8"),
    )
