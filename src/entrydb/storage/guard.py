"""FileGuard — the mutual-exclusion domain around one backing file.

Every synchronous read and write of a store's file happens while the guard
is held. The guard also owns lazy initialization: :meth:`FileGuard.ensure_exists`
creates the file (and its parent directories) when it is missing.

The lock is a plain, non-reentrant ``threading.Lock``. Nothing is reported
on the error channel while it is held, so error handlers may call back
into the store.

Coroutines never hold the lock across an ``await``. :meth:`FileGuard.read_async`
reads optimistically instead: writers bump a counter when they take and
release the guard, and a read that overlapped a write is retried.
"""

from __future__ import annotations

import asyncio
import threading
import traceback
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from enum import Enum
from pathlib import Path

from loguru import logger

from entrydb.core.events import ErrorChannel


class GuardState(Enum):
    """Initialization state of the backing file, as of the last check."""

    NOT_CHECKED = "not_checked"
    EXISTS = "exists"
    MISSING = "missing"
    FAILED_INIT = "failed_init"


class FileGuard:
    """Serializes access to one file and creates it on demand."""

    poll_interval = 0.005

    def __init__(self, path: str | Path, errors: ErrorChannel, encoding: str = "utf-8") -> None:
        self.path = Path(path).expanduser().resolve()
        self.errors = errors
        self.encoding = encoding
        self.state = GuardState.NOT_CHECKED
        self._lock = threading.Lock()
        # odd while a writer holds the guard
        self._write_seq = 0

    @contextmanager
    def hold(self, writing: bool = False) -> Iterator[Path]:
        """Hold the guard for a synchronous block.

        Pass ``writing=True`` when the block modifies the file, so that
        concurrent :meth:`read_async` calls notice and retry.
        """
        with self._lock:
            if writing:
                self._write_seq += 1
            try:
                yield self.path
            finally:
                if writing:
                    self._write_seq += 1

    async def read_async(self, read: Callable[[Path], Awaitable[str]]) -> str:
        """Run *read* on the file from a coroutine and return a consistent result.

        The lock is never taken, so a synchronous store call made from the
        same event loop cannot deadlock against this read. Waits while a write
        is in progress and repeats the read if a write started or finished
        while it ran.
        """
        while True:
            before = self._write_seq
            if before % 2 == 0:
                content = await read(self.path)
                if self._write_seq == before:
                    return content
            await asyncio.sleep(self.poll_interval)

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    @property
    def writing(self) -> bool:
        return self._write_seq % 2 == 1

    def ensure_exists(self) -> bool:
        """Create the backing file if absent. Returns False on failure (already reported)."""
        with self._lock:
            error = self._create_locked()
        if error is not None:
            self.errors.notify(
                f"An error occurred while initializing the file.\nMessage: {error}",
                "".join(traceback.format_exception(type(error), error, error.__traceback__)),
                operation="ensure_exists",
            )
            return False
        return True

    def _create_locked(self) -> OSError | None:
        if self.path.exists():
            self.state = GuardState.EXISTS
            return None

        self.state = GuardState.MISSING
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # append mode leaves any existing content untouched
            with open(self.path, "a", encoding=self.encoding):
                pass
        except OSError as e:
            self.state = GuardState.FAILED_INIT
            return e

        self.state = GuardState.EXISTS
        logger.debug(f"Created store file: {self.path}")
        return None
