"""Error channel for soft failures.

The entry store never raises I/O or decode failures into its callers.
Instead it publishes an :class:`ErrorReport` on an :class:`ErrorChannel`
and returns a fallback value. Hosts subscribe to decide whether to log,
retry, or surface the failure to a user.

Usage::

    from entrydb.core.events import ErrorChannel

    errors = ErrorChannel()

    def show(message: str, detail: str) -> None:
        print(message)

    errors.subscribe(show)
    store = EntryStore("entries.json", Item, errors=errors)
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from time import time

from loguru import logger

# (message, detail) -> None
ErrorHandler = Callable[[str, str], None]


# ---------------------------------------------------------------------------
# Report model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ErrorReport:
    """An immutable record of one soft failure."""

    message: str
    detail: str = ""
    operation: str = ""
    timestamp: float = field(default_factory=time)


# ---------------------------------------------------------------------------
# ErrorChannel
# ---------------------------------------------------------------------------


class ErrorChannel:
    """Thread-safe subscribe/notify sink for soft errors."""

    def __init__(self) -> None:
        self._handlers: list[ErrorHandler] = []
        self._collectors: list[list[ErrorReport]] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: ErrorHandler) -> None:
        """Register *handler* to receive ``(message, detail)`` for every report."""
        with self._lock:
            self._handlers.append(handler)

    def unsubscribe(self, handler: ErrorHandler) -> None:
        """Unregister *handler*. Unknown handlers are ignored."""
        with self._lock:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass

    def notify(self, message: str, detail: str = "", operation: str = "") -> ErrorReport:
        """Publish a report to every subscriber and active collector."""
        report = ErrorReport(message=message, detail=detail, operation=operation)
        logger.warning(message)

        with self._lock:
            handlers = list(self._handlers)
            for collected in self._collectors:
                collected.append(report)

        for handler in handlers:
            try:
                handler(report.message, report.detail)
            except Exception as exc:
                logger.warning(f"Error handler {handler!r} failed: {exc}")
        return report

    @contextmanager
    def collect(self) -> Iterator[list[ErrorReport]]:
        """Capture every report published while the block runs.

        Lets callers tell an empty store apart from a failed read::

            with store.errors.collect() as reports:
                entries = store.get_entries()
            if reports:
                ...
        """
        collected: list[ErrorReport] = []
        with self._lock:
            self._collectors.append(collected)
        try:
            yield collected
        finally:
            with self._lock:
                # identity, not equality: two empty collectors compare equal
                self._collectors = [c for c in self._collectors if c is not collected]

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)
