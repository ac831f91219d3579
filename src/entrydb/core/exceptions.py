"""
entrydb exception hierarchy.

All entrydb exceptions inherit from EntryDBError, making it easy for consumers
to catch library-level errors while still distinguishing specific failure modes.

Only ContractViolationError ever crosses the EntryStore boundary. The others
are raised by lower layers (codecs, config) and absorbed by the store, which
reports them through its ErrorChannel instead.
"""


class EntryDBError(Exception):
    """Base exception class for all entrydb errors."""


class ContractViolationError(EntryDBError, ValueError):
    """Raised when a required argument is missing or invalid (programmer error)."""


class ConfigurationError(EntryDBError):
    """Raised for configuration errors (missing keys, invalid values)."""


class CodecError(EntryDBError):
    """Raised when a document cannot be encoded or decoded."""


class SettingsFileError(EntryDBError):
    """Raised when a settings file cannot be parsed."""


def require(value, name: str) -> None:
    """Raise ContractViolationError if *value* is None."""
    if value is None:
        raise ContractViolationError(f"Argument '{name}' must not be None.")
