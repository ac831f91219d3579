"""entrydb — a small file-backed document store for typed entries."""

__version__ = "0.1.0"

from entrydb.core.events import ErrorChannel, ErrorReport
from entrydb.core.exceptions import CodecError, ConfigurationError, ContractViolationError, EntryDBError
from entrydb.storage import EntryStore, JsonCodec, Record, YamlCodec, open_store

__all__ = [
    "CodecError",
    "ConfigurationError",
    "ContractViolationError",
    "EntryDBError",
    "EntryStore",
    "ErrorChannel",
    "ErrorReport",
    "JsonCodec",
    "Record",
    "YamlCodec",
    "__version__",
    "open_store",
]
