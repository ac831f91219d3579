"""Small helpers shared by entrydb components."""

from .file_io import read_encoding
from .logging import setup_logging

__all__ = ["read_encoding", "setup_logging"]
