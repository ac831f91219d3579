"""SettingsFile — section/key/value settings stored in an INI file.

A small companion to the entry store for flat application settings. Every
read parses the file afresh and every mutation rewrites it, so external
edits are always picked up. Keys keep their case; values are raw strings
(no ``%`` interpolation).

Semantics follow the classic profile-string API: reading a missing key
yields ``""``, writing ``None`` as the value deletes the key, and writing
``None`` as the key deletes the whole section.
"""

from __future__ import annotations

import configparser
import threading
from pathlib import Path

from loguru import logger

from .exceptions import SettingsFileError, require
from .utils.file_io import read_encoding

DEFAULT_SETTINGS_FILE = "entrydb.cfg"


class SettingsFile:
    """Read/write one INI settings file. Thread-safe."""

    def __init__(self, path: str | Path | None = None, encoding: str = "utf-8") -> None:
        self.path = Path(path or DEFAULT_SETTINGS_FILE).expanduser().resolve()
        self.encoding = encoding
        self._lock = threading.Lock()

    def __str__(self) -> str:
        return str(self.path)

    # -- File handling -------------------------------------------------------

    def _load(self) -> configparser.ConfigParser:
        parser = configparser.ConfigParser(interpolation=None)
        parser.optionxform = str  # preserve key case
        if not self.path.exists():
            return parser
        try:
            with open(self.path, encoding=read_encoding(self.encoding)) as f:
                parser.read_file(f)
        except configparser.Error as e:
            raise SettingsFileError(f"Cannot parse settings file {self.path}: {e}") from e
        return parser

    def _save(self, parser: configparser.ConfigParser) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding=self.encoding) as f:
            parser.write(f)
        logger.debug(f"Saved settings file: {self.path}")

    # -- Reads ---------------------------------------------------------------

    def read_value(self, key: str, section: str) -> str:
        """Return the value of *key* in *section*, or ``""`` if absent."""
        require(key, "key")
        require(section, "section")
        with self._lock:
            parser = self._load()
        return parser.get(section, key, fallback="")

    def is_key_exists(self, key: str, section: str) -> bool:
        """True if *key* has a non-empty value in *section*."""
        return len(self.read_value(key, section)) > 0

    def read_sections(self) -> list[str] | None:
        """Return all section names, or None if there are none."""
        with self._lock:
            sections = self._load().sections()
        return sections or None

    def read_keys(self, section: str) -> list[str] | None:
        """Return the keys of *section*, or None if it is missing or empty."""
        require(section, "section")
        with self._lock:
            parser = self._load()
        if not parser.has_section(section):
            return None
        return list(parser[section].keys()) or None

    def read_key_value_pairs(self, section: str) -> list[tuple[str, str]] | None:
        """Return ``(key, value)`` pairs of *section* in file order, or None."""
        require(section, "section")
        with self._lock:
            parser = self._load()
        if not parser.has_section(section):
            return None
        return list(parser[section].items()) or None

    # -- Writes --------------------------------------------------------------

    def write(self, key: str | None, value: str | None, section: str) -> None:
        """Set *key* to *value* in *section*, creating the section if needed.

        ``value=None`` removes the key; ``key=None`` removes the section.
        """
        require(section, "section")
        with self._lock:
            parser = self._load()
            if key is None:
                if not parser.remove_section(section):
                    return
            elif value is None:
                if not parser.has_section(section) or not parser.remove_option(section, key):
                    return
            else:
                if not parser.has_section(section):
                    parser.add_section(section)
                parser.set(section, key, str(value))
            self._save(parser)

    def delete_key(self, key: str, section: str) -> None:
        require(key, "key")
        self.write(key, None, section)

    def delete_section(self, section: str) -> None:
        self.write(None, None, section)
