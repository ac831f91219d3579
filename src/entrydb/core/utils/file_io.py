"""
File I/O utilities shared by the store and the settings file.

All functions operate on explicit paths — no implicit directory lookups.
"""

from __future__ import annotations

import codecs


def read_encoding(encoding: str) -> str:
    """Encoding to open a text file with for reading.

    UTF-8 files are read as ``utf-8-sig`` so a leading byte-order mark
    written by other editors is dropped instead of reaching the parser.
    """
    if codecs.lookup(encoding).name == "utf-8":
        return "utf-8-sig"
    return encoding
