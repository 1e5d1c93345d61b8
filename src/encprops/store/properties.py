"""
Plain property mappings and the properties text format.

This module reads and writes the line-oriented ``key=value`` format used for
both plaintext input files and encrypted store files. It knows nothing about
encryption: values are read and written exactly as given.

Format:
    - Blank lines and lines starting with ``#`` or ``!`` are ignored
    - Keys are separated from values by ``=``, ``:`` or whitespace
    - Backslash escapes: ``\\t``, ``\\n``, ``\\r``, ``\\f``, ``\\uXXXX`` and
      ``\\<char>`` for any other character
    - A line ending in an odd number of backslashes continues on the next line
    - Duplicate keys: the last occurrence wins
"""

from __future__ import annotations

import string
from collections.abc import Iterator, Mapping
from datetime import UTC, datetime
from typing import TextIO

_WHITESPACE = " \t\f"
_SEPARATORS = "=:"
_COMMENT_MARKERS = "#!"

_READ_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_WRITE_ESCAPES = {"\t": "\\t", "\n": "\\n", "\r": "\\r", "\f": "\\f"}


class StoreError(Exception):
    """Base exception for property store errors."""

    pass


class StoreLoadError(StoreError):
    """Raised when a store cannot be read, parsed or decrypted."""

    pass


class PropertiesFormatError(StoreLoadError):
    """Raised when a properties file contains a malformed line."""

    pass


def read_properties(stream: TextIO) -> dict[str, str]:
    """
    Parse a properties text stream into an ordered dictionary.

    Args:
        stream: Readable text stream.

    Returns:
        Mapping of keys to values in file order.

    Raises:
        PropertiesFormatError: If an escape sequence is malformed.
    """
    entries: dict[str, str] = {}
    for line_number, line in _logical_lines(stream):
        raw_key, raw_value = _split_entry(line)
        key = _unescape(raw_key, line_number)
        entries[key] = _unescape(raw_value, line_number)
    return entries


def write_properties(
    stream: TextIO,
    entries: Mapping[str, str],
    comment: str | None = None,
) -> None:
    """
    Write entries to a text stream in properties format.

    A header comment (if given) and a timestamp comment precede the entries.
    Every key and value is escaped so that ``read_properties`` returns them
    unchanged.

    Args:
        stream: Writable text stream.
        entries: Entries to write, in the order they should appear.
        comment: Optional header comment. May span several lines.
    """
    if comment is not None:
        for comment_line in comment.splitlines() or [""]:
            stream.write(f"#{comment_line}\n")
    stream.write(f"#{datetime.now(UTC).strftime('%a %b %d %H:%M:%S UTC %Y')}\n")

    for key, value in entries.items():
        stream.write(f"{_escape(key, is_key=True)}={_escape(value, is_key=False)}\n")


def _logical_lines(stream: TextIO) -> Iterator[tuple[int, str]]:
    """Yield (first line number, joined text) for each logical line."""
    pending: list[str] = []
    start = 0

    for number, raw in enumerate(stream, start=1):
        line = raw.rstrip("\r\n").lstrip(_WHITESPACE)

        if not pending:
            if not line or line[0] in _COMMENT_MARKERS:
                continue
            start = number

        if _is_continued(line):
            pending.append(line[:-1])
            continue

        pending.append(line)
        yield start, "".join(pending)
        pending = []

    if pending:
        yield start, "".join(pending)


def _is_continued(line: str) -> bool:
    trailing = len(line) - len(line.rstrip("\\"))
    return trailing % 2 == 1


def _split_entry(line: str) -> tuple[str, str]:
    """Split a logical line into raw (still escaped) key and value."""
    index = 0
    while index < len(line):
        char = line[index]
        if char == "\\":
            index += 2
            continue
        if char in _SEPARATORS or char in _WHITESPACE:
            break
        index += 1

    key = line[:index]
    rest = line[index:].lstrip(_WHITESPACE)
    if rest and rest[0] in _SEPARATORS:
        rest = rest[1:].lstrip(_WHITESPACE)
    return key, rest


def _unescape(text: str, line_number: int) -> str:
    if "\\" not in text:
        return text

    chars: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char != "\\":
            chars.append(char)
            index += 1
            continue

        index += 1
        if index >= len(text):
            break

        code = text[index]
        if code == "u":
            digits = text[index + 1 : index + 5]
            if len(digits) != 4 or any(d not in string.hexdigits for d in digits):
                raise PropertiesFormatError(
                    f"Malformed \\uXXXX escape on line {line_number}"
                )
            chars.append(chr(int(digits, 16)))
            index += 5
            continue

        chars.append(_READ_ESCAPES.get(code, code))
        index += 1

    return "".join(chars)


def _escape(text: str, is_key: bool) -> str:
    chars: list[str] = []
    for position, char in enumerate(text):
        if char == "\\":
            chars.append("\\\\")
        elif char in _WRITE_ESCAPES:
            chars.append(_WRITE_ESCAPES[char])
        elif char in _SEPARATORS or char in _COMMENT_MARKERS:
            chars.append("\\" + char)
        elif char == " " and (is_key or position == 0):
            chars.append("\\ ")
        else:
            chars.append(char)
    return "".join(chars)
