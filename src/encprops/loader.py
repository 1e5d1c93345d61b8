"""
Store loading.

Decides from the input path, the file system and the --in-encrypted flag
how the working store is created:

    input path   file exists   encrypted   result
    ----------   -----------   ---------   ------------------------------------
    none         -             -           new empty store
    given        no            -           new empty store
    given        yes           true        decrypt, then copy into a new store
    given        yes           false       read plaintext, copy into a new store

The returned store is always an EncryptedProperties, so whatever was read
is written back encrypted.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import TextIO

from encprops.config.keys import EncryptionContext
from encprops.console import Console
from encprops.resources import closing_quietly
from encprops.store.encrypted import EncryptedProperties
from encprops.store.properties import StoreLoadError, read_properties

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Input properties file not found. Creating new."


def load_store(
    in_path: str | Path | None,
    in_encrypted: bool,
    context: EncryptionContext,
    console: Console,
) -> EncryptedProperties:
    """
    Create the store to be edited.

    Args:
        in_path: Input file, or None (or "") to start from an empty store.
        in_encrypted: Whether an existing input file holds encrypted values.
        context: Encryption context for the resulting store (and for
                decrypting the input when ``in_encrypted`` is set).
        console: Where the status line is printed.

    Returns:
        An encrypting store holding the input file's entries, if any.

    Raises:
        StoreLoadError: If an existing input file cannot be opened, parsed
                      or decrypted.
    """
    # An empty path names no file, not the current directory
    if not in_path:
        console.print(NOT_FOUND_MESSAGE)
        return EncryptedProperties(context)

    path = Path(in_path)
    if not path.exists():
        console.print(NOT_FOUND_MESSAGE)
        return EncryptedProperties(context)

    kind = "Encrypted" if in_encrypted else "Plaintext"
    console.print(f"{kind} properties found in {path.resolve()}")

    try:
        stream = open(path, encoding="utf-8")
    except OSError as e:
        raise StoreLoadError(f"Cannot open input file {path}: {e}") from e

    with closing_quietly(stream):
        try:
            source = _read_source(stream, in_encrypted, context)
        except (OSError, UnicodeDecodeError) as e:
            raise StoreLoadError(f"Cannot read input file {path}: {e}") from e

    logger.debug("Loaded %d entries from %s", len(source), path)
    return EncryptedProperties.from_mapping(source, context)


def _read_source(
    stream: TextIO,
    in_encrypted: bool,
    context: EncryptionContext,
) -> Mapping[str, str]:
    if in_encrypted:
        decrypted = EncryptedProperties(context)
        decrypted.load(stream)
        return decrypted
    return read_properties(stream)
