"""
Store persistence.

The output file is written only after editing finishes. Content goes to a
temporary file next to the target, which then replaces the target in one
rename, so an existing output file is either fully replaced or untouched.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from encprops.console import Console
from encprops.resources import closing_quietly
from encprops.store.encrypted import EncryptedProperties

logger = logging.getLogger(__name__)

STORE_COMMENT = "Encrypted Properties File generated by encprops"


def persist_store(
    store: EncryptedProperties,
    out_path: str | Path,
    console: Console,
    secure_permissions: bool = True,
) -> Path:
    """
    Write ``store`` to ``out_path`` in encrypted form.

    Args:
        store: Store to write.
        out_path: Target file. Replaced if it exists.
        console: Where the completion message is printed.
        secure_permissions: Restrict the file to its owner (0600). When
            False, an existing target keeps its permissions.

    Returns:
        The path written.

    Raises:
        OSError: If the file cannot be written. The target is unchanged.
    """
    path = Path(out_path)

    # mkstemp creates the file with mode 0600
    fd, temp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
    )
    temp_path = Path(temp_name)

    try:
        stream = os.fdopen(fd, "w", encoding="utf-8", newline="\n")
        with closing_quietly(stream):
            store.store(stream, STORE_COMMENT)
            stream.flush()
            os.fsync(stream.fileno())

        if not secure_permissions and path.exists():
            try:
                shutil.copymode(path, temp_path)
            except OSError:
                # Windows or permission error - continue anyway
                pass

        temp_path.replace(path)

    except BaseException:
        if temp_path.exists():
            temp_path.unlink()
        raise

    logger.debug("Wrote %d entries to %s", len(store), path)
    console.print(f"Encrypted Properties file output to {out_path}")
    return path


def report_entries(store: EncryptedProperties, console: Console) -> None:
    """
    Print every entry as ``key=value``.

    This shows decrypted values on the terminal and is only used when the
    operator asks for verbose output.
    """
    for key in store.keys():
        console.print(f"   {key}={store.get_property(key)}")
