"""
Encrypting property store.

An EncryptedProperties instance holds decrypted values in memory and is
bound to a single EncryptionContext. Values are encrypted only when the
store is written and decrypted only when it is loaded, so every value on
disk is a Fernet token while keys remain readable.

File layout (one entry per line, see encprops.store.properties):

    #Encrypted Properties File generated by encprops
    #Mon Oct 19 12:00:00 UTC 2026
    db.password=gAAAAABl...
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import TextIO

from encprops.config.keys import DecryptionError, EncryptionContext
from encprops.store.properties import (
    StoreLoadError,
    read_properties,
    write_properties,
)

logger = logging.getLogger(__name__)


class EncryptedProperties:
    """
    Ordered key/value store whose serialized form is always encrypted.

    Usage:
        store = EncryptedProperties(context)
        store.set_property("db.password", "s3cret")

        with open("app.properties", "w", encoding="utf-8") as f:
            store.store(f, "generated by deploy tooling")

        copy = EncryptedProperties(context)
        with open("app.properties", encoding="utf-8") as f:
            copy.load(f)

    Attributes:
        context: Encryption context used by load() and store().
    """

    def __init__(
        self,
        context: EncryptionContext,
        entries: Mapping[str, str] | None = None,
    ) -> None:
        self.context = context
        self._entries: dict[str, str] = {}
        if entries is not None:
            for key, value in entries.items():
                self.set_property(key, value)

    @classmethod
    def from_mapping(
        cls,
        existing: Mapping[str, str],
        context: EncryptionContext,
    ) -> EncryptedProperties:
        """
        Create a new encrypting store holding a copy of ``existing``.

        The source mapping may be a plain dict (plaintext input) or another
        EncryptedProperties; later changes to either side are not shared.
        """
        return cls(context, existing)

    def load(self, stream: TextIO) -> None:
        """
        Read an encrypted properties stream and decrypt every value into
        this store.

        Raises:
            StoreLoadError: If the stream is malformed or any value cannot
                          be decrypted. The store is left unchanged.
        """
        raw = read_properties(stream)

        decrypted: dict[str, str] = {}
        for key, token in raw.items():
            try:
                decrypted[key] = self.context.decrypt(token)
            except DecryptionError as e:
                raise StoreLoadError(f"Cannot decrypt value for key '{key}': {e}") from e

        self._entries.update(decrypted)
        logger.debug("Decrypted %d entries", len(decrypted))

    def store(self, stream: TextIO, comment: str | None = None) -> None:
        """Encrypt every value and write the store to ``stream``."""
        encrypted = {
            key: self.context.encrypt(value) for key, value in self._entries.items()
        }
        write_properties(stream, encrypted, comment)

    def contains_key(self, key: str | None) -> bool:
        return key in self._entries

    def get_property(self, key: str, default: str | None = None) -> str | None:
        return self._entries.get(key, default)

    def set_property(self, key: str, value: str) -> str | None:
        """
        Set a value, returning the previous value for the key if any.

        Raises:
            TypeError: If key or value is not a string.
        """
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError("Property keys and values must be strings")
        previous = self._entries.get(key)
        self._entries[key] = value
        return previous

    def keys(self) -> list[str]:
        return list(self._entries)

    def items(self) -> list[tuple[str, str]]:
        return list(self._entries.items())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __repr__(self) -> str:
        # Never include values
        return f"EncryptedProperties(keys={self.keys()!r})"
