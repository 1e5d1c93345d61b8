"""
Property store for encprops.

This module provides the plain properties text format and the encrypting
store that wraps it.
"""

from encprops.store.encrypted import EncryptedProperties
from encprops.store.properties import (
    PropertiesFormatError,
    StoreError,
    StoreLoadError,
    read_properties,
    write_properties,
)

__all__ = [
    "EncryptedProperties",
    "StoreError",
    "StoreLoadError",
    "PropertiesFormatError",
    "read_properties",
    "write_properties",
]
