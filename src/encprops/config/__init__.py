"""
Configuration management for encprops.

This module handles loading and validating configuration settings,
as well as deriving the encryption context used for stores.
"""

from encprops.config.keys import (
    DecryptionError,
    EncryptionContext,
    EncryptionError,
    InvalidPassphraseError,
    KeyStore,
    KeyStoreError,
    KeyStoreNotInitializedError,
    derive_context,
    generate_context,
)
from encprops.config.settings import (
    ConfigurationError,
    Settings,
    load_config,
)

__all__ = [
    # Settings
    "Settings",
    "load_config",
    "ConfigurationError",
    # Keys
    "EncryptionContext",
    "EncryptionError",
    "DecryptionError",
    "KeyStore",
    "KeyStoreError",
    "KeyStoreNotInitializedError",
    "InvalidPassphraseError",
    "derive_context",
    "generate_context",
]
