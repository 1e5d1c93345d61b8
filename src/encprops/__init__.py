"""
encprops - Encrypted properties file editor

Keeps configuration secrets in properties files whose values are encrypted
at rest. An operator loads an existing file (encrypted or plaintext), adds
or replaces entries at a terminal prompt, and writes the result back
encrypted.

Key Features:
    - Values encrypted with Fernet, keys derived from a passphrase (PBKDF2)
    - Plaintext properties files can be converted in one step
    - Output written atomically; an existing file is never half-replaced
    - Keys stay readable on disk so files remain diffable
"""

__version__ = "0.1.0"
__author__ = ""
__email__ = ""

from encprops.config.keys import EncryptionContext, derive_context
from encprops.store.encrypted import EncryptedProperties

__all__ = [
    "__version__",
    "EncryptedProperties",
    "EncryptionContext",
    "derive_context",
]
