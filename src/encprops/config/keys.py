"""
Encryption context and key management for encprops.

Store values are encrypted with Fernet symmetric encryption. The Fernet key
is derived from an operator passphrase with PBKDF2 and a per-installation
salt.

Security Design:
    - Encryption key derived from passphrase using PBKDF2 (600,000 iterations)
    - Random 256-bit salt generated once per installation and stored separately
    - Salt and verifier file permissions set to owner-only (0600)
    - A known value encrypted at initialization is decrypted on open, so a
      wrong passphrase is rejected before any store is read

Threat Model:
    - Protects against: filesystem access by unauthorized users, accidental
      exposure in backups or version control, casual inspection of files
    - Does NOT protect against: memory inspection, keyloggers, root access,
      or compromise of the running process
"""

import base64
import logging
import os
import secrets
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from encprops.config.settings import DEFAULT_SALT_FILE

logger = logging.getLogger(__name__)

# Security parameters - do not reduce these values
# OWASP 2023 recommends 600,000 iterations for PBKDF2-SHA256
PBKDF2_ITERATIONS = 600_000
SALT_LENGTH = 32  # 256 bits
DEFAULT_MIN_PASSPHRASE_LENGTH = 12

# Encrypted into the verifier file; open() checks it decrypts back to this
VERIFIER_PLAINTEXT = "encprops-passphrase-check"


class EncryptionError(Exception):
    """Base exception for encryption-related errors."""

    pass


class DecryptionError(EncryptionError):
    """Raised when a value cannot be decrypted (corrupt data or wrong key)."""

    pass


class KeyStoreError(EncryptionError):
    """Raised when the salt file cannot be created or read."""

    pass


class KeyStoreNotInitializedError(KeyStoreError):
    """Raised when no salt file exists yet."""

    pass


class InvalidPassphraseError(KeyStoreError):
    """Raised when the provided passphrase is incorrect."""

    pass


class EncryptionContext:
    """
    Encrypts and decrypts individual string values.

    Tokens are URL-safe base64 text, so they can be written into a
    properties file without escaping.
    """

    def __init__(self, fernet: Fernet) -> None:
        self._fernet = fernet

    def encrypt(self, value: str) -> str:
        """Encrypt a value and return the token as text."""
        return self._fernet.encrypt(value.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> str:
        """
        Decrypt a token produced by ``encrypt``.

        Raises:
            DecryptionError: If the token is malformed, was tampered with,
                           or was encrypted under a different key.
        """
        try:
            plaintext = self._fernet.decrypt(token.encode("ascii"))
        except (InvalidToken, UnicodeEncodeError) as e:
            raise DecryptionError(
                "Cannot decrypt value. Wrong passphrase or corrupt data."
            ) from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionError("Decrypted value is not valid UTF-8") from e


def derive_context(
    passphrase: str,
    salt: bytes,
    iterations: int = PBKDF2_ITERATIONS,
) -> EncryptionContext:
    """
    Derive an encryption context from passphrase and salt.

    Uses PBKDF2 with SHA-256 as recommended by OWASP for password-based
    key derivation.

    Args:
        passphrase: Operator-provided passphrase.
        salt: Random salt bytes.
        iterations: PBKDF2 iteration count.

    Returns:
        EncryptionContext bound to the derived key.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,  # Fernet requires 32-byte keys
        salt=salt,
        iterations=iterations,
    )
    key = base64.urlsafe_b64encode(kdf.derive(passphrase.encode("utf-8")))
    return EncryptionContext(Fernet(key))


def generate_context() -> EncryptionContext:
    """Create a context with a fresh random key."""
    return EncryptionContext(Fernet(Fernet.generate_key()))


class KeyStore:
    """
    Per-installation salt used to turn a passphrase into a key.

    Next to the salt file a verifier file holds a known value encrypted
    under the derived key, so open() can reject a wrong passphrase.

    Usage:
        key_store = KeyStore(Path("~/.encprops/salt").expanduser())

        if not key_store.is_initialized():
            key_store.initialize("my-secure-passphrase")

        context = key_store.open("my-secure-passphrase")

    Attributes:
        salt_path: Path to the salt file.
        verifier_path: Path to the passphrase verifier file.
        min_passphrase_length: Minimum passphrase length for initialize().
    """

    def __init__(
        self,
        salt_path: Path | None = None,
        min_passphrase_length: int = DEFAULT_MIN_PASSPHRASE_LENGTH,
        iterations: int = PBKDF2_ITERATIONS,
    ) -> None:
        self.salt_path = salt_path or DEFAULT_SALT_FILE
        self.verifier_path = self.salt_path.with_name(f"{self.salt_path.name}.verify")
        self.min_passphrase_length = min_passphrase_length
        self.iterations = iterations

    def is_initialized(self) -> bool:
        """Check if the salt file exists."""
        return self.salt_path.exists()

    def initialize(self, passphrase: str) -> EncryptionContext:
        """
        Create the salt and verifier files and return the context for the
        passphrase.

        Raises:
            KeyStoreError: If the salt file already exists, or the salt or
                         verifier file cannot be written.
            ValueError: If the passphrase is too short.
        """
        if self.is_initialized():
            raise KeyStoreError(
                f"Salt file already exists: {self.salt_path}. "
                "Delete it to reset (existing stores become unreadable)."
            )

        if len(passphrase) < self.min_passphrase_length:
            raise ValueError(
                f"Passphrase must be at least {self.min_passphrase_length} characters."
            )

        self.salt_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            os.chmod(self.salt_path.parent, 0o700)
        except OSError:
            # Windows or permission error - continue anyway
            pass

        salt = secrets.token_bytes(SALT_LENGTH)
        try:
            self._write_secure_file(self.salt_path, salt)
        except OSError as e:
            raise KeyStoreError(f"Cannot write salt file: {e}") from e

        context = derive_context(passphrase, salt, self.iterations)
        verifier = context.encrypt(VERIFIER_PLAINTEXT).encode("ascii")
        try:
            self._write_secure_file(self.verifier_path, verifier)
        except OSError as e:
            # A salt is never left behind without its verifier
            self.salt_path.unlink(missing_ok=True)
            raise KeyStoreError(f"Cannot write verifier file: {e}") from e

        logger.info("Created salt file %s", self.salt_path)
        return context

    def open(self, passphrase: str) -> EncryptionContext:
        """
        Derive the context for a passphrase from the existing salt.

        The passphrase is verified by decrypting the verifier file.

        Raises:
            KeyStoreNotInitializedError: If the salt file does not exist.
            KeyStoreError: If the salt or verifier file cannot be read or
                         is corrupt.
            InvalidPassphraseError: If the passphrase is incorrect.
        """
        if not self.is_initialized():
            raise KeyStoreNotInitializedError(
                f"Salt file not found: {self.salt_path}"
            )

        try:
            salt = self.salt_path.read_bytes()
        except OSError as e:
            raise KeyStoreError(f"Cannot read salt file: {e}") from e

        if len(salt) != SALT_LENGTH:
            raise KeyStoreError(
                f"Salt file {self.salt_path} is corrupt "
                f"(expected {SALT_LENGTH} bytes, found {len(salt)})"
            )

        context = derive_context(passphrase, salt, self.iterations)

        try:
            verifier = self.verifier_path.read_text(encoding="ascii").strip()
        except (OSError, UnicodeDecodeError) as e:
            raise KeyStoreError(f"Cannot read verifier file: {e}") from e

        try:
            plaintext = context.decrypt(verifier)
        except DecryptionError as e:
            raise InvalidPassphraseError(
                "Invalid passphrase. Cannot decrypt the verifier file."
            ) from e

        if plaintext != VERIFIER_PLAINTEXT:
            raise KeyStoreError(f"Verifier file {self.verifier_path} is corrupt")

        return context

    def _write_secure_file(self, path: Path, data: bytes) -> None:
        """
        Write data to file with restrictive permissions.

        Uses atomic write (write to temp, then rename) to prevent
        partial writes from corrupting the file.
        """
        temp_path = path.with_name(f"{path.name}.tmp")

        try:
            temp_path.write_bytes(data)

            try:
                os.chmod(temp_path, 0o600)
            except OSError:
                # Windows or permission error - continue anyway
                pass

            temp_path.replace(path)

        except Exception:
            if temp_path.exists():
                temp_path.unlink()
            raise
