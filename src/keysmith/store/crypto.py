"""At-rest encryption of private key material for the database store."""

import logging
import os

from cryptography.fernet import Fernet, InvalidToken

from keysmith.errors import StoreError

logger = logging.getLogger(__name__)

ENCRYPTION_KEY_ENV = "STORE_ENCRYPTION_KEY"


class StoreCryptoError(StoreError):
    """Raised when at-rest encryption or decryption fails."""

    pass


def get_encryption_key(key_str: str | None = None) -> bytes:
    """Validate a Fernet key, reading STORE_ENCRYPTION_KEY when none is given.

    The key should be a URL-safe base64-encoded 32-byte key suitable for Fernet.

    Raises:
        StoreCryptoError: If the key is not set or invalid.
    """
    key_str = key_str or os.environ.get(ENCRYPTION_KEY_ENV)
    if not key_str:
        raise StoreCryptoError(f"{ENCRYPTION_KEY_ENV} environment variable not set")

    try:
        key_bytes = key_str.encode("utf-8")
        Fernet(key_bytes)
        return key_bytes
    except ValueError as e:
        raise StoreCryptoError(f"Invalid {ENCRYPTION_KEY_ENV}: {e}") from e


def encrypt_material(data: bytes, key: bytes) -> bytes:
    """Encrypt key material. Returns a Fernet token."""
    return Fernet(key).encrypt(data)


def decrypt_material(token: bytes, key: bytes) -> bytes:
    """Decrypt a Fernet token produced by ``encrypt_material``.

    Raises:
        StoreCryptoError: If the token is invalid or the key is wrong.
    """
    try:
        return Fernet(key).decrypt(token)
    except InvalidToken as e:
        raise StoreCryptoError("Failed to decrypt stored key material") from e


def generate_encryption_key() -> str:
    """Generate a new Fernet key for STORE_ENCRYPTION_KEY."""
    return Fernet.generate_key().decode("utf-8")
