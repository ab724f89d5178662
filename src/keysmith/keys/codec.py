"""Encode keys to, and decode keys from, their standard binary formats."""

from keysmith.domain.states import KeyAlgorithm, KeyClass
from keysmith.errors import MalformedEncodingError, NotExtractableError
from keysmith.keys import formats
from keysmith.keys.key import Key, zero


def encode(key: Key) -> bytes:
    """Return the standard encoding of ``key``.

    Raises:
        NotExtractableError: If the key is a private key that never leaves its store.
    """
    if key.key_class is KeyClass.PRIVATE and not key.extractable:
        raise NotExtractableError(f"Private key {key.label!r} is not extractable")

    with key.material() as buffer:
        return bytes(buffer)


def decode(data: bytes, algorithm: KeyAlgorithm, key_class: KeyClass) -> Key:
    """Decode a key, re-deriving its bit length from the encoded structure.

    Raises:
        MalformedEncodingError: If the structure is inconsistent.
        UnsupportedAlgorithmError: If the bytes hold a key of another algorithm.
    """
    if not data:
        raise MalformedEncodingError("Empty key encoding")

    algorithm = KeyAlgorithm(algorithm)
    if KeyClass(key_class) is KeyClass.PUBLIC:
        return Key.from_provider_key(formats.load_public_key(algorithm, data))

    buffer = bytearray(data)
    try:
        return Key.from_provider_key(formats.load_private_key(algorithm, buffer))
    finally:
        zero(buffer)
