"""Encrypt/decrypt and sign/verify over resident or store-backed keys.

Encryption is RSA only. Signing is RSA PKCS#1 v1.5 or ECDSA over the chosen
digest; signatures are the raw RSA block or a DER Ecdsa-Sig-Value.
"""

import logging
from typing import assert_never

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, utils
from cryptography.hazmat.primitives.asymmetric import padding as asym_padding

from keysmith.domain.algorithms import hash_for, padding_for, padding_overhead
from keysmith.domain.states import DigestAlgorithm, KeyAlgorithm, KeyClass, Padding
from keysmith.errors import (
    DecryptionFailedError,
    MalformedEncodingError,
    PlaintextTooLargeError,
    UnsupportedOperationError,
)
from keysmith.keys.key import Key
from keysmith.metrics import keysmith_metrics

logger = logging.getLogger(__name__)


def _modulus_bytes(key: Key) -> int:
    return (key.key_size + 7) // 8


def _require_class(key: Key, key_class: KeyClass, operation: str) -> None:
    if key.key_class is not key_class:
        keysmith_metrics.record_crypto_operation(operation, key.algorithm, "rejected")
        raise UnsupportedOperationError(f"{operation} requires a {key_class.value} key")


def _require_rsa(key: Key, operation: str) -> None:
    if key.algorithm is not KeyAlgorithm.RSA:
        keysmith_metrics.record_crypto_operation(operation, key.algorithm, "rejected")
        raise UnsupportedOperationError(
            f"{operation} is not supported for {key.algorithm.value.upper()} keys"
        )


def max_plaintext_size(key: Key, padding: Padding = Padding.OAEP) -> int:
    """Largest plaintext ``encrypt`` accepts for this key and padding."""
    _require_rsa(key, "encrypt")
    return _modulus_bytes(key) - padding_overhead(padding)


def encrypt(public_key: Key, plaintext: bytes, padding: Padding = Padding.OAEP) -> bytes:
    """Encrypt with an RSA public key.

    Raises:
        UnsupportedOperationError: For EC keys or private keys.
        PlaintextTooLargeError: If plaintext exceeds the padding scheme's bound.
    """
    _require_rsa(public_key, "encrypt")
    _require_class(public_key, KeyClass.PUBLIC, "encrypt")

    limit = max_plaintext_size(public_key, padding)
    if len(plaintext) > limit:
        keysmith_metrics.record_crypto_operation("encrypt", public_key.algorithm, "rejected")
        raise PlaintextTooLargeError(
            f"Plaintext of {len(plaintext)} bytes exceeds the {limit} byte maximum for "
            f"{public_key.key_size}-bit RSA with {Padding(padding).value} padding"
        )

    with public_key.provider_key() as provider_key:
        ciphertext = provider_key.encrypt(bytes(plaintext), padding_for(padding))  # type: ignore[union-attr]

    keysmith_metrics.record_crypto_operation("encrypt", public_key.algorithm, "ok")
    return ciphertext


def decrypt(private_key: Key, ciphertext: bytes, padding: Padding = Padding.OAEP) -> bytes:
    """Decrypt with an RSA private key.

    Every length or padding failure surfaces as the same ``DecryptionFailedError``.
    With PKCS#1 v1.5, OpenSSL builds that apply implicit rejection return a
    synthetic plaintext for a bad padding instead of failing.

    Raises:
        UnsupportedOperationError: For EC keys or public keys.
        DecryptionFailedError: If decryption fails for any reason.
    """
    _require_rsa(private_key, "decrypt")
    _require_class(private_key, KeyClass.PRIVATE, "decrypt")

    plaintext: bytes | None = None
    if len(ciphertext) == _modulus_bytes(private_key):
        with private_key.provider_key() as provider_key:
            try:
                plaintext = provider_key.decrypt(bytes(ciphertext), padding_for(padding))  # type: ignore[union-attr]
            except ValueError:
                plaintext = None

    if plaintext is None:
        keysmith_metrics.record_crypto_operation("decrypt", private_key.algorithm, "failed")
        raise DecryptionFailedError("decryption failed")

    keysmith_metrics.record_crypto_operation("decrypt", private_key.algorithm, "ok")
    return plaintext


def _sign(key: Key, data: bytes, algorithm: hashes.HashAlgorithm | utils.Prehashed) -> bytes:
    with key.provider_key() as provider_key:
        if key.algorithm is KeyAlgorithm.RSA:
            return provider_key.sign(data, asym_padding.PKCS1v15(), algorithm)  # type: ignore[union-attr]
        elif key.algorithm is KeyAlgorithm.EC:
            return provider_key.sign(data, ec.ECDSA(algorithm))  # type: ignore[union-attr]
        else:
            assert_never(key.algorithm)


def _check_signature_structure(key: Key, signature: bytes) -> None:
    if key.algorithm is KeyAlgorithm.RSA:
        if len(signature) != _modulus_bytes(key):
            raise MalformedEncodingError(
                f"RSA signature must be {_modulus_bytes(key)} bytes, got {len(signature)}"
            )
    elif key.algorithm is KeyAlgorithm.EC:
        try:
            utils.decode_dss_signature(bytes(signature))
        except ValueError as e:
            raise MalformedEncodingError(f"Malformed ECDSA signature: {e}") from e
    else:
        assert_never(key.algorithm)


def _verify(
    key: Key,
    data: bytes,
    signature: bytes,
    algorithm: hashes.HashAlgorithm | utils.Prehashed,
) -> bool:
    _check_signature_structure(key, signature)

    with key.provider_key() as provider_key:
        try:
            if key.algorithm is KeyAlgorithm.RSA:
                provider_key.verify(bytes(signature), data, asym_padding.PKCS1v15(), algorithm)  # type: ignore[union-attr]
            elif key.algorithm is KeyAlgorithm.EC:
                provider_key.verify(bytes(signature), data, ec.ECDSA(algorithm))  # type: ignore[union-attr]
            else:
                assert_never(key.algorithm)
        except InvalidSignature:
            return False
    return True


def sign(
    private_key: Key,
    message: bytes,
    digest_algorithm: DigestAlgorithm = DigestAlgorithm.SHA256,
) -> bytes:
    """Sign ``message`` hashed with ``digest_algorithm``."""
    _require_class(private_key, KeyClass.PRIVATE, "sign")

    signature = _sign(private_key, bytes(message), hash_for(digest_algorithm))
    keysmith_metrics.record_crypto_operation("sign", private_key.algorithm, "ok")
    return signature


def verify(
    public_key: Key,
    message: bytes,
    signature: bytes,
    digest_algorithm: DigestAlgorithm = DigestAlgorithm.SHA256,
) -> bool:
    """Check a signature over ``message``.

    Returns False for a well-formed signature that does not verify.

    Raises:
        MalformedEncodingError: If the signature is structurally invalid.
    """
    _require_class(public_key, KeyClass.PUBLIC, "verify")

    valid = _verify(public_key, bytes(message), signature, hash_for(digest_algorithm))
    keysmith_metrics.record_crypto_operation(
        "verify", public_key.algorithm, "ok" if valid else "failed"
    )
    return valid


def _prehashed(digest: bytes, digest_algorithm: DigestAlgorithm) -> utils.Prehashed:
    algorithm = hash_for(digest_algorithm)
    if len(digest) != algorithm.digest_size:
        raise MalformedEncodingError(
            f"{algorithm.name} digest must be {algorithm.digest_size} bytes, got {len(digest)}"
        )
    return utils.Prehashed(algorithm)


def sign_digest(
    private_key: Key,
    digest: bytes,
    digest_algorithm: DigestAlgorithm = DigestAlgorithm.SHA256,
) -> bytes:
    """Sign a digest computed by the caller."""
    _require_class(private_key, KeyClass.PRIVATE, "sign")

    signature = _sign(private_key, bytes(digest), _prehashed(digest, digest_algorithm))
    keysmith_metrics.record_crypto_operation("sign", private_key.algorithm, "ok")
    return signature


def verify_digest(
    public_key: Key,
    digest: bytes,
    signature: bytes,
    digest_algorithm: DigestAlgorithm = DigestAlgorithm.SHA256,
) -> bool:
    """Check a signature over a digest computed by the caller."""
    _require_class(public_key, KeyClass.PUBLIC, "verify")

    valid = _verify(public_key, bytes(digest), signature, _prehashed(digest, digest_algorithm))
    keysmith_metrics.record_crypto_operation(
        "verify", public_key.algorithm, "ok" if valid else "failed"
    )
    return valid
