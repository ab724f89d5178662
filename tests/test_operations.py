"""Unit tests for encrypt/decrypt and sign/verify."""

import hashlib
import os
from unittest.mock import patch

import pytest

from keysmith.domain.states import DigestAlgorithm, KeyAlgorithm, Padding
from keysmith.errors import (
    DecryptionFailedError,
    MalformedEncodingError,
    PlaintextTooLargeError,
    UnsupportedOperationError,
)
from keysmith.keys import operations


class TestEncryption:
    """Tests for RSA encryption and decryption."""

    def test_encrypt_decrypt_roundtrip(self, rsa_key_pair):
        """Test decrypting an OAEP ciphertext of a 171-byte plaintext."""
        plaintext = os.urandom(171)

        ciphertext = operations.encrypt(rsa_key_pair.public_key, plaintext, Padding.OAEP)

        assert len(ciphertext) == 256
        assert operations.decrypt(rsa_key_pair.private_key, ciphertext, Padding.OAEP) == plaintext

    @pytest.mark.parametrize(
        "padding,limit",
        [(Padding.PKCS1, 245), (Padding.OAEP, 214), (Padding.OAEP_SHA256, 190)],
    )
    def test_maximum_plaintext_roundtrip(self, rsa_key_pair, padding, limit):
        """Test that a plaintext of exactly the padding maximum round trips."""
        plaintext = os.urandom(limit)

        assert operations.max_plaintext_size(rsa_key_pair.public_key, padding) == limit
        ciphertext = operations.encrypt(rsa_key_pair.public_key, plaintext, padding)
        assert operations.decrypt(rsa_key_pair.private_key, ciphertext, padding) == plaintext

    def test_encrypt_empty_plaintext(self, rsa_key_pair):
        """Test that an empty plaintext round trips."""
        ciphertext = operations.encrypt(rsa_key_pair.public_key, b"")

        assert operations.decrypt(rsa_key_pair.private_key, ciphertext) == b""

    def test_encrypt_oversize_plaintext_raises(self, rsa_key_pair):
        """Test that a 312-byte plaintext is too large for RSA-2048 OAEP."""
        with pytest.raises(PlaintextTooLargeError):
            operations.encrypt(rsa_key_pair.public_key, os.urandom(312), Padding.OAEP)

    def test_encrypt_one_byte_over_limit_raises(self, rsa_key_pair):
        """Test the boundary just above the OAEP maximum."""
        with pytest.raises(PlaintextTooLargeError):
            operations.encrypt(rsa_key_pair.public_key, os.urandom(215), Padding.OAEP)

    def test_decrypt_wrong_length_raises(self, rsa_key_pair):
        """Test that a 312-byte ciphertext fails without detail."""
        with pytest.raises(DecryptionFailedError) as exc_info:
            operations.decrypt(rsa_key_pair.private_key, os.urandom(312))

        assert str(exc_info.value) == "decryption failed"
        assert exc_info.value.__cause__ is None

    def test_decrypt_with_other_key_raises(self, rsa_key_pair, generate):
        """Test that decrypting with an unrelated key fails."""
        other = generate(KeyAlgorithm.RSA, 2048)
        ciphertext = operations.encrypt(rsa_key_pair.public_key, b"secret")

        with pytest.raises(DecryptionFailedError):
            operations.decrypt(other.private_key, ciphertext)

    def test_pkcs1_decrypt_with_other_key_never_returns_plaintext(self, rsa_key_pair, generate):
        """Test that PKCS#1 v1.5 under the wrong key fails or yields unrelated bytes.

        OpenSSL builds with implicit rejection return a synthetic plaintext
        instead of a padding error.
        """
        other = generate(KeyAlgorithm.RSA, 2048)
        plaintext = os.urandom(32)
        ciphertext = operations.encrypt(rsa_key_pair.public_key, plaintext, Padding.PKCS1)

        try:
            result = operations.decrypt(other.private_key, ciphertext, Padding.PKCS1)
        except DecryptionFailedError:
            result = None

        assert result != plaintext

    def test_decrypt_failure_records_metric(self, rsa_key_pair):
        """Test that failed decryption is counted."""
        with patch("keysmith.keys.operations.keysmith_metrics") as mock_metrics:
            with pytest.raises(DecryptionFailedError):
                operations.decrypt(rsa_key_pair.private_key, b"short")

        mock_metrics.record_crypto_operation.assert_called_once_with(
            "decrypt", KeyAlgorithm.RSA, "failed"
        )

    def test_encrypt_with_ec_key_raises(self, ec_key_pair):
        """Test that EC keys do not encrypt."""
        with pytest.raises(UnsupportedOperationError):
            operations.encrypt(ec_key_pair.public_key, b"secret")

    def test_decrypt_with_ec_key_raises(self, ec_key_pair):
        """Test that EC keys do not decrypt."""
        with pytest.raises(UnsupportedOperationError):
            operations.decrypt(ec_key_pair.private_key, os.urandom(64))

    def test_encrypt_with_private_key_raises(self, rsa_key_pair):
        """Test that encryption requires the public key."""
        with pytest.raises(UnsupportedOperationError):
            operations.encrypt(rsa_key_pair.private_key, b"secret")


class TestSigning:
    """Tests for signing and verification."""

    @pytest.mark.parametrize("pair", ["rsa_key_pair", "ec_key_pair"])
    @pytest.mark.parametrize("digest", list(DigestAlgorithm))
    def test_sign_verify_every_digest(self, request, pair, digest):
        """Test that signatures verify for every digest on RSA-2048 and EC-256."""
        key_pair = request.getfixturevalue(pair)
        message = os.urandom(217)

        signature = operations.sign(key_pair.private_key, message, digest)

        assert operations.verify(key_pair.public_key, message, signature, digest) is True

    @pytest.mark.parametrize("pair", ["rsa_key_pair", "ec_key_pair"])
    def test_verify_other_message_fails(self, request, pair):
        """Test that a signature does not verify a different 217-byte message."""
        key_pair = request.getfixturevalue(pair)
        first, second = os.urandom(217), os.urandom(217)
        assert first != second

        signature = operations.sign(key_pair.private_key, first, DigestAlgorithm.SHA1)

        assert operations.verify(key_pair.public_key, second, signature, DigestAlgorithm.SHA1) is False

    @pytest.mark.parametrize("pair", ["rsa_key_pair", "ec_key_pair"])
    def test_distinct_messages_get_distinct_signatures(self, request, pair):
        """Test that two random 217-byte messages do not share a signature."""
        key_pair = request.getfixturevalue(pair)
        first, second = os.urandom(217), os.urandom(217)

        assert operations.sign(key_pair.private_key, first) != operations.sign(
            key_pair.private_key, second
        )

    @pytest.mark.parametrize("pair", ["rsa_key_pair", "ec_key_pair"])
    def test_verify_with_other_digest_fails(self, request, pair):
        """Test that verification is bound to the signing digest."""
        key_pair = request.getfixturevalue(pair)
        signature = operations.sign(key_pair.private_key, b"message", DigestAlgorithm.SHA256)

        assert (
            operations.verify(key_pair.public_key, b"message", signature, DigestAlgorithm.SHA512)
            is False
        )

    def test_verify_truncated_rsa_signature_raises(self, rsa_key_pair):
        """Test that an RSA signature of the wrong length is malformed."""
        signature = operations.sign(rsa_key_pair.private_key, b"message")

        with pytest.raises(MalformedEncodingError):
            operations.verify(rsa_key_pair.public_key, b"message", signature[:-1])

    def test_verify_malformed_ec_signature_raises(self, ec_key_pair):
        """Test that a non-DER ECDSA signature is malformed."""
        with pytest.raises(MalformedEncodingError):
            operations.verify(ec_key_pair.public_key, b"message", b"\x00\x01\x02")

    def test_sign_with_public_key_raises(self, ec_key_pair):
        """Test that signing requires the private key."""
        with pytest.raises(UnsupportedOperationError):
            operations.sign(ec_key_pair.public_key, b"message")

    def test_verify_with_private_key_raises(self, ec_key_pair):
        """Test that verification requires the public key."""
        signature = operations.sign(ec_key_pair.private_key, b"message")

        with pytest.raises(UnsupportedOperationError):
            operations.verify(ec_key_pair.private_key, b"message", signature)


class TestDigestSigning:
    """Tests for signing caller-computed digests."""

    @pytest.mark.parametrize("pair", ["rsa_key_pair", "ec_key_pair"])
    def test_digest_signature_verifies_as_message_signature(self, request, pair):
        """Test that signing a SHA-256 digest matches signing the message."""
        key_pair = request.getfixturevalue(pair)
        message = b"pre-hashed message"

        signature = operations.sign_digest(key_pair.private_key, hashlib.sha256(message).digest())

        assert operations.verify(key_pair.public_key, message, signature) is True
        assert operations.verify_digest(
            key_pair.public_key, hashlib.sha256(message).digest(), signature
        )

    def test_sign_digest_wrong_length_raises(self, ec_key_pair):
        """Test that a digest of the wrong size is malformed."""
        with pytest.raises(MalformedEncodingError):
            operations.sign_digest(ec_key_pair.private_key, b"too short", DigestAlgorithm.SHA256)
