"""Canonical binary formats for RSA and EC keys.

RSA public keys are PKCS#1 RSAPublicKey DER, RSA private keys PKCS#1
RSAPrivateKey DER. EC public keys are X9.62 uncompressed points, EC private
keys SEC1 ECPrivateKey DER.
"""

from typing import assert_never

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from keysmith.domain.algorithms import EC_CURVES, curve_for_size, ec_key_size_for_point
from keysmith.domain.states import KeyAlgorithm
from keysmith.errors import MalformedEncodingError, UnsupportedAlgorithmError

PublicKeyTypes = rsa.RSAPublicKey | ec.EllipticCurvePublicKey
PrivateKeyTypes = rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey

_UNCOMPRESSED_POINT_TAG = 0x04


def algorithm_of(provider_key: PublicKeyTypes | PrivateKeyTypes) -> KeyAlgorithm:
    if isinstance(provider_key, (rsa.RSAPublicKey, rsa.RSAPrivateKey)):
        return KeyAlgorithm.RSA
    if isinstance(provider_key, (ec.EllipticCurvePublicKey, ec.EllipticCurvePrivateKey)):
        return KeyAlgorithm.EC
    raise UnsupportedAlgorithmError(f"Unsupported key type {type(provider_key).__name__}")


def key_size_of(provider_key: PublicKeyTypes | PrivateKeyTypes) -> int:
    algorithm = algorithm_of(provider_key)
    if algorithm is KeyAlgorithm.RSA:
        return provider_key.key_size  # type: ignore[union-attr]
    elif algorithm is KeyAlgorithm.EC:
        _require_named_curve(provider_key)  # type: ignore[arg-type]
        return provider_key.curve.key_size  # type: ignore[union-attr]
    else:
        assert_never(algorithm)


def serialize_public_key(provider_key: PublicKeyTypes) -> bytes:
    algorithm = algorithm_of(provider_key)
    if algorithm is KeyAlgorithm.RSA:
        return provider_key.public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.PKCS1,
        )
    elif algorithm is KeyAlgorithm.EC:
        return provider_key.public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.UncompressedPoint,
        )
    else:
        assert_never(algorithm)


def serialize_private_key(provider_key: PrivateKeyTypes) -> bytes:
    # TraditionalOpenSSL DER is PKCS#1 for RSA and SEC1 for EC
    algorithm_of(provider_key)
    return provider_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )


def _require_named_curve(
    provider_key: ec.EllipticCurvePublicKey | ec.EllipticCurvePrivateKey,
) -> None:
    if type(provider_key.curve) is not EC_CURVES.get(provider_key.curve.key_size):
        raise UnsupportedAlgorithmError(f"Unsupported curve {provider_key.curve.name}")


def _try_der_public_key(data: bytes) -> PublicKeyTypes | None:
    try:
        return serialization.load_der_public_key(data)  # type: ignore[return-value]
    except (ValueError, UnsupportedAlgorithm):
        return None


def load_public_key(algorithm: KeyAlgorithm, data: bytes | bytearray) -> PublicKeyTypes:
    """Parse a public key in its canonical format.

    Raises:
        MalformedEncodingError: If the bytes are not a valid key structure.
        UnsupportedAlgorithmError: If the bytes hold a key of another algorithm.
    """
    algorithm = KeyAlgorithm(algorithm)
    data = bytes(data)

    if algorithm is KeyAlgorithm.RSA:
        provider_key = _try_der_public_key(data)
        if provider_key is None:
            if data[:1] == bytes([_UNCOMPRESSED_POINT_TAG]) and ec_key_size_for_point(len(data)):
                raise UnsupportedAlgorithmError("Data is an EC point, not an RSA public key")
            raise MalformedEncodingError("Invalid RSA public key encoding")
        if not isinstance(provider_key, rsa.RSAPublicKey):
            raise UnsupportedAlgorithmError(
                f"Expected an RSA public key, found {type(provider_key).__name__}"
            )
        return provider_key

    elif algorithm is KeyAlgorithm.EC:
        key_size = ec_key_size_for_point(len(data))
        if data[:1] != bytes([_UNCOMPRESSED_POINT_TAG]) or key_size is None:
            provider_key = _try_der_public_key(data)
            if isinstance(provider_key, ec.EllipticCurvePublicKey):
                _require_named_curve(provider_key)
                return provider_key
            if provider_key is not None:
                raise UnsupportedAlgorithmError(
                    f"Expected an EC public key, found {type(provider_key).__name__}"
                )
            raise MalformedEncodingError(
                f"Invalid EC public key encoding ({len(data)} bytes is not an uncompressed point)"
            )
        try:
            return ec.EllipticCurvePublicKey.from_encoded_point(curve_for_size(key_size), data)
        except ValueError as e:
            raise MalformedEncodingError(f"Invalid EC point: {e}") from e

    else:
        assert_never(algorithm)


def load_private_key(algorithm: KeyAlgorithm, data: bytes | bytearray) -> PrivateKeyTypes:
    """Parse a private key in its canonical format.

    ``data`` is passed to the provider as-is so a caller-owned buffer can be zeroed.

    Raises:
        MalformedEncodingError: If the bytes are not a valid key structure.
        UnsupportedAlgorithmError: If the bytes hold a key of another algorithm.
    """
    algorithm = KeyAlgorithm(algorithm)

    try:
        provider_key = serialization.load_der_private_key(data, password=None)
    except UnsupportedAlgorithm as e:
        raise UnsupportedAlgorithmError(f"Unsupported private key: {e}") from e
    except (ValueError, TypeError) as e:
        raise MalformedEncodingError(f"Invalid private key encoding: {e}") from e

    if algorithm is KeyAlgorithm.RSA:
        expected: type = rsa.RSAPrivateKey
    elif algorithm is KeyAlgorithm.EC:
        expected = ec.EllipticCurvePrivateKey
    else:
        assert_never(algorithm)

    if not isinstance(provider_key, expected):
        raise UnsupportedAlgorithmError(
            f"Expected an {algorithm.value.upper()} private key, "
            f"found {type(provider_key).__name__}"
        )
    if isinstance(provider_key, ec.EllipticCurvePrivateKey):
        _require_named_curve(provider_key)
    return provider_key  # type: ignore[return-value]
