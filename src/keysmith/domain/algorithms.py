"""Algorithm domains and the mapping of enumerated options to provider objects."""

from typing import assert_never

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric import padding as asym_padding

from keysmith.domain.states import DigestAlgorithm, KeyAlgorithm, Padding
from keysmith.errors import InvalidConfigurationError
from shared.config import settings

# Named curves by bit length
EC_CURVES: dict[int, type[ec.EllipticCurve]] = {
    192: ec.SECP192R1,
    256: ec.SECP256R1,
    384: ec.SECP384R1,
    521: ec.SECP521R1,
}

RSA_PUBLIC_EXPONENT = 65537

_DIGESTS: dict[DigestAlgorithm, type[hashes.HashAlgorithm]] = {
    DigestAlgorithm.SHA1: hashes.SHA1,
    DigestAlgorithm.SHA224: hashes.SHA224,
    DigestAlgorithm.SHA256: hashes.SHA256,
    DigestAlgorithm.SHA384: hashes.SHA384,
    DigestAlgorithm.SHA512: hashes.SHA512,
}


def validate_key_size(algorithm: KeyAlgorithm, key_size: int) -> None:
    """Check a bit length against the algorithm's domain.

    Raises:
        InvalidConfigurationError: If the size is outside the domain.
    """
    if isinstance(key_size, bool) or not isinstance(key_size, int):
        raise InvalidConfigurationError(f"Key size must be an integer, got {key_size!r}")

    if algorithm is KeyAlgorithm.RSA:
        if key_size < settings.MIN_RSA_KEY_SIZE or key_size % 8:
            raise InvalidConfigurationError(
                f"RSA key size must be a multiple of 8 and at least "
                f"{settings.MIN_RSA_KEY_SIZE}, got {key_size}"
            )
    elif algorithm is KeyAlgorithm.EC:
        if key_size not in EC_CURVES:
            raise InvalidConfigurationError(
                f"EC key size must be one of {sorted(EC_CURVES)}, got {key_size}"
            )
    else:
        assert_never(algorithm)


def curve_for_size(key_size: int) -> ec.EllipticCurve:
    """Return the named curve for an EC bit length."""
    try:
        return EC_CURVES[key_size]()
    except KeyError:
        raise InvalidConfigurationError(f"No named curve for {key_size} bits") from None


def ec_key_size_for_point(point_length: int) -> int | None:
    """Bit length of the curve whose uncompressed points have this length."""
    for key_size, curve in EC_CURVES.items():
        if point_length == 1 + 2 * ((curve.key_size + 7) // 8):
            return key_size
    return None


def hash_for(digest_algorithm: DigestAlgorithm) -> hashes.HashAlgorithm:
    return _DIGESTS[DigestAlgorithm(digest_algorithm)]()


def padding_for(padding: Padding) -> asym_padding.AsymmetricPadding:
    """Provider padding object for an encryption padding scheme."""
    padding = Padding(padding)
    if padding is Padding.PKCS1:
        return asym_padding.PKCS1v15()
    elif padding is Padding.OAEP:
        return asym_padding.OAEP(
            mgf=asym_padding.MGF1(algorithm=hashes.SHA1()),
            algorithm=hashes.SHA1(),
            label=None,
        )
    elif padding is Padding.OAEP_SHA256:
        return asym_padding.OAEP(
            mgf=asym_padding.MGF1(algorithm=hashes.SHA256()),
            algorithm=hashes.SHA256(),
            label=None,
        )
    else:
        assert_never(padding)


def padding_overhead(padding: Padding) -> int:
    """Bytes of the modulus consumed by the padding scheme."""
    padding = Padding(padding)
    if padding is Padding.PKCS1:
        return 11
    elif padding is Padding.OAEP:
        return 2 * hashes.SHA1.digest_size + 2
    elif padding is Padding.OAEP_SHA256:
        return 2 * hashes.SHA256.digest_size + 2
    else:
        assert_never(padding)
