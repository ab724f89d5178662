from enum import StrEnum


class KeyAlgorithm(StrEnum):
    RSA = "rsa"
    EC = "ec"


class KeyClass(StrEnum):
    PUBLIC = "public"
    PRIVATE = "private"


class ItemClass(StrEnum):
    """Record classes held by a credential store."""

    PUBLIC_KEY = "public_key"
    PRIVATE_KEY = "private_key"
    CERTIFICATE = "certificate"


class Accessibility(StrEnum):
    """When a stored credential may be read. Passed through to the store."""

    WHEN_UNLOCKED = "when_unlocked"
    AFTER_FIRST_UNLOCK = "after_first_unlock"
    ALWAYS = "always"
    WHEN_PASSCODE_SET_THIS_DEVICE_ONLY = "when_passcode_set_this_device_only"
    WHEN_UNLOCKED_THIS_DEVICE_ONLY = "when_unlocked_this_device_only"
    AFTER_FIRST_UNLOCK_THIS_DEVICE_ONLY = "after_first_unlock_this_device_only"
    ALWAYS_THIS_DEVICE_ONLY = "always_this_device_only"


class Padding(StrEnum):
    PKCS1 = "pkcs1"
    OAEP = "oaep"  # SHA-1 digest and MGF1
    OAEP_SHA256 = "oaep_sha256"


class DigestAlgorithm(StrEnum):
    SHA1 = "sha1"
    SHA224 = "sha224"
    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"
