"""Error taxonomy for key management, codec, operation and store failures."""


class KeysmithError(Exception):
    """Base class for all keysmith errors."""

    pass


# Configuration


class InvalidConfigurationError(KeysmithError):
    """Raised when a key size, label or key pairing is not acceptable."""

    pass


class UnsupportedStoreTargetError(KeysmithError):
    """Raised when secure element storage is requested but not available."""

    pass


# Store interaction


class GenerationFailedError(KeysmithError):
    """Raised when key generation or its persistence fails."""

    pass


class SaveFailedError(KeysmithError):
    """Raised when saving a key pair or identity fails."""

    pass


class LoadFailedError(KeysmithError):
    """Raised when a key pair or identity cannot be loaded."""

    pass


# Codec


class MalformedEncodingError(KeysmithError):
    """Raised when encoded key or signature bytes are structurally invalid."""

    pass


class UnsupportedAlgorithmError(KeysmithError):
    """Raised when encoded bytes do not match the requested algorithm."""

    pass


# Operations


class UnsupportedOperationError(KeysmithError):
    """Raised when an operation is not valid for the key's algorithm or class."""

    pass


class PlaintextTooLargeError(KeysmithError):
    """Raised when plaintext exceeds the padding scheme's maximum."""

    pass


class DecryptionFailedError(KeysmithError):
    """Raised when decryption fails. Carries no further detail."""

    pass


# Store state


class NotExtractableError(KeysmithError):
    """Raised when exporting a key that never leaves its store."""

    pass


class CopyPrivateKeyFailedError(KeysmithError):
    """Raised when an identity's private key is no longer in the store."""

    pass


class CopyCertificateFailedError(KeysmithError):
    """Raised when an identity's certificate is no longer in the store."""

    pass


# Credential store client


class StoreError(KeysmithError):
    """Raised when a credential store call fails."""

    pass


class DuplicateEntryError(StoreError):
    """Raised when a record with the same label and class already exists."""

    def __init__(self, label: str, item_class: str):
        self.label = label
        self.item_class = item_class
        super().__init__(f"Duplicate {item_class} entry for label {label!r}")


class NotFoundError(StoreError):
    """Raised when no record matches the label and class."""

    def __init__(self, label: str, item_class: str):
        self.label = label
        self.item_class = item_class
        super().__init__(f"No {item_class} entry for label {label!r}")
