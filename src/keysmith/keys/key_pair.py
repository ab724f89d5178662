"""Key pair lifecycle: persist, delete, export and import."""

import logging
from functools import partial
from typing import TYPE_CHECKING

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from opentelemetry import trace

from keysmith.domain.states import Accessibility, ItemClass, KeyAlgorithm, KeyClass
from keysmith.errors import (
    DuplicateEntryError,
    InvalidConfigurationError,
    LoadFailedError,
    MalformedEncodingError,
    NotExtractableError,
    SaveFailedError,
    StoreError,
    UnsupportedAlgorithmError,
)
from keysmith.keys import codec, formats
from keysmith.keys.key import Key, zero
from keysmith.store.base import CredentialStore
from keysmith.store.rollback import Rollback

if TYPE_CHECKING:
    from keysmith.identity.certificate import Certificate

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def save_key_halves(
    store: CredentialStore,
    keys: list[Key],
    label: str,
    accessibility: Accessibility,
    rollback: Rollback,
    tolerate_duplicates: bool,
) -> None:
    """Save keys in order under one label, tracking each new entry for rollback.

    A rolled-back key gets its previous store binding back.
    """
    for key in keys:
        previous = (key.store, key.label, key.accessibility)
        try:
            key.save(store, accessibility=accessibility, label=label)
        except DuplicateEntryError:
            if not tolerate_duplicates:
                raise
            logger.debug(
                "store_duplicate_tolerated",
                extra={"label": label, "item_class": str(key.item_class)},
            )
            key.store, key.label = store, label
            continue
        rollback.track(label, key.item_class, undo=partial(_rebind, key, *previous))


def _rebind(
    key: Key,
    store: CredentialStore | None,
    label: str | None,
    accessibility: Accessibility,
) -> None:
    key.store, key.label, key.accessibility = store, label, accessibility


class KeyPair:
    """A public and private key generated together under one algorithm and size."""

    def __init__(
        self,
        public_key: Key,
        private_key: Key,
        store: CredentialStore | None = None,
    ) -> None:
        if public_key.key_class is not KeyClass.PUBLIC:
            raise InvalidConfigurationError("public_key must be a public key")
        if private_key.key_class is not KeyClass.PRIVATE:
            raise InvalidConfigurationError("private_key must be a private key")
        if (public_key.algorithm, public_key.key_size) != (
            private_key.algorithm,
            private_key.key_size,
        ):
            raise InvalidConfigurationError(
                "Key pair halves must share algorithm and key size: "
                f"{public_key!r} / {private_key!r}"
            )

        self.public_key = public_key
        self.private_key = private_key
        if store is None:
            store = private_key.store if private_key.store is not None else public_key.store
        self.store = store

    @classmethod
    def from_private_key(cls, private_key: Key, store: CredentialStore | None = None) -> "KeyPair":
        """Build a pair by deriving the public half from ``private_key``."""
        return cls(private_key.public_key(), private_key, store=store)

    @classmethod
    def load(cls, store: CredentialStore, label: str) -> "KeyPair":
        """Load a store-backed pair saved under ``label``.

        Raises:
            LoadFailedError: If either half is missing.
        """
        try:
            private_record = store.load(label, ItemClass.PRIVATE_KEY)
            public_record = store.load(label, ItemClass.PUBLIC_KEY)
        except StoreError as e:
            raise LoadFailedError(f"Failed to load key pair {label!r}: {e}") from e

        return cls(
            Key.from_record(public_record, store),
            Key.from_record(private_record, store),
            store=store,
        )

    @property
    def algorithm(self) -> KeyAlgorithm:
        return self.private_key.algorithm

    @property
    def key_size(self) -> int:
        return self.private_key.key_size

    @property
    def label(self) -> str | None:
        return self.private_key.label or self.public_key.label

    def persist(
        self,
        accessibility: Accessibility | None = None,
        label: str | None = None,
    ) -> None:
        """Save both halves. Existing entries count as already saved.

        Raises:
            InvalidConfigurationError: If there is no store or label.
            SaveFailedError: If a save fails; this call's writes are rolled back.
        """
        label = label or self.label
        if self.store is None or not label:
            raise InvalidConfigurationError("Persisting a key pair requires a store and a label")

        accessibility = Accessibility(accessibility or self.private_key.accessibility)

        with tracer.start_as_current_span("KeyPair.persist") as span:
            span.set_attribute("label", label)
            span.set_attribute("algorithm", str(self.algorithm))

            try:
                with Rollback(self.store, "key_pair") as rollback:
                    save_key_halves(
                        self.store,
                        [self.private_key, self.public_key],
                        label,
                        accessibility,
                        rollback,
                        tolerate_duplicates=True,
                    )
            except StoreError as e:
                logger.error("key_pair_persist_failed", extra={"label": label, "error": str(e)})
                raise SaveFailedError(f"Failed to persist key pair {label!r}: {e}") from e

            logger.info(
                "key_pair_persisted",
                extra={"label": label, "algorithm": str(self.algorithm), "key_size": self.key_size},
            )

    def delete(self) -> None:
        """Delete both stored halves. Absent entries are not an error.

        Raises:
            StoreError: The first store failure, after both deletions were attempted.
        """
        first_error: StoreError | None = None
        for key in (self.private_key, self.public_key):
            try:
                key.delete()
            except StoreError as e:
                first_error = first_error or e
        if first_error is not None:
            raise first_error

    def export_public_key(self) -> bytes:
        return codec.encode(self.public_key)

    def export_private_key(self) -> bytes:
        """Standard encoding of the private key.

        Raises:
            NotExtractableError: If the private key never leaves its store.
        """
        return codec.encode(self.private_key)

    def export(self, password: bytes) -> bytes:
        """Export the private key as password-encrypted PKCS#8 DER.

        Raises:
            NotExtractableError: If the private key never leaves its store.
        """
        if not self.private_key.extractable:
            raise NotExtractableError(f"Private key {self.label!r} is not extractable")
        if not password:
            raise InvalidConfigurationError("A password is required to export a key pair")

        with self.private_key.provider_key() as provider_key:
            return provider_key.private_bytes(  # type: ignore[union-attr]
                encoding=serialization.Encoding.DER,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.BestAvailableEncryption(password),
            )

    @classmethod
    def import_pkcs8(
        cls,
        data: bytes,
        password: bytes,
        store: CredentialStore | None = None,
    ) -> "KeyPair":
        """Import a pair from password-encrypted PKCS#8 produced by ``export``.

        Raises:
            MalformedEncodingError: If the data or password is wrong.
            UnsupportedAlgorithmError: If the key is neither RSA nor a supported curve.
        """
        buffer = bytearray(data)
        try:
            provider_key = serialization.load_der_private_key(buffer, password=password)
        except UnsupportedAlgorithm as e:
            raise UnsupportedAlgorithmError(f"Unsupported PKCS#8 key: {e}") from e
        except (ValueError, TypeError) as e:
            raise MalformedEncodingError(f"Failed to import PKCS#8 key: {e}") from e
        finally:
            zero(buffer)

        algorithm = formats.algorithm_of(provider_key)  # type: ignore[arg-type]
        private_key = codec.decode(
            formats.serialize_private_key(provider_key),  # type: ignore[arg-type]
            algorithm,
            KeyClass.PRIVATE,
        )
        return cls.from_private_key(private_key, store=store)

    def matches_certificate(self, certificate: "Certificate") -> bool:
        """Whether the certificate carries this pair's public key."""
        try:
            certificate_key = certificate.public_key()
        except UnsupportedAlgorithmError:
            return False
        return codec.encode(certificate_key) == codec.encode(self.public_key)

    def __repr__(self) -> str:
        return f"KeyPair({self.algorithm.value}-{self.key_size}, label={self.label!r})"
