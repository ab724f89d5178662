"""Identity: a certificate bound to the private key stored under its label.

The binding is by label only. Whether the certificate's public key matches
the private key is not checked here (see ``KeyPair.matches_certificate``).
"""

import logging

from opentelemetry import trace

from keysmith.domain.models import StoreRecord
from keysmith.domain.states import Accessibility, ItemClass, KeyClass
from keysmith.errors import (
    CopyCertificateFailedError,
    CopyPrivateKeyFailedError,
    DuplicateEntryError,
    InvalidConfigurationError,
    LoadFailedError,
    SaveFailedError,
    StoreError,
)
from keysmith.identity.certificate import Certificate
from keysmith.keys.key import Key
from keysmith.keys.key_pair import KeyPair
from keysmith.metrics import keysmith_metrics
from keysmith.store.base import CredentialStore
from keysmith.store.rollback import Rollback

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def _save_tolerating_duplicate(
    store: CredentialStore,
    record: StoreRecord,
    accessibility: Accessibility,
    rollback: Rollback,
) -> None:
    try:
        store.save(record, accessibility)
    except DuplicateEntryError:
        logger.debug(
            "store_duplicate_tolerated",
            extra={"label": record.label, "item_class": str(record.item_class)},
        )
        return
    rollback.track(record.label, record.item_class)


class Identity:
    """A stored certificate and private key sharing one label.

    Use ``Identity.create`` or ``Identity.load`` rather than the constructor.
    """

    def __init__(self, store: CredentialStore, label: str) -> None:
        self._store = store
        self._label = label

    @property
    def label(self) -> str:
        return self._label

    @classmethod
    def create(
        cls,
        store: CredentialStore,
        certificate: Certificate,
        private_key: Key | KeyPair,
        accessibility: Accessibility = Accessibility.WHEN_UNLOCKED,
    ) -> "Identity":
        """Save the private key, then the certificate, and load the result.

        Entries that already exist are accepted as saved.

        Raises:
            InvalidConfigurationError: If ``private_key`` is not a private key.
            SaveFailedError: If a save fails; this call's writes are rolled back.
            LoadFailedError: If the saved identity cannot be loaded back.
        """
        if isinstance(private_key, KeyPair):
            private_key = private_key.private_key
        if private_key.key_class is not KeyClass.PRIVATE:
            raise InvalidConfigurationError("An identity requires a private key")

        label = certificate.label
        accessibility = Accessibility(accessibility)

        with tracer.start_as_current_span("Identity.create") as span:
            span.set_attribute("label", label)
            span.set_attribute("thumbprint", certificate.thumbprint())

            try:
                with Rollback(store, "identity") as rollback:
                    _save_tolerating_duplicate(
                        store,
                        private_key.to_record(label=label, accessibility=accessibility),
                        accessibility,
                        rollback,
                    )
                    _save_tolerating_duplicate(
                        store, certificate.to_record(accessibility), accessibility, rollback
                    )
            except (StoreError, LoadFailedError) as e:
                logger.error("identity_save_failed", extra={"label": label, "error": str(e)})
                raise SaveFailedError(f"Failed to save identity {label!r}: {e}") from e

            keysmith_metrics.record_identity_created()
            logger.info(
                "identity_created",
                extra={"label": label, "thumbprint": certificate.thumbprint()},
            )

            return cls.load(store, certificate)

    @classmethod
    def load(cls, store: CredentialStore, certificate: Certificate) -> "Identity":
        """Find the identity for the certificate's label.

        Raises:
            LoadFailedError: If no private key and certificate share the label.
        """
        label = certificate.label
        try:
            store.load_identity(label)
        except StoreError as e:
            raise LoadFailedError(f"No identity for label {label!r}") from e
        return cls(store, label)

    def private_key(self) -> Key:
        """Store-backed private key of this identity.

        Raises:
            CopyPrivateKeyFailedError: If the key is no longer in the store.
        """
        try:
            record = self._store.load(self._label, ItemClass.PRIVATE_KEY)
        except StoreError as e:
            raise CopyPrivateKeyFailedError(
                f"Private key for identity {self._label!r} is unavailable"
            ) from e
        return Key.from_record(record, self._store)

    def certificate(self) -> Certificate:
        """Certificate of this identity.

        Raises:
            CopyCertificateFailedError: If the certificate is no longer in the store.
        """
        try:
            record = self._store.load(self._label, ItemClass.CERTIFICATE)
        except StoreError as e:
            raise CopyCertificateFailedError(
                f"Certificate for identity {self._label!r} is unavailable"
            ) from e
        return Certificate.from_record(record)

    def delete(self) -> None:
        """Delete the certificate and private key entries."""
        with tracer.start_as_current_span("Identity.delete") as span:
            span.set_attribute("label", self._label)
            self._store.delete(self._label, ItemClass.CERTIFICATE)
            self._store.delete(self._label, ItemClass.PRIVATE_KEY)

    def __repr__(self) -> str:
        return f"Identity(label={self._label!r})"
