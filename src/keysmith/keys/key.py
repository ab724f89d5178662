"""Key representation shared by every algorithm and storage backend.

A key is either resident, owning its canonical encoding, or store-backed,
holding only a label and item class in a credential store. Operations reach
the material through ``Key.material()``, which hands out a copy that is zeroed
when the scope exits.
"""

import hashlib
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from keysmith.domain.models import StoreRecord
from keysmith.domain.states import Accessibility, ItemClass, KeyAlgorithm, KeyClass
from keysmith.errors import (
    InvalidConfigurationError,
    LoadFailedError,
    StoreError,
    UnsupportedOperationError,
)
from keysmith.keys import formats

if TYPE_CHECKING:
    from keysmith.store.base import CredentialStore

logger = logging.getLogger(__name__)


def zero(buffer: bytearray) -> None:
    """Overwrite a buffer in place."""
    buffer[:] = bytes(len(buffer))


class Key:
    """One public or private key."""

    def __init__(
        self,
        algorithm: KeyAlgorithm,
        key_class: KeyClass,
        key_size: int,
        *,
        material: bytes | bytearray | None = None,
        store: "CredentialStore | None" = None,
        label: str | None = None,
        accessibility: Accessibility = Accessibility.WHEN_UNLOCKED,
        extractable: bool = True,
        secure_element: bool = False,
    ) -> None:
        if material is None and (store is None or label is None):
            raise InvalidConfigurationError("A key needs either material or a store reference")

        self.algorithm = KeyAlgorithm(algorithm)
        self.key_class = KeyClass(key_class)
        self.key_size = key_size
        self.store = store
        self.label = label
        self.accessibility = Accessibility(accessibility)
        self.extractable = extractable
        self.secure_element = secure_element
        self._material: bytearray | None = bytearray(material) if material is not None else None
        self._destroyed = False

    @classmethod
    def from_provider_key(
        cls,
        provider_key: formats.PublicKeyTypes | formats.PrivateKeyTypes,
        **kwargs,
    ) -> "Key":
        """Build a resident key from a ``cryptography`` key object."""
        if isinstance(provider_key, formats.PrivateKeyTypes):
            key_class = KeyClass.PRIVATE
            material = bytearray(formats.serialize_private_key(provider_key))
        else:
            key_class = KeyClass.PUBLIC
            material = bytearray(formats.serialize_public_key(provider_key))

        try:
            return cls(
                formats.algorithm_of(provider_key),
                key_class,
                formats.key_size_of(provider_key),
                material=material,
                **kwargs,
            )
        finally:
            zero(material)

    @classmethod
    def from_record(cls, record: StoreRecord, store: "CredentialStore") -> "Key":
        """Build a store-backed key referring to ``record``."""
        if record.item_class is ItemClass.PUBLIC_KEY:
            key_class = KeyClass.PUBLIC
        elif record.item_class is ItemClass.PRIVATE_KEY:
            key_class = KeyClass.PRIVATE
        else:
            raise InvalidConfigurationError(f"Record {record.label!r} is not a key")

        if record.algorithm is None or record.key_size is None:
            raise InvalidConfigurationError(f"Record {record.label!r} has no key attributes")

        return cls(
            record.algorithm,
            key_class,
            record.key_size,
            store=store,
            label=record.label,
            accessibility=record.accessibility,
            extractable=record.extractable,
            secure_element=record.secure_element,
        )

    @property
    def is_resident(self) -> bool:
        return self._material is not None

    @property
    def item_class(self) -> ItemClass:
        if self.key_class is KeyClass.PUBLIC:
            return ItemClass.PUBLIC_KEY
        return ItemClass.PRIVATE_KEY

    @contextmanager
    def material(self) -> Iterator[bytearray]:
        """Yield a copy of the canonical encoding, zeroed on exit.

        Raises:
            UnsupportedOperationError: If the key has been destroyed.
            LoadFailedError: If a store-backed key is no longer in its store.
        """
        if self._destroyed:
            raise UnsupportedOperationError("Key material has been destroyed")

        if self._material is not None:
            buffer = bytearray(self._material)
        else:
            assert self.store is not None and self.label is not None
            try:
                record = self.store.load(self.label, self.item_class)
            except StoreError as e:
                raise LoadFailedError(
                    f"Failed to load {self.item_class} {self.label!r}: {e}"
                ) from e
            buffer = bytearray(record.data)

        try:
            yield buffer
        finally:
            zero(buffer)

    @contextmanager
    def provider_key(self) -> Iterator[formats.PublicKeyTypes | formats.PrivateKeyTypes]:
        """Yield the ``cryptography`` key object for the duration of an operation."""
        with self.material() as buffer:
            if self.key_class is KeyClass.PUBLIC:
                yield formats.load_public_key(self.algorithm, buffer)
            else:
                yield formats.load_private_key(self.algorithm, buffer)

    def public_key(self) -> "Key":
        """Return the public half, deriving it from a private key."""
        if self.key_class is KeyClass.PUBLIC:
            return self

        with self.provider_key() as provider_key:
            return Key.from_provider_key(
                provider_key.public_key(),  # type: ignore[union-attr]
                accessibility=self.accessibility,
            )

    def fingerprint(self) -> bytes:
        """SHA-1 of the encoded public key."""
        with self.public_key().material() as buffer:
            return hashlib.sha1(buffer).digest()

    def to_record(
        self,
        label: str | None = None,
        accessibility: Accessibility | None = None,
    ) -> StoreRecord:
        label = label or self.label
        if not label:
            raise InvalidConfigurationError("A label is required to store a key")

        with self.material() as buffer:
            data = bytes(buffer)

        return StoreRecord(
            label=label,
            item_class=self.item_class,
            data=data,
            algorithm=self.algorithm,
            key_size=self.key_size,
            accessibility=Accessibility(accessibility or self.accessibility),
            extractable=self.extractable,
            secure_element=self.secure_element,
        )

    def save(
        self,
        store: "CredentialStore | None" = None,
        accessibility: Accessibility | None = None,
        label: str | None = None,
    ) -> None:
        """Save this key and bind it to the store and label.

        Raises:
            DuplicateEntryError: If the store already holds this label and class.
            StoreError: If the store call fails.
        """
        store = store if store is not None else self.store
        if store is None:
            raise InvalidConfigurationError("No credential store to save the key in")

        accessibility = Accessibility(accessibility or self.accessibility)
        record = self.to_record(label=label, accessibility=accessibility)
        store.save(record, accessibility)

        self.store = store
        self.label = record.label
        self.accessibility = accessibility

    def delete(self) -> None:
        """Delete the stored copy. Absent entries are not an error."""
        if self.store is None or self.label is None:
            return
        self.store.delete(self.label, self.item_class)

    def destroy(self) -> None:
        """Zero resident material. The key is unusable afterwards."""
        if self._material is not None:
            zero(self._material)
        self._destroyed = True

    def __repr__(self) -> str:
        backing = "resident" if self.is_resident else f"store:{self.label!r}"
        return (
            f"Key({self.algorithm.value}-{self.key_size}, {self.key_class.value}, {backing})"
        )
