"""Credential store client interface."""

from abc import ABC, abstractmethod

from keysmith.domain.models import StoreRecord
from keysmith.domain.states import Accessibility, ItemClass, KeyAlgorithm
from keysmith.errors import UnsupportedStoreTargetError


class CredentialStore(ABC):
    """Label-indexed persistence for keys and certificates.

    Records are unique by (label, item_class). Each call is atomic on its own;
    nothing spans calls.
    """

    @abstractmethod
    def save(self, record: StoreRecord, accessibility: Accessibility) -> None:
        """Save a record.

        Raises:
            DuplicateEntryError: If (label, item_class) already exists.
            StoreError: On any other failure.
        """
        ...

    @abstractmethod
    def load(self, label: str, item_class: ItemClass) -> StoreRecord:
        """Load a record.

        Raises:
            NotFoundError: If no record matches.
            StoreError: On any other failure.
        """
        ...

    @abstractmethod
    def delete(self, label: str, item_class: ItemClass) -> None:
        """Delete a record. Deleting an absent record succeeds.

        Raises:
            StoreError: On failure.
        """
        ...

    def load_identity(self, label: str) -> tuple[StoreRecord, StoreRecord]:
        """Load the private key and certificate records sharing ``label``.

        Raises:
            NotFoundError: If either record is absent.
        """
        private_key = self.load(label, ItemClass.PRIVATE_KEY)
        certificate = self.load(label, ItemClass.CERTIFICATE)
        return private_key, certificate

    def supports_secure_element(self, algorithm: KeyAlgorithm, key_size: int) -> bool:
        return False

    def generate_secure_element_key(
        self,
        label: str,
        algorithm: KeyAlgorithm,
        key_size: int,
        accessibility: Accessibility,
    ) -> bytes:
        """Generate a private key inside the secure element and store it under ``label``.

        Returns:
            The encoded public key.
        """
        raise UnsupportedStoreTargetError(f"{type(self).__name__} has no secure element")
