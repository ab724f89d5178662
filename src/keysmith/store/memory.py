"""In-memory credential stores."""

import logging
import threading
from dataclasses import replace

from cryptography.hazmat.primitives.asymmetric import ec

from keysmith.domain.algorithms import curve_for_size
from keysmith.domain.models import StoreRecord
from keysmith.domain.states import Accessibility, ItemClass, KeyAlgorithm
from keysmith.errors import DuplicateEntryError, NotFoundError, UnsupportedStoreTargetError
from keysmith.keys import formats
from keysmith.metrics import keysmith_metrics
from keysmith.store.base import CredentialStore

logger = logging.getLogger(__name__)


class InMemoryCredentialStore(CredentialStore):
    """Dict-backed store. A lock makes each call atomic."""

    def __init__(self) -> None:
        self._items: dict[tuple[str, ItemClass], StoreRecord] = {}
        self._lock = threading.Lock()

    def save(self, record: StoreRecord, accessibility: Accessibility) -> None:
        stored = replace(
            record,
            item_class=ItemClass(record.item_class),
            accessibility=Accessibility(accessibility),
        )
        with self._lock:
            if stored.key in self._items:
                keysmith_metrics.record_store_operation("save", stored.item_class, "duplicate")
                raise DuplicateEntryError(stored.label, stored.item_class)
            self._items[stored.key] = stored

        keysmith_metrics.record_store_operation("save", stored.item_class, "ok")
        logger.debug(
            "store_item_saved",
            extra={"label": stored.label, "item_class": str(stored.item_class)},
        )

    def load(self, label: str, item_class: ItemClass) -> StoreRecord:
        item_class = ItemClass(item_class)
        with self._lock:
            record = self._items.get((label, item_class))

        if record is None:
            keysmith_metrics.record_store_operation("load", item_class, "not_found")
            raise NotFoundError(label, item_class)

        keysmith_metrics.record_store_operation("load", item_class, "ok")
        return replace(record)

    def delete(self, label: str, item_class: ItemClass) -> None:
        item_class = ItemClass(item_class)
        with self._lock:
            removed = self._items.pop((label, item_class), None)

        keysmith_metrics.record_store_operation(
            "delete", item_class, "ok" if removed else "not_found"
        )

    def __contains__(self, key: tuple[str, ItemClass]) -> bool:
        label, item_class = key
        with self._lock:
            return (label, ItemClass(item_class)) in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class SecureElementCredentialStore(InMemoryCredentialStore):
    """In-memory store with a simulated secure element.

    The element generates P-256 keys only. Keys generated inside it are marked
    non-extractable and are used in place by operations.
    """

    SUPPORTED_KEYS = frozenset({(KeyAlgorithm.EC, 256)})

    def supports_secure_element(self, algorithm: KeyAlgorithm, key_size: int) -> bool:
        return (KeyAlgorithm(algorithm), key_size) in self.SUPPORTED_KEYS

    def generate_secure_element_key(
        self,
        label: str,
        algorithm: KeyAlgorithm,
        key_size: int,
        accessibility: Accessibility,
    ) -> bytes:
        if not self.supports_secure_element(algorithm, key_size):
            raise UnsupportedStoreTargetError(
                f"Secure element cannot hold {KeyAlgorithm(algorithm).value.upper()}-{key_size} keys"
            )

        private_key = ec.generate_private_key(curve_for_size(key_size))
        self.save(
            StoreRecord(
                label=label,
                item_class=ItemClass.PRIVATE_KEY,
                data=formats.serialize_private_key(private_key),
                algorithm=KeyAlgorithm.EC,
                key_size=key_size,
                extractable=False,
                secure_element=True,
            ),
            accessibility,
        )
        logger.info(
            "secure_element_key_generated",
            extra={"label": label, "key_size": key_size},
        )
        return formats.serialize_public_key(private_key.public_key())
