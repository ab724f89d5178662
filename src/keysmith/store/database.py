"""Software credential store backed by SQLAlchemy."""

import logging

from opentelemetry import trace
from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from keysmith.domain.models import CredentialItem, StoreRecord
from keysmith.domain.states import Accessibility, ItemClass, KeyAlgorithm
from keysmith.errors import DuplicateEntryError, NotFoundError, StoreError
from keysmith.metrics import keysmith_metrics
from keysmith.store.base import CredentialStore
from keysmith.store.crypto import (
    StoreCryptoError,
    decrypt_material,
    encrypt_material,
    get_encryption_key,
)
from shared.config import settings
from shared.database import Base, create_session_factory, create_store_engine

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class DatabaseCredentialStore(CredentialStore):
    """Credential store persisting records in the ``credential_items`` table.

    Uniqueness of (label, item_class) is enforced by a table constraint, so a
    duplicate save surfaces as ``IntegrityError``. Private key material is
    Fernet-encrypted when an encryption key is configured.
    """

    def __init__(
        self,
        engine: Engine,
        encryption_key: bytes | None = None,
        create_schema: bool = True,
    ) -> None:
        self._engine = engine
        self._sessions = create_session_factory(engine)
        self._encryption_key = encryption_key

        if create_schema:
            Base.metadata.create_all(engine, tables=[CredentialItem.__table__])  # type: ignore[list-item]

    @classmethod
    def from_settings(cls) -> "DatabaseCredentialStore":
        """Build a store from DATABASE_URL and STORE_ENCRYPTION_KEY."""
        encryption_key = None
        if settings.STORE_ENCRYPTION_KEY:
            encryption_key = get_encryption_key(settings.STORE_ENCRYPTION_KEY)
        return cls(create_store_engine(settings.DATABASE_URL), encryption_key=encryption_key)

    @property
    def engine(self) -> Engine:
        return self._engine

    def _seal(self, record: StoreRecord) -> tuple[bytes, bool]:
        if self._encryption_key and record.item_class is ItemClass.PRIVATE_KEY:
            return encrypt_material(record.data, self._encryption_key), True
        return record.data, False

    def _unseal(self, item: CredentialItem) -> bytes:
        if not item.encrypted:
            return item.data
        if not self._encryption_key:
            raise StoreCryptoError(f"Record {item.label!r} is encrypted but no key is configured")
        return decrypt_material(item.data, self._encryption_key)

    def save(self, record: StoreRecord, accessibility: Accessibility) -> None:
        item_class = ItemClass(record.item_class)

        with tracer.start_as_current_span("DatabaseCredentialStore.save") as span:
            span.set_attribute("label", record.label)
            span.set_attribute("item_class", str(item_class))

            data, encrypted = self._seal(record)
            item = CredentialItem(
                label=record.label,
                item_class=item_class.value,
                data=data,
                encrypted=encrypted,
                algorithm=record.algorithm.value if record.algorithm else None,
                key_size=record.key_size,
                accessibility=Accessibility(accessibility).value,
                extractable=record.extractable,
                secure_element=record.secure_element,
                created_at=record.created_at,
            )

            try:
                with self._sessions() as session, session.begin():
                    session.add(item)
            except IntegrityError as e:
                keysmith_metrics.record_store_operation("save", item_class, "duplicate")
                raise DuplicateEntryError(record.label, item_class) from e
            except SQLAlchemyError as e:
                keysmith_metrics.record_store_operation("save", item_class, "error")
                logger.error(
                    "store_save_failed",
                    extra={"label": record.label, "item_class": str(item_class), "error": str(e)},
                )
                raise StoreError(f"Failed to save {item_class} {record.label!r}: {e}") from e

            keysmith_metrics.record_store_operation("save", item_class, "ok")

    def load(self, label: str, item_class: ItemClass) -> StoreRecord:
        item_class = ItemClass(item_class)

        with tracer.start_as_current_span("DatabaseCredentialStore.load") as span:
            span.set_attribute("label", label)
            span.set_attribute("item_class", str(item_class))

            try:
                with self._sessions() as session:
                    item = session.execute(
                        select(CredentialItem)
                        .where(CredentialItem.label == label)
                        .where(CredentialItem.item_class == item_class.value)
                    ).scalar_one_or_none()
            except SQLAlchemyError as e:
                keysmith_metrics.record_store_operation("load", item_class, "error")
                raise StoreError(f"Failed to load {item_class} {label!r}: {e}") from e

            if item is None:
                keysmith_metrics.record_store_operation("load", item_class, "not_found")
                raise NotFoundError(label, item_class)

            keysmith_metrics.record_store_operation("load", item_class, "ok")
            return StoreRecord(
                label=item.label,
                item_class=item_class,
                data=self._unseal(item),
                algorithm=KeyAlgorithm(item.algorithm) if item.algorithm else None,
                key_size=item.key_size,
                accessibility=Accessibility(item.accessibility),
                extractable=item.extractable,
                secure_element=item.secure_element,
                created_at=item.created_at,
            )

    def delete(self, label: str, item_class: ItemClass) -> None:
        item_class = ItemClass(item_class)

        with tracer.start_as_current_span("DatabaseCredentialStore.delete") as span:
            span.set_attribute("label", label)
            span.set_attribute("item_class", str(item_class))

            try:
                with self._sessions() as session, session.begin():
                    session.execute(
                        delete(CredentialItem)
                        .where(CredentialItem.label == label)
                        .where(CredentialItem.item_class == item_class.value)
                    )
            except SQLAlchemyError as e:
                keysmith_metrics.record_store_operation("delete", item_class, "error")
                raise StoreError(f"Failed to delete {item_class} {label!r}: {e}") from e

            keysmith_metrics.record_store_operation("delete", item_class, "ok")
