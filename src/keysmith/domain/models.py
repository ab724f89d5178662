from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, LargeBinary, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from shared.database import Base

from .states import Accessibility, ItemClass, KeyAlgorithm


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StoreRecord:
    """One credential store entry, unique by (label, item_class)."""

    label: str
    item_class: ItemClass
    data: bytes
    algorithm: KeyAlgorithm | None = None
    key_size: int | None = None
    accessibility: Accessibility = Accessibility.WHEN_UNLOCKED
    extractable: bool = True
    secure_element: bool = False
    created_at: datetime = field(default_factory=utc_now)

    @property
    def key(self) -> tuple[str, ItemClass]:
        return (self.label, self.item_class)


class CredentialItem(Base):
    """Row of the database credential store."""

    __tablename__ = "credential_items"
    __table_args__ = (
        UniqueConstraint("label", "item_class", name="uq_credential_items_label_class"),
    )

    item_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    item_class: Mapped[str] = mapped_column(String(32), nullable=False)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    encrypted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    algorithm: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    key_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    accessibility: Mapped[str] = mapped_column(String(64), nullable=False)
    extractable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    secure_element: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
