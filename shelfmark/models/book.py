"""Book model - catalog entry that holds at most one barcode at a time."""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from shelfmark.models.base import Base, TimestampMixin


class ReadingStatus(str, Enum):
    """Lifecycle state of a book in the catalog."""

    IN_STOCK = "in_stock"  # draft, no barcode yet
    IN_PROGRESS = "in_progress"  # registered, holds an open assignment


class Book(Base, TimestampMixin):
    """Catalog entry.

    Only the fields the registration flow needs are modelled here; the
    current barcode is read from the assignment ledger, not stored on the row.
    """

    __tablename__ = "books"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    author: Mapped[str | None] = mapped_column(String(300), nullable=True)
    isbn: Mapped[str | None] = mapped_column(String(13), nullable=True, index=True)
    pages: Mapped[int | None] = mapped_column(Integer, nullable=True)
    width_mm: Mapped[int | None] = mapped_column(Integer, nullable=True)
    height_mm: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reading_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ReadingStatus.IN_STOCK.value,
    )
    registered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    request_id: Mapped[str | None] = mapped_column(String(100), unique=True, nullable=True)

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}')>"
