"""Assignment model - open/closed periods binding a barcode to a book."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from shelfmark.models.base import Base

if TYPE_CHECKING:
    from shelfmark.models.barcode import Barcode


class Assignment(Base):
    """Ledger row: `barcode` held by `book_id` from `assigned_at` until `freed_at`.

    Rows are never deleted. `book_id` is intentionally not a foreign key so
    the history survives deletion of the book.
    """

    __tablename__ = "barcode_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    barcode_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("barcodes.id"),
        nullable=False,
        index=True,
    )
    code: Mapped[str] = mapped_column(String(32), nullable=False)
    book_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    freed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    barcode: Mapped["Barcode"] = relationship("Barcode", lazy="selectin")

    @property
    def is_open(self) -> bool:
        return self.freed_at is None

    def __repr__(self) -> str:
        return f"<Assignment(id={self.id}, code='{self.code}', book_id={self.book_id})>"


# At most one open assignment per code, and one per book
Index(
    "uq_barcode_assignments_open_barcode",
    Assignment.barcode_id,
    unique=True,
    postgresql_where=Assignment.freed_at.is_(None),
    sqlite_where=Assignment.freed_at.is_(None),
)
Index(
    "uq_barcode_assignments_open_book",
    Assignment.book_id,
    unique=True,
    postgresql_where=Assignment.freed_at.is_(None),
    sqlite_where=Assignment.freed_at.is_(None),
)
