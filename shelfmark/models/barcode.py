"""Barcode model - one physical label in the inventory pool."""

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from shelfmark.core.codes import parse_code
from shelfmark.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from shelfmark.models.size_band import SizeBand


class BarcodeStatus(str, Enum):
    """Inventory status of a label."""

    AVAILABLE = "AVAILABLE"
    ASSIGNED = "ASSIGNED"


class Barcode(Base, TimestampMixin):
    """Pre-printed label such as `dgk001`.

    `series` is the letter prefix of `code` and is kept in sync by the
    `code` validator, so series matching never relies on LIKE patterns
    (which would let `ei` swallow `eik` codes).
    """

    __tablename__ = "barcodes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    series: Mapped[str] = mapped_column(String(24), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BarcodeStatus.AVAILABLE.value,
        index=True,
    )
    size_band_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("size_bands.id"),
        nullable=True,
        index=True,
    )
    rank_in_series: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Relationships
    size_band: Mapped["SizeBand | None"] = relationship("SizeBand", lazy="selectin")

    @validates("code")
    def _normalize_code(self, key: str, value: str) -> str:
        parsed = parse_code(value)
        self.series = parsed.series
        return parsed.code

    @property
    def is_available(self) -> bool:
        return self.status == BarcodeStatus.AVAILABLE.value

    def __repr__(self) -> str:
        return f"<Barcode(id={self.id}, code='{self.code}', status='{self.status}')>"
