"""SizeBand model - physical size classification rules."""

from sqlalchemy import JSON, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from shelfmark.models.base import Base, TimestampMixin

# Heights (mm) treated as "level" when a band does not list its own
DEFAULT_EQUAL_HEIGHTS: tuple[int, ...] = (205, 210, 215)


class SizeBand(Base, TimestampMixin):
    """Width band mapping a book's size to a barcode series colour.

    All measurements are whole millimetres. Bands are maintained by
    administrators and are read-only to the reservation core.
    """

    __tablename__ = "size_bands"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    min_width: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    max_width: Mapped[int | None] = mapped_column(Integer, nullable=True)
    height_threshold: Mapped[int] = mapped_column(Integer, nullable=False)
    equal_heights: Mapped[list[int]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list,
    )

    def level_heights(self) -> frozenset[int]:
        """Heights classified as position `l` for this band."""
        heights = [int(h) for h in (self.equal_heights or [])]
        return frozenset(heights or DEFAULT_EQUAL_HEIGHTS)

    def __repr__(self) -> str:
        return f"<SizeBand(id={self.id}, name='{self.name}', min_width={self.min_width})>"
