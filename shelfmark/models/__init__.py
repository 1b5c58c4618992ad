"""SQLAlchemy models for the barcode inventory.

Size bands are read-only to the service; barcodes, assignments and books
are written inside request transactions.
"""

from shelfmark.models.assignment import Assignment
from shelfmark.models.barcode import Barcode, BarcodeStatus
from shelfmark.models.base import Base, TimestampMixin
from shelfmark.models.book import Book, ReadingStatus
from shelfmark.models.size_band import DEFAULT_EQUAL_HEIGHTS, SizeBand

__all__ = [
    "Base",
    "TimestampMixin",
    "Assignment",
    "Barcode",
    "BarcodeStatus",
    "Book",
    "ReadingStatus",
    "DEFAULT_EQUAL_HEIGHTS",
    "SizeBand",
]
