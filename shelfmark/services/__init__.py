"""Business logic services."""

from shelfmark.services.barcode_service import BarcodeService, Preview, Reservation
from shelfmark.services.book_service import BookRecord, BookService
from shelfmark.services.inventory_admin import InventoryAdminService

__all__ = [
    "BarcodeService",
    "BookRecord",
    "BookService",
    "InventoryAdminService",
    "Preview",
    "Reservation",
]
