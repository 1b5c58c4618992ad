"""API routes module."""

from shelfmark.api.routes.admin import router as admin_router
from shelfmark.api.routes.barcodes import router as barcodes_router
from shelfmark.api.routes.books import router as books_router
from shelfmark.api.routes.health import router as health_router

__all__ = ["admin_router", "barcodes_router", "books_router", "health_router"]
