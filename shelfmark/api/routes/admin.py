"""Admin endpoints for draft registration and the barcode inventory."""

from uuid import UUID

from fastapi import APIRouter, Body, Query

from shelfmark.api.deps import DbSession
from shelfmark.api.routes.books import to_book_response
from shelfmark.schemas.barcode import BarcodeListResponse, BarcodeReleaseResponse, InventorySummary
from shelfmark.schemas.book import BookRegistration, BookResponse
from shelfmark.schemas.common import ErrorResponse
from shelfmark.services.book_service import BookService
from shelfmark.services.inventory_admin import InventoryAdminService

router = APIRouter()


@router.post(
    "/books/{book_id}/register",
    response_model=BookResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def register_book(
    book_id: UUID,
    session: DbSession,
    payload: BookRegistration | None = Body(default=None),
) -> BookResponse:
    """Assign a barcode to an existing draft book."""
    record = await BookService(session).register_existing(book_id, payload or BookRegistration())
    return to_book_response(record)


@router.get("/barcodes/summary", response_model=InventorySummary)
async def barcode_summary(session: DbSession) -> InventorySummary:
    return await InventoryAdminService(session).summary()


@router.get("/barcodes", response_model=BarcodeListResponse)
async def list_barcodes(
    session: DbSession,
    status: str | None = None,
    q: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1),
) -> BarcodeListResponse:
    """List the inventory with the current holder of each code."""
    return await InventoryAdminService(session).list_barcodes(status=status, q=q, page=page, limit=limit)


@router.patch(
    "/barcodes/{code_or_id}/release",
    response_model=BarcodeReleaseResponse,
    responses={404: {"model": ErrorResponse}},
)
async def release_barcode(code_or_id: str, session: DbSession) -> BarcodeReleaseResponse:
    """Force a code back to AVAILABLE without touching the ledger."""
    barcode = await InventoryAdminService(session).release(code_or_id)
    return BarcodeReleaseResponse(code=barcode.code, status=barcode.status)
