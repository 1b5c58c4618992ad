"""Book registration, lookup and deletion endpoints."""

from uuid import UUID

from fastapi import APIRouter, Response, status

from shelfmark.api.deps import DbSession
from shelfmark.schemas.book import BookCreate, BookDeleteResponse, BookResponse
from shelfmark.schemas.common import ErrorResponse
from shelfmark.services.book_service import BookRecord, BookService

router = APIRouter()


def to_book_response(record: BookRecord) -> BookResponse:
    book = record.book
    return BookResponse(
        id=book.id,
        title=book.title,
        author=book.author,
        isbn=book.isbn,
        pages=book.pages,
        width_mm=book.width_mm,
        height_mm=book.height_mm,
        reading_status=book.reading_status,
        registered_at=book.registered_at,
        barcode=record.code,
        series=record.series,
        fallback_used=record.fallback_used,
    )


@router.post(
    "",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def create_book(payload: BookCreate, session: DbSession, response: Response) -> BookResponse:
    """Register a book and assign it a barcode in one transaction.

    With `assign_barcode=false` a draft is stored instead. A repeated
    `request_id` returns the earlier book with status 200.
    """
    record = await BookService(session).register(payload)
    if not record.created:
        response.status_code = status.HTTP_200_OK
    return to_book_response(record)


@router.get("/{book_id}", response_model=BookResponse, responses={404: {"model": ErrorResponse}})
async def get_book(book_id: UUID, session: DbSession) -> BookResponse:
    record = await BookService(session).get(book_id)
    return to_book_response(record)


@router.delete("/{book_id}", response_model=BookDeleteResponse)
async def delete_book(book_id: UUID, session: DbSession) -> BookDeleteResponse:
    """Delete a book, closing its assignments and releasing its codes.

    Deleting an unknown or already deleted book returns an empty
    `freed_codes` list.
    """
    freed = await BookService(session).delete(book_id)
    return BookDeleteResponse(id=book_id, freed_codes=freed)
