"""Book Service - registration and deletion of catalog entries.

Registration is all-or-nothing: the book row, the barcode reservation and
the ledger entry are written in one transaction. Deletion closes the
book's assignments and releases its codes before removing the row.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shelfmark.core.barcode_pool import BarcodePool
from shelfmark.core.codes import allowed_series, cm_to_mm, parse_code
from shelfmark.core.errors import (
    BookAlreadyRegistered,
    BookNotFound,
    InvalidDimensions,
    NoMatchingSizeRule,
    SeriesMismatch,
)
from shelfmark.core.ledger import AssignmentLedger
from shelfmark.core.size_rules import SizeResolution
from shelfmark.infra.logging import get_logger
from shelfmark.models import Barcode, Book, ReadingStatus
from shelfmark.schemas.book import BookCreate, BookRegistration
from shelfmark.services.barcode_service import BarcodeService

logger = get_logger(__name__)


@dataclass
class BookRecord:
    """A book together with the code it currently holds."""

    book: Book
    code: str | None = None
    series: str | None = None
    fallback_used: bool = False
    created: bool = True


def _dimensions_mm(width: Any, height: Any) -> tuple[int | None, int | None]:
    """Normalise optional cm inputs; both or neither must be given."""
    if width is None and height is None:
        return None, None
    if width is None or height is None:
        raise InvalidDimensions("Width and height must be given together")
    return cm_to_mm(width), cm_to_mm(height)


class BookService:
    """Service for registering, reading and deleting books."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.pool = BarcodePool(session)
        self.ledger = AssignmentLedger(session, self.pool)
        self.barcodes = BarcodeService(session, self.pool)

    # =========================================================================
    # Reads
    # =========================================================================

    async def _find_book(self, book_id: uuid.UUID, lock: bool = False) -> Book | None:
        stmt = select(Book).where(Book.id == book_id)
        if lock:
            stmt = stmt.with_for_update()
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def _get_book(self, book_id: uuid.UUID, lock: bool = False) -> Book:
        book = await self._find_book(book_id, lock=lock)
        if book is None:
            raise BookNotFound(book_id)
        return book

    async def _record_for(self, book: Book) -> BookRecord:
        """Rebuild the record of a stored book from its open assignment.

        The expected series is re-resolved from the stored size, so
        `fallback_used` is True when the held code came from the alternate.
        """
        record = BookRecord(book=book, created=False)
        record.code = await self.ledger.current_code_for(book.id)
        if record.code is None or book.width_mm is None or book.height_mm is None:
            return record

        try:
            resolution = await self.barcodes.resolver.resolve_mm(book.width_mm, book.height_mm)
        except NoMatchingSizeRule:
            logger.warning("Stored size no longer matches a size band", book_id=str(book.id), code=record.code)
            return record

        record.series = resolution.series
        record.fallback_used = parse_code(record.code).series != resolution.series
        return record

    async def get(self, book_id: uuid.UUID) -> BookRecord:
        book = await self._get_book(book_id)
        return await self._record_for(book)

    async def _find_by_request_id(self, request_id: str) -> Book | None:
        stmt = select(Book).where(Book.request_id == request_id)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    # =========================================================================
    # Registration
    # =========================================================================

    def _check_exact_code(self, code: str, resolution: SizeResolution) -> str:
        parsed = parse_code(code)
        allowed = allowed_series(resolution.series)
        if parsed.series not in allowed:
            raise SeriesMismatch(
                f"Code series '{parsed.series}' does not match expected {allowed}",
                series=parsed.series,
                allowed=allowed,
            )
        return parsed.code

    async def _assign(
        self,
        record: BookRecord,
        resolution: SizeResolution,
        code: str | None,
        prefix: str | None,
    ) -> None:
        book = record.book

        barcode: Barcode
        if code is not None:
            barcode = await self.pool.reserve_exact(code)
            used_series = barcode.series
        else:
            reservation = await self.barcodes.reserve(resolution, prefix)
            barcode = reservation.barcode
            used_series = reservation.used_series

        await self.ledger.open(book.id, barcode)

        book.reading_status = ReadingStatus.IN_PROGRESS.value
        book.registered_at = datetime.now(timezone.utc)

        record.code = barcode.code
        record.series = resolution.series
        record.fallback_used = used_series != resolution.series

    async def _replay(self, request_id: str) -> BookRecord | None:
        existing = await self._find_by_request_id(request_id)
        if existing is None:
            return None
        logger.info("Registration replayed", request_id=request_id, book_id=str(existing.id))
        return await self._record_for(existing)

    async def register(self, payload: BookCreate) -> BookRecord:
        """Create a book and, unless it is a draft, assign it a barcode.

        Args:
            payload: Registration request

        Returns:
            BookRecord; `created` is False when `request_id` matched an
            earlier registration

        Raises:
            InvalidDimensions, MalformedCode: Before anything is written
            NoMatchingSizeRule, SeriesMismatch: Before anything is written
            PoolExhausted, CodeNotInPool, CodeAlreadyAssigned: Rolled back
        """
        width_mm, height_mm = _dimensions_mm(payload.width, payload.height)
        if payload.assign_barcode and width_mm is None:
            raise InvalidDimensions("Width and height are required to assign a barcode")
        if payload.barcode is not None:
            parse_code(payload.barcode)

        try:
            if payload.request_id:
                replayed = await self._replay(payload.request_id)
                if replayed is not None:
                    return replayed

            resolution = None
            code = None
            if payload.assign_barcode:
                resolution = await self.barcodes.resolver.resolve_mm(width_mm, height_mm)
                if payload.barcode is not None:
                    code = self._check_exact_code(payload.barcode, resolution)

            book = Book(
                id=uuid.uuid4(),
                title=payload.title,
                author=payload.author,
                isbn=payload.isbn,
                pages=payload.pages,
                width_mm=width_mm,
                height_mm=height_mm,
                reading_status=ReadingStatus.IN_STOCK.value,
                request_id=payload.request_id,
            )
            self.session.add(book)
            try:
                await self.session.flush()
            except IntegrityError:
                if not payload.request_id:
                    raise
                # A concurrent registration with the same request_id won the insert
                await self.session.rollback()
                replayed = await self._replay(payload.request_id)
                if replayed is None:
                    raise
                return replayed

            record = BookRecord(book=book)
            if resolution is not None:
                await self._assign(record, resolution, code, payload.prefix)

            await self.session.commit()

        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Book registered" if record.code else "Draft book created",
            book_id=str(book.id),
            code=record.code,
            series=record.series,
            fallback_used=record.fallback_used,
        )
        return record

    async def register_existing(self, book_id: uuid.UUID, payload: BookRegistration) -> BookRecord:
        """Assign a barcode to a draft book.

        Dimensions default to the ones stored on the book.

        Raises:
            BookNotFound: If the book does not exist
            BookAlreadyRegistered: If it already holds a code
            InvalidDimensions: If neither the payload nor the book has a size
        """
        width_mm, height_mm = _dimensions_mm(payload.width, payload.height)
        if payload.barcode is not None:
            parse_code(payload.barcode)

        try:
            book = await self._get_book(book_id, lock=True)
            if await self.ledger.current_code_for(book.id) is not None:
                raise BookAlreadyRegistered(book.id)

            if width_mm is None:
                width_mm, height_mm = book.width_mm, book.height_mm
            if width_mm is None or height_mm is None:
                raise InvalidDimensions("Width and height are required to assign a barcode")

            resolution = await self.barcodes.resolver.resolve_mm(width_mm, height_mm)
            code = None
            if payload.barcode is not None:
                code = self._check_exact_code(payload.barcode, resolution)

            book.width_mm, book.height_mm = width_mm, height_mm
            record = BookRecord(book=book, created=False)
            await self._assign(record, resolution, code, payload.prefix)
            await self.session.commit()

        except Exception:
            await self.session.rollback()
            raise

        logger.info("Draft book registered", book_id=str(book.id), code=record.code)
        return record

    # =========================================================================
    # Deletion
    # =========================================================================

    async def delete(self, book_id: uuid.UUID) -> list[str]:
        """Delete a book after closing its assignments.

        Deleting a book that is already gone is a successful no-op; any
        assignment still open for its id is closed all the same.

        Returns:
            Codes released back to the pool
        """
        try:
            book = await self._find_book(book_id, lock=True)
            freed = await self.ledger.close_all_open_for(book_id)
            if book is not None:
                await self.session.delete(book)
            await self.session.commit()

        except Exception:
            await self.session.rollback()
            raise

        if book is None:
            logger.info("Book already deleted", book_id=str(book_id), freed_codes=freed)
        else:
            logger.info("Book deleted", book_id=str(book_id), freed_codes=freed)
        return freed
