"""Assignment ledger - who held which barcode, and when.

The ledger is the only record of code ownership. Closing an assignment
stamps `freed_at` and releases the barcode back to the pool; rows are
never deleted.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shelfmark.core.barcode_pool import BarcodePool
from shelfmark.core.errors import LedgerInconsistency
from shelfmark.infra.logging import get_logger
from shelfmark.models import Assignment, Barcode

logger = get_logger(__name__)


class AssignmentLedger:
    """Opens and closes assignment periods in the caller's transaction."""

    def __init__(self, session: AsyncSession, pool: BarcodePool | None = None) -> None:
        self._session = session
        self._pool = pool or BarcodePool(session)

    async def open(self, book_id: uuid.UUID, barcode: Barcode) -> Assignment:
        """Record that `book_id` now holds `barcode`.

        Raises:
            LedgerInconsistency: If the code already has an open assignment
        """
        stmt = select(Assignment).where(
            Assignment.barcode_id == barcode.id,
            Assignment.freed_at.is_(None),
        )
        existing = (await self._session.execute(stmt)).scalars().first()
        if existing is not None:
            logger.error(
                "Ledger inconsistency: code already has an open assignment",
                code=barcode.code,
                held_by=str(existing.book_id),
                requested_by=str(book_id),
            )
            raise LedgerInconsistency(
                f"Barcode '{barcode.code}' already has an open assignment",
                code=barcode.code,
                book_id=str(existing.book_id),
            )

        assignment = Assignment(barcode_id=barcode.id, code=barcode.code, book_id=book_id)
        self._session.add(assignment)
        await self._session.flush()

        logger.info("Assignment opened", code=barcode.code, book_id=str(book_id))
        return assignment

    async def _close(self, assignments: list[Assignment]) -> list[str]:
        freed_at = datetime.now(timezone.utc)
        codes: list[str] = []

        for assignment in assignments:
            assignment.freed_at = freed_at
            await self._session.flush()
            await self._pool.release(assignment.barcode_id)
            codes.append(assignment.code)

        return codes

    async def close_all_open_for(self, book_id: uuid.UUID) -> list[str]:
        """Close every open assignment of a book and release its codes.

        Idempotent: a book without open assignments yields an empty list.

        Returns:
            Codes that were freed
        """
        stmt = (
            select(Assignment)
            .where(Assignment.book_id == book_id, Assignment.freed_at.is_(None))
            .order_by(Assignment.id)
            .with_for_update()
        )
        assignments = list((await self._session.execute(stmt)).scalars().all())
        codes = await self._close(assignments)

        if codes:
            logger.info("Assignments closed", book_id=str(book_id), codes=codes)
        return codes

    async def close_open_for(self, code: str) -> Assignment | None:
        """Close the open assignment of a single code, if there is one."""
        stmt = (
            select(Assignment)
            .where(func.lower(Assignment.code) == code.strip().lower(), Assignment.freed_at.is_(None))
            .with_for_update()
        )
        assignment = (await self._session.execute(stmt)).scalars().first()
        if assignment is None:
            return None

        await self._close([assignment])
        logger.info("Assignment closed", code=assignment.code, book_id=str(assignment.book_id))
        return assignment

    async def current_code_for(self, book_id: uuid.UUID) -> str | None:
        """Code currently held by a book, derived from its open assignment."""
        stmt = (
            select(Assignment.code)
            .where(Assignment.book_id == book_id, Assignment.freed_at.is_(None))
            .order_by(Assignment.assigned_at.desc(), Assignment.id.desc())
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

