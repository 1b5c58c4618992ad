"""Inventory administration - summary counters, listing and manual release."""

import math

from sqlalchemy import and_, case, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shelfmark.config import settings
from shelfmark.core.barcode_pool import BarcodePool
from shelfmark.infra.logging import get_logger
from shelfmark.models import Assignment, Barcode, BarcodeStatus, Book
from shelfmark.schemas.barcode import BarcodeItem, BarcodeListResponse, InventorySummary

logger = get_logger(__name__)


class InventoryAdminService:
    """Read-mostly views over the barcode inventory for administrators."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.pool = BarcodePool(session)

    async def summary(self) -> InventorySummary:
        """Count codes by status and flag status/ledger disagreements."""
        available = BarcodeStatus.AVAILABLE.value
        assigned = BarcodeStatus.ASSIGNED.value
        has_open = exists().where(
            Assignment.barcode_id == Barcode.id,
            Assignment.freed_at.is_(None),
        )

        stmt = select(
            func.count(Barcode.id),
            func.sum(case((Barcode.status == available, 1), else_=0)),
            func.sum(case((Barcode.status == assigned, 1), else_=0)),
            func.sum(case((Barcode.status.not_in([available, assigned]), 1), else_=0)),
            func.sum(case((and_(Barcode.status == assigned, ~has_open), 1), else_=0)),
            func.sum(case((and_(Barcode.status != assigned, has_open), 1), else_=0)),
        )
        row = (await self.session.execute(stmt)).one()

        open_stmt = select(func.count(Assignment.id)).where(Assignment.freed_at.is_(None))
        open_assignments = (await self.session.execute(open_stmt)).scalar_one()

        result = InventorySummary(
            total=row[0] or 0,
            available=row[1] or 0,
            assigned=row[2] or 0,
            other=row[3] or 0,
            open_assignments=open_assignments or 0,
            assigned_without_open=row[4] or 0,
            open_without_assigned=row[5] or 0,
        )

        if result.assigned_without_open or result.open_without_assigned:
            logger.error(
                "Ledger inconsistency detected",
                assigned_without_open=result.assigned_without_open,
                open_without_assigned=result.open_without_assigned,
            )
        return result

    async def list_barcodes(
        self,
        status: str | None = None,
        q: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> BarcodeListResponse:
        """Paginated inventory listing, ordered by code.

        Args:
            status: Exact status filter (case-insensitive)
            q: Substring search on the code
            page: 1-based page number
            limit: Page size, capped at `settings.admin_page_size_max`
        """
        page = max(1, page)
        limit = min(max(1, limit), settings.admin_page_size_max)

        filters = []
        if status and status.strip():
            filters.append(Barcode.status == status.strip().upper())
        if q and q.strip():
            filters.append(Barcode.code.ilike(f"%{q.strip()}%"))

        count_stmt = select(func.count(Barcode.id)).where(*filters)
        total_items = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(Barcode, Assignment.book_id, Assignment.assigned_at, Book.title)
            .outerjoin(
                Assignment,
                and_(Assignment.barcode_id == Barcode.id, Assignment.freed_at.is_(None)),
            )
            .outerjoin(Book, Book.id == Assignment.book_id)
            .where(*filters)
            .order_by(Barcode.code.asc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        rows = (await self.session.execute(stmt)).all()

        items = [
            BarcodeItem(
                id=barcode.id,
                code=barcode.code,
                series=barcode.series,
                status=barcode.status,
                rank_in_series=barcode.rank_in_series,
                size_band_id=barcode.size_band_id,
                book_id=book_id,
                book_title=book_title,
                assigned_at=assigned_at,
            )
            for barcode, book_id, assigned_at, book_title in rows
        ]

        return BarcodeListResponse(
            items=items,
            page=page,
            limit=limit,
            total_items=total_items,
            pages=max(1, math.ceil(total_items / limit)),
        )

    async def release(self, code_or_id: str | int) -> Barcode:
        """Force a code back to AVAILABLE.

        Open assignments are left untouched; the summary reports the
        resulting mismatch until the ledger is reconciled.
        """
        try:
            barcode = await self.pool.release(code_or_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Barcode released by admin", code=barcode.code)
        return barcode
