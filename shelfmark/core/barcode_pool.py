"""Barcode pool - atomic reservation and release of inventory codes.

All methods run inside the caller's session and transaction. Reservation
uses `SELECT ... FOR UPDATE SKIP LOCKED` to pick a candidate and a
conditional `UPDATE ... WHERE status = 'AVAILABLE'` to claim it, so two
transactions can never both flip the same row.
"""

from sqlalchemy import exists, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from shelfmark.config import settings
from shelfmark.core.errors import CodeAlreadyAssigned, CodeNotAvailable, CodeNotInPool, PoolExhausted
from shelfmark.infra.logging import get_logger
from shelfmark.models import Assignment, Barcode, BarcodeStatus

logger = get_logger(__name__)


def _open_assignment_exists():
    return exists().where(
        Assignment.barcode_id == Barcode.id,
        Assignment.freed_at.is_(None),
    )


class BarcodePool:
    """Reserve, release and inspect barcodes in a single session."""

    def __init__(self, session: AsyncSession, max_attempts: int | None = None) -> None:
        self._session = session
        self._max_attempts = max_attempts or settings.reservation_max_attempts

    # =========================================================================
    # Queries
    # =========================================================================

    def _candidates(self, series: str, prefix: str | None = None) -> Select:
        stmt = (
            select(Barcode)
            .where(Barcode.status == BarcodeStatus.AVAILABLE.value)
            .where(Barcode.series == series.strip().lower())
            .where(~_open_assignment_exists())
        )
        if prefix:
            stmt = stmt.where(Barcode.code.startswith(prefix.strip().lower(), autoescape=True))

        return stmt.order_by(
            Barcode.rank_in_series.asc().nulls_last(),
            Barcode.code.asc(),
            Barcode.id.asc(),
        )

    async def find(self, code: str) -> Barcode | None:
        """Case-insensitive lookup without locking."""
        stmt = select(Barcode).where(func.lower(Barcode.code) == code.strip().lower())
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def has_open_assignment(self, barcode_id: int) -> bool:
        stmt = select(
            exists().where(
                Assignment.barcode_id == barcode_id,
                Assignment.freed_at.is_(None),
            )
        )
        return bool((await self._session.execute(stmt)).scalar())

    async def peek_best(self, series: str, prefix: str | None = None) -> Barcode | None:
        """Best candidate for a series, without locking or claiming it.

        Used for previews: the returned code is only a suggestion and may be
        taken by someone else before the caller registers.
        """
        stmt = self._candidates(series, prefix).limit(1)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def count_available(self, series: str) -> int:
        stmt = (
            select(func.count(Barcode.id))
            .where(Barcode.status == BarcodeStatus.AVAILABLE.value)
            .where(Barcode.series == series.strip().lower())
            .where(~_open_assignment_exists())
        )
        return int((await self._session.execute(stmt)).scalar_one())

    # =========================================================================
    # Mutations
    # =========================================================================

    async def _claim(self, barcode: Barcode) -> bool:
        """Flip AVAILABLE -> ASSIGNED only if nobody else did first."""
        result = await self._session.execute(
            update(Barcode)
            .where(Barcode.id == barcode.id)
            .where(Barcode.status == BarcodeStatus.AVAILABLE.value)
            .values(status=BarcodeStatus.ASSIGNED.value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False

        await self._session.refresh(barcode)
        return True

    async def reserve_best(self, series: str, prefix: str | None = None) -> Barcode:
        """Reserve the preferred available code of a series.

        Args:
            series: Full series such as "dgk" (compared case-insensitively)
            prefix: Optional extra constraint on the start of the code

        Returns:
            The claimed barcode, now ASSIGNED

        Raises:
            PoolExhausted: If no candidate is left, or every attempt lost its
                row to a concurrent reservation
        """
        series = series.strip().lower()

        for attempt in range(1, self._max_attempts + 1):
            stmt = (
                self._candidates(series, prefix)
                .limit(1)
                .with_for_update(skip_locked=True)
                .execution_options(populate_existing=True)
            )
            barcode = (await self._session.execute(stmt)).scalar_one_or_none()

            if barcode is None:
                logger.info("Barcode series exhausted", series=series, prefix=prefix)
                raise PoolExhausted(series)

            if await self._claim(barcode):
                logger.info(
                    "Barcode reserved",
                    code=barcode.code,
                    series=series,
                    attempt=attempt,
                )
                return barcode

            logger.debug("Lost barcode to concurrent reservation", code=barcode.code, attempt=attempt)

        logger.warning("Reservation attempts exhausted", series=series, attempts=self._max_attempts)
        raise PoolExhausted(series)

    async def reserve_exact(self, code: str) -> Barcode:
        """Reserve one specific code.

        Raises:
            CodeNotInPool: If the code was never provisioned
            CodeAlreadyAssigned: If it is taken or still held by an open assignment
            CodeNotAvailable: If a concurrent transaction claimed it first
        """
        stmt = (
            select(Barcode)
            .where(func.lower(Barcode.code) == code.strip().lower())
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        barcode = (await self._session.execute(stmt)).scalar_one_or_none()

        if barcode is None:
            raise CodeNotInPool(code)

        if not barcode.is_available:
            raise CodeAlreadyAssigned(barcode.code)

        if await self.has_open_assignment(barcode.id):
            logger.error(
                "Ledger inconsistency: AVAILABLE barcode has an open assignment",
                code=barcode.code,
                barcode_id=barcode.id,
            )
            raise CodeAlreadyAssigned(barcode.code)

        if not await self._claim(barcode):
            raise CodeNotAvailable(barcode.code)

        logger.info("Barcode reserved", code=barcode.code, series=barcode.series, exact=True)
        return barcode

    async def release(self, code_or_id: str | int) -> Barcode:
        """Mark a code AVAILABLE again.

        Idempotent: releasing an AVAILABLE code is a no-op. Open assignments
        are not touched; closing them is the ledger's job.

        Raises:
            CodeNotInPool: If the identifier matches nothing
        """
        if isinstance(code_or_id, int) or str(code_or_id).strip().isdigit():
            stmt = select(Barcode).where(Barcode.id == int(code_or_id))
        else:
            stmt = select(Barcode).where(func.lower(Barcode.code) == str(code_or_id).strip().lower())

        barcode = (
            await self._session.execute(stmt.with_for_update().execution_options(populate_existing=True))
        ).scalar_one_or_none()

        if barcode is None:
            raise CodeNotInPool(str(code_or_id))

        if barcode.status != BarcodeStatus.AVAILABLE.value:
            barcode.status = BarcodeStatus.AVAILABLE.value
            await self._session.flush()
            logger.info("Barcode released", code=barcode.code)

        return barcode
