"""Barcode Service - size resolution, reservation with fallback, preview.

This service composes the core components:
1. Resolve the expected series from the book's size
2. Reserve (or peek) the best code of that series
3. Fall back once to the alternate series when the primary is exhausted
"""

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from shelfmark.core.barcode_pool import BarcodePool
from shelfmark.core.codes import allowed_series, alternate_series
from shelfmark.core.errors import PoolExhausted
from shelfmark.core.size_rules import SizeResolution, SizeRuleResolver
from shelfmark.core.validation import ValidationGate, ValidationResult
from shelfmark.infra.logging import get_logger
from shelfmark.models import Barcode

logger = get_logger(__name__)


@dataclass
class Reservation:
    """A claimed barcode and the series it was taken from."""

    barcode: Barcode
    resolution: SizeResolution
    used_series: str

    @property
    def series(self) -> str:
        return self.resolution.series

    @property
    def fallback_used(self) -> bool:
        return self.used_series != self.resolution.series


@dataclass
class Preview:
    """Read-only suggestion for the registration form."""

    resolution: SizeResolution
    used_series: str
    candidate: str | None
    available_count: int
    allowed: list[str] = field(default_factory=list)

    @property
    def series(self) -> str:
        return self.resolution.series

    @property
    def fallback_used(self) -> bool:
        return self.used_series != self.resolution.series


class BarcodeService:
    """Service for resolving sizes to series and handing out codes."""

    def __init__(self, session: AsyncSession, pool: BarcodePool | None = None) -> None:
        self.session = session
        self.resolver = SizeRuleResolver(session)
        self.pool = pool or BarcodePool(session)

    async def reserve(self, resolution: SizeResolution, prefix: str | None = None) -> Reservation:
        """Reserve a code for an already resolved size.

        Tries the primary series, then its alternate once. Must run inside
        the caller's transaction.

        Raises:
            PoolExhausted: With the primary series and every series tried
        """
        primary = resolution.series

        try:
            barcode = await self.pool.reserve_best(primary, prefix)
            return Reservation(barcode=barcode, resolution=resolution, used_series=primary)
        except PoolExhausted:
            alternate = alternate_series(primary)
            if alternate is None:
                raise PoolExhausted(primary, [primary])

        logger.info("Primary series exhausted, trying fallback", series=primary, fallback=alternate)
        try:
            barcode = await self.pool.reserve_best(alternate, prefix)
        except PoolExhausted:
            raise PoolExhausted(primary, [primary, alternate])

        logger.info("Reserved from fallback series", series=primary, fallback=alternate, code=barcode.code)
        return Reservation(barcode=barcode, resolution=resolution, used_series=alternate)

    async def reserve_for_size(self, width_cm: Any, height_cm: Any, prefix: str | None = None) -> Reservation:
        resolution = await self.resolver.resolve(width_cm, height_cm)
        return await self.reserve(resolution, prefix)

    async def preview(self, width_cm: Any, height_cm: Any, prefix: str | None = None) -> Preview:
        """Suggest the code a registration would most likely receive.

        Never locks or claims anything; the candidate may be gone by the
        time the client registers, which is why registration re-validates.
        """
        resolution = await self.resolver.resolve(width_cm, height_cm)
        allowed = allowed_series(resolution.series)

        for series in allowed:
            barcode = await self.pool.peek_best(series, prefix)
            if barcode is not None:
                return Preview(
                    resolution=resolution,
                    used_series=series,
                    candidate=barcode.code,
                    available_count=await self.pool.count_available(series),
                    allowed=allowed,
                )

        logger.info("Preview found no candidate", series=resolution.series, allowed=allowed)
        return Preview(
            resolution=resolution,
            used_series=resolution.series,
            candidate=None,
            available_count=0,
            allowed=allowed,
        )

    async def validate(self, width_cm: Any, height_cm: Any, code: str | None) -> ValidationResult:
        gate = ValidationGate(self.resolver, self.pool)
        return await gate.validate_candidate(width_cm, height_cm, code)
