"""Size rule resolution: physical width/height to a barcode series."""

from dataclasses import dataclass
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from shelfmark.core.codes import classify_position, cm_to_mm, ensure_positive_mm
from shelfmark.core.errors import NoMatchingSizeRule
from shelfmark.infra.logging import get_logger
from shelfmark.models import SizeBand

logger = get_logger(__name__)


@dataclass(frozen=True)
class SizeResolution:
    """Outcome of resolving a book's size.

    Attributes:
        size_band_id: Matched band
        series_name: Band colour, e.g. "gk"
        position: "d", "l" or "o"
        width_mm: Normalised width used for the lookup
        height_mm: Normalised height used for the position
    """

    size_band_id: int
    series_name: str
    position: str
    width_mm: int
    height_mm: int

    @property
    def series(self) -> str:
        """Full series string, e.g. "lgk"."""
        return f"{self.position}{self.series_name}"


class SizeRuleResolver:
    """Resolves dimensions against the stored size bands.

    Picks the band with the greatest `min_width` not above the width,
    skipping bands whose `max_width` is exceeded. Bands are read on every
    call; nothing is cached.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def resolve(self, width_cm: Any, height_cm: Any) -> SizeResolution:
        """Resolve centimetre measurements.

        Raises:
            InvalidDimensions: Before any query if inputs are unusable
            NoMatchingSizeRule: If no band covers the width
        """
        width_mm = cm_to_mm(width_cm)
        height_mm = cm_to_mm(height_cm)
        return await self.resolve_mm(width_mm, height_mm)

    async def resolve_mm(self, width_mm: int, height_mm: int) -> SizeResolution:
        """Resolve measurements that are already whole millimetres."""
        width_mm = ensure_positive_mm(width_mm)
        height_mm = ensure_positive_mm(height_mm)

        stmt = (
            select(SizeBand)
            .where(SizeBand.min_width <= width_mm)
            .where(or_(SizeBand.max_width.is_(None), SizeBand.max_width >= width_mm))
            .order_by(SizeBand.min_width.desc())
            .limit(1)
        )
        band = (await self._session.execute(stmt)).scalar_one_or_none()

        if band is None:
            logger.info("No size band for width", width_mm=width_mm, height_mm=height_mm)
            raise NoMatchingSizeRule(
                f"No size rule covers width {width_mm} mm",
                width_mm=width_mm,
                height_mm=height_mm,
            )

        position = classify_position(height_mm, band.height_threshold, band.level_heights())
        resolution = SizeResolution(
            size_band_id=band.id,
            series_name=band.name.lower(),
            position=position,
            width_mm=width_mm,
            height_mm=height_mm,
        )

        logger.debug(
            "Resolved size band",
            width_mm=width_mm,
            height_mm=height_mm,
            size_band_id=band.id,
            series=resolution.series,
        )
        return resolution
