"""Validation gate for client-proposed barcodes.

A previewed code may be stale by the time the client submits it, so the
gate re-checks size rules, series membership and availability. Checks run
in a fixed order and the first failure wins; malformed or out-of-series
codes are rejected without touching the pool.
"""

from dataclasses import dataclass, field
from typing import Any

from shelfmark.core.barcode_pool import BarcodePool
from shelfmark.core.codes import allowed_series, parse_code
from shelfmark.core.errors import (
    CodeNotAvailable,
    CodeNotInPool,
    InvalidDimensions,
    MalformedCode,
    NoMatchingSizeRule,
    SeriesMismatch,
    ShelfmarkError,
)
from shelfmark.core.size_rules import SizeRuleResolver
from shelfmark.infra.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ValidationResult:
    """Outcome of validating a proposed code.

    `reason` is None on success, otherwise the stable reason string of the
    first failed check. `status_code` is the HTTP status that reason maps to.
    """

    ok: bool
    reason: str | None = None
    message: str | None = None
    status_code: int = 200
    series: str | None = None
    matched_series: str | None = None
    code: str | None = None
    allowed: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: ShelfmarkError, **values: Any) -> "ValidationResult":
        return cls(
            ok=False,
            reason=error.reason,
            message=error.message,
            status_code=error.status_code,
            **values,
        )


class ValidationGate:
    """Re-validates a proposed code against size rules and the pool."""

    def __init__(self, resolver: SizeRuleResolver, pool: BarcodePool) -> None:
        self._resolver = resolver
        self._pool = pool

    async def validate_candidate(self, width: Any, height: Any, code: str | None) -> ValidationResult:
        # 1. expected series from the book's size
        try:
            resolution = await self._resolver.resolve(width, height)
        except (InvalidDimensions, NoMatchingSizeRule) as e:
            return ValidationResult.failure(e, code=code)

        # 2. primary plus fallback
        primary = resolution.series
        allowed = allowed_series(primary)

        # 3. shape of the code
        try:
            parsed = parse_code(code)
        except MalformedCode as e:
            return ValidationResult.failure(e, series=primary, code=code, allowed=allowed)

        # 4. series membership
        if parsed.series not in allowed:
            error = SeriesMismatch(
                f"Code series '{parsed.series}' does not match expected {allowed}",
                series=parsed.series,
                allowed=allowed,
            )
            return ValidationResult.failure(error, series=primary, code=parsed.code, allowed=allowed)

        # 5. provisioned at all
        barcode = await self._pool.find(parsed.code)
        if barcode is None:
            return ValidationResult.failure(
                CodeNotInPool(parsed.code),
                series=primary,
                matched_series=parsed.series,
                code=parsed.code,
                allowed=allowed,
            )

        # 6. still free
        if not barcode.is_available or await self._pool.has_open_assignment(barcode.id):
            return ValidationResult.failure(
                CodeNotAvailable(barcode.code),
                series=primary,
                matched_series=parsed.series,
                code=barcode.code,
                allowed=allowed,
            )

        logger.debug("Proposed code validated", code=barcode.code, series=primary)
        return ValidationResult(
            ok=True,
            series=primary,
            matched_series=parsed.series,
            code=barcode.code,
            allowed=allowed,
        )
