"""Barcode code parsing, measurement normalisation and series helpers.

A code is `<series><digits>` where the series is a position letter
(`d`, `l`, `o`) followed by the colour name of a size band, e.g. `dgk001`.
Everything in this module is pure; nothing here touches the database.
"""

import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, DecimalException
from typing import Any

from shelfmark.config import settings
from shelfmark.core.errors import InvalidDimensions, MalformedCode

CODE_PATTERN = re.compile(r"^([a-z]+)(\d+)$", re.IGNORECASE)

POSITION_DOWN = "d"  # height at or below the band threshold
POSITION_LEVEL = "l"  # height is one of the band's level heights
POSITION_OTHER = "o"  # everything taller

# Position letters a fallback may apply to; `e` is the legacy spelling of `d`
_FALLBACK_PATTERN = re.compile(r"^([delo])(.+)$")


@dataclass(frozen=True)
class ParsedCode:
    """A code split into its letter prefix and numeric suffix."""

    series: str
    number: str

    @property
    def code(self) -> str:
        return f"{self.series}{self.number}"


def parse_code(raw: str | None) -> ParsedCode:
    """Split a code into series and number, lower-casing the series.

    Raises:
        MalformedCode: If the value is not letters followed by digits
    """
    value = (raw or "").strip()
    match = CODE_PATTERN.match(value)
    if not match:
        raise MalformedCode(
            f"Code must be <series><digits>, got '{value}'",
            code=value,
        )
    return ParsedCode(series=match.group(1).lower(), number=match.group(2))


def cm_to_mm(value: Any) -> int:
    """Convert a centimetre measurement to whole millimetres.

    Accepts numbers or numeric strings (a decimal comma is tolerated) and
    rounds half up, so 20.55 cm becomes 206 mm.

    Raises:
        InvalidDimensions: If the value is missing, not numeric, not positive
            or larger than `settings.max_dimension_cm`
    """
    if value is None or isinstance(value, bool):
        raise InvalidDimensions("Width and height are required", value=value)

    text = str(value).strip().replace(",", ".")
    try:
        cm = Decimal(text)
    except DecimalException:
        raise InvalidDimensions(f"Not a number: '{value}'", value=str(value))

    if not cm.is_finite() or cm <= 0:
        raise InvalidDimensions(f"Dimensions must be positive, got '{value}'", value=str(value))
    if cm > settings.max_dimension_cm:
        raise InvalidDimensions(
            f"Dimensions must not exceed {settings.max_dimension_cm} cm, got '{value}'",
            value=str(value),
        )

    try:
        return int((cm * 10).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except DecimalException:
        raise InvalidDimensions(f"Not a usable measurement: '{value}'", value=str(value))


def ensure_positive_mm(value: Any) -> int:
    """Validate a measurement that is already in millimetres."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidDimensions(f"Not a number: '{value}'", value=str(value))
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidDimensions(f"Not a number: '{value}'", value=str(value))
    if value <= 0:
        raise InvalidDimensions(f"Dimensions must be positive, got '{value}'", value=str(value))
    if value > settings.max_dimension_cm * 10:
        raise InvalidDimensions(
            f"Dimensions must not exceed {settings.max_dimension_cm * 10} mm, got '{value}'",
            value=str(value),
        )
    return int(value)


def classify_position(height_mm: int, height_threshold: int, level_heights: frozenset[int]) -> str:
    """Derive the position letter for a height within a band."""
    if height_mm in level_heights:
        return POSITION_LEVEL
    if height_mm <= height_threshold:
        return POSITION_DOWN
    return POSITION_OTHER


def alternate_series(primary: str | None) -> str | None:
    """Return the fallback series for `primary`, or None.

    Only a colour ending in a bare `i` has a twin: `ei` falls back to `eik`.
    `eik` and `ouk` have none, and fallbacks never chain.
    """
    match = _FALLBACK_PATTERN.match((primary or "").strip().lower())
    if not match:
        return None

    position, colour = match.groups()
    if colour.endswith("ik") or not colour.endswith("i"):
        return None
    return f"{position}{colour}k"


def allowed_series(primary: str) -> list[str]:
    """Primary series plus its fallback, in the order they are tried."""
    alternate = alternate_series(primary)
    return [primary] if alternate is None else [primary, alternate]
