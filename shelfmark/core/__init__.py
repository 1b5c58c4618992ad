"""Core module - Code parsing, size rules, barcode pool and assignment ledger.

Only the pure helpers are re-exported here; the database-backed components
are imported from their modules so that models can depend on `codes`.
"""

from shelfmark.core.codes import (
    ParsedCode,
    allowed_series,
    alternate_series,
    classify_position,
    cm_to_mm,
    parse_code,
)
from shelfmark.core.errors import ShelfmarkError

__all__ = [
    "ParsedCode",
    "ShelfmarkError",
    "allowed_series",
    "alternate_series",
    "classify_position",
    "cm_to_mm",
    "parse_code",
]
