"""Error taxonomy for sizing, reservation and ledger operations.

Every error carries a stable `reason` code and the HTTP status it maps to,
so routes and the global exception handler never need a lookup table.
"""

from typing import Any


class ShelfmarkError(Exception):
    """Base class for all domain errors."""

    reason: str = "internal_error"
    status_code: int = 500

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


# -----------------------------------------------------------------------------
# Validation errors: raised before any transaction opens
# -----------------------------------------------------------------------------


class InvalidDimensions(ShelfmarkError):
    """Width/height missing, non-numeric or not positive."""

    reason = "invalid_dimensions"
    status_code = 400


class MalformedCode(ShelfmarkError):
    """Code is not `<letters><digits>`."""

    reason = "malformed_code"
    status_code = 400


class SeriesMismatch(ShelfmarkError):
    """Code belongs to a series the book's size does not allow."""

    reason = "series_mismatch"
    status_code = 400


class NoMatchingSizeRule(ShelfmarkError):
    """No size band covers the given width."""

    reason = "no_matching_size_rule"
    status_code = 422


# -----------------------------------------------------------------------------
# Storage errors: raised inside the transaction, trigger a rollback
# -----------------------------------------------------------------------------


class PoolExhausted(ShelfmarkError):
    """No AVAILABLE code left in the requested series (or its fallback)."""

    reason = "pool_exhausted"
    status_code = 409

    def __init__(self, series: str, allowed: list[str] | None = None) -> None:
        self.series = series
        self.allowed = allowed or [series]
        super().__init__(
            f"No barcodes available for series '{series}'",
            series=series,
            allowed=self.allowed,
        )


class CodeNotInPool(ShelfmarkError):
    """Requested code was never provisioned."""

    reason = "not_in_pool"
    status_code = 404

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Barcode '{code}' is not in the pool", code=code)


class CodeNotAvailable(ShelfmarkError):
    """Code exists but is currently taken; re-preview and retry."""

    reason = "not_available"
    status_code = 409

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Barcode '{code}' is not available", code=code)


class CodeAlreadyAssigned(CodeNotAvailable):
    """Code is ASSIGNED or referenced by an open assignment."""

    reason = "already_assigned"

    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.message = f"Barcode '{code}' is already assigned"
        self.args = (self.message,)


class BookNotFound(ShelfmarkError):
    reason = "book_not_found"
    status_code = 404

    def __init__(self, book_id: Any) -> None:
        self.book_id = book_id
        super().__init__(f"Book '{book_id}' not found", book_id=str(book_id))


class BookAlreadyRegistered(ShelfmarkError):
    """Book already holds an open barcode assignment."""

    reason = "book_already_registered"
    status_code = 409

    def __init__(self, book_id: Any) -> None:
        self.book_id = book_id
        super().__init__(f"Book '{book_id}' already has a barcode", book_id=str(book_id))


# -----------------------------------------------------------------------------
# Internal
# -----------------------------------------------------------------------------


class LedgerInconsistency(ShelfmarkError):
    """Barcode status and open assignments disagree.

    Needs manual reconciliation; never auto-corrected.
    """

    reason = "ledger_inconsistency"
    status_code = 500
