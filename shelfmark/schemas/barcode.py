"""Barcode schemas for preview, validation and the admin inventory views."""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field

WIDTH_ALIASES = AliasChoices("width", "BBreite", "W", "w")
HEIGHT_ALIASES = AliasChoices("height", "BHoehe", "H", "h")
CODE_ALIASES = AliasChoices("barcode", "BMarkb", "BMark", "code")


class DimensionsQuery(BaseModel):
    """Book size in centimetres, as sent by the registration form.

    Values stay raw here (numbers or strings with a decimal comma); they
    are normalised to millimetres by the size resolver.
    """

    width: float | str | None = Field(default=None, validation_alias=WIDTH_ALIASES)
    height: float | str | None = Field(default=None, validation_alias=HEIGHT_ALIASES)
    prefix: str | None = Field(default=None, max_length=32)

    model_config = {"extra": "ignore"}


class ValidateQuery(DimensionsQuery):
    code: str | None = Field(default=None, validation_alias=CODE_ALIASES)


class PreviewResponse(BaseModel):
    """Read-only suggestion; nothing is reserved."""

    series: str = Field(description="Series expected from the size")
    used_series: str = Field(description="Series the candidate comes from")
    candidate: str | None = Field(default=None, description="Best available code, if any")
    available_count: int = Field(description="Available codes in used_series")
    fallback_used: bool = Field(default=False)
    allowed: list[str] = Field(default_factory=list)
    size_band_id: int
    position: str
    width_mm: int
    height_mm: int

    model_config = {"extra": "forbid"}


class ValidationResponse(BaseModel):
    ok: bool
    reason: str | None = None
    message: str | None = None
    series: str | None = None
    matched_series: str | None = None
    code: str | None = None
    allowed: list[str] = Field(default_factory=list)

    model_config = {"extra": "forbid"}


class BarcodeItem(BaseModel):
    """One inventory row with its current holder, if any."""

    id: int
    code: str
    series: str
    status: str
    rank_in_series: int | None = None
    size_band_id: int | None = None
    book_id: UUID | None = None
    book_title: str | None = None
    assigned_at: datetime | None = None

    model_config = {"extra": "forbid"}


class BarcodeListResponse(BaseModel):
    items: list[BarcodeItem] = Field(default_factory=list)
    page: int
    limit: int
    total_items: int
    pages: int

    model_config = {"extra": "forbid"}


class InventorySummary(BaseModel):
    """Inventory counters plus ledger consistency checks.

    `assigned_without_open` and `open_without_assigned` should both be zero;
    anything else needs manual reconciliation.
    """

    total: int
    available: int
    assigned: int
    other: int
    open_assignments: int
    assigned_without_open: int
    open_without_assigned: int

    model_config = {"extra": "forbid"}


class BarcodeReleaseResponse(BaseModel):
    code: str
    status: str

    model_config = {"extra": "forbid"}
