"""Book schemas for registration, lookup and deletion."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from shelfmark.schemas.barcode import CODE_ALIASES, HEIGHT_ALIASES, WIDTH_ALIASES


class BookRegistration(BaseModel):
    """Barcode-related part of a registration.

    Legacy clients send `BBreite`/`BHoehe`/`BMarkb`; the aliases are mapped
    here and nowhere else.
    """

    width: float | str | None = Field(default=None, validation_alias=WIDTH_ALIASES)
    height: float | str | None = Field(default=None, validation_alias=HEIGHT_ALIASES)
    barcode: str | None = Field(
        default=None,
        validation_alias=CODE_ALIASES,
        description="Previewed code to reserve exactly; best available is used when omitted",
    )
    prefix: str | None = Field(default=None, max_length=32)

    model_config = {"extra": "ignore"}

    @field_validator("barcode", "prefix")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class BookCreate(BookRegistration):
    """Request payload for POST /books."""

    title: str | None = Field(default=None, max_length=500)
    author: str | None = Field(default=None, max_length=300)
    isbn: str | None = Field(default=None, max_length=13)
    pages: int | None = Field(default=None, ge=1)
    assign_barcode: bool = Field(
        default=True,
        description="False stores a draft without reserving a code",
    )
    request_id: str | None = Field(
        default=None,
        max_length=100,
        description="Client key that makes retries of the same registration idempotent",
    )


class BookResponse(BaseModel):
    id: UUID
    title: str | None = None
    author: str | None = None
    isbn: str | None = None
    pages: int | None = None
    width_mm: int | None = None
    height_mm: int | None = None
    reading_status: str
    registered_at: datetime | None = None
    barcode: str | None = Field(default=None, description="Code currently held by the book")
    series: str | None = Field(default=None, description="Series expected from the size")
    fallback_used: bool = False

    model_config = {"extra": "forbid"}


class BookDeleteResponse(BaseModel):
    id: UUID
    freed_codes: list[str] = Field(default_factory=list)

    model_config = {"extra": "forbid"}
