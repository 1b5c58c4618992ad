"""Pydantic schemas for request/response validation."""

from shelfmark.schemas.barcode import (
    BarcodeItem,
    BarcodeListResponse,
    BarcodeReleaseResponse,
    DimensionsQuery,
    InventorySummary,
    PreviewResponse,
    ValidateQuery,
    ValidationResponse,
)
from shelfmark.schemas.book import BookCreate, BookDeleteResponse, BookRegistration, BookResponse
from shelfmark.schemas.common import ErrorResponse, HealthResponse

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "BarcodeItem",
    "BarcodeListResponse",
    "BarcodeReleaseResponse",
    "DimensionsQuery",
    "InventorySummary",
    "PreviewResponse",
    "ValidateQuery",
    "ValidationResponse",
    "BookCreate",
    "BookDeleteResponse",
    "BookRegistration",
    "BookResponse",
]
