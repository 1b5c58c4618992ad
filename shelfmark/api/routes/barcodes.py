"""Barcode preview and validation endpoints.

Both are read-only: nothing is reserved until a book is registered.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from shelfmark.api.deps import CandidateQuery, DbSession, Dimensions
from shelfmark.schemas.barcode import PreviewResponse, ValidationResponse
from shelfmark.schemas.common import ErrorResponse
from shelfmark.services.barcode_service import BarcodeService

router = APIRouter()


@router.get(
    "/preview",
    response_model=PreviewResponse,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def preview_barcode(session: DbSession, query: Dimensions) -> PreviewResponse:
    """Suggest the best available code for a book size.

    Falls back to the alternate series when the primary one is empty.
    `candidate` is null when both are exhausted.
    """
    preview = await BarcodeService(session).preview(query.width, query.height, query.prefix)
    resolution = preview.resolution

    return PreviewResponse(
        series=preview.series,
        used_series=preview.used_series,
        candidate=preview.candidate,
        available_count=preview.available_count,
        fallback_used=preview.fallback_used,
        allowed=preview.allowed,
        size_band_id=resolution.size_band_id,
        position=resolution.position,
        width_mm=resolution.width_mm,
        height_mm=resolution.height_mm,
    )


@router.get("/validate", response_model=ValidationResponse)
async def validate_barcode(session: DbSession, query: CandidateQuery) -> JSONResponse:
    """Check a proposed code against the size rules and the pool.

    The result body is always returned; the status code reflects the
    first failed check (400, 404, 409 or 422).
    """
    result = await BarcodeService(session).validate(query.width, query.height, query.code)

    body = ValidationResponse(
        ok=result.ok,
        reason=result.reason,
        message=result.message,
        series=result.series,
        matched_series=result.matched_series,
        code=result.code,
        allowed=result.allowed,
    )
    return JSONResponse(status_code=result.status_code, content=body.model_dump(mode="json"))
