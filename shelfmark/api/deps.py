"""FastAPI dependencies for dependency injection.

Provides:
- Transactional database session
- Alias-aware query parameter models
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from shelfmark.infra.database import get_db_session
from shelfmark.infra.logging import get_logger
from shelfmark.schemas.barcode import DimensionsQuery, ValidateQuery

logger = get_logger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for the duration of a request.

    Yields:
        AsyncSession that commits when the request succeeds
    """
    async with get_db_session() as session:
        yield session


def _parse_query(model: type[DimensionsQuery], request: Request) -> DimensionsQuery:
    # Query() cannot express alias choices, so the raw parameters go
    # through the schema instead
    try:
        return model.model_validate(dict(request.query_params))
    except ValidationError as e:
        raise RequestValidationError(e.errors())


async def get_dimensions_query(request: Request) -> DimensionsQuery:
    return _parse_query(DimensionsQuery, request)


async def get_validate_query(request: Request) -> ValidateQuery:
    return _parse_query(ValidateQuery, request)


# Type aliases for cleaner annotations
DbSession = Annotated[AsyncSession, Depends(get_db)]
Dimensions = Annotated[DimensionsQuery, Depends(get_dimensions_query)]
CandidateQuery = Annotated[ValidateQuery, Depends(get_validate_query)]
