"""FastAPI application entry point.

Barcode inventory service: size-based series resolution, atomic code
reservation and the assignment ledger behind book registration.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shelfmark import __version__
from shelfmark.config import settings
from shelfmark.core.errors import ShelfmarkError
from shelfmark.infra.database import close_db_engine, create_schema, verify_db_connection
from shelfmark.infra.logging import get_logger, setup_logging
from shelfmark.schemas.common import ErrorResponse

# Import routers
from shelfmark.api.routes.admin import router as admin_router
from shelfmark.api.routes.barcodes import router as barcodes_router
from shelfmark.api.routes.books import router as books_router
from shelfmark.api.routes.health import router as health_router

# Setup logging first
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Startup:
    - Create missing tables and indexes (one-time migration step)
    - Verify database connection

    Shutdown:
    - Close database connections
    """
    logger.info("Shelfmark starting", environment=settings.environment, version=__version__)

    try:
        await create_schema()
    except Exception as e:
        logger.warning("Schema creation failed", error=str(e))

    db_ok = await verify_db_connection()
    if not db_ok:
        logger.warning("Database connection failed - will retry on first request")

    yield

    # Shutdown
    logger.info("Shelfmark shutting down")
    await close_db_engine()
    logger.info("Cleanup complete")


# Create FastAPI app
app = FastAPI(
    title="Shelfmark",
    description="Barcode inventory and size rules for the book catalog",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment == "dev" else None,
    redoc_url=None,
)

# CORS middleware (mainly for local development)
if settings.environment == "dev":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log requests with method, path and timing bound to the context."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        method=request.method,
        path=request.url.path,
    )
    start_time = time.time()

    response = await call_next(request)

    logger.info(
        "Request handled",
        status_code=response.status_code,
        duration_ms=int((time.time() - start_time) * 1000),
    )
    return response


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(ShelfmarkError)
async def shelfmark_exception_handler(request: Request, exc: ShelfmarkError) -> JSONResponse:
    """Render domain errors with their stable reason and status code."""
    if exc.status_code >= 500:
        logger.error("Request failed", reason=exc.reason, error=exc.message, detail=exc.detail)
    else:
        logger.info("Request rejected", reason=exc.reason, error=exc.message)

    body = ErrorResponse(
        error=exc.message,
        error_type=exc.reason,
        detail=exc.detail or None,
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions."""
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "error_type": type(exc).__name__,
        },
    )


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health_router, tags=["Health"])
app.include_router(barcodes_router, prefix="/barcodes", tags=["Barcodes"])
app.include_router(books_router, prefix="/books", tags=["Books"])
app.include_router(admin_router, prefix="/admin", tags=["Admin"])


# =============================================================================
# Root Endpoint
# =============================================================================


@app.get("/")
async def root() -> dict:
    """Root endpoint - basic service info."""
    return {
        "service": "Shelfmark",
        "version": __version__,
        "environment": settings.environment,
    }
