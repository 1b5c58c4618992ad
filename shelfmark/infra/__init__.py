"""Infrastructure - Database and logging."""

from shelfmark.infra.database import (
    close_db_engine,
    create_schema,
    get_db_session,
)
from shelfmark.infra.logging import get_logger, setup_logging

__all__ = [
    "get_db_session",
    "close_db_engine",
    "create_schema",
    "setup_logging",
    "get_logger",
]
