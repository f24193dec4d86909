"""Core infrastructure shared by the ingest and batches features.

Settings, the pooled database engine, structured logging, request
middleware and the error types that map to HTTP statuses.
"""

from app.core.config import Settings, get_settings
from app.core.database import Base, get_db
from app.core.exceptions import (
    AllocationInvariantError,
    DatabaseError,
    NotFoundError,
    SpartiError,
    StorageUnavailableError,
    ValidationError,
)
from app.core.logging import get_logger, request_id_ctx

__all__ = [
    "AllocationInvariantError",
    "Base",
    "DatabaseError",
    "NotFoundError",
    "Settings",
    "SpartiError",
    "StorageUnavailableError",
    "ValidationError",
    "get_db",
    "get_logger",
    "get_settings",
    "request_id_ctx",
]
