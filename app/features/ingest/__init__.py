"""Ingest feature module: batch allocation and degrading row writes."""

from app.features.ingest.allocator import BatchAllocator
from app.features.ingest.routes import router
from app.features.ingest.schemas import (
    RowErrorOut,
    SheetUploadData,
    SheetUploadPartialData,
    SheetUploadRequest,
)
from app.features.ingest.service import IngestResult, ingest_sheet_rows, validate_sheet_data
from app.features.ingest.writer import ChunkedWriter, RowError, WriteResult

__all__ = [
    "BatchAllocator",
    "ChunkedWriter",
    "IngestResult",
    "RowError",
    "RowErrorOut",
    "SheetUploadData",
    "SheetUploadPartialData",
    "SheetUploadRequest",
    "WriteResult",
    "ingest_sheet_rows",
    "router",
    "validate_sheet_data",
]
