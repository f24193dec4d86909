"""Ingest API routes for spreadsheet uploads."""

import time

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from app.core.logging import get_logger
from app.features.data_platform.store import RowStoreProtocol, get_row_store
from app.features.ingest.schemas import (
    RowErrorOut,
    SheetUploadData,
    SheetUploadPartialData,
    SheetUploadRequest,
)
from app.features.ingest.service import ingest_sheet_rows, validate_sheet_data
from app.shared.schemas import ApiResponse
from app.shared.utils import success_response

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["ingest"])


@router.post(
    "/upload-sheet-data",
    response_model=None,
    status_code=status.HTTP_200_OK,
    summary="Store a batch of spreadsheet rows",
    description="""
Store all rows of one spreadsheet upload under a newly allocated batch id.

Rows keep their order: row *i* of `sheetData` is stored with `rowNumber = i + 1`.

**Partial Success:** rows the database rejects are reported individually
and do not stop the remaining rows. When any row failed the response is
**207** and `data.errors` lists each failed row. `success` stays `true`:
the batch id has been consumed and the other rows are stored.

**Not idempotent:** submitting the same rows twice creates two batches.
""",
    responses={
        200: {"model": ApiResponse[SheetUploadData], "description": "All rows stored"},
        207: {
            "model": ApiResponse[SheetUploadPartialData],
            "description": "Some rows could not be stored",
        },
    },
)
async def upload_sheet_data(
    payload: SheetUploadRequest | None = Body(default=None),
    store: RowStoreProtocol = Depends(get_row_store),
) -> JSONResponse:
    """Store uploaded sheet rows.

    Args:
        payload: Request body with ``sheetData``.
        store: Row store from dependency.

    Returns:
        200 with batch id and count, or 207 with per-row errors.

    Raises:
        ValidationError: If ``sheetData`` is missing, empty or malformed.
        StorageUnavailableError: If the database cannot be reached.
    """
    start_time = time.perf_counter()

    rows = validate_sheet_data(payload.sheet_data if payload is not None else None)

    logger.info(
        "ingest.sheet_data.request_received",
        row_count=len(rows),
        first_row_keys=sorted(rows[0].keys())[:20],
    )

    result = await ingest_sheet_rows(store, rows)
    duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

    if result.has_errors:
        logger.warning(
            "ingest.sheet_data.request_completed_with_errors",
            batch_id=result.batch_id,
            inserted=result.inserted,
            failed=len(result.errors),
            duration_ms=duration_ms,
        )
        return success_response(
            SheetUploadPartialData(
                batch_id=result.batch_id,
                inserted=result.inserted,
                errors=[RowErrorOut.model_validate(error) for error in result.errors],
            ),
            message=f"Data stored with {len(result.errors)} errors",
            status_code=status.HTTP_207_MULTI_STATUS,
        )

    logger.info(
        "ingest.sheet_data.request_completed",
        batch_id=result.batch_id,
        inserted=result.inserted,
        duration_ms=duration_ms,
    )
    return success_response(
        SheetUploadData(batch_id=result.batch_id, inserted=result.inserted),
        message=f"Successfully stored {result.inserted} rows to database",
    )
