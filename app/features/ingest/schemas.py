"""Pydantic schemas for the sheet upload API."""

from typing import Any

from pydantic import ConfigDict, Field

from app.shared.schemas import CamelModel


class SheetUploadRequest(CamelModel):
    """Request body for POST /api/upload-sheet-data.

    ``sheetData`` is deliberately untyped here: its shape is checked by
    ``validate_sheet_data`` so each problem gets its own 400 message.
    """

    model_config = ConfigDict(extra="ignore")

    sheet_data: Any = Field(
        default=None,
        description="Rows from the spreadsheet, one JSON object per row",
    )


class RowErrorOut(CamelModel):
    """A row that could not be stored."""

    model_config = ConfigDict(from_attributes=True)

    row_index: int = Field(..., ge=0, description="0-based index of the row in sheetData")
    row_number: int = Field(..., ge=1, description="1-based row number within the batch")
    row_data: dict[str, Any] = Field(..., description="The row as submitted")
    error: str = Field(..., description="Why the store rejected the row")


class SheetUploadData(CamelModel):
    """Upload outcome when every row was stored."""

    batch_id: int = Field(..., ge=1, description="Batch id assigned to this upload")
    inserted: int = Field(..., ge=0, description="Rows stored")


class SheetUploadPartialData(SheetUploadData):
    """Upload outcome when some rows failed (HTTP 207)."""

    errors: list[RowErrorOut] = Field(..., description="Rows that were not stored")
