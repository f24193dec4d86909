"""Pydantic schemas for batch retrieval API."""

from pydantic import Field

from app.features.data_platform.schemas import SheetRowRecord
from app.shared.schemas import CamelModel


class BatchData(CamelModel):
    """All stored rows of one batch."""

    batch_id: int = Field(..., ge=1, description="Batch id")
    count: int = Field(..., ge=0, description="Number of stored rows")
    data: list[SheetRowRecord] = Field(..., description="Rows ordered by rowNumber")


class BatchListData(CamelModel):
    """Batch ids that have at least one stored row."""

    count: int = Field(..., ge=0, description="Number of batches")
    batch_ids: list[int] = Field(..., description="Batch ids, newest first")
