"""Pydantic schemas for stored sheet rows.

These schemas are used for API output, not for ORM operations directly.
"""

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field

from app.shared.schemas import CamelModel


class SheetRowRecord(CamelModel):
    """A persisted row as returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Store-wide row id (arrival order)")
    batch_id: int = Field(..., ge=1, description="Upload batch id")
    row_number: int = Field(..., ge=1, description="1-indexed position within the batch")
    data: dict[str, Any] = Field(..., description="Row content as uploaded")
    created_at: datetime = Field(..., description="Insert timestamp")
