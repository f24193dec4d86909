"""Row storage ORM model for uploaded spreadsheet data.

Every uploaded row lands in ``sheet_data``. A batch is not a table of its
own: it is the set of rows sharing a ``batch_id``.

Grain: uniquely keyed by (batch_id, row_number).
"""

from typing import Any

from sqlalchemy import JSON, Index, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.shared.models import CreatedAtMixin


class SheetRow(CreatedAtMixin, Base):
    """One spreadsheet row within an upload batch.

    Attributes:
        id: Store-wide surrogate key, assigned in arrival order.
        batch_id: Upload batch the row belongs to.
        row_number: 1-indexed position of the row within its batch.
        data: The row itself, an arbitrary JSON object. Stored as ``json``
            rather than ``jsonb`` so key order survives the round-trip.
        created_at: Insert timestamp (server default).
    """

    __tablename__ = "sheet_data"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    batch_id: Mapped[int] = mapped_column(Integer, nullable=False)
    row_number: Mapped[int] = mapped_column(Integer, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    __table_args__ = (
        UniqueConstraint("batch_id", "row_number", name="unique_batch_row"),
        Index("idx_sheet_data_batch_id", "batch_id"),
        Index("idx_sheet_data_row_number", "batch_id", "row_number"),
    )

    def __repr__(self) -> str:
        return f"<SheetRow batch_id={self.batch_id} row_number={self.row_number}>"
