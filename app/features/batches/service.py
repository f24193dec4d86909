"""Batch reader: ordered reconstruction of stored batches."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import ValidationError, storage_failure
from app.core.logging import get_logger
from app.features.data_platform.schemas import SheetRowRecord
from app.features.data_platform.store import RowStoreProtocol

logger = get_logger(__name__)


def parse_batch_id(raw: str) -> int:
    """Parse a batch id taken from a URL path.

    Raises:
        ValidationError: If ``raw`` is not a positive integer written in
            ASCII digits only.
    """
    # int() alone would also take whitespace, underscores and non-ASCII digits.
    if not (raw.isascii() and raw.isdecimal()) or int(raw) < 1:
        raise ValidationError(
            f"Invalid batchId: {raw}. Must be a positive number.",
            details={"batch_id": raw},
        )
    return int(raw)


class BatchReader:
    """Reads batches back from the row store."""

    def __init__(self, store: RowStoreProtocol) -> None:
        self._store = store

    async def fetch(self, batch_id: int) -> list[SheetRowRecord]:
        """Return every stored row of a batch, ordered by row number.

        An empty list is a valid answer. It covers both a batch that never
        existed and one whose rows all failed to store.

        Args:
            batch_id: Positive batch id.

        Returns:
            Rows sorted by row_number ascending.

        Raises:
            ValidationError: If ``batch_id`` is not a positive integer.
            StorageUnavailableError: If the database cannot be reached.
            DatabaseError: If the query fails for another reason.
        """
        if isinstance(batch_id, bool) or not isinstance(batch_id, int) or batch_id < 1:
            raise ValidationError(
                f"Invalid batchId: {batch_id}. Must be a positive number.",
                details={"batch_id": repr(batch_id)},
            )

        try:
            rows = await self._store.fetch_batch(batch_id)
        except (SQLAlchemyError, OSError) as e:
            raise storage_failure(e, "Failed to fetch batch data") from e

        logger.info("batches.fetch.completed", batch_id=batch_id, row_count=len(rows))
        return sorted(rows, key=lambda row: row.row_number)

    async def list_batch_ids(self) -> list[int]:
        """Return ids of batches with at least one stored row, newest first.

        Raises:
            StorageUnavailableError: If the database cannot be reached.
            DatabaseError: If the query fails for another reason.
        """
        try:
            batch_ids = await self._store.list_batch_ids()
        except (SQLAlchemyError, OSError) as e:
            raise storage_failure(e, "Failed to fetch batch IDs") from e

        logger.info("batches.list.completed", count=len(batch_ids))
        return sorted(set(batch_ids), reverse=True)
