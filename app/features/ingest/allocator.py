"""Batch id allocation.

Ids are ``max(existing batch_id) + 1``, computed on the same session that
performs the following write. Nothing is reserved: two concurrent uploads
can read the same maximum and receive the same id. The (batch_id,
row_number) unique constraint then rejects the colliding rows, which the
writer reports as row errors.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import AllocationInvariantError, storage_failure
from app.core.logging import get_logger
from app.features.data_platform.store import RowStoreProtocol

logger = get_logger(__name__)


class BatchAllocator:
    """Computes the next unused batch id from the store's current maximum."""

    def __init__(self, store: RowStoreProtocol) -> None:
        self._store = store

    async def allocate(self) -> int:
        """Return the next batch id.

        Returns:
            Positive batch id, one above the current maximum (1 on an empty store).

        Raises:
            StorageUnavailableError: If the database cannot be reached.
            DatabaseError: If the query fails for another reason.
            AllocationInvariantError: If the store returns something that is not
                a positive integer.
        """
        try:
            raw = await self._store.next_batch_id()
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "ingest.allocator.query_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise storage_failure(e, "Failed to get next batch ID") from e

        batch_id = coerce_batch_id(raw)
        logger.debug("ingest.allocator.allocated", batch_id=batch_id)
        return batch_id


def coerce_batch_id(raw: object) -> int:
    """Validate the raw next-id scalar.

    Drivers may hand back the value as int or as a numeric string.

    Raises:
        AllocationInvariantError: If ``raw`` is missing or not a positive integer.
    """
    if raw is None:
        raise AllocationInvariantError(message="Failed to retrieve batch ID from database")

    value: int | None = None
    if isinstance(raw, int) and not isinstance(raw, bool):
        value = raw
    elif isinstance(raw, str) and raw.strip().isdecimal():
        value = int(raw.strip())

    if value is None or value < 1:
        raise AllocationInvariantError(
            message="Invalid batch ID returned from database",
            details={"value": repr(raw)},
        )
    return value
