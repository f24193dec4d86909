"""Row store: durable, ordered storage of sheet rows keyed by (batch, sequence).

The allocator, writer and reader never touch SQL themselves; they receive a
``RowStoreProtocol`` handle. The production handle wraps the request's
``AsyncSession`` (one pooled connection).

Writes report their outcome as a value instead of raising, so callers can
pick the next degradation tier without using exceptions for branching:

- ``Inserted(count)``: every row of the statement is committed
- ``InsertFailed(reason)``: nothing from the statement is committed

A write that cannot reach the database raises ``StorageUnavailableError``
instead: retrying smaller units against a dead connection cannot succeed.
Reads and the batch id query raise on failure; callers map those to
request-level errors.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from fastapi import Depends
from sqlalchemy import func, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import (
    describe_storage_error,
    is_connectivity_failure,
    storage_failure,
)
from app.core.logging import get_logger
from app.features.data_platform.models import SheetRow
from app.features.data_platform.schemas import SheetRowRecord

logger = get_logger(__name__)


@dataclass(frozen=True)
class NewSheetRow:
    """A row tagged with its batch position, ready to be written."""

    batch_id: int
    row_number: int
    data: dict[str, Any]

    def as_values(self) -> dict[str, Any]:
        """Column values for an INSERT."""
        return {
            "batch_id": self.batch_id,
            "row_number": self.row_number,
            "data": self.data,
        }


@dataclass(frozen=True)
class Inserted:
    """All rows of one write statement were committed."""

    count: int


@dataclass(frozen=True)
class InsertFailed:
    """One write statement was rolled back; none of its rows persisted."""

    reason: str


InsertOutcome = Inserted | InsertFailed


@runtime_checkable
class RowStoreProtocol(Protocol):
    """Storage operations the ingestion core depends on."""

    async def next_batch_id(self) -> object:
        """Evaluate ``COALESCE(MAX(batch_id), 0) + 1``; the raw scalar is returned."""
        ...

    async def insert_rows(self, rows: Sequence[NewSheetRow]) -> InsertOutcome:
        """Write ``rows`` as one atomic statement.

        Returns InsertFailed when the statement is rejected; raises
        StorageUnavailableError when the database cannot be reached.
        """
        ...

    async def fetch_batch(self, batch_id: int) -> list[SheetRowRecord]:
        """Rows of one batch ordered by row_number ascending."""
        ...

    async def list_batch_ids(self) -> list[int]:
        """Distinct batch ids with at least one row, descending."""
        ...


class SqlAlchemyRowStore:
    """Row store backed by PostgreSQL through an async SQLAlchemy session.

    Each ``insert_rows`` call commits or rolls back on its own, so no
    transaction ever spans a whole batch and the pooled connection is handed
    back between write units.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def next_batch_id(self) -> object:
        stmt = select(func.coalesce(func.max(SheetRow.batch_id), 0) + 1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def insert_rows(self, rows: Sequence[NewSheetRow]) -> InsertOutcome:
        """Write rows as a single multi-row INSERT in its own transaction.

        Args:
            rows: Tagged rows; one row for per-row writes.

        Returns:
            Inserted on commit, InsertFailed with the driver's reason when the
            statement was rejected.

        Raises:
            StorageUnavailableError: If the database could not be reached.
        """
        if not rows:
            return Inserted(count=0)

        stmt = insert(SheetRow).values([row.as_values() for row in rows])
        try:
            await self._session.execute(stmt)
            await self._session.commit()
        except (SQLAlchemyError, OSError) as e:
            await self._rollback()
            if is_connectivity_failure(e):
                raise storage_failure(e, "Failed to insert sheet data") from e
            return InsertFailed(reason=describe_storage_error(e))

        return Inserted(count=len(rows))

    async def fetch_batch(self, batch_id: int) -> list[SheetRowRecord]:
        stmt = (
            select(SheetRow)
            .where(SheetRow.batch_id == batch_id)
            .order_by(SheetRow.row_number.asc())
        )
        result = await self._session.execute(stmt)
        return [SheetRowRecord.model_validate(row) for row in result.scalars().all()]

    async def list_batch_ids(self) -> list[int]:
        stmt = select(SheetRow.batch_id).distinct().order_by(SheetRow.batch_id.desc())
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def _rollback(self) -> None:
        # A dead connection can fail the rollback too; the session is reset
        # either way and the next write unit checks out a fresh connection.
        try:
            await self._session.rollback()
        except (SQLAlchemyError, OSError) as e:
            logger.warning(
                "row_store.rollback_failed",
                error=describe_storage_error(e),
                error_type=type(e).__name__,
            )


def get_row_store(db: AsyncSession = Depends(get_db)) -> RowStoreProtocol:
    """Dependency providing the row store for the current request."""
    return SqlAlchemyRowStore(db)
