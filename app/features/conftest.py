"""Fixtures shared by feature tests.

Lives above the feature ``tests/`` directories so ingest and batches tests
see the same in-memory row store. Tests that need PostgreSQL define their
own ``db_session`` and are marked ``integration``.
"""

from collections.abc import AsyncGenerator, Sequence
from datetime import UTC, datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.exceptions import storage_failure
from app.features.data_platform.schemas import SheetRowRecord
from app.features.data_platform.store import (
    Inserted,
    InsertFailed,
    InsertOutcome,
    NewSheetRow,
    get_row_store,
)
from app.main import app


class InMemoryRowStore:
    """Row store fake with the same contract as SqlAlchemyRowStore.

    Failure knobs:
        fail_row_numbers: any statement containing one of these row numbers
            is rejected, as a constraint violation on that row would be.
        max_statement_rows: statements with more rows than this are rejected.
        unavailable: every read, write and the batch id query fail as on a
            refused connection.
        inserts_before_outage: number of INSERT statements that succeed
            before writes start failing as on a refused connection.
        next_batch_id_override: raw value returned by next_batch_id.
    """

    def __init__(self) -> None:
        self.rows: list[SheetRowRecord] = []
        self.insert_calls: list[int] = []
        self.fail_row_numbers: set[int] = set()
        self.max_statement_rows: int | None = None
        self.unavailable = False
        self.inserts_before_outage: int | None = None
        self.next_batch_id_override: object = None
        self._next_id = 1

    def _raise_if_unavailable(self) -> None:
        if self.unavailable:
            raise OperationalError(
                "SELECT 1", {}, ConnectionRefusedError("connection refused")
            )

    async def next_batch_id(self) -> object:
        self._raise_if_unavailable()
        if self.next_batch_id_override is not None:
            return self.next_batch_id_override
        return max((row.batch_id for row in self.rows), default=0) + 1

    async def insert_rows(self, rows: Sequence[NewSheetRow]) -> InsertOutcome:
        self.insert_calls.append(len(rows))

        outage = self.inserts_before_outage is not None and (
            len(self.insert_calls) > self.inserts_before_outage
        )
        if self.unavailable or outage:
            error = OperationalError(
                "INSERT", {}, ConnectionRefusedError("connection refused")
            )
            raise storage_failure(error, "Failed to insert sheet data") from error
        if self.max_statement_rows is not None and len(rows) > self.max_statement_rows:
            return InsertFailed(reason="statement too large")

        existing = {(row.batch_id, row.row_number) for row in self.rows}
        for row in rows:
            if row.row_number in self.fail_row_numbers:
                return InsertFailed(reason=f"forced failure for row {row.row_number}")
            if (row.batch_id, row.row_number) in existing:
                error = IntegrityError("INSERT", {}, Exception("unique_batch_row violated"))
                return InsertFailed(reason=str(error.orig))

        now = datetime.now(UTC)
        for row in rows:
            self.rows.append(
                SheetRowRecord(
                    id=self._next_id,
                    batch_id=row.batch_id,
                    row_number=row.row_number,
                    data=row.data,
                    created_at=now,
                )
            )
            self._next_id += 1
        return Inserted(count=len(rows))

    async def fetch_batch(self, batch_id: int) -> list[SheetRowRecord]:
        self._raise_if_unavailable()
        return sorted(
            (row for row in self.rows if row.batch_id == batch_id),
            key=lambda row: row.row_number,
        )

    async def list_batch_ids(self) -> list[int]:
        self._raise_if_unavailable()
        return sorted({row.batch_id for row in self.rows}, reverse=True)


@pytest.fixture
def row_store() -> InMemoryRowStore:
    """Create an empty in-memory row store."""
    return InMemoryRowStore()


@pytest.fixture
async def client(row_store: InMemoryRowStore) -> AsyncGenerator[AsyncClient, None]:
    """Create test client whose routes use the in-memory row store."""
    app.dependency_overrides[get_row_store] = lambda: row_store

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
