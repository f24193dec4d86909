"""Chunked writer: persists one batch of rows with graceful degradation.

Write units get smaller as larger ones fail:

1. bulk: the whole batch as one INSERT (batches up to ``bulk_threshold``)
2. chunked: contiguous slices of ``chunk_size`` rows, one INSERT each
3. per-row: every row of a failed unit written on its own

A failing row never stops the rows after it. The result always accounts
for every input row: ``inserted + len(errors) == len(rows)``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from app.core.logging import get_logger
from app.features.data_platform.store import (
    InsertFailed,
    NewSheetRow,
    RowStoreProtocol,
)

logger = get_logger(__name__)

# Driver messages for a failed multi-row INSERT can be long; logs keep a prefix.
LOG_REASON_MAX_CHARS = 500


@dataclass
class RowError:
    """A row that could not be written."""

    row_index: int
    row_number: int
    row_data: dict[str, Any]
    error: str


@dataclass
class WriteResult:
    """Outcome of writing one batch."""

    inserted: int = 0
    errors: list[RowError] = field(  # pyright: ignore[reportUnknownVariableType]
        default_factory=list
    )

    def merge(self, other: WriteResult) -> None:
        """Fold the outcome of a smaller write unit into this one."""
        self.inserted += other.inserted
        self.errors.extend(other.errors)


def tag_rows(batch_id: int, rows: Sequence[dict[str, Any]]) -> list[NewSheetRow]:
    """Attach batch id and 1-indexed row numbers in input order."""
    return [
        NewSheetRow(batch_id=batch_id, row_number=index + 1, data=row)
        for index, row in enumerate(rows)
    ]


class ChunkedWriter:
    """Writes ordered rows for one batch through bulk, chunked and per-row tiers.

    Args:
        store: Row store handle for the current request.
        chunk_size: Rows per second-tier INSERT.
        bulk_threshold: Largest batch that tries a single bulk INSERT first;
            larger batches go straight to chunks.
    """

    def __init__(
        self,
        store: RowStoreProtocol,
        chunk_size: int = 5000,
        bulk_threshold: int = 5000,
    ) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if bulk_threshold < 1:
            raise ValueError(f"bulk_threshold must be positive, got {bulk_threshold}")
        self._store = store
        self.chunk_size = chunk_size
        self.bulk_threshold = bulk_threshold

    async def write(self, batch_id: int, rows: Sequence[dict[str, Any]]) -> WriteResult:
        """Persist ``rows`` under ``batch_id``.

        Args:
            batch_id: Allocated batch id.
            rows: Non-empty ordered row payloads; row i gets row_number i + 1.

        Returns:
            WriteResult with the inserted count and one RowError per failed row.

        Raises:
            ValueError: If ``rows`` is empty.
            StorageUnavailableError: If the database becomes unreachable; rows
                committed by earlier write units stay stored.
        """
        if not rows:
            raise ValueError("rows must be a non-empty sequence")

        tagged = tag_rows(batch_id, rows)
        total = len(tagged)

        if total <= self.bulk_threshold:
            outcome = await self._store.insert_rows(tagged)
            if not isinstance(outcome, InsertFailed):
                logger.info(
                    "ingest.writer.bulk_completed",
                    batch_id=batch_id,
                    inserted=outcome.count,
                )
                return WriteResult(inserted=outcome.count)

            logger.warning(
                "ingest.writer.bulk_failed",
                batch_id=batch_id,
                row_count=total,
                error=outcome.reason[:LOG_REASON_MAX_CHARS],
            )
            # A single chunk would resend the statement that just failed.
            if total <= self.chunk_size:
                result = await self._write_individually(tagged)
                self._log_completed(batch_id, total, result)
                return result

        result = await self._write_chunked(tagged)
        self._log_completed(batch_id, total, result)
        return result

    async def _write_chunked(self, tagged: list[NewSheetRow]) -> WriteResult:
        result = WriteResult()
        chunk_count = (len(tagged) + self.chunk_size - 1) // self.chunk_size

        for chunk_index, start in enumerate(range(0, len(tagged), self.chunk_size)):
            chunk = tagged[start : start + self.chunk_size]
            outcome = await self._store.insert_rows(chunk)

            if not isinstance(outcome, InsertFailed):
                result.inserted += outcome.count
                logger.debug(
                    "ingest.writer.chunk_completed",
                    chunk=chunk_index + 1,
                    chunks=chunk_count,
                    inserted=outcome.count,
                )
                continue

            logger.warning(
                "ingest.writer.chunk_failed",
                batch_id=chunk[0].batch_id,
                chunk=chunk_index + 1,
                chunks=chunk_count,
                first_row_number=chunk[0].row_number,
                row_count=len(chunk),
                error=outcome.reason[:LOG_REASON_MAX_CHARS],
            )
            result.merge(await self._write_individually(chunk))

        return result

    async def _write_individually(self, rows: list[NewSheetRow]) -> WriteResult:
        result = WriteResult()

        for row in rows:
            outcome = await self._store.insert_rows([row])
            if not isinstance(outcome, InsertFailed):
                result.inserted += outcome.count
                continue

            result.errors.append(
                RowError(
                    row_index=row.row_number - 1,
                    row_number=row.row_number,
                    row_data=row.data,
                    error=outcome.reason,
                )
            )
            logger.warning(
                "ingest.writer.row_failed",
                batch_id=row.batch_id,
                row_number=row.row_number,
                error=outcome.reason[:LOG_REASON_MAX_CHARS],
            )

        return result

    @staticmethod
    def _log_completed(batch_id: int, total: int, result: WriteResult) -> None:
        logger.info(
            "ingest.writer.degraded_completed",
            batch_id=batch_id,
            row_count=total,
            inserted=result.inserted,
            failed=len(result.errors),
        )
