"""Sheet ingestion: shape checks, batch allocation and chunked writing."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from app.core.config import Settings, get_settings
from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.features.data_platform.store import RowStoreProtocol
from app.features.ingest.allocator import BatchAllocator
from app.features.ingest.writer import ChunkedWriter, RowError

logger = get_logger(__name__)


@dataclass
class IngestResult:
    """Result of ingesting one upload.

    An upload whose rows all failed is still a result, not an error: its
    batch id has been consumed either way.
    """

    batch_id: int
    inserted: int = 0
    errors: list[RowError] = field(  # pyright: ignore[reportUnknownVariableType]
        default_factory=list
    )

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


def validate_sheet_data(value: Any) -> list[dict[str, Any]]:
    """Check the structural shape of an upload.

    Args:
        value: The ``sheetData`` field as received.

    Returns:
        The rows, each a JSON object.

    Raises:
        ValidationError: If the field is missing, not a list, empty, or holds
            something other than objects.
    """
    # A falsy scalar (0, "", false) counts as no data at all.
    if value is None or (isinstance(value, (bool, int, float, str)) and not value):
        raise ValidationError("No sheetData provided in the request body")

    if not isinstance(value, list):
        raise ValidationError("sheetData must be an array")

    if not value:
        raise ValidationError("sheetData array cannot be empty")

    for index, row in enumerate(value):
        if not isinstance(row, Mapping):
            raise ValidationError(
                f"sheetData rows must be JSON objects (row {index + 1} is "
                f"{type(row).__name__})",
                details={"row_index": index},
            )

    return [dict(row) for row in value]


async def ingest_sheet_rows(
    store: RowStoreProtocol,
    rows: list[dict[str, Any]],
    settings: Settings | None = None,
) -> IngestResult:
    """Allocate a batch id and write all rows under it.

    Args:
        store: Row store for the current request.
        rows: Validated, non-empty row payloads in sheet order.
        settings: Chunking configuration; defaults to application settings.

    Returns:
        IngestResult with the batch id, inserted count and per-row errors.

    Raises:
        StorageUnavailableError: If allocation cannot reach the database.
        DatabaseError: If allocation fails for another storage reason.
        AllocationInvariantError: If the computed batch id is invalid.
    """
    settings = settings or get_settings()

    batch_id = await BatchAllocator(store).allocate()
    logger.info(
        "ingest.sheet_data.batch_allocated",
        batch_id=batch_id,
        row_count=len(rows),
    )

    writer = ChunkedWriter(
        store,
        chunk_size=settings.ingest_chunk_size,
        bulk_threshold=settings.ingest_bulk_threshold,
    )
    written = await writer.write(batch_id, rows)

    logger.info(
        "ingest.sheet_data.batch_stored",
        batch_id=batch_id,
        inserted=written.inserted,
        failed=len(written.errors),
    )

    return IngestResult(batch_id=batch_id, inserted=written.inserted, errors=written.errors)
