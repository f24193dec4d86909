"""Batch retrieval API routes."""

from fastapi import APIRouter, Depends, status

from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.features.batches.schemas import BatchData, BatchListData
from app.features.batches.service import BatchReader, parse_batch_id
from app.features.data_platform.store import RowStoreProtocol, get_row_store
from app.shared.schemas import ApiResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["batches"])


@router.get(
    "/batch/{batch_id}",
    response_model=ApiResponse[BatchData],
    status_code=status.HTTP_200_OK,
    summary="Get all rows of a batch",
    description="""
Return every stored row of one upload batch, ordered by `rowNumber`.

Returns 404 when the batch has no stored rows. That is also the answer for
a batch id whose rows all failed to store.
""",
)
async def get_batch(
    batch_id: str,
    store: RowStoreProtocol = Depends(get_row_store),
) -> ApiResponse[BatchData]:
    """Fetch one batch.

    Args:
        batch_id: Batch id from the path; must be a positive integer.
        store: Row store from dependency.

    Returns:
        Envelope with batch id, row count and ordered rows.

    Raises:
        ValidationError: If the batch id is not a positive integer.
        NotFoundError: If the batch has no rows.
    """
    parsed_id = parse_batch_id(batch_id)
    rows = await BatchReader(store).fetch(parsed_id)

    if not rows:
        raise NotFoundError(
            message=f"No data found for batch_id: {parsed_id}",
            details={"batch_id": parsed_id},
        )

    return ApiResponse[BatchData](
        message=f"Retrieved {len(rows)} rows for batch_id: {parsed_id}",
        data=BatchData(batch_id=parsed_id, count=len(rows), data=rows),
    )


@router.get(
    "/batches",
    response_model=ApiResponse[BatchListData],
    status_code=status.HTTP_200_OK,
    summary="List batch ids",
    description="List ids of all batches with at least one stored row, newest first.",
)
async def list_batches(
    store: RowStoreProtocol = Depends(get_row_store),
) -> ApiResponse[BatchListData]:
    """List known batch ids.

    Args:
        store: Row store from dependency.

    Returns:
        Envelope with the count and the descending batch ids.
    """
    batch_ids = await BatchReader(store).list_batch_ids()

    return ApiResponse[BatchListData](
        message=f"Found {len(batch_ids)} batches",
        data=BatchListData(count=len(batch_ids), batch_ids=batch_ids),
    )
