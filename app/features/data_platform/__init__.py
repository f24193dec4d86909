"""Data platform feature: durable row storage for uploaded sheets.

- ``SheetRow``: the ``sheet_data`` table, keyed by (batch_id, row_number)
- ``RowStoreProtocol`` / ``SqlAlchemyRowStore``: the storage handle the
  allocator, writer and reader are given
"""

from app.features.data_platform.models import SheetRow
from app.features.data_platform.schemas import SheetRowRecord
from app.features.data_platform.store import (
    Inserted,
    InsertFailed,
    InsertOutcome,
    NewSheetRow,
    RowStoreProtocol,
    SqlAlchemyRowStore,
    get_row_store,
)

__all__ = [
    "InsertFailed",
    "InsertOutcome",
    "Inserted",
    "NewSheetRow",
    "RowStoreProtocol",
    "SheetRow",
    "SheetRowRecord",
    "SqlAlchemyRowStore",
    "get_row_store",
]
