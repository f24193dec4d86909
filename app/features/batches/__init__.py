"""Batches feature module: reading stored batches back."""

from app.features.batches.routes import router
from app.features.batches.schemas import BatchData, BatchListData
from app.features.batches.service import BatchReader, parse_batch_id

__all__ = [
    "BatchData",
    "BatchListData",
    "BatchReader",
    "parse_batch_id",
    "router",
]
