"""Unit tests for the ingestion service."""

import pytest

from app.core.config import Settings
from app.core.exceptions import StorageUnavailableError, ValidationError
from app.features.ingest.service import IngestResult, ingest_sheet_rows, validate_sheet_data


class TestValidateSheetData:
    """Tests for validate_sheet_data."""

    def test_returns_rows_unchanged(self):
        rows = [{"name": "Ann", "age": 41}, {"name": "Bo", "age": None}]
        assert validate_sheet_data(rows) == rows

    @pytest.mark.parametrize("value", [None, 0, 0.0, "", False])
    def test_missing_or_falsy_value(self, value):
        with pytest.raises(ValidationError, match="No sheetData provided in the request body"):
            validate_sheet_data(value)

    @pytest.mark.parametrize("value", ["rows", 42, {"a": 1}, True])
    def test_non_array_value(self, value):
        with pytest.raises(ValidationError, match="sheetData must be an array"):
            validate_sheet_data(value)

    def test_empty_array(self):
        with pytest.raises(ValidationError, match="sheetData array cannot be empty"):
            validate_sheet_data([])

    def test_non_object_row_names_position(self):
        with pytest.raises(ValidationError, match=r"row 2 is list") as exc_info:
            validate_sheet_data([{"a": 1}, [1, 2]])

        assert exc_info.value.status_code == 400
        assert exc_info.value.details == {"row_index": 1}

    def test_empty_object_rows_are_accepted(self):
        assert validate_sheet_data([{}]) == [{}]


class TestIngestResult:
    """Tests for IngestResult."""

    def test_has_errors_false_by_default(self):
        assert IngestResult(batch_id=1).has_errors is False


class TestIngestSheetRows:
    """Tests for ingest_sheet_rows."""

    @pytest.mark.asyncio
    async def test_first_upload_gets_batch_one(self, row_store):
        result = await ingest_sheet_rows(row_store, [{"a": 1}, {"a": 2}, {"a": 3}])

        assert result.batch_id == 1
        assert result.inserted == 3
        assert not result.has_errors

    @pytest.mark.asyncio
    async def test_identical_uploads_create_distinct_batches(self, row_store):
        """Uploads are not idempotent."""
        rows = [{"a": 1}]

        first = await ingest_sheet_rows(row_store, rows)
        second = await ingest_sheet_rows(row_store, rows)

        assert (first.batch_id, second.batch_id) == (1, 2)
        assert len(row_store.rows) == 2

    @pytest.mark.asyncio
    async def test_batch_id_consumed_when_every_row_fails(self, row_store):
        row_store.fail_row_numbers = {1, 2}

        result = await ingest_sheet_rows(row_store, [{"a": 1}, {"a": 2}])

        assert result.batch_id == 1
        assert result.inserted == 0
        assert [e.row_index for e in result.errors] == [0, 1]

    @pytest.mark.asyncio
    async def test_uses_configured_chunk_size(self, row_store):
        settings = Settings(ingest_chunk_size=2, ingest_bulk_threshold=2)

        result = await ingest_sheet_rows(row_store, [{"n": i} for i in range(5)], settings)

        assert result.inserted == 5
        assert row_store.insert_calls == [2, 2, 1]

    @pytest.mark.asyncio
    async def test_unreachable_store_fails_before_writing(self, row_store):
        row_store.unavailable = True

        with pytest.raises(StorageUnavailableError):
            await ingest_sheet_rows(row_store, [{"a": 1}])

        assert row_store.insert_calls == []
