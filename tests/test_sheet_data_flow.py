"""End-to-end upload and retrieval against PostgreSQL."""

import pytest

from app.core.config import get_settings


@pytest.mark.integration
class TestSheetDataFlow:
    """Upload, read back and list through the HTTP API."""

    async def test_upload_then_read_back(self, client):
        rows = [{"b": 2, "a": 1}, {"b": None, "a": "x"}, {"nested": {"k": [1, 2]}}]

        upload = await client.post("/api/upload-sheet-data", json={"sheetData": rows})

        assert upload.status_code == 200
        batch_id = upload.json()["data"]["batchId"]
        assert batch_id == 1

        response = await client.get(f"/api/batch/{batch_id}")

        assert response.status_code == 200
        stored = response.json()["data"]["data"]
        assert [r["rowNumber"] for r in stored] == [1, 2, 3]
        assert [r["data"] for r in stored] == rows
        assert list(stored[0]["data"]) == ["b", "a"]
        ids = [r["id"] for r in stored]
        assert ids == sorted(ids)

    async def test_sequential_uploads_listed_newest_first(self, client):
        for count in (1, 2, 3):
            await client.post(
                "/api/upload-sheet-data",
                json={"sheetData": [{"n": n} for n in range(count)]},
            )

        response = await client.get("/api/batches")

        assert response.json()["data"] == {"count": 3, "batchIds": [3, 2, 1]}

    async def test_chunked_upload_keeps_order(self, client, monkeypatch):
        settings = get_settings()
        monkeypatch.setattr(settings, "ingest_chunk_size", 7)
        monkeypatch.setattr(settings, "ingest_bulk_threshold", 7)
        rows = [{"i": i} for i in range(50)]

        upload = await client.post("/api/upload-sheet-data", json={"sheetData": rows})
        batch_id = upload.json()["data"]["batchId"]
        stored = (await client.get(f"/api/batch/{batch_id}")).json()["data"]["data"]

        assert upload.json()["data"]["inserted"] == 50
        assert [r["data"]["i"] for r in stored] == list(range(50))

    async def test_missing_batch_is_404(self, client):
        response = await client.get("/api/batch/999")

        assert response.status_code == 404
        assert response.json()["error"] == "No data found for batch_id: 999"

    async def test_health_reports_connected(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["data"]["database"] == "connected"
