"""Tests for the HTTP surface with a stubbed pipeline."""

import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from smartocr import main
from smartocr.pipeline import DocumentParser, ParsingPipeline


@pytest.fixture
def recognize() -> MagicMock:
    return MagicMock(return_value="Invoice INV-2024-001")


@pytest.fixture
def generate(invoice_payload: dict) -> MagicMock:
    return MagicMock(return_value=f"Sure:\n```json\n{json.dumps(invoice_payload)}\n```")


@pytest.fixture
def client(monkeypatch, recognize, generate):
    ollama = MagicMock()
    ollama.health.return_value = {"status": "healthy", "ready": True, "models": []}
    parser = DocumentParser(ParsingPipeline(recognize, generate, "v", "t"), client=ollama)
    monkeypatch.setattr(main, "_parser", parser)
    # No context manager: lifespan (and its real Ollama client) is skipped
    return TestClient(main.app)


class TestExtractEndpoint:
    def test_text_extraction(self, client, invoice_schema, invoice_payload):
        resp = client.post("/api/v1/extract", data={"text": "INV-2024-001", "schema": invoice_schema})

        assert resp.status_code == 200
        body = resp.json()
        assert body["source"] == "text"
        assert body["data"] == invoice_payload
        assert body["processing_time_ms"] >= 0

    def test_image_extraction(self, client, recognize, sample_image_bytes, invoice_schema, invoice_payload):
        resp = client.post(
            "/api/v1/extract",
            data={"schema": invoice_schema, "text": "ignored"},
            files={"file": ("scan.png", sample_image_bytes, "image/png")},
        )

        assert resp.status_code == 200
        assert resp.json()["source"] == "image"
        assert resp.json()["data"] == invoice_payload
        recognize.assert_called_once()

    def test_missing_input_is_400(self, client, invoice_schema):
        resp = client.post("/api/v1/extract", data={"schema": invoice_schema})

        assert resp.status_code == 400
        assert resp.json()["kind"] == "missing_input"

    def test_empty_file_is_400(self, client, invoice_schema):
        resp = client.post(
            "/api/v1/extract",
            data={"schema": invoice_schema},
            files={"file": ("empty.png", b"", "image/png")},
        )

        assert resp.status_code == 400
        assert resp.json()["kind"] == "empty_image"

    def test_blank_schema_is_400(self, client):
        resp = client.post("/api/v1/extract", data={"text": "hello", "schema": "   "})

        assert resp.status_code == 400
        assert resp.json()["kind"] == "blank_schema"

    def test_unparseable_model_output_is_422(self, client, generate, invoice_schema):
        generate.return_value = "Sorry, nothing to extract."
        resp = client.post("/api/v1/extract", data={"text": "hello", "schema": invoice_schema})

        assert resp.status_code == 422
        assert resp.json()["kind"] == "no_structure_found"

    def test_upstream_failure_is_502(self, client, recognize, sample_image_bytes, invoice_schema):
        recognize.side_effect = ConnectionError("down")
        resp = client.post(
            "/api/v1/extract",
            data={"schema": invoice_schema},
            files={"file": ("scan.png", sample_image_bytes, "image/png")},
        )

        assert resp.status_code == 502
        body = resp.json()
        assert body["kind"] == "upstream"
        assert body["stage"] == "recognition"

    def test_not_configured_is_503(self, monkeypatch, invoice_schema):
        monkeypatch.setattr(main, "_parser", None)
        resp = TestClient(main.app).post("/api/v1/extract", data={"text": "x", "schema": invoice_schema})
        assert resp.status_code == 503


class TestHealthEndpoint:
    def test_health_reports_ollama(self, client):
        resp = client.get("/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["ollama_configured"] is True
        assert body["ollama_health"]["ready"] is True

    def test_health_without_ollama(self, monkeypatch):
        monkeypatch.setattr(main, "_parser", None)
        body = TestClient(main.app).get("/health").json()
        assert body["ollama_configured"] is False
        assert "ollama_health" not in body
