import base64

import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from template_indexer.main import app
from template_indexer.api.dependencies import get_uploader, get_vector_index
from template_indexer.embeddings.embedder import Embedder, EmbeddingError
from template_indexer.embeddings.uploader import TemplateUploader
from template_indexer.index.base import IndexStats, VectorIndex, VectorIndexError

DOCUMENT = """"First Template"
Template:
Hello world, see http://example.com

"Second Template"
Template:
Another body [link](http://foo.com)
"""


@pytest.fixture
def mock_embedder():
    mock = AsyncMock(spec=Embedder)
    mock.embed_text.return_value = [0.1] * 1024
    return mock


@pytest.fixture
def mock_index():
    mock = AsyncMock(spec=VectorIndex)
    mock.name = "templatesdb"
    mock.upsert.return_value = 2
    mock.describe_stats.return_value = IndexStats(total_record_count=12)
    return mock


@pytest.fixture
def client(mock_embedder, mock_index):
    uploader = TemplateUploader(mock_embedder, mock_index, pacing_seconds=0)
    app.dependency_overrides[get_uploader] = lambda: uploader
    app.dependency_overrides[get_vector_index] = lambda: mock_index

    with TestClient(app, raise_server_exceptions=False) as c:
        yield c

    app.dependency_overrides = {}


def test_upload_file_content(client, mock_index):
    resp = client.post("/api/upload", json={"fileContent": DOCUMENT, "fileName": "templates.md"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["uploaded"] == 2
    assert data["totalVectors"] == 12
    assert data["format"] == "markdown"
    assert data["message"] == "Uploaded 2 templates in markdown format"
    assert [r["index"] for r in data["results"]] == [1, 2]
    assert [r["title"] for r in data["results"]] == ["First Template", "Second Template"]
    assert [r["hyperlink_count"] for r in data["results"]] == [1, 1]
    assert all(r["id"].startswith("template_") for r in data["results"])
    assert data["timestamp"].endswith("Z")

    mock_index.upsert.assert_awaited_once()
    records = mock_index.upsert.await_args.args[0]
    assert [r.metadata.chunk_id for r in records] == ["chunk_001", "chunk_002"]
    assert {r.metadata.source_file for r in records} == {"templates.md"}


def test_upload_base64(client, mock_index):
    encoded = base64.b64encode(DOCUMENT.encode("utf-8")).decode("ascii")

    resp = client.post("/api/upload", json={"fileBase64": encoded})

    assert resp.status_code == 200
    assert resp.json()["uploaded"] == 2
    records = mock_index.upsert.await_args.args[0]
    assert {r.metadata.source_file for r in records} == {"unknown"}


def test_no_content_is_rejected(client, mock_index):
    resp = client.post("/api/upload", json={"fileName": "empty.md"})

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "No content provided"}
    mock_index.upsert.assert_not_awaited()


def test_both_content_forms_are_rejected(client):
    encoded = base64.b64encode(DOCUMENT.encode("utf-8")).decode("ascii")

    resp = client.post("/api/upload", json={"fileContent": DOCUMENT, "fileBase64": encoded})

    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_invalid_base64_is_rejected(client):
    resp = client.post("/api/upload", json={"fileBase64": "not base64!!"})

    assert resp.status_code == 400
    assert "base64" in resp.json()["error"]


def test_zero_templates_is_rejected(client, mock_embedder, mock_index):
    resp = client.post("/api/upload", json={"fileContent": "Just prose, nothing quoted."})

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "No templates found"}
    mock_embedder.embed_text.assert_not_awaited()
    mock_index.upsert.assert_not_awaited()


def test_malformed_body_is_rejected(client):
    resp = client.post("/api/upload", content=b"not json", headers={"Content-Type": "application/json"})

    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_embedding_failure_returns_500_without_upsert(client, mock_embedder, mock_index):
    mock_embedder.embed_text.side_effect = [
        [0.1] * 1024,
        EmbeddingError("Rate limit reached for text-embedding-3-large"),
    ]
    text = DOCUMENT + '\n"Third Template"\nTemplate:\nthird body\n'

    resp = client.post("/api/upload", json={"fileContent": text})

    assert resp.status_code == 500
    assert resp.json() == {
        "success": False,
        "error": "Rate limit reached for text-embedding-3-large",
    }
    mock_index.upsert.assert_not_awaited()


def test_upsert_failure_returns_500(client, mock_index):
    mock_index.upsert.side_effect = VectorIndexError("Index templatesdb not found")

    resp = client.post("/api/upload", json={"fileContent": DOCUMENT})

    assert resp.status_code == 500
    assert resp.json()["error"] == "Index templatesdb not found"


def test_unexpected_failure_returns_500(client, mock_index):
    mock_index.describe_stats.side_effect = KeyError("boom")

    resp = client.post("/api/upload", json={"fileContent": DOCUMENT})

    assert resp.status_code == 500
    assert resp.json()["success"] is False


def test_options_preflight(client):
    resp = client.options("/api/upload")

    assert resp.status_code == 200
    assert resp.content == b""


def test_cors_preflight_headers(client):
    resp = client.options(
        "/api/upload",
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )

    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
    assert "POST" in resp.headers["access-control-allow-methods"]


def test_cors_header_on_upload(client):
    resp = client.post(
        "/api/upload",
        json={"fileContent": DOCUMENT},
        headers={"Origin": "https://example.com"},
    )

    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"


@pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "PATCH"])
def test_other_methods_not_allowed(client, method):
    resp = client.request(method, "/api/upload")

    assert resp.status_code == 405
    assert resp.json() == {"success": False, "error": "Method not allowed"}


def test_stats(client, mock_index):
    resp = client.get("/api/stats")

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "index": "templatesdb", "totalVectors": 12}


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
