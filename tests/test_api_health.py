"""Tests for blobfs API health endpoint."""

from datetime import datetime

from fastapi.testclient import TestClient

from blobfs import __version__
from blobfs.testing import InMemoryObjectStore


def test_health_returns_200(client: TestClient) -> None:
    """GET /health returns 200 OK."""
    response = client.get("/health")
    assert response.status_code == 200


def test_health_contains_required_fields(client: TestClient) -> None:
    """GET /health response contains status, time, version and backend."""
    response = client.get("/health")
    data = response.json()

    assert data["status"] == "ok"
    assert data["version"] == __version__
    assert data["backend"] == "memory"


def test_health_time_is_iso8601(client: TestClient) -> None:
    """GET /health returns time in ISO-8601 format."""
    response = client.get("/health")

    datetime.fromisoformat(response.json()["time"])


def test_health_does_not_touch_store(
    client: TestClient, memory_store: InMemoryObjectStore
) -> None:
    """GET /health never queries the object store."""
    client.get("/health")

    assert memory_store.calls == []


def test_health_includes_request_id_header(client: TestClient) -> None:
    """GET /health response includes X-Request-Id header."""
    response = client.get("/health")

    assert "X-Request-Id" in response.headers
    assert len(response.headers["X-Request-Id"]) > 0


def test_health_echoes_provided_request_id(client: TestClient) -> None:
    """GET /health with X-Request-Id header echoes it back."""
    custom_request_id = "test-request-id-12345"
    response = client.get("/health", headers={"X-Request-Id": custom_request_id})

    assert response.headers["X-Request-Id"] == custom_request_id


def test_health_generates_request_id_when_not_provided(client: TestClient) -> None:
    """GET /health generates a UUID request ID when not provided."""
    response = client.get("/health")
    request_id = response.headers["X-Request-Id"]

    assert len(request_id) == 36
    assert request_id.count("-") == 4
