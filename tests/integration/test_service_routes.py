"""Integration tests for the banner and health endpoints."""

from fastapi.testclient import TestClient

from app.core.settings import settings
from tests.fakes import FakeFirestore


def test_root(client: TestClient) -> None:
    body = client.get("/").json()
    assert body["version"] == settings.APP_VERSION


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_database_health(client: TestClient, db: FakeFirestore, monkeypatch) -> None:
    db.put("issues", "a" * 24, {"title": "Pothole"})
    db.put("citizens", "b" * 24, {"address": "12 MG Road"})
    monkeypatch.setattr("app.routes.health.get_db", lambda: db)

    response = client.get("/health/db")
    assert response.status_code == 200
    assert response.json()["issues"] == 1


def test_database_health_failure(client: TestClient, monkeypatch) -> None:
    def unavailable():
        raise RuntimeError("Firestore not initialized")

    monkeypatch.setattr("app.routes.health.get_db", unavailable)
    assert client.get("/health/db").status_code == 503
