"""Health endpoint tests."""

from backoffice_service.db import engine


def test_health(anon_client):
    resp = anon_client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_ready_without_database(anon_client, monkeypatch):
    monkeypatch.setattr(engine, "_session_factory", None)
    resp = anon_client.get("/health/ready")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Database not configured: set DATABASE_URL"}


def test_ready_with_database(anon_client, monkeypatch):
    async def _ok() -> None:
        return None

    monkeypatch.setattr("backoffice_service.rest.routes.health.ping", _ok)
    resp = anon_client.get("/health/ready")
    assert resp.json() == {"status": "ready"}
