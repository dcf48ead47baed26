"""Health endpoint tests."""

import pytest


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint should return server status and version."""
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["server"] == "ok"
    assert data["status"] == "healthy"
    assert data["database"] == "ok"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_reports_redis_disabled_without_lifespan(client):
    resp = await client.get("/api/health")
    assert resp.json()["redis"] == "disabled"


class _UnreachableEngine:
    def connect(self):
        raise ConnectionRefusedError("database down")


@pytest.mark.asyncio
async def test_health_degraded_when_database_unreachable(client, app, monkeypatch):
    monkeypatch.setattr(app.state, "engine", _UnreachableEngine())

    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "degraded"
    assert resp.json()["database"].startswith("error:")
