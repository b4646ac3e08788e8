"""
Tests for health check endpoints.
"""

import pytest


def test_healthz_endpoint(client):
    """Test the basic health check endpoint."""
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "jobboard-reports"}


def test_readyz_all_dependencies_healthy(client, jwt_secret):
    response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is True

    checks = data["checks"]
    assert checks["database"]["ok"] is True
    assert checks["task_queue"]["ok"] is True
    assert checks["report_storage"]["ok"] is True
    assert checks["configuration"]["ok"] is True


def test_readyz_database_down(client, jwt_secret, fake_pool):
    fake_pool.healthy = False

    data = client.get("/readyz").json()

    assert data["overall_ok"] is False
    assert data["checks"]["database"]["ok"] is False
    assert data["checks"]["report_storage"]["ok"] is True


def test_readyz_queue_check_raising(client, jwt_secret, task_queue, monkeypatch):
    async def broken_health_check():
        raise ConnectionError("redis unreachable")

    monkeypatch.setattr(task_queue, "health_check", broken_health_check)

    data = client.get("/readyz").json()

    assert data["overall_ok"] is False
    assert data["checks"]["task_queue"]["error"] == "ConnectionError: redis unreachable"


def test_readyz_flags_missing_jwt_secret(client, monkeypatch):
    monkeypatch.setattr("app.routes.health.settings.JWT_SECRET", None)

    data = client.get("/readyz").json()

    assert data["overall_ok"] is False
    assert data["checks"]["configuration"]["issues"] == ["JWT_SECRET not set"]


def test_readyz_without_container_is_503():
    from fastapi.testclient import TestClient

    from app.main import app

    assert getattr(app.state, "reporting", None) is None
    response = TestClient(app).get("/readyz")

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_local_store_unwritable_root_is_unhealthy(tmp_path):
    from app.services.storage.artifact_store import LocalArtifactStore

    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory")

    result = await LocalArtifactStore(blocker).health_check()

    assert result["healthy"] is False
