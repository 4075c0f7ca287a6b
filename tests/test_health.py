"""Health endpoint tests."""

import shutil
from pathlib import Path

from fastapi.testclient import TestClient

from fileshare.app import create_app
from fileshare.config import Settings


def test_liveness_returns_200(client: TestClient) -> None:
    """Liveness endpoint returns 200 OK."""
    response = client.get("/api/v1/health/live")
    assert response.status_code == 200


def test_liveness_returns_status(client: TestClient) -> None:
    """Liveness endpoint returns alive status."""
    response = client.get("/api/v1/health/live")
    data = response.json()
    assert data["status"] == "alive"


def test_readiness_ok_when_section_roots_exist(client: TestClient) -> None:
    """Readiness reports every section as ok."""
    response = client.get("/api/v1/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert {c["name"] for c in data["checks"]} == {"section:/games", "section:/docs"}


def test_readiness_fails_when_section_root_missing(
    settings: Settings, files_root: Path
) -> None:
    """A missing section root makes the server not ready."""
    shutil.rmtree(files_root / "docs")
    client = TestClient(create_app(settings))
    response = client.get("/api/v1/health/ready")
    assert response.status_code == 503
    failed = [c for c in response.json()["checks"] if c["status"] == "failed"]
    assert [c["name"] for c in failed] == ["section:/docs"]
    assert str(files_root) not in response.text
