"""Tests for the optional APP_SECRET middleware."""

import pytest
from fastapi.testclient import TestClient

from adaptive_tutor import main
from adaptive_tutor.config import Settings


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(main, "settings", Settings(app_secret="s3cret", project_root=tmp_path))
    with TestClient(main.app) as c:
        yield c


def test_request_without_secret_rejected(client):
    response = client.get("/api/learners/anna/progress")
    assert response.status_code == 401


def test_health_is_public(client):
    assert client.get("/api/health").status_code == 200


def test_cors_preflight_passes_auth(client):
    response = client.options(
        "/api/learners/anna/progress",
        headers={
            "Origin": "http://localhost:8000",
            "Access-Control-Request-Method": "GET",
            "Access-Control-Request-Headers": "X-App-Secret",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:8000"
