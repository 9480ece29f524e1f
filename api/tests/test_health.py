"""Tests for health, readiness and the landing document.

Contract:
  - GET / (no query string) returns name, version, docs, health, example as JSON
  - GET /api/health returns 200 with status "ok", semver version and ISO8601 UTC timestamps
  - GET /api/ready returns 200 while a usage store is attached, 503 otherwise
  - GET /docs returns 200 (OpenAPI UI reachable)
"""

import re
from datetime import datetime

import pytest
from httpx import AsyncClient

from app.main import app


@pytest.mark.asyncio
async def test_root_returns_landing_info(client: AsyncClient):
    """GET / without parameters returns JSON, not an SVG."""
    response = await client.get("/")
    assert response.status_code == 200
    assert response.headers.get("content-type", "").startswith("application/json")
    data = response.json()
    assert set(data.keys()) == {"name", "version", "docs", "health", "example"}
    assert isinstance(data["name"], str) and len(data["name"]) > 0, "name must be non-empty string"
    assert data["docs"] == "/docs", "docs must be /docs"
    assert data["health"] == "/api/health", "health must be /api/health"
    assert data["example"].startswith("/?type=repos")


@pytest.mark.asyncio
async def test_docs_returns_200(client: AsyncClient):
    response = await client.get("/docs", follow_redirects=True)
    assert response.status_code == 200, "GET /docs must return 200 (OpenAPI UI reachable)"


@pytest.mark.asyncio
async def test_version_endpoint(client: AsyncClient):
    response = await client.get("/api/version")
    assert response.status_code == 200
    assert re.fullmatch(r"\d+\.\d+\.\d+", response.json()["version"])


@pytest.mark.asyncio
async def test_ready_returns_200(client: AsyncClient):
    """GET /api/ready returns 200 while the app can serve cards."""
    response = await client.get("/api/ready")
    assert response.status_code == 200
    data = response.json()
    assert data.get("status") == "ready"
    assert data["github_token_configured"] is True
    assert data["usage_store"] == "memory"
    assert "wrapped" in data["card_types"]


@pytest.mark.asyncio
async def test_ready_reports_missing_token(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    response = await client.get("/api/ready")
    assert response.status_code == 200
    assert response.json()["github_token_configured"] is False


@pytest.mark.asyncio
async def test_ready_returns_503_without_store(client: AsyncClient):
    app.state.usage_store = None
    response = await client.get("/api/ready")
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_cors_allows_origins(client: AsyncClient):
    """CORS middleware allows cross-origin requests."""
    response = await client.get(
        "/api/health",
        headers={"Origin": "http://localhost:3000"},
    )
    assert response.status_code == 200
    assert "access-control-allow-origin" in [h.lower() for h in response.headers.keys()]


@pytest.mark.asyncio
async def test_health_api_contract(client: AsyncClient):
    """Full API contract for GET /api/health: 200, exact keys, status ok, semver, ISO8601 UTC."""
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.headers.get("content-type", "").startswith("application/json")
    data = response.json()
    assert set(data.keys()) == {"status", "version", "timestamp", "started_at", "uptime_seconds", "card_types"}
    assert data["status"] == "ok"
    assert re.fullmatch(r"\d+\.\d+\.\d+", data["version"]), f"version must match MAJOR.MINOR.PATCH: {data['version']}"
    assert isinstance(data["uptime_seconds"], int) and data["uptime_seconds"] >= 0
    for key in ("timestamp", "started_at"):
        ts = data[key]
        assert ts.endswith("Z"), f"{key} must end with Z"
        dt = datetime.fromisoformat(ts.replace("Z", "+00:00"))
        assert dt.tzinfo is not None, f"{key} must be ISO8601 UTC"
