"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    # Upstream URLs and credentials must not leak in from the developer shell.
    for key in (
        "GH_TOKEN",
        "GITHUB_API_URL",
        "GITHUB_GRAPHQL_URL",
        "GITHUB_TIMEOUT_SECONDS",
        "USAGE_DATABASE_URL",
        "DATABASE_URL",
        "API_LOG_ALL_REQUESTS",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("GITHUB_TOKEN", "test-token")


@pytest.fixture
def usage_store():
    from app.adapters.usage_store import InMemoryUsageStore
    from app.main import app

    store = InMemoryUsageStore()
    previous = getattr(app.state, "usage_store", None)
    app.state.usage_store = store
    yield store
    app.state.usage_store = previous


@pytest_asyncio.fixture
async def client(usage_store):
    """ASGI client for the card endpoint."""
    from app.main import app

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
