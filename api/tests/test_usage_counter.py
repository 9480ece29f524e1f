"""Tests for the unique-user counter and its badge (type=usage|stats)."""

from __future__ import annotations

import logging

import pytest
from httpx import AsyncClient

from app.adapters.usage_store import InMemoryUsageStore, SqlUsageStore, build_usage_store
from app.services import usage_counter_service
from github_payloads import svg_text


def test_record_visit_counts_each_login_once():
    store = InMemoryUsageStore()

    assert usage_counter_service.record_visit(store, "Octo") is True
    assert usage_counter_service.record_visit(store, "octo") is False
    assert usage_counter_service.record_visit(store, " OCTO ") is False
    assert usage_counter_service.record_visit(store, "hubot") is True

    assert usage_counter_service.unique_users(store) == 2
    assert store.get("user:octo") is not None


def test_corrupt_counter_restarts_from_zero():
    store = InMemoryUsageStore()
    store.put(usage_counter_service.GLOBAL_KEY, "not-a-number")

    usage_counter_service.record_visit(store, "octo")

    assert usage_counter_service.unique_users(store) == 1


def test_record_visit_safely_swallows_store_errors(caplog: pytest.LogCaptureFixture):
    class BrokenStore:
        def get(self, key):
            raise RuntimeError("store offline")

        def put(self, key, value):
            raise RuntimeError("store offline")

    usage_counter_service.record_visit_safely(BrokenStore(), "octo")

    assert "usage_counter_update_failed" in caplog.text


def test_sql_store_persists_across_instances(tmp_path):
    url = f"sqlite:///{tmp_path / 'usage.db'}"
    first = SqlUsageStore(url)
    usage_counter_service.record_visit(first, "octo")
    usage_counter_service.record_visit(first, "hubot")

    second = SqlUsageStore(url)
    assert usage_counter_service.unique_users(second) == 2
    assert usage_counter_service.record_visit(second, "octo") is False

    second.put("k", "v1")
    second.put("k", "v2")
    assert first.get("k") == "v2"
    assert first.get("missing") is None


def test_build_usage_store_selects_backend(monkeypatch: pytest.MonkeyPatch, tmp_path):
    assert isinstance(build_usage_store(), InMemoryUsageStore)
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'fallback.db'}")
    assert isinstance(build_usage_store(), SqlUsageStore)


def test_build_usage_store_falls_back_when_database_unreachable(
    monkeypatch: pytest.MonkeyPatch, tmp_path, caplog: pytest.LogCaptureFixture
):
    monkeypatch.setenv("USAGE_DATABASE_URL", f"sqlite:///{tmp_path / 'missing' / 'nested' / 'usage.db'}")

    with caplog.at_level(logging.WARNING, logger="app.adapters.usage_store"):
        store = build_usage_store()

    assert isinstance(store, InMemoryUsageStore)
    assert "usage_store_unavailable" in caplog.text


@pytest.mark.asyncio
async def test_card_request_records_visit_in_background(client: AsyncClient, usage_store: InMemoryUsageStore):
    # An invalid timezone fails before any upstream call; the visit still counts.
    params = {"type": "wrapped", "username": "Octo", "timezone": "Nowhere/Land"}
    await client.get("/", params=params)
    await client.get("/", params=params)

    assert usage_counter_service.unique_users(usage_store) == 1

    badge = await client.get("/", params={"type": "stats"})
    assert badge.status_code == 200
    assert badge.headers["content-type"].startswith("image/svg+xml")
    assert badge.headers["cache-control"] == "public, max-age=60"
    text = svg_text(badge.text)
    assert "unique users" in text
    assert "1" in text


@pytest.mark.asyncio
async def test_badge_requests_do_not_count(client: AsyncClient, usage_store: InMemoryUsageStore):
    await client.get("/", params={"type": "usage", "username": "octo"})

    assert usage_counter_service.unique_users(usage_store) == 0
