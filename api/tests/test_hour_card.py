"""Tests for the contributions-by-hour card (type=hour)."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest
import respx
from dateutil.relativedelta import relativedelta
from httpx import AsyncClient, Response

from app.services import hour_card_service
from app.services.github_client import GitHubAPIError, GitHubClient
from github_payloads import GRAPHQL_URL, svg_text


def _collection(*timestamps: str) -> dict:
    nodes = [{"occurredAt": ts} for ts in timestamps]
    return {
        "data": {
            "user": {
                "contributionsCollection": {
                    "commitContributionsByRepository": [{"contributions": {"nodes": nodes[:1]}}],
                    "issueContributions": {"nodes": nodes[1:2]},
                    "pullRequestContributions": {"nodes": nodes[2:]},
                    "pullRequestReviewContributions": {"nodes": []},
                }
            }
        }
    }


@pytest.mark.parametrize(
    "end",
    [
        datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc),
        datetime(2024, 2, 29, 23, 59, tzinfo=timezone.utc),
        datetime(2025, 12, 31, 0, 0, tzinfo=timezone.utc),
    ],
)
def test_year_windows_cover_trailing_year(end: datetime):
    windows = hour_card_service.year_windows(end)

    assert 1 <= len(windows) <= 4
    assert windows[0][0] == end - relativedelta(years=1)
    assert windows[-1][1] == end
    for (_, prev_end), (next_start, _) in zip(windows, windows[1:]):
        assert prev_end == next_start
    for start, stop in windows:
        assert start < stop
        assert stop - start <= timedelta(days=93)


def test_bucket_hours_applies_offsets():
    stamps = [
        datetime(2026, 1, 1, 20, 0, tzinfo=timezone.utc),
        datetime(2026, 1, 1, 3, 0, tzinfo=timezone.utc),
        datetime(2026, 1, 1, 23, 45),
    ]
    assert hour_card_service.bucket_hours(stamps)[20] == 1

    shifted = hour_card_service.bucket_hours(stamps, 5.5)
    assert shifted[1] == 1  # 20:00Z + 5:30
    assert shifted[8] == 1  # 03:00Z + 5:30
    assert shifted[5] == 1  # 23:45 (naive, read as UTC) + 5:30

    west = hour_card_service.bucket_hours(stamps, -8)
    assert west[12] == 1
    assert west[19] == 1
    assert west[15] == 1

    for offset in (0, 5.5, -8, 14, -12):
        assert sum(hour_card_service.bucket_hours(stamps, offset)) == len(stamps)


@pytest.mark.parametrize("offset", [1e8, -1e8, 1e15, 48.5])
def test_bucket_hours_wraps_large_offsets(offset: float):
    stamps = [
        datetime(2026, 1, 1, 20, 0, tzinfo=timezone.utc),
        datetime(2026, 1, 1, 3, 0, tzinfo=timezone.utc),
    ]
    counts = hour_card_service.bucket_hours(stamps, offset)

    assert sum(counts) == len(stamps)
    assert counts == hour_card_service.bucket_hours(stamps, offset % 24)


@pytest.mark.asyncio
@respx.mock
async def test_hour_card_survives_huge_offset(client: AsyncClient):
    respx.post(GRAPHQL_URL).mock(return_value=Response(200, json=_collection("2026-03-01T14:10:00Z")))

    response = await client.get("/", params={"type": "hour", "username": "octo", "offset": "100000000"})

    assert response.status_code == 200
    assert "Commits by Hour" in svg_text(response.text)


@pytest.mark.parametrize("raw, expected", [(None, 0.0), ("", 0.0), ("abc", 0.0), ("5.5", 5.5), ("-8", -8.0), ("inf", 0.0)])
def test_parse_offset(raw, expected):
    assert hour_card_service.parse_offset(raw) == expected


@pytest.mark.asyncio
@respx.mock
async def test_histogram_sums_all_windows():
    route = respx.post(GRAPHQL_URL).mock(
        return_value=Response(200, json=_collection("2026-03-01T14:10:00Z", "2026-03-02T14:50:00Z", "2026-03-03T02:00:00Z"))
    )
    now = datetime(2026, 10, 19, tzinfo=timezone.utc)

    async with GitHubClient() as gh:
        histogram = await hour_card_service.build_hour_histogram(gh, "octo", offset_hours=-2, now=now)

    assert route.call_count == 4
    assert histogram.total == 12
    assert histogram.counts[12] == 8
    assert histogram.counts[0] == 4
    assert histogram.window_start == datetime(2025, 10, 19, tzinfo=timezone.utc)
    assert histogram.window_end == now

    sent = [json.loads(call.request.content)["variables"] for call in route.calls]
    assert {v["username"] for v in sent} == {"octo"}
    assert sorted(v["from"] for v in sent)[0] == "2025-10-19T00:00:00Z"
    assert sorted(v["to"] for v in sent)[-1] == "2026-10-19T00:00:00Z"


@pytest.mark.asyncio
@respx.mock
async def test_unknown_user_raises():
    respx.post(GRAPHQL_URL).mock(return_value=Response(200, json={"data": {"user": None}}))

    async with GitHubClient() as gh:
        with pytest.raises(GitHubAPIError) as exc_info:
            await hour_card_service.build_hour_histogram(gh, "ghost")

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
@respx.mock
async def test_hour_endpoint_renders_chart(client: AsyncClient):
    respx.post(GRAPHQL_URL).mock(return_value=Response(200, json=_collection("2026-03-01T14:10:00Z")))

    response = await client.get("/", params={"type": "hour", "username": "octo", "offset": "1"})

    assert response.status_code == 200
    assert response.headers["cache-control"] == "public, max-age=14400"
    text = svg_text(response.text)
    assert "Commits by Hour" in text
    assert " - " in text


@pytest.mark.asyncio
@respx.mock
async def test_hour_graphql_errors_are_http_500(client: AsyncClient):
    respx.post(GRAPHQL_URL).mock(
        return_value=Response(200, json={"data": None, "errors": [{"message": "Something went wrong"}]})
    )

    response = await client.get("/", params={"type": "hour", "username": "octo"})

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("image/svg+xml")
    assert response.headers["cache-control"] == "no-cache"
    assert "Something went wrong" in svg_text(response.text)


@pytest.mark.asyncio
async def test_hour_missing_username_is_200(client: AsyncClient):
    response = await client.get("/", params={"type": "hour"})

    assert response.status_code == 200
    assert "Missing parameter: ?type=hour&username=yourname" in svg_text(response.text)
