"""Contributions by hour of day (``type=hour``).

GraphQL connections cap at 100 nodes, so the trailing year is fetched as
three-month windows queried concurrently.
"""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta
from pydantic import ValidationError

from app.models.cards import HourHistogram
from app.models.github import ContributionsCollection, ContributionsData
from app.services.github_client import GitHubAPIError, GitHubClient

logger = logging.getLogger(__name__)

WINDOW_MONTHS = 3
MAX_WINDOWS = 4

CONTRIBUTIONS_QUERY = """
query($username: String!, $from: DateTime!, $to: DateTime!) {
  user(login: $username) {
    contributionsCollection(from: $from, to: $to) {
      startedAt
      endedAt
      commitContributionsByRepository(maxRepositories: 100) {
        contributions(first: 100) { nodes { occurredAt } }
      }
      issueContributions(first: 100) { nodes { occurredAt } }
      pullRequestContributions(first: 100) { nodes { occurredAt } }
      pullRequestReviewContributions(first: 100) { nodes { occurredAt } }
    }
  }
}
"""


def parse_offset(raw: Optional[str]) -> float:
    try:
        value = float((raw or "0").strip() or "0")
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def year_windows(end: datetime) -> list[tuple[datetime, datetime]]:
    """Split ``[end - 1 year, end)`` into at most four three-month windows."""
    start = end - relativedelta(years=1)
    windows: list[tuple[datetime, datetime]] = []
    cursor = start
    for k in range(MAX_WINDOWS):
        nxt = start + relativedelta(months=WINDOW_MONTHS * (k + 1))
        if k == MAX_WINDOWS - 1 or nxt > end:
            nxt = end
        windows.append((cursor, nxt))
        cursor = nxt
        if cursor >= end:
            break
    return windows


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


async def fetch_window(
    gh: GitHubClient, username: str, window: tuple[datetime, datetime]
) -> ContributionsCollection:
    data = await gh.graphql(
        CONTRIBUTIONS_QUERY,
        {"username": username, "from": _iso(window[0]), "to": _iso(window[1])},
    )
    try:
        parsed = ContributionsData.model_validate(data)
    except ValidationError as exc:
        raise GitHubAPIError(f"Unexpected GitHub contributions payload: {exc.error_count()} errors") from exc
    if parsed.user is None:
        raise GitHubAPIError(f"GitHub user not found: {username}", status_code=404)
    return parsed.user.contributions_collection


def bucket_hours(timestamps: Iterable[datetime], offset_hours: float = 0.0) -> list[int]:
    """Count timestamps per hour of day after shifting by ``offset_hours``."""
    # Offsets wrap modulo 24.
    shift = timedelta(hours=offset_hours % 24)
    counts = [0] * 24
    for ts in timestamps:
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        counts[(ts.astimezone(timezone.utc) + shift).hour] += 1
    return counts


async def build_hour_histogram(
    gh: GitHubClient,
    username: str,
    *,
    offset_hours: float = 0.0,
    now: Optional[datetime] = None,
) -> HourHistogram:
    end = now or datetime.now(timezone.utc)
    windows = year_windows(end)
    collections = await asyncio.gather(*(fetch_window(gh, username, w) for w in windows))

    timestamps: list[datetime] = []
    for collection in collections:
        timestamps.extend(collection.timestamps())
    histogram = HourHistogram(
        counts=bucket_hours(timestamps, offset_hours),
        window_start=windows[0][0],
        window_end=end,
    )
    logger.info(
        "hour_card_built username=%s windows=%s events=%s offset=%s",
        username,
        len(windows),
        histogram.total,
        offset_hours,
    )
    return histogram
