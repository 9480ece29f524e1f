"""Activity snapshot (``type=wrapped``): busiest weekday and peak hour.

Buckets the last 300 public events in the caller's IANA timezone, so DST
shifts are honoured.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timezone, tzinfo
from typing import Sequence

from dateutil import tz

from app.models.cards import WrappedSummary
from app.models.error import EmptyResultError, InvalidParameterError
from app.models.github import GitHubEvent
from app.services.github_client import GitHubClient

logger = logging.getLogger(__name__)

EVENT_PAGES = 3
EVENTS_PER_PAGE = 100
CODING_EVENT_TYPES = frozenset({"PushEvent", "PullRequestEvent", "CreateEvent"})
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def resolve_timezone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    zone = tz.gettz(name)
    if zone is None:
        raise InvalidParameterError(f"Unknown timezone: {name}")
    return zone


def first_max_index(counts: Sequence[int]) -> int:
    """Index of the largest count; the earliest index wins ties."""
    best = 0
    for i, count in enumerate(counts):
        if count > counts[best]:
            best = i
    return best


async def fetch_recent_events(gh: GitHubClient, username: str) -> list[GitHubEvent]:
    """Up to three pages of events; only the first page is required to succeed."""
    pages = await asyncio.gather(
        *(gh.list_user_events(username, page, EVENTS_PER_PAGE) for page in range(1, EVENT_PAGES + 1)),
        return_exceptions=True,
    )
    events: list[GitHubEvent] = []
    for page_number, page in enumerate(pages, start=1):
        if isinstance(page, BaseException):
            if page_number == 1:
                raise page
            logger.warning("events_page_failed username=%s page=%s error=%s", username, page_number, page)
            continue
        events.extend(page)
    return events


def summarize_events(events: Sequence[GitHubEvent], username: str, zone_name: str) -> WrappedSummary:
    zone = resolve_timezone(zone_name)
    if not events:
        raise EmptyResultError("No recent activity found")

    summary = WrappedSummary(username=username, timezone=zone_name)
    for event in events:
        if event.type not in CODING_EVENT_TYPES:
            continue
        created = event.created_at
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        local = created.astimezone(zone)
        # isoweekday: Monday=1 .. Sunday=7; index 0 is Sunday.
        summary.day_counts[local.isoweekday() % 7] += 1
        summary.hour_counts[local.hour] += 1
        summary.total_events += 1

    if summary.total_events == 0:
        raise EmptyResultError(f"No coding activity found in last {EVENT_PAGES * EVENTS_PER_PAGE} events")

    summary.busiest_day = DAY_NAMES[first_max_index(summary.day_counts)]
    summary.peak_hour = first_max_index(summary.hour_counts)
    return summary


async def build_wrapped_summary(gh: GitHubClient, username: str, zone_name: str = "UTC") -> WrappedSummary:
    resolve_timezone(zone_name)
    events = await fetch_recent_events(gh, username)
    summary = summarize_events(events, username, zone_name)
    logger.info(
        "wrapped_card_built username=%s events=%s qualifying=%s tz=%s",
        username,
        len(events),
        summary.total_events,
        zone_name,
    )
    return summary
