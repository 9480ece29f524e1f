"""Card endpoint: ``GET /?type=...&username=...`` renders an SVG."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional, Union

import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response
from fastapi.responses import JSONResponse

from app.adapters.usage_store import UsageStore
from app.models.error import CardError, MissingParameterError
from app.routers.health import landing_payload
from app.services import (
    hour_card_service,
    repo_card_service,
    repos_card_service,
    svg_render,
    usage_counter_service,
    wrapped_card_service,
)
from app.services.github_client import GitHubAPIError, GitHubClient

logger = logging.getLogger(__name__)

router = APIRouter()

SVG_MEDIA_TYPE = "image/svg+xml"
CACHE_SUCCESS = "public, max-age=14400"
CACHE_USAGE = "public, max-age=60"
CACHE_ERROR = "no-cache"

DEFAULT_TYPE = "repos"
USAGE_TYPES = {"usage", "stats"}
# Upstream and unexpected failures on these types surface as HTTP 500; the
# rest always answer 200 because they are embedded as <img>.
STRICT_TYPES = {"repos", "hour"}


async def get_github_client() -> AsyncIterator[GitHubClient]:
    async with GitHubClient() as gh:
        yield gh


def get_usage_store(request: Request) -> UsageStore:
    return request.app.state.usage_store


def svg_response(body: str, status_code: int = 200, cache_control: str = CACHE_SUCCESS) -> Response:
    return Response(
        content=body,
        status_code=status_code,
        media_type=SVG_MEDIA_TYPE,
        headers={"Cache-Control": cache_control},
    )


def error_response(message: str, status_code: int = 200) -> Response:
    return svg_response(svg_render.error_svg(message), status_code=status_code, cache_control=CACHE_ERROR)


class CardParams:
    def __init__(
        self,
        username: Optional[str],
        title: Optional[str],
        limit: Optional[str],
        sort: Optional[str],
        exclude: Optional[str],
        prs: Optional[str],
        issues: Optional[str],
        repo: Optional[str],
        transparent: Optional[str],
        offset: Optional[str],
        timezone: Optional[str],
    ) -> None:
        self.username = (username or "").strip()
        self.title = title
        self.limit = limit
        self.sort = sort
        self.exclude = exclude
        self.prs = prs
        self.issues = issues
        self.repo = (repo or "").strip()
        self.transparent = (transparent or "").strip().lower() == "true"
        self.offset = offset
        self.timezone = (timezone or "").strip() or "UTC"


async def _repos_card(params: CardParams, gh: GitHubClient, store: UsageStore) -> Response:
    if not params.username:
        raise MissingParameterError("Missing parameter: ?type=repos&username=yourname&limit=6")
    search_prs, search_issues = repos_card_service.search_sources(params.prs, params.issues)
    title, repos = await repos_card_service.build_repos_card(
        gh,
        params.username,
        title=params.title,
        limit=repos_card_service.parse_limit(params.limit),
        sort=params.sort,
        exclude=repos_card_service.parse_exclude(params.exclude),
        search_prs=search_prs,
        search_issues=search_issues,
    )
    return svg_response(svg_render.repos_card_svg(repos, title))


async def _repo_card(params: CardParams, gh: GitHubClient, store: UsageStore) -> Response:
    if not params.username or not params.repo:
        raise MissingParameterError("Missing parameters: username and repo required")
    stats = await repo_card_service.build_repo_card(
        gh, params.username, params.repo, transparent=params.transparent
    )
    return svg_response(svg_render.single_repo_svg(stats))


async def _hour_card(params: CardParams, gh: GitHubClient, store: UsageStore) -> Response:
    if not params.username:
        raise MissingParameterError("Missing parameter: ?type=hour&username=yourname")
    histogram = await hour_card_service.build_hour_histogram(
        gh, params.username, offset_hours=hour_card_service.parse_offset(params.offset)
    )
    return svg_response(svg_render.hour_chart_svg(histogram))


async def _wrapped_card(params: CardParams, gh: GitHubClient, store: UsageStore) -> Response:
    if not params.username:
        raise MissingParameterError("Missing parameter: ?type=wrapped&username=yourname")
    summary = await wrapped_card_service.build_wrapped_summary(gh, params.username, params.timezone)
    return svg_response(svg_render.wrapped_svg(summary))


async def _usage_badge(params: CardParams, gh: GitHubClient, store: UsageStore) -> Response:
    try:
        count = await asyncio.to_thread(usage_counter_service.unique_users, store)
    except Exception:
        logger.warning("usage_counter_read_failed", exc_info=True)
        count = 0
    return svg_response(svg_render.badge_svg("unique users", count), cache_control=CACHE_USAGE)


CardHandler = Callable[[CardParams, GitHubClient, UsageStore], Awaitable[Response]]

HANDLERS: dict[str, CardHandler] = {
    "repos": _repos_card,
    "repo": _repo_card,
    "hour": _hour_card,
    "wrapped": _wrapped_card,
    "usage": _usage_badge,
    "stats": _usage_badge,
}


@router.get("/", response_model=None)
async def render_card(
    request: Request,
    background_tasks: BackgroundTasks,
    card_type: Optional[str] = Query(None, alias="type", description="repos | repo | hour | wrapped | usage"),
    username: Optional[str] = Query(None, description="GitHub login"),
    title: Optional[str] = Query(None),
    limit: Optional[str] = Query(None, description="Number of repositories (repos), default 6"),
    sort: Optional[str] = Query(None, description="stars | contributions"),
    exclude: Optional[str] = Query(None, description="Comma separated repo names or owner/name"),
    prs: Optional[str] = Query(None),
    issues: Optional[str] = Query(None),
    repo: Optional[str] = Query(None, description="URL, owner/name or bare name"),
    transparent: Optional[str] = Query(None),
    offset: Optional[str] = Query(None, description="UTC offset in hours (hour)"),
    timezone: Optional[str] = Query(None, description="IANA timezone (wrapped)"),
    gh: GitHubClient = Depends(get_github_client),
    store: UsageStore = Depends(get_usage_store),
) -> Union[Response, JSONResponse]:
    """Render the requested card. Without any query parameters, return the landing document."""
    if not request.query_params:
        return JSONResponse(landing_payload())

    selected = (card_type or DEFAULT_TYPE).strip().lower() or DEFAULT_TYPE
    params = CardParams(
        username, title, limit, sort, exclude, prs, issues, repo, transparent, offset, timezone
    )

    if params.username and selected not in USAGE_TYPES:
        background_tasks.add_task(usage_counter_service.record_visit_safely, store, params.username)

    return await dispatch_card(selected, params, gh, store)


async def dispatch_card(selected: str, params: CardParams, gh: GitHubClient, store: UsageStore) -> Response:
    """Run the handler for ``selected`` and map failures to error cards."""
    handler = HANDLERS.get(selected)
    if handler is None:
        if not params.username:
            return error_response("Missing parameter: ?username=yourname")
        return error_response(f"Unknown card type: {selected}")

    failure_status = 500 if selected in STRICT_TYPES else 200
    try:
        return await handler(params, gh, store)
    except CardError as exc:
        return error_response(exc.message, exc.status_code)
    except (GitHubAPIError, httpx.HTTPError) as exc:
        logger.warning("card_upstream_failed type=%s username=%s error=%s", selected, params.username, exc)
        return error_response(str(exc) or exc.__class__.__name__, failure_status)
    except Exception as exc:
        logger.exception("card_render_failed type=%s username=%s", selected, params.username)
        return error_response(str(exc) or exc.__class__.__name__, failure_status)
