"""External contributions card (``type=repos``).

Pipeline: search -> fold per repository -> cap candidates -> one batched
GraphQL lookup for stars/avatars -> sort -> truncate -> fetch avatars for the
survivors only. Subrequests are therefore bounded by ``limit`` plus a
constant (user, search(es), graphql).
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Iterable, Optional
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from app.models.cards import ContributionItem, RepoAggregate
from app.models.error import EmptyResultError
from app.models.github import RepoDetailsNode, SearchIssueItem
from app.services.github_client import GitHubAPIError, GitHubClient

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 6
MAX_CANDIDATES = 60
SORT_STARS = "stars"
SORT_CONTRIBUTIONS = "contributions"


def parse_limit(raw: Optional[str]) -> int:
    try:
        value = int((raw or "").strip())
    except ValueError:
        return DEFAULT_LIMIT
    return value if value > 0 else DEFAULT_LIMIT


def parse_exclude(raw: Optional[str]) -> set[str]:
    if not raw:
        return set()
    return {part.strip().lower() for part in raw.split(",") if part.strip()}


def _flag(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() in {"1", "true", "yes", "on"}


def search_sources(prs: Optional[str], issues: Optional[str]) -> tuple[bool, bool]:
    """Return ``(search_prs, search_issues)``; PRs unless only issues were asked for."""
    want_issues = _flag(issues)
    want_prs = _flag(prs) if prs is not None else not want_issues
    if not want_prs and not want_issues:
        want_prs = True
    return want_prs, want_issues


def pr_query(username: str) -> str:
    return f"is:pr is:merged is:public author:{username} -user:{username} sort:created-desc"


def issue_query(username: str) -> str:
    return f"is:issue is:public author:{username} -user:{username} sort:created-desc"


def repo_full_name(repository_url: str) -> str:
    """``https://api.github.com/repos/o/n`` -> ``o/n``."""
    segments = [s for s in urlparse(repository_url).path.split("/") if s]
    if "repos" in segments:
        segments = segments[segments.index("repos") + 1 :]
    return "/".join(segments[:2])


def to_contribution_item(item: SearchIssueItem, kind: str = "pr") -> Optional[ContributionItem]:
    full_name = repo_full_name(item.repository_url)
    owner, _, name = full_name.partition("/")
    if not owner or not name:
        return None
    return ContributionItem(
        full_name=full_name,
        owner=owner,
        name=name,
        title=item.title,
        labels=[label.name for label in item.labels],
        created_at=item.created_at,
        kind=kind,
    )


def fold_contributions(
    items: Iterable[ContributionItem],
    username: str,
    exclude: set[str],
) -> dict[str, RepoAggregate]:
    """Group items by repository, skipping the user's own and excluded repos."""
    login = username.lower()
    repos: dict[str, RepoAggregate] = {}
    for item in items:
        if item.name.lower() in exclude or item.full_name.lower() in exclude:
            continue
        if item.owner.lower() == login:
            continue
        repo = repos.get(item.full_name)
        if repo is None:
            repo = RepoAggregate(
                full_name=item.full_name,
                owner=item.owner,
                name=item.name,
                avatar_url=fallback_avatar_url(item.owner),
            )
            repos[item.full_name] = repo
        repo.add(item)
    return repos


def fallback_avatar_url(owner: str) -> str:
    return f"https://github.com/{owner}.png?size=64"


def _graphql_string(value: str) -> str:
    return json.dumps(value)


def repo_details_query(repos: list[RepoAggregate]) -> str:
    parts = [
        f"repo{i}: repository(owner: {_graphql_string(r.owner)}, name: {_graphql_string(r.name)}) "
        "{ stargazerCount owner { avatarUrl(size: 64) } }"
        for i, r in enumerate(repos)
    ]
    return "query {\n" + "\n".join(parts) + "\n}"


async def attach_repo_details(gh: GitHubClient, repos: list[RepoAggregate]) -> None:
    """Fill stars and avatar URLs in one GraphQL request; degrade on failure."""
    if not repos:
        return
    try:
        data = await gh.graphql(repo_details_query(repos), allow_partial=True)
    except (GitHubAPIError, httpx.HTTPError) as exc:
        logger.warning("repo_details_graphql_failed repos=%s error=%s", len(repos), exc)
        return
    for i, repo in enumerate(repos):
        raw = data.get(f"repo{i}")
        if not isinstance(raw, dict):
            continue
        try:
            details = RepoDetailsNode.model_validate(raw)
        except ValidationError:
            logger.warning("repo_details_unexpected_shape repo=%s", repo.full_name)
            continue
        repo.stars = details.stargazer_count
        if details.owner and details.owner.avatar_url:
            repo.avatar_url = details.owner.avatar_url


def sort_repos(repos: list[RepoAggregate], sort: Optional[str]) -> list[RepoAggregate]:
    if sort == SORT_STARS:
        return sorted(repos, key=lambda r: -r.stars)
    if sort == SORT_CONTRIBUTIONS:
        return sorted(repos, key=lambda r: -r.contribution_count)
    return sorted(repos, key=lambda r: (-r.stars, -r.contribution_count))


async def attach_avatars(gh: GitHubClient, repos: list[RepoAggregate]) -> None:
    results = await asyncio.gather(*(gh.fetch_image_base64(r.avatar_url) for r in repos))
    for repo, (data, mime) in zip(repos, results):
        repo.avatar_base64 = data
        repo.avatar_mime = mime


async def resolve_title(gh: GitHubClient, username: str, title: Optional[str]) -> str:
    if title:
        return title
    user = await gh.get_user(username)
    name = user.name.split(" ")[0] if user and user.name else username
    return f"{name}'s Open Source Contributions"


async def _search(gh: GitHubClient, username: str, want_prs: bool, want_issues: bool) -> list[ContributionItem]:
    jobs: list[tuple[str, str]] = []
    if want_prs:
        jobs.append(("pr", pr_query(username)))
    if want_issues:
        jobs.append(("issue", issue_query(username)))
    responses = await asyncio.gather(*(gh.search_issues(query) for _, query in jobs))
    items: list[ContributionItem] = []
    for (kind, _), response in zip(jobs, responses):
        for hit in response.items:
            item = to_contribution_item(hit, kind)
            if item is not None:
                items.append(item)
    return items


async def build_repos_card(
    gh: GitHubClient,
    username: str,
    *,
    title: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
    sort: Optional[str] = None,
    exclude: Optional[set[str]] = None,
    search_prs: bool = True,
    search_issues: bool = False,
) -> tuple[str, list[RepoAggregate]]:
    """Return ``(title, repos)`` ready for rendering.

    Raises ``EmptyResultError`` when nothing survives filtering.
    """
    resolved_title = await resolve_title(gh, username, title)
    items = await _search(gh, username, search_prs, search_issues)
    folded = fold_contributions(items, username, exclude or set())

    candidates = list(folded.values())[:MAX_CANDIDATES]
    await attach_repo_details(gh, candidates)

    selected = sort_repos(candidates, sort)[:limit]
    await attach_avatars(gh, selected)

    if not selected:
        raise EmptyResultError("No external contributions found")
    logger.info(
        "repos_card_built username=%s items=%s candidates=%s rendered=%s",
        username,
        len(items),
        len(candidates),
        len(selected),
    )
    return resolved_title, selected
