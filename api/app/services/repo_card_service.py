"""Single repository card (``type=repo``)."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from app.models.cards import SingleRepoStats
from app.models.error import CardError
from app.models.github import Repository
from app.services.github_client import GitHubClient

logger = logging.getLogger(__name__)


def resolve_repo_path(repo_param: str, username: str) -> str:
    """Normalize a URL, ``owner/name`` or bare name to ``owner/name``.

    Bare names are assumed to belong to ``username``.
    """
    value = repo_param.strip()
    if "://" in value:
        path = urlparse(value).path.strip("/")
        if path.endswith(".git"):
            path = path[: -len(".git")]
        return path or value
    if "/" in value:
        return value
    return f"{username}/{value}"


async def find_repository(gh: GitHubClient, repo_param: str, username: str) -> Repository:
    full_path = resolve_repo_path(repo_param, username)
    repo = await gh.get_repo(full_path)
    if repo is not None:
        return repo

    logger.info("repo_lookup_fallback_search path=%s username=%s", full_path, username)
    found = await gh.search_repositories(f"{repo_param} user:{username}")
    if not found.items:
        raise CardError(f'Repository "{repo_param}" not found for user "{username}"')
    full_path = found.items[0].full_name
    repo = await gh.get_repo(full_path)
    if repo is None:
        raise CardError(f"Repo not found: {full_path}")
    return repo


async def count_merged_prs(gh: GitHubClient, username: str, full_name: str) -> int:
    result = await gh.search_issues(
        f"is:pr is:merged is:public author:{username} repo:{full_name}",
        per_page=1,
    )
    return result.total_count


async def build_repo_card(
    gh: GitHubClient,
    username: str,
    repo_param: str,
    *,
    transparent: bool = False,
) -> SingleRepoStats:
    repo = await find_repository(gh, repo_param, username)
    pr_count = await count_merged_prs(gh, username, repo.full_name)
    avatar, mime = await gh.fetch_image_base64(repo.owner.avatar_url)
    return SingleRepoStats(
        name=repo.name,
        owner=repo.owner.login,
        full_name=repo.full_name,
        stars=repo.stargazers_count,
        pr_count=pr_count,
        avatar_base64=avatar,
        avatar_mime=mime,
        transparent=transparent,
    )
