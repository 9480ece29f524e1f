"""GitHub API client for card rendering.

Async REST + GraphQL wrapper with:
- optional token auth (GITHUB_TOKEN, falling back to GH_TOKEN)
- pydantic validation of every payload (shape mismatch is an upstream error)
- no retries: any non-2xx status raises immediately
"""

from __future__ import annotations

import base64
import logging
import os
from typing import Any, Optional, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from app.models.github import (
    GitHubEvent,
    GitHubUser,
    GraphQLResponse,
    Repository,
    SearchIssuesResponse,
    SearchRepositoriesResponse,
)

logger = logging.getLogger(__name__)

USER_AGENT = "readme-contribution-stats"

ModelT = TypeVar("ModelT", bound=BaseModel)


class GitHubAPIError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitHubGraphQLError(GitHubAPIError):
    pass


def github_token() -> Optional[str]:
    env_token = os.getenv("GITHUB_TOKEN")
    if not env_token:
        env_token = os.getenv("GH_TOKEN")
    if env_token:
        env_token = env_token.strip() or None
    return env_token


def _timeout_seconds() -> float:
    raw = os.getenv("GITHUB_TIMEOUT_SECONDS", "20").strip()
    try:
        return max(1.0, float(raw))
    except ValueError:
        return 20.0


class GitHubClient:
    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        graphql_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._token = token or github_token()
        self._base_url = (base_url or os.getenv("GITHUB_API_URL") or "https://api.github.com").rstrip("/")
        self._graphql_url = graphql_url or os.getenv("GITHUB_GRAPHQL_URL") or f"{self._base_url}/graphql"
        self._timeout = timeout if timeout is not None else _timeout_seconds()
        self._headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }
        if self._token:
            self._headers["Authorization"] = f"Bearer {self._token}"
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "GitHubClient":
        self._client = httpx.AsyncClient(timeout=self._timeout)
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def http(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("GitHubClient is not open; use it with 'async with'")
        return self._client

    def _url(self, path: str) -> str:
        return path if path.startswith("http") else f"{self._base_url}{path}"

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        return await self.http.get(self._url(path), params=params, headers=self._headers)

    @staticmethod
    def _raise_for_status(r: httpx.Response) -> None:
        if r.status_code >= 400:
            raise GitHubAPIError(f"GitHub API Error: {r.status_code}", status_code=r.status_code)

    @staticmethod
    def _parse(model: type[ModelT], r: httpx.Response) -> ModelT:
        try:
            return model.model_validate(r.json())
        except (ValueError, ValidationError) as exc:
            raise GitHubAPIError(
                f"Unexpected GitHub payload for {r.request.url.path}: {exc.__class__.__name__}",
                status_code=r.status_code,
            ) from exc

    # --- REST ---

    async def search_issues(self, query: str, per_page: int = 100) -> SearchIssuesResponse:
        r = await self._get("/search/issues", {"q": query, "per_page": per_page})
        self._raise_for_status(r)
        return self._parse(SearchIssuesResponse, r)

    async def search_repositories(self, query: str) -> SearchRepositoriesResponse:
        r = await self._get("/search/repositories", {"q": query})
        if r.status_code >= 400:
            raise GitHubAPIError(f"Search failed: {r.status_code}", status_code=r.status_code)
        return self._parse(SearchRepositoriesResponse, r)

    async def get_repo(self, full_name: str) -> Optional[Repository]:
        """Repository by ``owner/name``; ``None`` on 404."""
        r = await self._get(f"/repos/{quote(full_name, safe='/')}")
        if r.status_code == 404:
            return None
        self._raise_for_status(r)
        return self._parse(Repository, r)

    async def get_user(self, username: str) -> Optional[GitHubUser]:
        """User profile, or ``None`` when the lookup fails for any reason."""
        try:
            r = await self._get(f"/users/{quote(username, safe='')}")
        except httpx.HTTPError as exc:
            logger.warning("github_user_lookup_failed username=%s error=%s", username, exc)
            return None
        if r.status_code >= 400:
            return None
        try:
            return self._parse(GitHubUser, r)
        except GitHubAPIError:
            return None

    async def list_user_events(self, username: str, page: int, per_page: int = 100) -> list[GitHubEvent]:
        r = await self._get(
            f"/users/{quote(username, safe='')}/events",
            {"per_page": per_page, "page": page},
        )
        self._raise_for_status(r)
        try:
            payload = r.json()
            if not isinstance(payload, list):
                raise ValueError("events payload is not a list")
            return [GitHubEvent.model_validate(row) for row in payload]
        except (ValueError, ValidationError) as exc:
            raise GitHubAPIError(f"Unexpected GitHub events payload: {exc.__class__.__name__}") from exc

    # --- GraphQL ---

    async def graphql(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        *,
        allow_partial: bool = False,
    ) -> dict:
        """POST a GraphQL query and return ``data``.

        With ``allow_partial`` the ``data`` object is returned even when the
        body also carries ``errors`` (aliased batch queries where some entries
        failed to resolve).
        """
        body: dict[str, Any] = {"query": query}
        if variables:
            body["variables"] = variables
        headers = dict(self._headers)
        headers["Content-Type"] = "application/json"
        r = await self.http.post(self._graphql_url, json=body, headers=headers)
        self._raise_for_status(r)
        parsed = self._parse(GraphQLResponse, r)
        if parsed.errors:
            if not allow_partial or parsed.data is None:
                raise GitHubGraphQLError(f"GitHub GraphQL Error: {parsed.errors[0].message}")
            logger.warning("github_graphql_partial errors=%s", len(parsed.errors))
        if parsed.data is None:
            raise GitHubGraphQLError("GitHub GraphQL Error: response has no data")
        return parsed.data

    # --- Raw images ---

    async def fetch_image_base64(self, url: str) -> tuple[str, str]:
        """Fetch an image and return ``(base64, mime)``; ``("", mime)`` on failure.

        Avatar hosts are not GitHub API hosts, so the token is not sent.
        """
        mime = "image/png"
        if not url:
            return "", mime
        try:
            r = await self.http.get(url, headers={"User-Agent": USER_AGENT}, follow_redirects=True)
        except httpx.HTTPError as exc:
            logger.warning("avatar_fetch_failed url=%s error=%s", url, exc)
            return "", mime
        if r.status_code >= 400:
            logger.warning("avatar_fetch_failed url=%s status=%s", url, r.status_code)
            return "", mime
        content_type = (r.headers.get("content-type") or "").split(";", 1)[0].strip()
        if content_type.startswith("image/"):
            mime = content_type
        return base64.b64encode(r.content).decode("ascii"), mime
