"""GitHub API response schemas.

Only the fields the card pipelines read are declared; everything else in the
upstream payload is ignored. A payload that does not match is rejected at the
client boundary (see ``github_client.GitHubClient``).
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _Upstream(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Label(_Upstream):
    name: str = ""


class SearchIssueItem(_Upstream):
    """One hit from ``GET /search/issues``."""

    repository_url: str
    title: str = ""
    labels: list[Label] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class SearchIssuesResponse(_Upstream):
    total_count: int = 0
    items: list[SearchIssueItem] = Field(default_factory=list)


class RepositoryOwner(_Upstream):
    login: str
    avatar_url: str = ""


class Repository(_Upstream):
    """``GET /repos/{owner}/{name}`` and ``/search/repositories`` items."""

    name: str
    full_name: str
    stargazers_count: int = 0
    owner: RepositoryOwner


class SearchRepositoriesResponse(_Upstream):
    total_count: int = 0
    items: list[Repository] = Field(default_factory=list)


class GitHubUser(_Upstream):
    login: str
    name: Optional[str] = None


class GitHubEvent(_Upstream):
    type: str
    created_at: datetime


# --- GraphQL ---


class GraphQLError(_Upstream):
    message: str = ""


class GraphQLResponse(_Upstream):
    data: Optional[dict] = None
    errors: Optional[list[GraphQLError]] = None


class RepoOwnerNode(_Upstream):
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")


class RepoDetailsNode(_Upstream):
    """Result of one aliased ``repository(owner:, name:)`` sub-query."""

    stargazer_count: int = Field(default=0, alias="stargazerCount")
    owner: Optional[RepoOwnerNode] = None


class OccurredAt(_Upstream):
    occurred_at: datetime = Field(alias="occurredAt")


class ContributionNodes(_Upstream):
    nodes: list[OccurredAt] = Field(default_factory=list)


class RepositoryCommitContributions(_Upstream):
    contributions: ContributionNodes


class ContributionsCollection(_Upstream):
    commit_contributions_by_repository: list[RepositoryCommitContributions] = Field(
        default_factory=list, alias="commitContributionsByRepository"
    )
    issue_contributions: ContributionNodes = Field(
        default_factory=ContributionNodes, alias="issueContributions"
    )
    pull_request_contributions: ContributionNodes = Field(
        default_factory=ContributionNodes, alias="pullRequestContributions"
    )
    pull_request_review_contributions: ContributionNodes = Field(
        default_factory=ContributionNodes, alias="pullRequestReviewContributions"
    )

    def timestamps(self) -> list[datetime]:
        """All ``occurredAt`` values in this window, commits first."""
        out: list[datetime] = []
        for repo in self.commit_contributions_by_repository:
            out.extend(node.occurred_at for node in repo.contributions.nodes)
        for group in (
            self.issue_contributions,
            self.pull_request_contributions,
            self.pull_request_review_contributions,
        ):
            out.extend(node.occurred_at for node in group.nodes)
        return out


class ContributionsUser(_Upstream):
    contributions_collection: ContributionsCollection = Field(alias="contributionsCollection")


class ContributionsData(_Upstream):
    user: Optional[ContributionsUser] = None
