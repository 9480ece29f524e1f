"""Aggregates produced by the card pipelines and consumed by the SVG renderer."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

ContributionKind = Literal["pr", "issue"]
ContributionType = Literal["Code", "Docs"]

DOCS_KEYWORDS = ("doc", "readme", "typo", "edit")


class ContributionItem(BaseModel):
    """One matched pull-request/issue search result."""

    full_name: str
    owner: str
    name: str
    title: str = ""
    labels: list[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    kind: ContributionKind = "pr"

    @property
    def classification(self) -> ContributionType:
        text = (self.title + " ".join(self.labels)).lower()
        if any(keyword in text for keyword in DOCS_KEYWORDS):
            return "Docs"
        return "Code"


class RepoAggregate(BaseModel):
    """Per-repository fold of contribution items (keyed by ``full_name``)."""

    full_name: str
    owner: str
    name: str
    pr_count: int = 0
    issue_count: int = 0
    types: list[ContributionType] = Field(default_factory=list)
    stars: int = 0
    avatar_url: str = ""
    avatar_base64: str = ""
    avatar_mime: str = "image/png"

    @property
    def contribution_count(self) -> int:
        return self.pr_count + self.issue_count

    @property
    def contribution_type(self) -> str:
        if "Code" in self.types and "Docs" in self.types:
            return "Code + Docs"
        return self.types[0] if self.types else "Code"

    def add(self, item: ContributionItem) -> None:
        if item.kind == "issue":
            self.issue_count += 1
        else:
            self.pr_count += 1
        tag = item.classification
        if tag not in self.types:
            self.types.append(tag)


class SingleRepoStats(BaseModel):
    name: str
    owner: str
    full_name: str
    stars: int = 0
    pr_count: int = 0
    avatar_base64: str = ""
    avatar_mime: str = "image/png"
    transparent: bool = False


class HourHistogram(BaseModel):
    counts: list[int] = Field(default_factory=lambda: [0] * 24)
    window_start: datetime
    window_end: datetime

    @property
    def total(self) -> int:
        return sum(self.counts)


class WrappedSummary(BaseModel):
    username: str
    timezone: str
    day_counts: list[int] = Field(default_factory=lambda: [0] * 7)
    hour_counts: list[int] = Field(default_factory=lambda: [0] * 24)
    total_events: int = 0
    busiest_day: str = ""
    peak_hour: int = 0
