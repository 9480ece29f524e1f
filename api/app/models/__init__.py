"""Pydantic models."""

from app.models.cards import (
    ContributionItem,
    HourHistogram,
    RepoAggregate,
    SingleRepoStats,
    WrappedSummary,
)
from app.models.error import CardError, EmptyResultError, InvalidParameterError, MissingParameterError

__all__ = [
    "CardError",
    "ContributionItem",
    "EmptyResultError",
    "HourHistogram",
    "InvalidParameterError",
    "MissingParameterError",
    "RepoAggregate",
    "SingleRepoStats",
    "WrappedSummary",
]
