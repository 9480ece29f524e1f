"""Health, readiness and landing endpoints."""

from datetime import datetime, timezone
from typing import Annotated, Literal

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from app.adapters.usage_store import SqlUsageStore
from app.services.github_client import github_token

router = APIRouter()

SERVICE_NAME = "README Contribution Stats"
HEALTH_VERSION = "1.0.0"
CARD_TYPES = ("repos", "repo", "hour", "wrapped", "usage")
SERVICE_STARTED_AT = datetime.now(timezone.utc)


def _iso_utc(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def landing_payload() -> dict:
    """Body of the bare ``GET /`` request."""
    return {
        "name": SERVICE_NAME,
        "version": HEALTH_VERSION,
        "docs": "/docs",
        "health": "/api/health",
        "example": "/?type=repos&username=octocat&limit=6",
    }


class HealthResponse(BaseModel):
    """GET /api/health response."""

    model_config = ConfigDict(extra="forbid")
    status: Annotated[str, Field(description="'ok' or 'ready'")]
    version: Annotated[str, Field(description="Semver MAJOR.MINOR.PATCH")]
    timestamp: Annotated[str, Field(description="ISO8601 UTC")]
    started_at: Annotated[str, Field(description="ISO8601 UTC when the process started")]
    uptime_seconds: Annotated[int, Field(ge=0)]
    card_types: Annotated[list[str], Field(description="Values accepted by ?type=")]


class ReadyResponse(HealthResponse):
    github_token_configured: bool
    usage_store: Annotated[Literal["memory", "sql"], Field(description="Usage counter backend")]


def _status_fields(status: str) -> dict:
    now = datetime.now(timezone.utc)
    return {
        "status": status,
        "version": HEALTH_VERSION,
        "timestamp": _iso_utc(now),
        "started_at": _iso_utc(SERVICE_STARTED_AT),
        "uptime_seconds": max(0, int((now - SERVICE_STARTED_AT).total_seconds())),
        "card_types": list(CARD_TYPES),
    }


@router.get("/version")
async def version():
    return {"version": HEALTH_VERSION}


@router.get("/ready", response_model=ReadyResponse)
async def ready(request: Request):
    """Readiness check: 503 until a usage store is attached to the app."""
    store = getattr(request.app.state, "usage_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="usage store not attached")
    return ReadyResponse(
        **_status_fields("ready"),
        github_token_configured=bool(github_token()),
        usage_store="sql" if isinstance(store, SqlUsageStore) else "memory",
    )


@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(**_status_fields("ok"))
