from __future__ import annotations

import logging
import os
import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from app.adapters.usage_store import build_usage_store
from app.routers import cards, health

RUNTIME_HEADER = "x-readme-stats-runtime-ms"
CORRELATION_HEADERS = ("x-request-id", "x-vercel-id", "cf-ray")

app = FastAPI(title=health.SERVICE_NAME, version=health.HEALTH_VERSION)
logger = logging.getLogger("readme_stats.api")
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
logger.propagate = False
logger.setLevel(logging.INFO)


def _log_all_requests() -> bool:
    return os.getenv("API_LOG_ALL_REQUESTS", "").strip().lower() in {"1", "true", "yes", "on"}


def _slow_request_ms() -> float:
    try:
        return max(25.0, float(os.getenv("API_SLOW_REQUEST_MS", "1500").strip()))
    except ValueError:
        return 1500.0


def _request_origin(request: Request) -> tuple[str, str]:
    """(correlation id, client address) for log lines."""
    correlation = next((request.headers[h] for h in CORRELATION_HEADERS if request.headers.get(h)), "none")
    forwarded = request.headers.get("x-forwarded-for", "")
    client = forwarded.split(",", 1)[0].strip() or (request.client.host if request.client else "") or "unknown"
    return correlation, client


def _log_card_request(request: Request, status_code: int, elapsed_ms: float, exc_name: str | None) -> None:
    params = request.query_params
    correlation, client = _request_origin(request)
    level = logging.WARNING if status_code >= 500 or elapsed_ms >= _slow_request_ms() else logging.INFO
    logger.log(
        level,
        "card_request path=%s status=%s elapsed_ms=%.2f type=%s username=%s correlation=%s client=%s exception=%s",
        request.url.path,
        status_code,
        elapsed_ms,
        params.get("type") or ("landing" if request.url.path == "/" and not params else ""),
        params.get("username") or "",
        correlation,
        client,
        exc_name or "none",
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()],
    allow_methods=["GET"],
    allow_headers=["*"],
)

# SQL-backed when USAGE_DATABASE_URL / DATABASE_URL is set.
app.state.usage_store = build_usage_store()

app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(cards.router, tags=["cards"])


@app.middleware("http")
async def time_card_requests(request: Request, call_next):
    started = time.perf_counter()
    response: Response | None = None
    exc_name: str | None = None
    try:
        response = await call_next(request)
        return response
    except Exception as exc:
        exc_name = exc.__class__.__name__
        raise
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        status_code = response.status_code if response is not None else 500
        if response is not None:
            response.headers[RUNTIME_HEADER] = f"{max(0.1, elapsed_ms):.4f}"
        if status_code >= 500 or elapsed_ms >= _slow_request_ms() or _log_all_requests():
            _log_card_request(request, status_code, elapsed_ms, exc_name)
