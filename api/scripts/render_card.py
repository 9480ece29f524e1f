#!/usr/bin/env python3
"""Render one card to a file without running the server.

Usage:
  python scripts/render_card.py --username octocat [--type repos] [-o card.svg] [-v]
  python scripts/render_card.py --type repo --username octocat --repo Hello-World --transparent
  python scripts/render_card.py --type hour --username octocat --offset -7
  python scripts/render_card.py --type wrapped --username octocat --timezone Europe/Berlin

Notes:
- Loads api/.env first, so GITHUB_TOKEN can live there
- Exit status 1 when the rendered card is an error card
- Visits are not counted
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

_api_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _api_dir)

from dotenv import load_dotenv

load_dotenv(os.path.join(_api_dir, ".env"))

from app.adapters.usage_store import build_usage_store
from app.routers.cards import CACHE_ERROR, DEFAULT_TYPE, CardParams, dispatch_card
from app.services.github_client import GitHubClient

log = logging.getLogger(__name__)


async def _render(args: argparse.Namespace) -> tuple[bytes, bool]:
    params = CardParams(
        username=args.username,
        title=args.title,
        limit=None if args.limit is None else str(args.limit),
        sort=args.sort,
        exclude=args.exclude,
        prs="true" if args.prs else None,
        issues="true" if args.issues else None,
        repo=args.repo,
        transparent="true" if args.transparent else None,
        offset=None if args.offset is None else str(args.offset),
        timezone=args.timezone,
    )
    async with GitHubClient() as gh:
        response = await dispatch_card(args.type.strip().lower(), params, gh, build_usage_store())
    failed = response.headers.get("cache-control") == CACHE_ERROR
    return response.body, failed


def main() -> None:
    ap = argparse.ArgumentParser(description="Render a README stats card to SVG")
    ap.add_argument("--type", default=DEFAULT_TYPE, help="repos | repo | hour | wrapped | usage (default repos)")
    ap.add_argument("--username", default=None, help="GitHub login")
    ap.add_argument("--title", default=None)
    ap.add_argument("--limit", type=int, default=None, help="Number of repositories (repos)")
    ap.add_argument("--sort", default=None, help="stars | contributions (repos)")
    ap.add_argument("--exclude", default=None, help="Comma separated repo names or owner/name (repos)")
    ap.add_argument("--prs", action="store_true", help="Search merged pull requests (repos)")
    ap.add_argument("--issues", action="store_true", help="Search authored issues (repos)")
    ap.add_argument("--repo", default=None, help="URL, owner/name or bare name (repo)")
    ap.add_argument("--transparent", action="store_true", help="Transparent background (repo)")
    ap.add_argument("--offset", type=float, default=None, help="UTC offset in hours (hour)")
    ap.add_argument("--timezone", default=None, help="IANA timezone (wrapped)")
    ap.add_argument("-o", "--output", default=None, help="Output path (default: stdout)")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    body, failed = asyncio.run(_render(args))
    if args.output:
        with open(args.output, "wb") as f:
            f.write(body)
        log.info("card written type=%s path=%s bytes=%d", args.type, args.output, len(body))
    else:
        sys.stdout.write(body.decode("utf-8"))
        sys.stdout.write("\n")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
