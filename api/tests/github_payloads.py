"""Canned GitHub payloads and assertions shared by the card tests."""

from __future__ import annotations

import xml.etree.ElementTree as ET

GITHUB_API = "https://api.github.com"
GRAPHQL_URL = f"{GITHUB_API}/graphql"
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"


def search_item(owner: str, name: str, title: str = "Fix bug", labels: list[str] | None = None) -> dict:
    return {
        "repository_url": f"{GITHUB_API}/repos/{owner}/{name}",
        "title": title,
        "labels": [{"name": label} for label in (labels or [])],
        "created_at": "2026-01-02T03:04:05Z",
    }


def repo_payload(owner: str, name: str, stars: int = 10) -> dict:
    return {
        "name": name,
        "full_name": f"{owner}/{name}",
        "stargazers_count": stars,
        "owner": {"login": owner, "avatar_url": f"https://avatars.githubusercontent.com/{owner}"},
    }


def parse_svg(svg_text: str) -> ET.Element:
    root = ET.fromstring(svg_text)
    assert root.tag.endswith("svg")
    return root


def svg_text(svg_markup: str) -> str:
    return " ".join(parse_svg(svg_markup).itertext())
