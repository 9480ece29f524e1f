from __future__ import annotations

import importlib.util
import sys
from pathlib import Path

import pytest
import respx
from httpx import Response

from github_payloads import GITHUB_API, svg_text


def _load_module():
    api_root = Path(__file__).resolve().parents[1]
    script = api_root / "scripts" / "render_card.py"
    spec = importlib.util.spec_from_file_location("render_card", script)
    assert spec and spec.loader
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


def test_renders_usage_badge_to_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    mod = _load_module()
    out = tmp_path / "badge.svg"
    monkeypatch.setattr(sys, "argv", ["render_card.py", "--type", "stats", "-o", str(out)])

    mod.main()

    assert "unique users" in svg_text(out.read_text(encoding="utf-8"))


def test_error_card_exits_non_zero(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    mod = _load_module()
    out = tmp_path / "hour.svg"
    monkeypatch.setattr(sys, "argv", ["render_card.py", "--type", "hour", "-o", str(out)])

    with pytest.raises(SystemExit) as exc_info:
        mod.main()

    assert exc_info.value.code == 1
    assert "Missing parameter" in svg_text(out.read_text(encoding="utf-8"))


@respx.mock
def test_flags_reach_the_pipeline(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    mod = _load_module()
    events = respx.get(f"{GITHUB_API}/users/octo/events").mock(
        return_value=Response(200, json=[{"type": "PushEvent", "created_at": "2026-07-01T19:30:00Z"}])
    )
    monkeypatch.setattr(
        sys, "argv", ["render_card.py", "--type", "wrapped", "--username", "octo", "--timezone", "Europe/Berlin"]
    )

    mod.main()

    assert events.call_count == 3
    assert "9 PM" in svg_text(capsys.readouterr().out)
