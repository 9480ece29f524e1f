"""SVG card renderers.

Pure functions: same input, same markup. Each card ships a light and a dark
palette in one ``<style>`` block keyed on ``prefers-color-scheme``.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Sequence, Union

from app.models.cards import HourHistogram, RepoAggregate, SingleRepoStats, WrappedSummary
from app.services.svg_builder import Element, fmt_num, group, image, path, rect, style, svg, text

FONT_STACK = "-apple-system, BlinkMacSystemFont, Segoe UI, sans-serif"

ICON_STAR = (
    "M8 .25a.75.75 0 01.673.418l1.882 3.815 4.21.612a.75.75 0 01.416 1.279l-3.046 2.97.719 "
    "4.192a.75.75 0 01-1.088.791L8 12.347l-3.766 1.98a.75.75 0 01-1.088-.79l.719-4.192-3.046-2.97a.75.75 "
    "0 01.416-1.28l4.21-.612L7.327.668A.75.75 0 018 .25z"
)
ICON_PR = (
    "M7.177 3.073L9.573.677A.25.25 0 0110 .854v4.792a.25.25 0 01-.427.177L7.177 3.427a.25.25 0 010-.354zM3.75 "
    "2.5a.75.75 0 100 1.5.75.75 0 000-1.5zm-2.25.75a2.25 2.25 0 113 2.122v5.256a2.25 2.25 0 11-1.5 0V5.372A2.25 "
    "2.25 0 011.5 3.25zM11 2.5h-1V4h1a1 1 0 011 1v5.628a2.25 2.25 0 101.5 0V5A2.5 2.5 0 0011 2.5zm1 10.25a.75.75 "
    "0 111.5 0 .75.75 0 01-1.5 0zM3.75 12a.75.75 0 100 1.5.75.75 0 000-1.5z"
)
ICON_CODE = (
    "M4.72 3.22a.75.75 0 011.06 1.06L2.06 8l3.72 3.72a.75.75 0 11-1.06 1.06L.47 8.53a.75.75 0 010-1.06l4.25-4.25zm11.56 "
    "0a.75.75 0 10-1.06 1.06L18.94 8l-3.72 3.72a.75.75 0 101.06 1.06l4.25-4.25a.75.75 0 000-1.06l-4.25-4.25z"
)
ICON_DOCS = (
    "M0 1.75A.75.75 0 01.75 1h4.253c1.227 0 2.317.59 3 1.501A3.744 3.744 0 0111.006 1h4.245a.75.75 0 01.75.75v10.5a.75.75 "
    "0 01-.75.75h-4.507a2.25 2.25 0 00-1.591.659l-.622.621a.75.75 0 01-1.06 0l-.622-.621A2.25 2.25 0 005.258 13H.75a.75.75 "
    "0 01-.75-.75V1.75zm8.755 3a2.25 2.25 0 012.25-2.25H14.5v9h-3.757c-.71 0-1.4.201-1.992.572l.004-7.322zm-1.504 "
    "7.324l.004-5.073-.002-2.253A2.25 2.25 0 005.003 2.5H1.5v9h3.757a3.676 3.676 0 011.997.574z"
)

AVATAR_CLIP = "inset(0% round 50%)"


def k_formatter(num: Union[int, float]) -> Union[int, str]:
    """Abbreviate magnitudes above 999 as one-decimal thousands (``1500`` -> ``"1.5k"``)."""
    if abs(num) > 999:
        scaled = math.copysign(float(f"{abs(num) / 1000:.1f}"), num)
        return f"{fmt_num(scaled)}k"
    return int(num) if float(num).is_integer() else num


def _data_uri(base64_data: str, mime: str) -> str:
    return f"data:{mime};base64,{base64_data}"


def error_svg(message: str) -> str:
    root = svg(400, 60, view_box=False)
    root.add(
        rect(width="100%", height="100%", fill="#f8d7da", rx=5),
        text(
            message,
            x="50%",
            y="50%",
            dominant_baseline="middle",
            text_anchor="middle",
            font_family="Arial",
            font_size=14,
            fill="#721c24",
        ),
    )
    return root.render()


def badge_svg(label: str, value: object) -> str:
    """Shields-style two-part badge."""
    value_text = str(value)
    label_width = len(label) * 7 + 20
    value_width = len(value_text) * 7 + 20
    total_width = label_width + value_width

    root = svg(total_width, 20, view_box=False)
    gradient = Element("linearGradient", id="b", x2="0", y2="100%").add(
        Element("stop", offset="0", stop_color="#bbb", stop_opacity=".1"),
        Element("stop", offset="1", stop_opacity=".1"),
    )
    mask = Element("mask", id="a").add(rect(width=total_width, height=20, rx=3, fill="#fff"))
    bars = group(
        path(f"M0 0h{label_width}v20H0z", fill="#555"),
        path(f"M{label_width} 0h{value_width}v20H{label_width}z", fill="#4c1"),
        path(f"M0 0h{total_width}v20H0z", fill="url(#b)"),
        mask="url(#a)",
    )
    label_x = label_width / 2
    value_x = label_width + value_width / 2
    labels = group(
        text(label, x=label_x, y=15, fill="#010101", fill_opacity=".3"),
        text(label, x=label_x, y=14),
        text(value_text, x=value_x, y=15, fill="#010101", fill_opacity=".3"),
        text(value_text, x=value_x, y=14),
        fill="#fff",
        text_anchor="middle",
        font_family="DejaVu Sans,Verdana,Geneva,sans-serif",
        font_size=11,
    )
    root.add(gradient, mask, bars, labels)
    return root.render()


# --- type=repos ---

_REPOS_STYLE = """
.card-bg { fill: #ffffff; stroke: #e1e4e8; }
.repo-name { fill: #0969da; }
.stats-text { fill: #586069; }
.title { fill: #08872B; }
path { fill: #586069; }
@media (prefers-color-scheme: dark) {
  .card-bg { fill: #0d1117; stroke: #30363d; }
  .repo-name { fill: #58a6ff; }
  .stats-text { fill: #8b949e; }
  path { fill: #8b949e; }
}
.fade-in { animation: fadeIn 0.5s ease-in-out; }
@keyframes fadeIn { from { opacity: 0; transform: translateY(5px); } to { opacity: 1; transform: translateY(0); } }
"""


def _repo_tile(repo: RepoAggregate, x: int, y: int, width: int, height: int) -> Element:
    type_icon = ICON_DOCS if repo.contribution_type == "Docs" else ICON_CODE
    counts = f"{repo.pr_count} merged"
    if repo.issue_count:
        counts += f" · {repo.issue_count} issues"
    stats = group(
        group(
            path(type_icon, transform="translate(0, -6) scale(0.7)"),
            text(repo.contribution_type, x=16, y=0, dominant_baseline="middle"),
            transform="translate(0, 0)",
        ),
        group(
            path(ICON_STAR, transform="translate(0, -6) scale(0.7)"),
            text(k_formatter(repo.stars), x=14, y=0, dominant_baseline="middle"),
            path(ICON_PR, transform="translate(65, -6) scale(0.6)"),
            text(counts, x=80, y=0, dominant_baseline="middle"),
            transform="translate(100, 0)",
        ),
        transform="translate(60, 44)",
        font_family=FONT_STACK,
        font_size=11,
        fill="#586069",
        class_="stats-text",
    )
    return group(
        rect(width=width, height=height, rx=8, fill="#ffffff", stroke="#e1e4e8", class_="card-bg"),
        image(
            _data_uri(repo.avatar_base64, repo.avatar_mime),
            x=15,
            y=13,
            width=34,
            height=34,
            clip_path=AVATAR_CLIP,
        ),
        text(
            repo.name,
            x=60,
            y=24,
            font_family=FONT_STACK,
            font_weight=600,
            font_size=14,
            fill="#0969da",
            class_="repo-name",
        ),
        stats,
        transform=f"translate({x}, {y})",
    )


def repos_card_svg(repos: Sequence[RepoAggregate], title: str) -> str:
    card_width = 400
    card_height = 60
    gap = 15
    columns = 2
    padding = 20
    header_height = 40

    rows = math.ceil(len(repos) / columns)
    total_width = columns * card_width + (columns - 1) * gap + padding * 2
    total_height = header_height + rows * card_height + max(rows - 1, 0) * gap + padding * 2

    root = svg(total_width, total_height)
    root.add(style(_REPOS_STYLE))
    root.add(
        group(
            text(
                title,
                class_="title fade-in",
                font_family=FONT_STACK,
                font_weight="bold",
                font_size=22,
            ),
            transform="translate(25, 30)",
        )
    )
    for i, repo in enumerate(repos):
        col = i % columns
        row = i // columns
        x = padding + col * (card_width + gap)
        y = header_height + padding + row * (card_height + gap)
        root.add(_repo_tile(repo, x, y, card_width, card_height))
    return root.render()


# --- type=repo ---


def single_repo_svg(stats: SingleRepoStats) -> str:
    bg_dark = "none" if stats.transparent else "#0d1117"
    bg_light = "none" if stats.transparent else "#ffffff"
    css = f"""
.bg {{ fill: {bg_dark}; stroke: #30363d; stroke-width: 1.5; }}
.repo-name {{ fill: #58a6ff; font-family: sans-serif; font-weight: bold; font-size: 18px; }}
.owner {{ fill: #8b949e; font-family: sans-serif; font-size: 14px; }}
.stats {{ fill: #8b949e; font-family: sans-serif; font-size: 12px; }}
@media (prefers-color-scheme: light) {{
  .bg {{ fill: {bg_light}; stroke: #e1e4e8; }}
  .repo-name {{ fill: #0969da; }}
  .owner {{ fill: #57606a; }}
  .stats {{ fill: #57606a; }}
}}
"""
    root = svg(400, 100)
    root.add(
        style(css),
        rect(width="100%", height="100%", rx=10, class_="bg"),
        image(
            _data_uri(stats.avatar_base64, stats.avatar_mime),
            x=20,
            y=20,
            width=60,
            height=60,
            clip_path=AVATAR_CLIP,
        ),
        text(stats.name, x=95, y=40, class_="repo-name"),
        text(f"by {stats.owner}", x=95, y=60, class_="owner"),
        group(
            path(ICON_STAR, fill="currentColor", transform="scale(0.8) translate(0, -12)"),
            text(f"{k_formatter(stats.stars)} stars", x=15, y=0),
            text(f"|  {stats.pr_count} merged PRs", x=80, y=0),
            transform="translate(95, 80)",
            class_="stats",
        ),
    )
    return root.render()


# --- type=hour ---

Point = tuple[float, float]


def smooth_path(points: Sequence[Point]) -> str:
    """Cubic Bezier path through ``points`` (cardinal spline, tension divisor 6).

    End segments reuse the endpoint as the missing neighbour.
    """
    if not points:
        return ""
    first = points[0]
    d = f"M {fmt_num(first[0])} {fmt_num(first[1])}"
    if len(points) == 1:
        return d
    last = len(points) - 1
    for i in range(last):
        p0 = points[i - 1] if i > 0 else points[0]
        p1 = points[i]
        p2 = points[i + 1]
        p3 = points[i + 2] if i < last - 1 else p2

        cp1x = p1[0] + (p2[0] - p0[0]) / 6
        cp1y = p1[1] + (p2[1] - p0[1]) / 6
        cp2x = p2[0] - (p3[0] - p1[0]) / 6
        cp2y = p2[1] - (p3[1] - p1[1]) / 6

        d += (
            f" C {fmt_num(cp1x)} {fmt_num(cp1y)}, {fmt_num(cp2x)} {fmt_num(cp2y)},"
            f" {fmt_num(p2[0])} {fmt_num(p2[1])}"
        )
    return d


_HOUR_STYLE = """
.bg { fill: #0d1117; stroke: #30363d; }
.title { font-family: -apple-system, BlinkMacSystemFont, Segoe UI, sans-serif; font-weight: 600; font-size: 14px; letter-spacing: 1px; text-transform: uppercase; }
.axis-label { font-family: monospace; font-size: 9px; font-weight: 600; }
.footer-text { font-family: sans-serif; font-size: 10px; fill: #8b949e; opacity: 0.6; }
.chart-line { stroke: #3094FF; stroke-width: 2; fill: none; }
.chart-area { fill: url(#gradientDark); opacity: 0.5; }
.axis-label { fill: #8b949e; }
.title { fill: #e6edf3; }
@media (prefers-color-scheme: light) {
  .bg { fill: #ffffff; stroke: #e1e4e8; }
  .chart-line { stroke: #0527FC; stroke-width: 2; fill: none; }
  .chart-area { fill: url(#gradientLight); opacity: 0.3; }
  .axis-label { fill: #57606a; }
  .title { fill: #24292f; }
}
.fade-in { opacity: 0; animation: fadeIn 0.6s forwards ease-out; }
@keyframes fadeIn { from { opacity: 0; transform: translateY(10px); } to { opacity: 1; transform: translateY(0); } }
"""


def _format_day(value: datetime) -> str:
    return f"{value:%b} {value.day}, {value.year}"


def _gradient(gradient_id: str, color: str) -> Element:
    return Element("linearGradient", id=gradient_id, x1="0", x2="0", y1="0", y2="1").add(
        Element("stop", offset="0%", stop_color=color),
        Element("stop", offset="100%", stop_color=color, stop_opacity="0"),
    )


def hour_chart_svg(histogram: HourHistogram, title: str = "Commits by Hour") -> str:
    counts = histogram.counts
    width = 400
    height = 260
    chart_height = 120
    pad_right, pad_bottom, pad_left = 20, 80, 20

    chart_width = width - pad_left - pad_right
    step_x = chart_width / (len(counts) - 1)
    baseline = height - pad_bottom
    max_val = max(counts) if counts else 0

    points: list[Point] = []
    for i, count in enumerate(counts):
        ratio = count / max_val if max_val > 0 else 0
        points.append((pad_left + i * step_x, baseline - ratio * chart_height))

    line = smooth_path(points)
    area = f"{line} L {width - pad_right} {baseline} L {pad_left} {baseline} Z"

    root = svg(width, height)
    root.add(
        style(_HOUR_STYLE),
        Element("defs").add(_gradient("gradientDark", "#3094FF"), _gradient("gradientLight", "#0527FC")),
        rect(width="100%", height="100%", rx=10, class_="bg"),
        group(
            path(area, class_="chart-area"),
            path(line, class_="chart-line", stroke_linecap="round", stroke_linejoin="round"),
            class_="fade-in",
        ),
    )
    for hour in range(len(counts)):
        root.add(
            text(hour, x=pad_left + hour * step_x, y=baseline + 15, text_anchor="middle", class_="axis-label")
        )
    footer = f"{_format_day(histogram.window_start)} - {_format_day(histogram.window_end)}"
    root.add(
        text(title, x="50%", y=height - 45, text_anchor="middle", class_="title"),
        text(footer, x="50%", y=height - 25, text_anchor="middle", class_="footer-text"),
    )
    return root.render()


# --- type=wrapped ---

_WRAPPED_STYLE = """
.bg { fill: #0d1117; stroke: #30363d; }
.title { font-family: -apple-system, BlinkMacSystemFont, Segoe UI, sans-serif; font-weight: 800; font-size: 18px; fill: #58a6ff; }
.label { font-family: sans-serif; font-size: 12px; fill: #8b949e; }
.value { font-family: sans-serif; font-weight: 600; font-size: 14px; fill: #c9d1d9; }
.highlight { font-size: 24px; font-weight: bold; fill: #ffffff; }
@media (prefers-color-scheme: light) {
  .bg { fill: #ffffff; stroke: #e1e4e8; }
  .title { fill: #0969da; }
  .label { fill: #57606a; }
  .value { fill: #24292f; }
  .highlight { fill: #24292f; }
}
"""


def format_hour_12(hour: int) -> str:
    """``0`` -> ``12 AM``, ``15`` -> ``3 PM``."""
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12} {suffix}"


def wrapped_svg(summary: WrappedSummary) -> str:
    parts = summary.timezone.split("/")
    zone_label = (parts[1] if len(parts) > 1 else "") or summary.timezone
    root = svg(400, 150)
    root.add(
        style(_WRAPPED_STYLE),
        rect(width="100%", height="100%", rx=10, class_="bg"),
        text("GitHub Activity Snapshot", x=25, y=35, class_="title"),
        group(
            text("MOST ACTIVE DAY", x=0, y=0, class_="label"),
            text(summary.busiest_day, x=0, y=25, class_="value", font_size=20),
            transform="translate(25, 70)",
        ),
        group(
            text("PEAK PRODUCTIVITY", x=0, y=0, class_="label"),
            text(format_hour_12(summary.peak_hour), x=0, y=25, class_="highlight"),
            transform="translate(200, 70)",
        ),
        Element("line", x1=25, y1=115, x2=375, y2=115, stroke="#30363d", stroke_width=1, opacity=0.5),
        text(
            f"Based on last {summary.total_events} events in {zone_label}",
            x=25,
            y=135,
            class_="label",
            font_size=10,
        ),
    )
    return root.render()
