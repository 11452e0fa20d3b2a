"""Utilities for rendering scans in the CLI."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from linkray.db.models import Scan, ScanResult


def risk_label(score: int) -> str:
    if score >= 80:
        return "Safe"
    if score >= 50:
        return "Caution"
    return "Risky"


def _icon(score: int) -> str:
    return {"Safe": "🟢", "Caution": "🟡", "Risky": "🔴"}[risk_label(score)]


def _timestamp(created_at: int) -> str:
    return datetime.fromtimestamp(created_at, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def render_result(result: ScanResult) -> str:
    """Render a full analysis result as a block of text."""
    lines = [
        f"{_icon(result.risk_score)} {result.url}",
        f"  Risk score : {result.risk_score}/100 ({risk_label(result.risk_score)})",
        f"  Category   : {result.category}",
        f"  Tags       : {', '.join(result.tags) if result.tags else '-'}",
        f"  Source     : {'cache' if result.from_cache else 'fresh analysis'}",
        "",
        result.summary,
    ]
    if result.reason:
        lines += ["", f"Why: {result.reason}"]
    lines += ["", f"Screenshot: {result.screenshot_url}"]
    return "\n".join(lines)


def render_recent(scans: List[Scan]) -> str:
    """One line per scan, newest first."""
    return "\n".join(
        f"{_icon(s.risk_score)} {s.risk_score:>3}  [{s.category}]  {s.url}  "
        f"({_timestamp(s.created_at)})"
        for s in scans
    )
