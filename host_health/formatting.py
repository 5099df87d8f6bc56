"""Render a health report as Markdown, plain text or JSON."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
import json
from typing import Any, Dict, Mapping, Sequence

from .config import CPU, DISK, ISSUE_THRESHOLD, LOAD, MEMORY
from .diagnostics import HealthReport, ScoredMetric
from .scoring import round_half_away

REPORT_TITLE = "System Health Report"

RECOMMENDATIONS: Mapping[str, Sequence[str]] = {
    CPU: (
        "Identify CPU-heavy processes with `top` or `htop` and stop or reschedule them.",
        "Move batch jobs such as builds or backups to off-peak hours.",
    ),
    MEMORY: (
        "Close or restart applications that hold large amounts of memory.",
        "Check for memory leaks in long-running services and consider adding RAM or swap.",
    ),
    DISK: (
        "Remove old logs, caches and package archives (e.g. `journalctl --vacuum-size`, `apt clean`).",
        "Find large directories with `du -sh *` and archive or move them off the volume.",
    ),
    LOAD: (
        "Look for processes stuck waiting on I/O or competing for CPU.",
        "Reduce concurrently running jobs or spread them across more cores.",
    ),
}


def format_value(metric: ScoredMetric) -> str:
    if metric.name in (MEMORY, LOAD):
        return f"{metric.raw_value:.1f}%"
    return f"{round_half_away(metric.raw_value)}%"


def render_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    widths = [len(h) for h in headers]
    for row in rows:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], len(cell))
    lines = []
    lines.append(_format_row(headers, widths))
    lines.append(_format_row(["-" * w for w in widths], widths))
    for row in rows:
        lines.append(_format_row(row, widths))
    return "\n".join(lines)


def render_markdown(report: HealthReport, generated_at: datetime) -> str:
    """Build the Markdown report document; the issues section only appears when needed."""
    lines = [
        f"# {REPORT_TITLE}",
        "",
        f"Generated: {generated_at:%Y-%m-%d %H:%M:%S}",
        "",
        "---",
        "",
        "## Metrics",
        "",
        "| Metric | Value | Details | Score |",
        "|--------|-------|---------|-------|",
    ]
    for metric in report.metrics:
        lines.append(f"| {metric.label} | {format_value(metric)} | {metric.detail} | {metric.score}/100 |")

    lines.extend(["", "## Overall Health Score", "", f"**{report.overall_score}/100**"])

    if report.issues:
        lines.extend(["", "## Areas for Improvement", ""])
        for name, issue in zip(report.flagged, report.issues):
            lines.append(f"- {issue}")
            for tip in RECOMMENDATIONS.get(name, ()):
                lines.append(f"  - {tip}")

    lines.append("")
    return "\n".join(lines)


def format_summary(report: HealthReport) -> str:
    rows = [[metric.label, format_value(metric), f"{metric.score}/100"] for metric in report.metrics]
    lines = [
        render_table(["Metric", "Value", "Score"], rows),
        "",
        f"Overall health score: {report.overall_score}/100",
    ]
    if report.issues:
        lines.append("")
        lines.append("Areas for improvement:")
        lines.extend(f"  - {issue}" for issue in report.issues)
    else:
        lines.append("No areas for improvement found.")
    return "\n".join(lines)


def to_json(report: HealthReport) -> str:
    payload: Dict[str, Any] = {
        "overall_score": report.overall_score,
        "metrics": [asdict(metric) for metric in report.metrics],
        "issues": list(report.issues),
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)


def score_style(score: int) -> str:
    if score >= ISSUE_THRESHOLD:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"


def _format_row(row: Sequence[str], widths: Sequence[int]) -> str:
    padded = [cell.ljust(width) for cell, width in zip(row, widths)]
    return " | ".join(padded)
