"""Entry point for the host-health command line tool."""

from __future__ import annotations

import argparse
from datetime import datetime
import logging
from pathlib import Path
import sys
from typing import Optional, Sequence

from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import Settings, get_settings
from .diagnostics import HealthAggregator, HealthReport
from .errors import DependencyMissing, HostHealthError, InvalidArgument
from .formatting import (
    RECOMMENDATIONS,
    format_summary,
    format_value,
    render_markdown,
    score_style,
    to_json,
)
from .logging_setup import setup_logging
from .system_state import PsutilMetricSource, ensure_dependencies, gather_raw_metrics

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="host-health",
        description="Score the health of this host from CPU, memory, disk and load metrics.",
    )
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-r",
        "--report",
        metavar="PATH",
        help="where to write the Markdown report (default: a timestamped file in your home directory)",
    )
    parser.add_argument("--disk-path", metavar="PATH", help="filesystem to measure disk usage on (default: /)")
    parser.add_argument("--json", action="store_true", help="print the health report as JSON")
    parser.add_argument("--plain", action="store_true", help="print a plain-text summary without colors")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    err_console = Console(stderr=True)
    try:
        settings = get_settings()
    except ValidationError as exc:
        _print_error(err_console, f"invalid HOST_HEALTH_* setting: {exc}")
        return EXIT_FAILURE
    setup_logging("DEBUG" if args.verbose else settings.log_level)

    generated_at = datetime.now()
    try:
        report_path = resolve_report_path(args.report, settings, generated_at)
        source = PsutilMetricSource(sample_interval=settings.cpu_sample_interval)
        ensure_dependencies(source)
        disk_path = args.disk_path or settings.disk_path
        if args.json or args.plain:
            raw = gather_raw_metrics(source, disk_path=disk_path)
        else:
            with err_console.status("Collecting system metrics..."):
                raw = gather_raw_metrics(source, disk_path=disk_path)
        report = HealthAggregator().evaluate(raw)
    except InvalidArgument as exc:
        parser.print_usage(sys.stderr)
        _print_error(err_console, str(exc))
        return EXIT_USAGE
    except DependencyMissing as exc:
        _print_error(err_console, "required system interfaces are missing:")
        for name in exc.missing:
            err_console.print(f"  - {name}", markup=False, soft_wrap=True)
        return EXIT_FAILURE
    except HostHealthError as exc:
        _print_error(err_console, str(exc))
        return EXIT_FAILURE

    if args.json:
        print(to_json(report))
        if args.report is None:
            return EXIT_OK

    try:
        write_report(report_path, render_markdown(report, generated_at))
    except OSError as exc:
        logger.debug("Could not write report to %s: %s", report_path, exc)
        _print_error(err_console, f"could not write report to {report_path}: {exc}")
        return EXIT_FAILURE

    if args.json:
        return EXIT_OK
    if args.plain:
        print(format_summary(report))
        print(f"\nReport saved to {report_path}")
    else:
        _render_rich(report, generated_at, report_path)
    return EXIT_OK


def resolve_report_path(option: Optional[str], settings: Settings, generated_at: datetime) -> Path:
    if option is None:
        return settings.report_dir / f"system_health_report_{generated_at:%Y%m%d_%H%M%S}.md"
    if not option.strip():
        raise InvalidArgument("--report requires a non-empty path")
    path = Path(option).expanduser()
    if path.is_dir():
        raise InvalidArgument(f"--report path {path} is a directory")
    return path


def write_report(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info("Report written to %s", path)


def _print_error(console: Console, message: str) -> None:
    console.print(f"Error: {message}", style="bold red", markup=False, soft_wrap=True)


def _render_rich(report: HealthReport, generated_at: datetime, report_path: Path) -> None:
    console = Console()

    console.print(Panel(f"System health - {generated_at:%Y-%m-%d %H:%M:%S}", style="bold cyan"))

    metrics = Table(box=box.ROUNDED)
    metrics.add_column("Metric", style="bold")
    metrics.add_column("Value", justify="right")
    metrics.add_column("Details")
    metrics.add_column("Score", justify="right")
    for metric in report.metrics:
        metrics.add_row(
            metric.label,
            format_value(metric),
            metric.detail,
            f"[{score_style(metric.score)}]{metric.score}/100[/]",
        )
    console.print(metrics)

    console.print(
        Panel(f"Overall health score: {report.overall_score}/100", style=f"bold {score_style(report.overall_score)}")
    )

    if report.issues:
        issues = Table(title="Areas for improvement", box=box.SIMPLE_HEAD)
        issues.add_column("Issue", style="bold red")
        issues.add_column("Suggestions")
        for name, issue in zip(report.flagged, report.issues):
            issues.add_row(issue, "\n".join(RECOMMENDATIONS.get(name, ())))
        console.print(issues)
    else:
        console.print(Panel("No areas for improvement found.", style="bold green"))

    console.print(f"Report saved to [bold]{escape(str(report_path))}[/]")


if __name__ == "__main__":
    sys.exit(main())
