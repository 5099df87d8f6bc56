"""Combine per-metric scores into an overall host health report."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
import logging
import math
from typing import Callable, Dict, List, Mapping, Sequence, Tuple

from .config import (
    CPU,
    DEFAULT_WEIGHTS,
    DISK,
    ISSUE_THRESHOLD,
    LOAD,
    MEMORY,
    METRIC_LABELS,
    METRIC_ORDER,
)
from .errors import UnavailableMetric
from .scoring import round_half_away, score_cpu, score_disk, score_load, score_memory, to_decimal
from .system_state import RawMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredMetric:
    name: str
    raw_value: float
    score: int
    weight: float
    detail: str = ""

    @property
    def label(self) -> str:
        return METRIC_LABELS.get(self.name, self.name)


@dataclass(frozen=True)
class HealthReport:
    overall_score: int
    metrics: Tuple[ScoredMetric, ...]
    issues: Tuple[str, ...]
    flagged: Tuple[str, ...] = ()

    def metric(self, name: str) -> ScoredMetric:
        for metric in self.metrics:
            if metric.name == name:
                return metric
        raise KeyError(name)


def _cpu_issue(metric: ScoredMetric) -> str:
    return f"High CPU usage: {round_half_away(metric.raw_value)}% of CPU time is busy (score {metric.score}/100)."


def _memory_issue(metric: ScoredMetric) -> str:
    return f"High memory usage: {metric.raw_value:.1f}% of memory is in use (score {metric.score}/100)."


def _disk_issue(metric: ScoredMetric) -> str:
    return f"Low disk space: {round_half_away(metric.raw_value)}% of the filesystem is used (score {metric.score}/100)."


def _load_issue(metric: ScoredMetric) -> str:
    return (
        f"High system load: {metric.raw_value:.1f}% of CPU capacity"
        f" ({metric.detail}, score {metric.score}/100)."
    )


_ISSUE_BUILDERS: Dict[str, Callable[[ScoredMetric], str]] = {
    CPU: _cpu_issue,
    MEMORY: _memory_issue,
    DISK: _disk_issue,
    LOAD: _load_issue,
}


class HealthAggregator:
    """Weights four metric scores into one 0-100 health score.

    ``weights`` maps each metric name to its share of the overall score. They
    must cover every metric and sum to 1.0; the aggregation still divides by
    the actual weight total so rounding in the weights cannot skew the result.
    """

    def __init__(
        self,
        weights: Mapping[str, float] = DEFAULT_WEIGHTS,
        threshold: int = ISSUE_THRESHOLD,
    ) -> None:
        self.weights = dict(_validate_weights(weights))
        self.threshold = threshold

    def score(self, raw: RawMetrics) -> Tuple[ScoredMetric, ...]:
        cpu_usage, cpu_score = score_cpu(raw.cpu_idle_percent)
        mem_usage, mem_score = score_memory(raw.memory_total_mb, raw.memory_available_mb)
        disk_usage, disk_score = score_disk(raw.disk_used_percent)
        load_ratio, load_score = score_load(raw.load_1m, raw.cpu_cores)

        used_mb = raw.memory_total_mb - raw.memory_available_mb
        metrics = (
            ScoredMetric(CPU, cpu_usage, cpu_score, self.weights[CPU], f"{raw.cpu_idle_percent:.1f}% idle"),
            ScoredMetric(
                MEMORY,
                mem_usage,
                mem_score,
                self.weights[MEMORY],
                f"{used_mb:.0f} MB used of {raw.memory_total_mb:.0f} MB",
            ),
            ScoredMetric(
                DISK,
                disk_usage,
                disk_score,
                self.weights[DISK],
                f"{round_half_away(raw.disk_used_percent)}% used",
            ),
            ScoredMetric(
                LOAD,
                load_ratio,
                load_score,
                self.weights[LOAD],
                f"1-min load {raw.load_1m:.2f} across {raw.cpu_cores} cores",
            ),
        )
        for metric in metrics:
            logger.debug("Scored %s: raw=%.2f score=%d", metric.name, metric.raw_value, metric.score)
        return metrics

    def aggregate(self, metrics: Sequence[ScoredMetric]) -> HealthReport:
        ordered = _in_metric_order(metrics)

        # Exact decimal weighting, so .5 ties round away from zero like every score.
        weighted_sum = sum(Decimal(metric.score) * to_decimal(metric.weight) for metric in ordered)
        weight_total = sum(to_decimal(metric.weight) for metric in ordered)
        overall = max(0, min(100, round_half_away(weighted_sum / weight_total)))

        issues: List[str] = []
        flagged: List[str] = []
        for metric in ordered:
            if metric.score < self.threshold:
                flagged.append(metric.name)
                issues.append(_ISSUE_BUILDERS[metric.name](metric))

        logger.debug("Overall score %d with %d issue(s)", overall, len(issues))
        return HealthReport(
            overall_score=overall,
            metrics=ordered,
            issues=tuple(issues),
            flagged=tuple(flagged),
        )

    def evaluate(self, raw: RawMetrics) -> HealthReport:
        return self.aggregate(self.score(raw))


def diagnose(raw: RawMetrics, weights: Mapping[str, float] = DEFAULT_WEIGHTS) -> HealthReport:
    """Score a set of raw readings and return the resulting health report."""
    return HealthAggregator(weights).evaluate(raw)


def _validate_weights(weights: Mapping[str, float]) -> Mapping[str, float]:
    unknown = set(weights) - set(METRIC_ORDER)
    if unknown:
        raise ValueError(f"unknown metric weights: {', '.join(sorted(unknown))}")
    missing = [name for name in METRIC_ORDER if name not in weights]
    if missing:
        raise ValueError(f"missing weights for: {', '.join(missing)}")
    for name, weight in weights.items():
        if not 0 < weight <= 1:
            raise ValueError(f"weight for {name} must be in (0, 1], got {weight}")
    total = sum(weights.values())
    if not math.isclose(total, 1.0, abs_tol=1e-9):
        raise ValueError(f"weights must sum to 1.0, got {total}")
    return weights


def _in_metric_order(metrics: Sequence[ScoredMetric]) -> Tuple[ScoredMetric, ...]:
    by_name: Dict[str, ScoredMetric] = {}
    for metric in metrics:
        if metric.name not in METRIC_ORDER:
            raise ValueError(f"unknown metric {metric.name!r}")
        if metric.name in by_name:
            raise ValueError(f"duplicate metric {metric.name!r}")
        by_name[metric.name] = metric

    # A missing reading fails the report rather than reweighting the rest.
    for name in METRIC_ORDER:
        if name not in by_name:
            raise UnavailableMetric(name, "no score was produced")
    return tuple(by_name[name] for name in METRIC_ORDER)
