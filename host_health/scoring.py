"""Normalize raw readings into 0-100 scores, higher being healthier."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Tuple, Union

from .config import LOAD, MEMORY
from .errors import UnavailableMetric


def to_decimal(value: Union[float, Decimal]) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # repr() is the shortest round-tripping decimal, free of binary expansion digits.
    return Decimal(repr(float(value)))


def round_half_away(value: Union[float, Decimal]) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(to_decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _clamp(score: int) -> int:
    return max(0, min(100, score))


def score_cpu(idle_percent: float) -> Tuple[float, int]:
    """Return CPU usage percent and its score, which tracks idle time."""
    usage = 100 - idle_percent
    return usage, _clamp(round_half_away(100 - usage))


def score_memory(total_mb: float, available_mb: float) -> Tuple[float, int]:
    if total_mb <= 0:
        raise UnavailableMetric(MEMORY, f"total memory reported as {total_mb} MB")
    usage = (total_mb - available_mb) / total_mb * 100
    return usage, round_half_away(100 - usage)


def score_disk(used_percent: float) -> Tuple[float, int]:
    return used_percent, round_half_away(100 - used_percent)


def score_load(load_1m: float, cpu_cores: int) -> Tuple[float, int]:
    """Return load as a percentage of core capacity and its score.

    An overloaded host exceeds 100% of capacity, so the score is floored at 0.
    """
    if cpu_cores < 1:
        raise UnavailableMetric(LOAD, f"invalid core count {cpu_cores}")
    ratio = load_1m / cpu_cores * 100
    return ratio, max(0, round_half_away(100 - ratio))
