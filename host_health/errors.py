"""Exceptions raised while collecting and scoring host metrics."""

from __future__ import annotations

from typing import Iterable, List


class HostHealthError(Exception):
    """Base class for every failure the CLI reports to the user."""


class UnavailableMetric(HostHealthError):
    def __init__(self, metric: str, reason: str) -> None:
        self.metric = metric
        self.reason = reason
        super().__init__(f"{metric} metric unavailable: {reason}")


class DependencyMissing(HostHealthError):
    def __init__(self, missing: Iterable[str]) -> None:
        self.missing: List[str] = list(missing)
        super().__init__("missing required system interfaces: " + ", ".join(self.missing))


class InvalidArgument(HostHealthError):
    pass
