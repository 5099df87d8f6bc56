"""Collect the raw readings the health score is computed from."""

from __future__ import annotations

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, List, Tuple

import psutil

from .config import CPU, DISK, LOAD, MEMORY, METRIC_ORDER
from .errors import DependencyMissing, UnavailableMetric

logger = logging.getLogger(__name__)

_MB = 1024**2


@dataclass(frozen=True)
class RawMetrics:
    cpu_idle_percent: float
    memory_total_mb: float
    memory_available_mb: float
    disk_used_percent: float
    load_1m: float
    cpu_cores: int


class MetricSource(ABC):
    """Reads OS metrics without changing any system state.

    Every ``read_*`` method raises :class:`UnavailableMetric` when the
    reading cannot be obtained.
    """

    @abstractmethod
    def read_cpu_idle(self) -> float:
        """Idle CPU percentage over a short sampling window."""

    @abstractmethod
    def read_cpu_idle_snapshot(self) -> float:
        """Instantaneous idle CPU percentage, used when sampling is unavailable."""

    @abstractmethod
    def read_memory(self) -> Tuple[float, float]:
        """Total and available memory in megabytes."""

    @abstractmethod
    def read_disk_usage(self, path: str = "/") -> float:
        """Percentage of space used on the filesystem holding ``path``."""

    @abstractmethod
    def read_load_average(self) -> Tuple[float, int]:
        """One-minute load average and logical core count."""

    def missing_capabilities(self) -> List[str]:
        return []


class PsutilMetricSource(MetricSource):
    _REQUIRED = (
        "cpu_times_percent",
        "cpu_times",
        "virtual_memory",
        "disk_usage",
        "getloadavg",
        "cpu_count",
    )

    def __init__(self, sample_interval: float = 1.0) -> None:
        self.sample_interval = sample_interval

    def missing_capabilities(self) -> List[str]:
        return [f"psutil.{name}" for name in self._REQUIRED if not hasattr(psutil, name)]

    def read_cpu_idle(self) -> float:
        try:
            times = psutil.cpu_times_percent(interval=self.sample_interval)
        except (AttributeError, NotImplementedError, OSError, psutil.Error) as exc:
            raise UnavailableMetric(CPU, f"cannot sample CPU times ({exc})") from exc
        return float(times.idle)

    def read_cpu_idle_snapshot(self) -> float:
        try:
            times = psutil.cpu_times()
        except (AttributeError, NotImplementedError, OSError, psutil.Error) as exc:
            raise UnavailableMetric(CPU, f"cannot read CPU times ({exc})") from exc
        # guest time is already counted in user and nice on Linux.
        total = sum(times) - getattr(times, "guest", 0) - getattr(times, "guest_nice", 0)
        if total <= 0:
            raise UnavailableMetric(CPU, "CPU time counters are empty")
        return times.idle / total * 100

    def read_memory(self) -> Tuple[float, float]:
        try:
            memory = psutil.virtual_memory()
        except (AttributeError, NotImplementedError, OSError, psutil.Error) as exc:
            raise UnavailableMetric(MEMORY, f"cannot read memory statistics ({exc})") from exc
        return memory.total / _MB, memory.available / _MB

    def read_disk_usage(self, path: str = "/") -> float:
        try:
            usage = psutil.disk_usage(path)
        except (OSError, psutil.Error) as exc:
            raise UnavailableMetric(DISK, f"cannot read usage of {path!r} ({exc})") from exc
        return float(usage.percent)

    def read_load_average(self) -> Tuple[float, int]:
        try:
            load_1m, _, _ = psutil.getloadavg()
            cores = psutil.cpu_count(logical=True)
        except (AttributeError, NotImplementedError, OSError, psutil.Error) as exc:
            raise UnavailableMetric(LOAD, f"cannot read load average ({exc})") from exc
        if not cores or cores < 1:
            raise UnavailableMetric(LOAD, "logical CPU count is unknown")
        return float(load_1m), int(cores)


def ensure_dependencies(source: MetricSource) -> None:
    """Fail before any reading when the source lacks a required interface."""
    missing = source.missing_capabilities()
    if missing:
        logger.debug("Missing system interfaces: %s", ", ".join(missing))
        raise DependencyMissing(missing)


def read_cpu_idle(source: MetricSource) -> float:
    try:
        return source.read_cpu_idle()
    except UnavailableMetric as exc:
        logger.warning("%s; falling back to an instantaneous snapshot", exc)
        return source.read_cpu_idle_snapshot()


def gather_raw_metrics(source: MetricSource, disk_path: str = "/") -> RawMetrics:
    """Read all four metrics concurrently; any failed read fails the whole run."""
    readers: Dict[str, Callable[[], Any]] = {
        CPU: lambda: read_cpu_idle(source),
        MEMORY: source.read_memory,
        DISK: lambda: source.read_disk_usage(disk_path),
        LOAD: source.read_load_average,
    }

    with ThreadPoolExecutor(max_workers=len(readers)) as executor:
        futures = {name: executor.submit(reader) for name, reader in readers.items()}
        wait(futures.values())

    for name in METRIC_ORDER:
        error = futures[name].exception()
        if error is not None:
            logger.debug("Reading %s failed: %s", name, error)
            raise error
        logger.debug("Read %s: %r", name, futures[name].result())

    total_mb, available_mb = futures[MEMORY].result()
    load_1m, cores = futures[LOAD].result()
    return RawMetrics(
        cpu_idle_percent=float(futures[CPU].result()),
        memory_total_mb=total_mb,
        memory_available_mb=available_mb,
        disk_used_percent=float(futures[DISK].result()),
        load_1m=load_1m,
        cpu_cores=cores,
    )
