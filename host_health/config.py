"""Fixed scoring constants and runtime settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from pydantic import Field
from pydantic_settings import BaseSettings

CPU = "cpu"
MEMORY = "memory"
DISK = "disk"
LOAD = "load"

# Report layout depends on this order.
METRIC_ORDER = (CPU, MEMORY, DISK, LOAD)

METRIC_LABELS: Mapping[str, str] = MappingProxyType(
    {CPU: "CPU", MEMORY: "Memory", DISK: "Disk", LOAD: "Load"}
)

DEFAULT_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {CPU: 0.30, MEMORY: 0.30, DISK: 0.20, LOAD: 0.20}
)

ISSUE_THRESHOLD = 70


class Settings(BaseSettings):
    # --- report ---
    report_dir: Path = Field(default_factory=Path.home)

    # --- collection ---
    disk_path: str = "/"
    cpu_sample_interval: float = Field(default=1.0, gt=0)  # seconds

    # --- logging ---
    log_level: str = "WARNING"

    model_config = {"env_file": ".env", "env_prefix": "HOST_HEALTH_", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
