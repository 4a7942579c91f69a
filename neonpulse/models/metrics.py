from __future__ import annotations

import time

from pydantic import Field

from .base import ApiModel


def _now_ms() -> int:
    return int(time.time() * 1000)


class MetricsSnapshot(ApiModel):
    """Point-in-time snapshot of host load, memory, disk, network and temperature."""

    timestamp: int = Field(default_factory=_now_ms)
    cpu_load: float = Field(0.0, ge=0, le=100)
    cpu_cores: int = 0
    cpu_per_core: list[float] = Field(default_factory=list)
    ram_usage: float = 0.0
    ram_total: int = 0
    ram_percent: float = Field(0.0, ge=0, le=100)
    gpu_load: float = 0.0
    temperature: float = 0.0
    temperature_max: float = 0.0
    network_in: float = 0.0
    network_out: float = 0.0
    network_interface: str = "unknown"
    disk_usage: float = Field(0.0, ge=0, le=100)
    disk_used: float = 0.0
    disk_total: int = 0
    load_average: list[float] | None = None
