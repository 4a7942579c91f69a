from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import psutil

from neonpulse.collectors.base import BaseCollector
from neonpulse.collectors.units import (
    bytes_per_sec_to_mbps,
    bytes_to_gib,
    bytes_to_whole_gib,
    clamp_percent,
    round1,
)
from neonpulse.models import MetricsSnapshot

logger = logging.getLogger(__name__)

LOOPBACK_NAMES = frozenset({"lo", "lo0"})
CPU_SENSOR_KEYS = ("coretemp", "k10temp", "zenpower", "cpu_thermal", "soc_thermal", "acpitz")
PACKAGE_LABELS = ("package id 0", "tctl", "tdie")


@dataclass(frozen=True)
class NetworkSample:
    interface: str
    rx_per_sec: float
    tx_per_sec: float


def select_interface(names: Sequence[str], stats: Mapping[str, Any]) -> str | None:
    """First interface that is up and not loopback, else the first reported one."""
    for name in names:
        if name in LOOPBACK_NAMES:
            continue
        if_stats = stats.get(name)
        if if_stats is not None and if_stats.isup:
            return name
    return names[0] if names else None


def select_filesystem(partitions: Sequence[Any]) -> str:
    """Mount point of the root filesystem, else of the first reported one."""
    for partition in partitions:
        if partition.mountpoint == "/":
            return "/"
    if partitions:
        return partitions[0].mountpoint
    return "/"


class MetricsCollector(BaseCollector[MetricsSnapshot]):
    """Samples load, memory, disk, network and temperature for ``/api/stats``.

    CPU and network figures are rates, so both are measured across the same
    short ``sample_interval`` inside the request instead of relying on
    counters remembered from an earlier call.
    """

    name = "metrics_collector"
    error_message = "Failed to collect metrics"

    async def collect(self) -> MetricsSnapshot:
        interval = self.settings.sample_interval
        per_core, memory, network, disk, temps, load = await asyncio.gather(
            self._offload(self._sample_cpu, interval),
            self._offload(psutil.virtual_memory),
            self._offload(self._sample_network, interval),
            self._offload(self._root_disk_usage),
            self._offload(self._read_temperatures),
            self._offload(self._load_average),
        )

        cpu_load = sum(per_core) / len(per_core) if per_core else 0.0
        used_bytes = memory.total - memory.available
        ram_percent = (used_bytes / memory.total) * 100 if memory.total else 0.0
        temp_main, temp_max = temps

        return MetricsSnapshot(
            cpu_load=clamp_percent(cpu_load),
            cpu_cores=len(per_core),
            cpu_per_core=[clamp_percent(p) for p in per_core],
            ram_usage=bytes_to_gib(used_bytes),
            ram_total=bytes_to_whole_gib(memory.total),
            ram_percent=clamp_percent(ram_percent),
            gpu_load=0.0,  # no driver-specific GPU collection
            temperature=temp_main,
            temperature_max=temp_max,
            network_in=bytes_per_sec_to_mbps(network.rx_per_sec),
            network_out=bytes_per_sec_to_mbps(network.tx_per_sec),
            network_interface=network.interface,
            disk_usage=clamp_percent(disk.percent),
            disk_used=bytes_to_gib(disk.used),
            disk_total=bytes_to_whole_gib(disk.total),
            load_average=load,
        )

    # ── sub-queries (run in worker threads) ─────────────

    @staticmethod
    def _sample_cpu(interval: float) -> list[float]:
        return list(psutil.cpu_percent(interval=interval, percpu=True))

    @staticmethod
    def _sample_network(interval: float) -> NetworkSample:
        before = psutil.net_io_counters(pernic=True)
        started = time.monotonic()
        time.sleep(interval)
        after = psutil.net_io_counters(pernic=True)
        elapsed = max(time.monotonic() - started, 1e-6)

        name = select_interface(list(after), psutil.net_if_stats())
        if name is None:
            return NetworkSample("unknown", 0.0, 0.0)
        first = before.get(name)
        last = after[name]
        if first is None:
            return NetworkSample(name, 0.0, 0.0)
        rx = max(0, last.bytes_recv - first.bytes_recv) / elapsed
        tx = max(0, last.bytes_sent - first.bytes_sent) / elapsed
        return NetworkSample(name, rx, tx)

    @staticmethod
    def _root_disk_usage():
        mount = select_filesystem(psutil.disk_partitions(all=False))
        return psutil.disk_usage(mount)

    @staticmethod
    def _read_temperatures() -> tuple[float, float]:
        """(main, max) in °C; (0, 0) when the platform exposes no sensors."""
        try:
            temps = psutil.sensors_temperatures()
        except (AttributeError, NotImplementedError, OSError):
            return 0.0, 0.0
        if not temps:
            return 0.0, 0.0

        readings = [e.current for entries in temps.values() for e in entries if e.current]
        highest = round1(max(readings)) if readings else 0.0

        for key in CPU_SENSOR_KEYS:
            entries = [e for e in temps.get(key, []) if e.current]
            if not entries:
                continue
            for entry in entries:
                if (entry.label or "").lower() in PACKAGE_LABELS:
                    return round1(entry.current), highest
            return round1(sum(e.current for e in entries) / len(entries)), highest

        # Fallback: first sensor group with readings
        for entries in temps.values():
            values = [e.current for e in entries if e.current]
            if values:
                return round1(sum(values) / len(values)), highest
        return 0.0, highest

    @staticmethod
    def _load_average() -> list[float] | None:
        try:
            return [round(v, 2) for v in psutil.getloadavg()]
        except (AttributeError, OSError):
            logger.debug("Load average unavailable on this platform")
            return None
