from __future__ import annotations

import time
from dataclasses import dataclass

import psutil

from neonpulse.collectors.base import BaseCollector
from neonpulse.collectors.units import round1
from neonpulse.models import ProcessSample, ProcessSummary

TOP_N = 10

_SLEEPING_STATES = frozenset({psutil.STATUS_SLEEPING, psutil.STATUS_IDLE})


@dataclass
class ProcessTable:
    """One read-only snapshot of the process table, in the order psutil listed it."""

    samples: list[ProcessSample]
    running: int = 0
    blocked: int = 0
    sleeping: int = 0


def rank(samples: list[ProcessSample], key: str, n: int = TOP_N) -> list[ProcessSample]:
    """Top ``n`` by ``key`` descending; ties keep table order (sort is stable)."""
    return sorted(samples, key=lambda s: getattr(s, key), reverse=True)[:n]


class ProcessCollector(BaseCollector[ProcessSummary]):
    """Snapshots running processes and ranks the heaviest CPU and memory users."""

    name = "process_collector"
    error_message = "Failed to get processes"

    async def collect(self) -> ProcessSummary:
        table = await self._offload(self._snapshot, self.settings.sample_interval)
        return ProcessSummary(
            total=len(table.samples),
            running=table.running,
            blocked=table.blocked,
            sleeping=table.sleeping,
            top_cpu=rank(table.samples, "cpu"),
            top_mem=rank(table.samples, "mem"),
        )

    @staticmethod
    def _snapshot(interval: float) -> ProcessTable:
        procs = list(psutil.process_iter(["pid", "name", "username", "status"]))

        # cpu_percent() needs two readings; prime every process, then wait once
        for proc in procs:
            try:
                proc.cpu_percent(None)
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
        if interval > 0:
            time.sleep(interval)

        table = ProcessTable(samples=[])
        for proc in procs:
            try:
                info = proc.info
                cpu = proc.cpu_percent(None)
                mem = proc.memory_percent()
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue

            status = info.get("status") or ""
            if status == psutil.STATUS_RUNNING:
                table.running += 1
            elif status == psutil.STATUS_DISK_SLEEP:
                table.blocked += 1
            elif status in _SLEEPING_STATES:
                table.sleeping += 1

            table.samples.append(
                ProcessSample(
                    pid=info["pid"],
                    name=info.get("name") or "",
                    cpu=round1(cpu or 0.0),
                    mem=round1(mem or 0.0),
                    user=info.get("username") or "",
                    state=status,
                )
            )
        return table
