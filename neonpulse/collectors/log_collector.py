from __future__ import annotations

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Awaitable, Callable

from neonpulse.collectors.base import BaseCollector
from neonpulse.collectors.commands import CommandError, run_command
from neonpulse.config import Settings
from neonpulse.engine.log_parser import (
    parse_journal_line,
    parse_kernel_line,
    placeholder,
    plain_record,
)
from neonpulse.errors import LogSourceUnavailable
from neonpulse.models import LogBatch, LogLevel, LogRecord, LogSource

logger = logging.getLogger(__name__)

TAIL_BLOCK_SIZE = 64 * 1024

Strategy = Callable[[int], Awaitable[list[LogRecord]]]

PLACEHOLDERS: dict[LogSource, tuple[LogLevel, str]] = {
    LogSource.SYSTEM: (LogLevel.INFO, "No logs available"),
    LogSource.KERNEL: (LogLevel.WARN, "dmesg not available"),
    LogSource.DOCKER: (LogLevel.WARN, "Docker logs not available"),
}


def _lines(output: str) -> list[str]:
    return [line for line in output.strip().splitlines() if line.strip()]


def tail_lines(path: Path, limit: int, block_size: int = TAIL_BLOCK_SIZE) -> list[str]:
    """Last ``limit`` non-blank lines of ``path``, read backwards from the end."""
    if limit <= 0:
        return []
    complete: list[bytes] = []
    with open(path, "rb") as f:
        position = f.seek(0, os.SEEK_END)
        data = b""
        while position > 0:
            step = min(block_size, position)
            position -= step
            f.seek(position)
            data = f.read(step) + data
            # until the file start is reached the first chunk may begin mid-line
            complete = data.splitlines()[1:] if position > 0 else data.splitlines()
            if sum(1 for line in complete if line.strip()) >= limit:
                break
    lines = [line.decode("utf-8", errors="replace") for line in complete if line.strip()]
    return lines[-limit:]


def resolve_source(value: str | None) -> LogSource:
    """Unknown or missing ``type`` values fall back to the system journal."""
    try:
        return LogSource((value or "").strip().lower())
    except ValueError:
        return LogSource.SYSTEM


class LogCollector(BaseCollector[LogBatch]):
    """Reads recent log lines for one source mode and normalizes them.

    Each mode is an ordered chain of acquisition strategies. A strategy
    either returns at least one record or raises ``LogSourceUnavailable``;
    the first success wins. When the whole chain fails the batch holds a
    single placeholder record, so this collector never fails a request.

    Linux sources:
    - system: journalctl (JSON, then plain), then /var/log/syslog or /var/log/messages
    - kernel: dmesg with ISO timestamps
    - docker: docker logs of up to five running containers
    """

    name = "log_collector"
    error_message = "Failed to get logs"

    def __init__(
        self,
        settings: Settings,
        source: LogSource = LogSource.SYSTEM,
        limit: int | str | None = None,
    ) -> None:
        super().__init__(settings)
        self.source = source
        self.limit = self.clamp_limit(limit)

    def clamp_limit(self, limit: int | str | None) -> int:
        """Missing, non-numeric or non-positive -> default; capped at the max."""
        default = self.settings.log_default_limit
        try:
            value = int(str(limit).strip()) if limit is not None else default
        except ValueError:
            value = default
        if value <= 0:
            value = default
        return min(value, self.settings.log_max_limit)

    def strategies(self) -> list[Strategy]:
        if self.source is LogSource.KERNEL:
            return [self._kernel_ring_buffer]
        if self.source is LogSource.DOCKER:
            return [self._container_logs]
        return [self._journal_json, self._journal_text, self._log_file]

    async def collect(self) -> LogBatch:
        records = await self._resolve()
        return LogBatch(
            logs=records,
            count=len(records),
            type=self.source,
            timestamp=int(time.time() * 1000),
        )

    async def _resolve(self) -> list[LogRecord]:
        for strategy in self.strategies():
            try:
                records = await strategy(self.limit)
            except LogSourceUnavailable as exc:
                logger.debug("Log source [%s] %s unavailable: %s", self.source, strategy.__name__, exc)
                continue
            if records:
                return records[: self.limit]
        level, message = PLACEHOLDERS[self.source]
        logger.info("No %s log source available; returning placeholder", self.source)
        return [placeholder(f"{self.source}-0", level, message)]

    # ── system ──────────────────────────────────────────

    async def _journal_json(self, limit: int) -> list[LogRecord]:
        output = await run_command(
            ["journalctl", "-n", str(limit), "--no-pager", "-o", "json"],
            self.settings.command_timeout,
        )
        return self._journal_records(output, limit)

    async def _journal_text(self, limit: int) -> list[LogRecord]:
        output = await run_command(
            ["journalctl", "-n", str(limit), "--no-pager"],
            self.settings.command_timeout,
        )
        return self._journal_records(output, limit)

    @staticmethod
    def _journal_records(output: str, limit: int) -> list[LogRecord]:
        lines = _lines(output)[-limit:]
        if not lines:
            raise LogSourceUnavailable("journal returned no entries")
        return [parse_journal_line(line, f"journal-{i}") for i, line in enumerate(lines)]

    async def _log_file(self, limit: int) -> list[LogRecord]:
        for candidate in self.settings.log_files:
            path = Path(candidate)
            if not path.is_file():
                continue
            try:
                lines = await self._offload(tail_lines, path, limit)
            except OSError as exc:
                logger.debug("Cannot read log file %s: %s", path, exc)
                continue
            if not lines:
                logger.debug("Log file %s is empty", path)
                continue
            return [plain_record(line, f"file-{i}") for i, line in enumerate(lines)]
        raise LogSourceUnavailable("no readable log file")

    # ── kernel ──────────────────────────────────────────

    async def _kernel_ring_buffer(self, limit: int) -> list[LogRecord]:
        output = await run_command(["dmesg", "--time-format", "iso"], self.settings.command_timeout)
        lines = _lines(output)[-limit:]
        return [parse_kernel_line(line, f"dmesg-{i}") for i, line in enumerate(lines)]

    # ── docker ──────────────────────────────────────────

    async def _container_logs(self, limit: int) -> list[LogRecord]:
        timeout = self.settings.docker_timeout
        names_output = await run_command(["docker", "ps", "--format", "{{.Names}}"], timeout)
        names = _lines(names_output)[: self.settings.docker_max_containers]
        per_container = max(1, limit // max(1, self.settings.docker_max_containers))

        outputs = await asyncio.gather(
            *(self._container_tail(name, per_container, timeout) for name in names)
        )
        records: list[LogRecord] = []
        for name, output in zip(names, outputs):
            for line in _lines(output)[:per_container]:
                records.append(plain_record(line, f"docker-{len(records)}", unit=name))
        return records[:limit]

    @staticmethod
    async def _container_tail(name: str, lines: int, timeout: float) -> str:
        try:
            return await run_command(
                ["docker", "logs", "--tail", str(lines), name],
                timeout,
                merge_stderr=True,
            )
        except CommandError as exc:
            logger.debug("Skipping container %s: %s", name, exc)
            return ""
