from __future__ import annotations

from enum import StrEnum

from .base import ApiModel


class LogLevel(StrEnum):
    EMERG = "EMERG"
    ALERT = "ALERT"
    CRIT = "CRIT"
    ERROR = "ERROR"
    WARN = "WARN"
    NOTICE = "NOTICE"
    INFO = "INFO"
    DEBUG = "DEBUG"
    SYSTEM = "SYSTEM"


# syslog priority ordinal -> level
PRIORITY_LEVELS: tuple[LogLevel, ...] = (
    LogLevel.EMERG,
    LogLevel.ALERT,
    LogLevel.CRIT,
    LogLevel.ERROR,
    LogLevel.WARN,
    LogLevel.NOTICE,
    LogLevel.INFO,
    LogLevel.DEBUG,
)


class LogSource(StrEnum):
    SYSTEM = "system"
    KERNEL = "kernel"
    DOCKER = "docker"


class LogRecord(ApiModel):
    """One normalized log line. ``id`` is only unique within a single response."""

    id: str
    timestamp: str
    level: LogLevel
    message: str
    unit: str | None = None


class LogBatch(ApiModel):
    logs: list[LogRecord]
    count: int
    type: LogSource
    timestamp: int
