from .analysis import HealthReport, HealthStatus
from .inventory import (
    ChassisDescriptor,
    CpuDescriptor,
    DiskDescriptor,
    MemoryModule,
    SystemInventory,
)
from .logs import PRIORITY_LEVELS, LogBatch, LogLevel, LogRecord, LogSource
from .metrics import MetricsSnapshot
from .processes import ProcessSample, ProcessSummary

__all__ = [
    "HealthReport",
    "HealthStatus",
    "ChassisDescriptor",
    "CpuDescriptor",
    "DiskDescriptor",
    "MemoryModule",
    "SystemInventory",
    "PRIORITY_LEVELS",
    "LogBatch",
    "LogLevel",
    "LogRecord",
    "LogSource",
    "MetricsSnapshot",
    "ProcessSample",
    "ProcessSummary",
]
