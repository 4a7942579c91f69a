from .base import BaseCollector
from .inventory_collector import InventoryCollector
from .log_collector import LogCollector
from .metrics_collector import MetricsCollector
from .process_collector import ProcessCollector

__all__ = [
    "BaseCollector",
    "InventoryCollector",
    "LogCollector",
    "MetricsCollector",
    "ProcessCollector",
]
