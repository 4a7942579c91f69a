from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from .base import ApiModel
from .metrics import _now_ms


class HealthStatus(StrEnum):
    NOMINAL = "nominal"
    ATTENTION = "attention"


class HealthReport(ApiModel):
    """Rule-based health summary of one snapshot."""

    status: HealthStatus
    issues: list[str] = Field(default_factory=list)
    healthy: list[str] = Field(default_factory=list)
    content: str = ""
    timestamp: int = Field(default_factory=_now_ms)
