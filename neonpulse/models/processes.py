from __future__ import annotations

from pydantic import Field

from .base import ApiModel


class ProcessSample(ApiModel):
    pid: int
    name: str = ""
    cpu: float = 0.0
    mem: float = 0.0
    user: str = ""
    state: str = ""


class ProcessSummary(ApiModel):
    """Aggregate counts plus the top consumers from one process-table snapshot."""

    total: int = 0
    running: int = 0
    blocked: int = 0
    sleeping: int = 0
    top_cpu: list[ProcessSample] = Field(default_factory=list)
    top_mem: list[ProcessSample] = Field(default_factory=list)
