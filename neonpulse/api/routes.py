from __future__ import annotations

import asyncio
import time

from fastapi import APIRouter, Depends, Query, Request

from neonpulse.api.dependencies import require_allowed_client
from neonpulse.collectors.log_collector import LogCollector, resolve_source
from neonpulse.engine.analyst import generate_report
from neonpulse.models import (
    HealthReport,
    LogBatch,
    MetricsSnapshot,
    ProcessSummary,
    SystemInventory,
)


router = APIRouter()

api_router = APIRouter(prefix="/api", dependencies=[Depends(require_allowed_client)])


# ── liveness (never gated) ────────────────────────────


@router.get("/health")
async def health() -> dict:
    return {"status": "ok", "timestamp": int(time.time() * 1000)}


# ── monitoring data ───────────────────────────────────


@api_router.get("/stats", response_model=MetricsSnapshot)
async def get_stats(request: Request) -> MetricsSnapshot:
    return await request.app.state.metrics_collector.snapshot()


@api_router.get("/info", response_model=SystemInventory)
async def get_info(request: Request) -> SystemInventory:
    return await request.app.state.inventory_collector.snapshot()


@api_router.get("/logs", response_model=LogBatch)
async def get_logs(
    request: Request,
    limit: str | None = None,
    log_type: str | None = Query(None, alias="type"),
) -> LogBatch:
    collector = LogCollector(request.app.state.settings, resolve_source(log_type), limit)
    return await collector.snapshot()


@api_router.get("/processes", response_model=ProcessSummary)
async def get_processes(request: Request) -> ProcessSummary:
    return await request.app.state.process_collector.snapshot()


@api_router.get("/analysis", response_model=HealthReport)
async def get_analysis(request: Request) -> HealthReport:
    state = request.app.state
    snapshot, inventory = await asyncio.gather(
        state.metrics_collector.snapshot(),
        state.inventory_collector.snapshot(),
    )
    return generate_report(snapshot, inventory)


router.include_router(api_router)
