from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from neonpulse.api.routes import router
from neonpulse.collectors import InventoryCollector, MetricsCollector, ProcessCollector
from neonpulse.config import Settings, settings
from neonpulse.engine.access_control import AccessGate
from neonpulse.errors import AccessDenied, CollectionError

logger = logging.getLogger(__name__)

ENDPOINTS = ("/api/stats", "/api/info", "/api/logs", "/api/processes", "/api/analysis", "/health")


async def _access_denied(request: Request, exc: AccessDenied) -> JSONResponse:
    return JSONResponse(
        status_code=403,
        content={
            "error": "Access denied",
            "message": "Your IP is not whitelisted",
            "yourIp": exc.address,
        },
    )


async def _collection_failed(request: Request, exc: CollectionError) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": exc.message, "details": exc.details},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── startup ───────────────────────────────────────
    app_settings: Settings = app.state.settings
    gate: AccessGate = app.state.access_gate
    logger.info(
        "%s v%s online on port %d, allowed IPs: %s",
        app_settings.app_name,
        app_settings.version,
        app_settings.port,
        gate.describe(),
    )
    logger.info("Endpoints: %s", ", ".join(ENDPOINTS))

    yield

    # ── shutdown ──────────────────────────────────────
    logger.info("%s shut down", app_settings.app_name)


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the application around one immutable settings object."""
    app_settings = app_settings or settings
    application = FastAPI(
        title=app_settings.app_name,
        version=app_settings.version,
        debug=app_settings.debug,
        lifespan=lifespan,
    )

    # Store on app.state for route access
    application.state.settings = app_settings
    application.state.access_gate = AccessGate(app_settings.allowed_ips)
    application.state.metrics_collector = MetricsCollector(app_settings)
    application.state.inventory_collector = InventoryCollector(app_settings)
    application.state.process_collector = ProcessCollector(app_settings)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    application.add_exception_handler(AccessDenied, _access_denied)
    application.add_exception_handler(CollectionError, _collection_failed)
    application.include_router(router)
    return application


app = create_app()
