"""Tests for neonpulse.api routes, the access gate and error envelopes."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from neonpulse.collectors.commands import CommandError
from neonpulse.config import Settings
from neonpulse.errors import CollectionError
from neonpulse.main import create_app
from neonpulse.models import (
    MetricsSnapshot,
    ProcessSample,
    ProcessSummary,
    SystemInventory,
)


# ── fixtures ───────────────────────────────────────────


def _make_app(**overrides):
    app = create_app(Settings(**overrides))
    state = app.state
    state.metrics_collector.snapshot = AsyncMock(
        return_value=MetricsSnapshot(cpu_load=12.5, cpu_cores=4, ram_usage=3.2, ram_total=8, ram_percent=40.0)
    )
    state.inventory_collector.snapshot = AsyncMock(
        return_value=SystemInventory(hostname="web01", platform="linux", uptime=3600, uptime_formatted="1h")
    )
    state.process_collector.snapshot = AsyncMock(
        return_value=ProcessSummary(
            total=1, running=1, top_cpu=[ProcessSample(pid=1, name="init")], top_mem=[]
        )
    )
    return app


def _client(app, peer: str = "127.0.0.1") -> AsyncClient:
    transport = ASGITransport(app=app, raise_app_exceptions=False, client=(peer, 50000))
    return AsyncClient(transport=transport, base_url="http://test")


@pytest.fixture
async def client():
    async with _client(_make_app()) as c:
        yield c


@pytest.fixture
async def outsider():
    """Client whose socket address is not on the default loopback allow-list."""
    async with _client(_make_app(), peer="203.0.113.9") as c:
        yield c


# ── health ─────────────────────────────────────────────


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_ok(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert isinstance(data["timestamp"], int)

    @pytest.mark.asyncio
    async def test_health_bypasses_gate(self, outsider: AsyncClient):
        resp = await outsider.get("/health")
        assert resp.status_code == 200


# ── access gate ────────────────────────────────────────


class TestAccessGate:
    @pytest.mark.asyncio
    async def test_denied_envelope(self, outsider: AsyncClient):
        resp = await outsider.get("/api/stats")
        assert resp.status_code == 403
        assert resp.json() == {
            "error": "Access denied",
            "message": "Your IP is not whitelisted",
            "yourIp": "203.0.113.9",
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/api/stats", "/api/info", "/api/logs", "/api/processes", "/api/analysis"])
    async def test_every_api_route_is_gated(self, outsider: AsyncClient, path):
        resp = await outsider.get(path)
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_forwarded_header_wins(self):
        app = _make_app(allowed_ips="10.0.*")
        async with _client(app, peer="127.0.0.1") as c:
            allowed = await c.get("/api/stats", headers={"X-Forwarded-For": "10.0.5.9, 172.16.0.1"})
            denied = await c.get("/api/stats", headers={"X-Forwarded-For": "10.1.0.1"})
        assert allowed.status_code == 200
        assert denied.status_code == 403
        assert denied.json()["yourIp"] == "10.1.0.1"

    @pytest.mark.asyncio
    async def test_real_ip_header(self):
        app = _make_app(allowed_ips="192.168.1.0/24")
        async with _client(app, peer="8.8.8.8") as c:
            resp = await c.get("/api/stats", headers={"X-Real-IP": "192.168.1.77"})
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_mapped_peer_address(self):
        async with _client(_make_app(), peer="::ffff:127.0.0.1") as c:
            resp = await c.get("/api/stats")
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_decisions_are_logged(self, caplog):
        async with _client(_make_app(), peer="203.0.113.9") as c:
            with caplog.at_level(logging.INFO, logger="neonpulse.api.dependencies"):
                await c.get("/api/stats")
        assert "[BLOCKED] GET /api/stats from 203.0.113.9" in caplog.text

        caplog.clear()
        async with _client(_make_app()) as c:
            with caplog.at_level(logging.INFO, logger="neonpulse.api.dependencies"):
                await c.get("/api/info")
        assert "[ALLOWED] GET /api/info from 127.0.0.1" in caplog.text


# ── data routes ────────────────────────────────────────


class TestStats:
    @pytest.mark.asyncio
    async def test_stats_camel_case(self, client: AsyncClient):
        resp = await client.get("/api/stats")
        assert resp.status_code == 200
        data = resp.json()
        assert data["cpuLoad"] == 12.5
        assert data["cpuCores"] == 4
        assert data["ramTotal"] == 8
        assert data["gpuLoad"] == 0
        assert "networkInterface" in data

    @pytest.mark.asyncio
    async def test_collection_error_envelope(self):
        app = _make_app()
        app.state.metrics_collector.snapshot = AsyncMock(
            side_effect=CollectionError("Failed to collect metrics", "psutil exploded")
        )
        async with _client(app) as c:
            resp = await c.get("/api/stats")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to collect metrics", "details": "psutil exploded"}


class TestInfo:
    @pytest.mark.asyncio
    async def test_info(self, client: AsyncClient):
        resp = await client.get("/api/info")
        assert resp.status_code == 200
        data = resp.json()
        assert data["hostname"] == "web01"
        assert data["uptimeFormatted"] == "1h"
        assert "physicalCores" in data["cpu"]


class TestProcesses:
    @pytest.mark.asyncio
    async def test_processes(self, client: AsyncClient):
        resp = await client.get("/api/processes")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 1
        assert data["topCpu"][0]["name"] == "init"
        assert data["topMem"] == []


class TestLogs:
    @pytest.mark.asyncio
    async def test_placeholder_when_no_sources(self, client: AsyncClient):
        with patch(
            "neonpulse.collectors.log_collector.run_command",
            AsyncMock(side_effect=CommandError("missing")),
        ):
            resp = await client.get("/api/logs", params={"type": "kernel", "limit": "abc"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["type"] == "kernel"
        assert data["count"] == 1
        assert data["logs"][0]["level"] == "WARN"
        assert isinstance(data["timestamp"], int)

    @pytest.mark.asyncio
    async def test_limit_is_clamped(self, client: AsyncClient):
        output = "\n".join(f"2024-01-01T00:00:00 line {i}" for i in range(500))
        with patch(
            "neonpulse.collectors.log_collector.run_command",
            AsyncMock(return_value=output),
        ):
            resp = await client.get("/api/logs", params={"type": "kernel", "limit": "1000"})
        data = resp.json()
        assert data["count"] == 200
        assert len(data["logs"]) == 200

    @pytest.mark.asyncio
    async def test_unknown_type_defaults_to_system(self, client: AsyncClient):
        with patch(
            "neonpulse.collectors.log_collector.run_command",
            AsyncMock(return_value='{"PRIORITY": "3", "MESSAGE": "boom"}'),
        ):
            resp = await client.get("/api/logs", params={"type": "nope"})
        data = resp.json()
        assert data["type"] == "system"
        assert data["logs"][0]["level"] == "ERROR"
        assert data["logs"][0]["id"] == "journal-0"


class TestAnalysis:
    @pytest.mark.asyncio
    async def test_analysis_report(self, client: AsyncClient):
        resp = await client.get("/api/analysis")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "nominal"
        assert data["content"].startswith("SYSTEM ANALYSIS - web01")

    @pytest.mark.asyncio
    async def test_analysis_fails_with_collection(self):
        app = _make_app()
        app.state.inventory_collector.snapshot = AsyncMock(
            side_effect=CollectionError("Failed to get system info", "no /proc")
        )
        async with _client(app) as c:
            resp = await c.get("/api/analysis")
        assert resp.status_code == 500
        assert resp.json()["error"] == "Failed to get system info"


class TestCors:
    @pytest.mark.asyncio
    async def test_wildcard_origin(self, client: AsyncClient):
        resp = await client.get("/health", headers={"Origin": "http://dashboard.test"})
        assert resp.headers["access-control-allow-origin"] == "*"
