from __future__ import annotations

import logging

from fastapi import Request

from neonpulse.engine.access_control import AccessGate
from neonpulse.errors import AccessDenied

logger = logging.getLogger(__name__)


def client_address(request: Request) -> str:
    """Proxy headers first (``X-Forwarded-For``, ``X-Real-IP``), then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    return request.client.host if request.client else ""


async def require_allowed_client(request: Request) -> str:
    """Gate for the ``/api`` group. Every decision is written to the audit log."""
    gate: AccessGate = request.app.state.access_gate
    address = client_address(request)
    if not gate.is_allowed(address):
        logger.warning("[BLOCKED] %s %s from %s", request.method, request.url.path, address)
        raise AccessDenied(address)
    logger.info("[ALLOWED] %s %s from %s", request.method, request.url.path, address)
    return address
