"""Run the monitoring backend.

Usage:
    python -m neonpulse                      # settings from NEONPULSE_* env / .env
    python -m neonpulse --port 8080
    python -m neonpulse --allow 192.168.1.0/24,10.0.*
"""

from __future__ import annotations

import argparse
import logging

import uvicorn

from neonpulse.config import Settings
from neonpulse.main import create_app


def main() -> None:
    parser = argparse.ArgumentParser(description="NeonPulse server monitor backend")
    parser.add_argument("--host", help="Bind address")
    parser.add_argument("--port", type=int, help="Listen port")
    parser.add_argument("--allow", help="Comma-separated allow-list (exact, wildcard or CIDR)")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    overrides: dict = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    if args.allow:
        overrides["allowed_ips"] = args.allow
    if args.debug:
        overrides["debug"] = True
    app_settings = Settings(**overrides)

    logging.basicConfig(
        level=logging.DEBUG if app_settings.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    uvicorn.run(
        create_app(app_settings),
        host=app_settings.host,
        port=app_settings.port,
        log_level="debug" if app_settings.debug else "info",
    )


if __name__ == "__main__":
    main()
