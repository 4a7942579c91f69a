from __future__ import annotations

from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode


DEFAULT_ALLOWED_IPS = ["127.0.0.1", "::1", "::ffff:127.0.0.1"]


def _split_csv(value: object) -> object:
    """Accept ``a,b,c`` strings from the environment as well as real lists."""
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class Settings(BaseSettings):
    # --- app ---
    app_name: str = "NeonPulse Server Monitor"
    version: str = "1.0.0"
    debug: bool = False

    # --- server ---
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: Annotated[list[str], NoDecode] = ["*"]

    # --- access control ---
    allowed_ips: Annotated[list[str], NoDecode] = list(DEFAULT_ALLOWED_IPS)

    # --- collectors ---
    sample_interval: float = 0.25  # seconds for CPU / network / process rate sampling
    sysfs_root: str = "/sys"

    # --- logs ---
    command_timeout: float = 5.0
    docker_timeout: float = 10.0
    log_default_limit: int = 50
    log_max_limit: int = 200
    docker_max_containers: int = 5
    log_files: Annotated[list[str], NoDecode] = ["/var/log/syslog", "/var/log/messages"]

    model_config = {"env_file": ".env", "env_prefix": "NEONPULSE_", "frozen": True}

    @field_validator("allowed_ips", "cors_origins", "log_files", mode="before")
    @classmethod
    def _parse_csv(cls, value: object) -> object:
        return _split_csv(value)


settings = Settings()
