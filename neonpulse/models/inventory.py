from __future__ import annotations

from pydantic import Field

from .base import ApiModel


class CpuDescriptor(ApiModel):
    manufacturer: str = ""
    brand: str = ""
    cores: int = 0
    physical_cores: int = 0
    speed: float = 0.0  # GHz
    speed_max: float = 0.0


class ChassisDescriptor(ApiModel):
    manufacturer: str = ""
    model: str = ""
    virtual: bool = False


class MemoryModule(ApiModel):
    size: int = 0  # GiB
    type: str = ""
    clock_speed: int = 0  # MT/s


class DiskDescriptor(ApiModel):
    name: str
    type: str = ""
    size: int = 0  # GiB


class SystemInventory(ApiModel):
    """Rarely-changing host facts served by ``/api/info``."""

    hostname: str
    platform: str
    distro: str = ""
    release: str = ""
    kernel: str = ""
    arch: str = ""
    uptime: int = 0
    uptime_formatted: str = "< 1m"
    cpu: CpuDescriptor = Field(default_factory=CpuDescriptor)
    system: ChassisDescriptor = Field(default_factory=ChassisDescriptor)
    memory: list[MemoryModule] = Field(default_factory=list)
    disks: list[DiskDescriptor] = Field(default_factory=list)
