from __future__ import annotations

import asyncio
import logging
import platform
import socket
import sys
import time
from pathlib import Path

import psutil

from neonpulse.collectors.base import BaseCollector
from neonpulse.collectors.commands import CommandError, run_command
from neonpulse.collectors.units import bytes_to_whole_gib
from neonpulse.models import (
    ChassisDescriptor,
    CpuDescriptor,
    DiskDescriptor,
    MemoryModule,
    SystemInventory,
)

logger = logging.getLogger(__name__)

CPUINFO_PATH = Path("/proc/cpuinfo")
SECTOR_BYTES = 512
VIRTUAL_BLOCK_PREFIXES = ("loop", "ram", "zram", "dm-", "sr", "fd")
HYPERVISOR_MARKERS = ("kvm", "qemu", "vmware", "virtualbox", "hyper-v", "xen", "bochs", "parallels")
VENDOR_NAMES = {"GenuineIntel": "Intel", "AuthenticAMD": "AMD"}
_SIZE_UNITS = {"kb": 1024, "mb": 1024 ** 2, "gb": 1024 ** 3, "tb": 1024 ** 4}


def format_uptime(seconds: float) -> str:
    """Compact uptime: ``1d 1h 1m``; zero units are omitted, ``< 1m`` below a minute."""
    seconds = int(seconds)
    days = seconds // 86_400
    hours = (seconds % 86_400) // 3600
    minutes = (seconds % 3600) // 60

    parts: list[str] = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    return " ".join(parts) or "< 1m"


def _read_text(path: Path) -> str:
    try:
        return path.read_text(errors="replace").strip()
    except OSError:
        return ""


def _parse_size(value: str) -> int:
    """``8192 MB`` / ``16 GB`` -> bytes; 0 for empty slots."""
    tokens = value.split()
    if len(tokens) < 2 or not tokens[0].isdigit():
        return 0
    return int(tokens[0]) * _SIZE_UNITS.get(tokens[1].lower(), 0)


def _parse_speed(value: str) -> int:
    token = value.split()[0] if value.split() else ""
    return int(token) if token.isdigit() else 0


def parse_memory_devices(output: str) -> list[MemoryModule]:
    """Parse ``dmidecode --type 17`` output into installed memory modules."""
    modules: list[MemoryModule] = []
    blocks = output.split("Memory Device")[1:]
    for block in blocks:
        fields: dict[str, str] = {}
        for line in block.splitlines():
            key, sep, value = line.strip().partition(":")
            if sep:
                fields[key.strip()] = value.strip()
        size = _parse_size(fields.get("Size", ""))
        if size == 0:
            continue
        speed = (
            fields.get("Configured Memory Speed")
            or fields.get("Configured Clock Speed")
            or fields.get("Speed", "")
        )
        modules.append(
            MemoryModule(
                size=bytes_to_whole_gib(size),
                type=fields.get("Type", ""),
                clock_speed=_parse_speed(speed),
            )
        )
    return modules


def read_block_devices(sysfs_root: Path) -> list[DiskDescriptor]:
    block_dir = sysfs_root / "block"
    if not block_dir.is_dir():
        return []
    disks: list[DiskDescriptor] = []
    for device in sorted(block_dir.iterdir(), key=lambda p: p.name):
        if device.name.startswith(VIRTUAL_BLOCK_PREFIXES):
            continue
        sectors = _read_text(device / "size")
        size = int(sectors) * SECTOR_BYTES if sectors.isdigit() else 0
        if device.name.startswith("nvme"):
            kind = "NVMe"
        elif _read_text(device / "queue" / "rotational") == "1":
            kind = "HD"
        else:
            kind = "SSD"
        disks.append(
            DiskDescriptor(
                name=_read_text(device / "device" / "model") or device.name,
                type=kind,
                size=bytes_to_whole_gib(size),
            )
        )
    return disks


def read_chassis(sysfs_root: Path, cpu_flags: str = "") -> ChassisDescriptor:
    dmi = sysfs_root / "class" / "dmi" / "id"
    manufacturer = _read_text(dmi / "sys_vendor")
    model = _read_text(dmi / "product_name")
    fingerprint = f"{manufacturer} {model}".lower()
    virtual = any(marker in fingerprint for marker in HYPERVISOR_MARKERS) or "hypervisor" in cpu_flags.split()
    return ChassisDescriptor(manufacturer=manufacturer, model=model, virtual=virtual)


def _parse_cpuinfo(text: str) -> dict[str, str]:
    fields: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            if fields:
                break  # only the first processor block is needed
            continue
        fields.setdefault(key.strip(), value.strip())
    return fields


class InventoryCollector(BaseCollector[SystemInventory]):
    """OS identity, hardware layout and uptime for ``/api/info``."""

    name = "inventory_collector"
    error_message = "Failed to get system info"

    async def collect(self) -> SystemInventory:
        sysfs_root = Path(self.settings.sysfs_root)
        identity, uptime, cpuinfo, memory, disks = await asyncio.gather(
            self._offload(self._os_identity),
            self._offload(self._uptime_seconds),
            self._offload(self._read_cpuinfo),
            self._memory_layout(),
            self._offload(read_block_devices, sysfs_root),
        )
        cpu = await self._offload(self._cpu_descriptor, cpuinfo)
        chassis = await self._offload(read_chassis, sysfs_root, cpuinfo.get("flags", ""))

        return SystemInventory(
            **identity,
            uptime=uptime,
            uptime_formatted=format_uptime(uptime),
            cpu=cpu,
            system=chassis,
            memory=memory,
            disks=disks,
        )

    async def _memory_layout(self) -> list[MemoryModule]:
        try:
            output = await run_command(["dmidecode", "--type", "17"], self.settings.command_timeout)
        except CommandError as exc:
            logger.debug("Memory layout unavailable: %s", exc)
            return []
        return parse_memory_devices(output)

    @staticmethod
    def _os_identity() -> dict[str, str]:
        try:
            os_release = platform.freedesktop_os_release()
        except (OSError, AttributeError):
            os_release = {}
        return {
            "hostname": socket.gethostname(),
            "platform": sys.platform,
            "distro": os_release.get("NAME") or platform.system(),
            "release": os_release.get("VERSION") or os_release.get("VERSION_ID") or platform.release(),
            "kernel": platform.release(),
            "arch": platform.machine(),
        }

    @staticmethod
    def _uptime_seconds() -> int:
        return max(0, int(time.time() - psutil.boot_time()))

    @staticmethod
    def _read_cpuinfo() -> dict[str, str]:
        return _parse_cpuinfo(_read_text(CPUINFO_PATH))

    @staticmethod
    def _cpu_descriptor(cpuinfo: dict[str, str]) -> CpuDescriptor:
        vendor = cpuinfo.get("vendor_id", "")
        try:
            freq = psutil.cpu_freq()
        except (AttributeError, NotImplementedError, OSError):
            freq = None
        return CpuDescriptor(
            manufacturer=VENDOR_NAMES.get(vendor, vendor),
            brand=cpuinfo.get("model name") or platform.processor(),
            cores=psutil.cpu_count(logical=True) or 0,
            physical_cores=psutil.cpu_count(logical=False) or 0,
            speed=round(freq.current / 1000, 2) if freq and freq.current else 0.0,
            speed_max=round(freq.max / 1000, 2) if freq and freq.max else 0.0,
        )
