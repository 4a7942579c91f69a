from __future__ import annotations

from neonpulse.models import HealthReport, HealthStatus, MetricsSnapshot, SystemInventory

_RULE = "━" * 34

# (critical, warning) thresholds
CPU_THRESHOLDS = (90.0, 70.0)
RAM_THRESHOLDS = (90.0, 75.0)
DISK_THRESHOLDS = (90.0, 80.0)
TEMP_THRESHOLDS = (85.0, 70.0)


def _fmt(value: float) -> str:
    return f"{value:g}"


def _evaluate(snapshot: MetricsSnapshot) -> tuple[list[str], list[str]]:
    issues: list[str] = []
    healthy: list[str] = []

    cpu = snapshot.cpu_load
    if cpu > CPU_THRESHOLDS[0]:
        issues.append(f"CRITICAL: CPU at {_fmt(cpu)}% - consider scaling or optimizing")
    elif cpu > CPU_THRESHOLDS[1]:
        issues.append(f"WARNING: CPU load elevated at {_fmt(cpu)}%")
    else:
        healthy.append(f"CPU healthy at {_fmt(cpu)}%")

    ram = snapshot.ram_percent
    if ram > RAM_THRESHOLDS[0]:
        issues.append(f"CRITICAL: RAM at {ram:.0f}% - risk of OOM")
    elif ram > RAM_THRESHOLDS[1]:
        issues.append(f"WARNING: RAM usage at {ram:.0f}%")
    else:
        healthy.append(f"RAM adequate at {ram:.0f}%")

    disk = snapshot.disk_usage
    if disk > DISK_THRESHOLDS[0]:
        issues.append(f"CRITICAL: Disk at {_fmt(disk)}% - cleanup needed")
    elif disk > DISK_THRESHOLDS[1]:
        issues.append(f"WARNING: Disk usage at {_fmt(disk)}%")
    else:
        healthy.append(f"Disk space OK at {_fmt(disk)}%")

    temp = snapshot.temperature
    if temp > TEMP_THRESHOLDS[0]:
        issues.append(f"CRITICAL: Temperature at {_fmt(temp)}°C - check cooling")
    elif temp > TEMP_THRESHOLDS[1]:
        issues.append(f"WARNING: Temperature elevated at {_fmt(temp)}°C")
    elif temp > 0:
        healthy.append(f"Temperature normal at {_fmt(temp)}°C")

    return issues, healthy


def generate_report(snapshot: MetricsSnapshot, inventory: SystemInventory) -> HealthReport:
    """Threshold-based text report over one snapshot. Pure; no I/O."""
    issues, healthy = _evaluate(snapshot)

    lines = [
        f"SYSTEM ANALYSIS - {inventory.hostname}",
        _RULE,
        f"Platform: {inventory.distro} {inventory.release}".rstrip(),
        f"Uptime: {inventory.uptime_formatted}",
        "",
    ]
    if issues:
        lines.append("ISSUES DETECTED:")
        lines.extend(f"  • {issue}" for issue in issues)
        lines.append("")
    if healthy:
        lines.append("HEALTHY METRICS:")
        lines.extend(f"  ✓ {item}" for item in healthy)
    lines.append("")
    lines.append(_RULE)
    if issues:
        lines.append(f"STATUS: {len(issues)} ISSUE(S) REQUIRE ATTENTION")
    else:
        lines.append("STATUS: ALL SYSTEMS NOMINAL")

    return HealthReport(
        status=HealthStatus.ATTENTION if issues else HealthStatus.NOMINAL,
        issues=issues,
        healthy=healthy,
        content="\n".join(lines),
    )
