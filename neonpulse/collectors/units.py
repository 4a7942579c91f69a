from __future__ import annotations

GIB = 1024 ** 3
BYTES_PER_MEGABIT = 125_000


def round1(value: float) -> float:
    return round(float(value), 1)


def clamp_percent(value: float | None) -> float:
    """Round to one decimal and pin into [0, 100]."""
    if value is None:
        return 0.0
    return min(100.0, max(0.0, round1(value)))


def bytes_to_gib(value: float | None) -> float:
    return round1((value or 0) / GIB)


def bytes_to_whole_gib(value: float | None) -> int:
    return int(round((value or 0) / GIB))


def bytes_per_sec_to_mbps(value: float | None) -> float:
    return round((value or 0) / BYTES_PER_MEGABIT, 2)
