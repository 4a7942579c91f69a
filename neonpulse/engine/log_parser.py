"""Normalization of raw log lines into :class:`LogRecord` objects.

Every log source funnels through this module: structured journal entries
carry a numeric priority, everything else gets a severity guessed from the
message text.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone

from neonpulse.errors import MalformedUpstreamData
from neonpulse.models.logs import PRIORITY_LEVELS, LogLevel, LogRecord

# "Jan  5 12:00:01 host sshd[42]: message"
_SYSLOG_LINE = re.compile(r"^(\w+\s+\d+\s+[\d:]+)\s+(\S+)\s+(\S+):\s*(.*)$")
# "2024-01-05T12:00:01,123456+00:00 message"
_KERNEL_LINE = re.compile(r"^(\S+)\s+(.*)$")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_time_of_day() -> str:
    return datetime.now(timezone.utc).strftime("%H:%M:%S")


def detect_log_level(text: str) -> LogLevel:
    """Guess a severity from free text when the source does not supply one."""
    upper = text.upper()
    if "ERROR" in upper or "FAIL" in upper or "CRIT" in upper:
        return LogLevel.ERROR
    if "WARN" in upper:
        return LogLevel.WARN
    if "DEBUG" in upper:
        return LogLevel.DEBUG
    return LogLevel.INFO


def priority_to_level(priority: object) -> LogLevel:
    try:
        index = int(str(priority).strip())
    except (TypeError, ValueError):
        return LogLevel.INFO
    if 0 <= index < len(PRIORITY_LEVELS):
        return PRIORITY_LEVELS[index]
    return LogLevel.INFO


def _decode_message(value: object) -> str:
    # journald emits non-UTF-8 messages as a list of byte values
    if isinstance(value, list):
        try:
            return bytes(value).decode("utf-8", errors="replace")
        except (TypeError, ValueError):
            return ""
    if value is None:
        return ""
    return str(value)


def _realtime_to_time_of_day(value: object) -> str:
    try:
        micros = int(str(value))
    except (TypeError, ValueError):
        return now_time_of_day()
    try:
        stamp = datetime.fromtimestamp(micros / 1_000_000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return now_time_of_day()
    return stamp.strftime("%H:%M:%S")


def parse_journal_json(line: str, record_id: str) -> LogRecord:
    """Parse one ``journalctl -o json`` line. Raises MalformedUpstreamData."""
    try:
        entry = json.loads(line)
    except json.JSONDecodeError as exc:
        raise MalformedUpstreamData(str(exc)) from exc
    if not isinstance(entry, dict):
        raise MalformedUpstreamData("journal entry is not an object")

    unit = entry.get("_SYSTEMD_UNIT") or entry.get("SYSLOG_IDENTIFIER") or ""
    return LogRecord(
        id=record_id,
        timestamp=_realtime_to_time_of_day(entry.get("__REALTIME_TIMESTAMP")),
        level=priority_to_level(entry.get("PRIORITY")),
        message=_decode_message(entry.get("MESSAGE")),
        unit=str(unit),
    )


def parse_syslog_text(line: str, record_id: str) -> LogRecord:
    match = _SYSLOG_LINE.match(line)
    if match is None:
        return LogRecord(
            id=record_id,
            timestamp=now_time_of_day(),
            level=detect_log_level(line),
            message=line,
            unit="",
        )
    return LogRecord(
        id=record_id,
        timestamp=match.group(1),
        level=detect_log_level(line),
        message=match.group(4),
        unit=match.group(3),
    )


def parse_journal_line(line: str, record_id: str) -> LogRecord:
    """Structured record first, then the loose syslog text shape."""
    try:
        return parse_journal_json(line, record_id)
    except MalformedUpstreamData:
        return parse_syslog_text(line, record_id)


def parse_kernel_line(line: str, record_id: str) -> LogRecord:
    match = _KERNEL_LINE.match(line)
    return LogRecord(
        id=record_id,
        timestamp=match.group(1) if match else now_iso(),
        level=detect_log_level(line),
        message=match.group(2) if match else line,
    )


def plain_record(line: str, record_id: str, unit: str | None = None) -> LogRecord:
    """Unstructured line stamped with the current time of day."""
    return LogRecord(
        id=record_id,
        timestamp=now_time_of_day(),
        level=detect_log_level(line),
        message=line,
        unit=unit,
    )


def placeholder(record_id: str, level: LogLevel, message: str) -> LogRecord:
    return LogRecord(id=record_id, timestamp=now_iso(), level=level, message=message)
