"""Tests for neonpulse.engine.log_parser."""

from __future__ import annotations

import json
import re

import pytest

from neonpulse.engine.log_parser import (
    detect_log_level,
    parse_journal_json,
    parse_journal_line,
    parse_kernel_line,
    parse_syslog_text,
    placeholder,
    plain_record,
    priority_to_level,
)
from neonpulse.errors import MalformedUpstreamData
from neonpulse.models import LogLevel

_TIME_OF_DAY = re.compile(r"^\d{2}:\d{2}:\d{2}$")


class TestDetectLogLevel:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Connection ERROR on eth0", LogLevel.ERROR),
            ("unit failed to start", LogLevel.ERROR),
            ("Job Failure detected", LogLevel.ERROR),
            ("crit: disk on fire", LogLevel.ERROR),
            ("Warning: low entropy", LogLevel.WARN),
            ("debug: tick", LogLevel.DEBUG),
            ("Started Session 3 of user root.", LogLevel.INFO),
            ("", LogLevel.INFO),
        ],
    )
    def test_heuristic(self, text, expected):
        assert detect_log_level(text) == expected

    def test_error_beats_warn(self):
        assert detect_log_level("warn: previous step failed") == LogLevel.ERROR

    def test_case_insensitive(self):
        assert detect_log_level("eRrOr") == detect_log_level("ERROR") == LogLevel.ERROR
        assert detect_log_level("WaRn") == LogLevel.WARN

    @pytest.mark.parametrize("text", ["disk error", "warning", "debugging", "hello"])
    def test_idempotent_on_own_labels(self, text):
        label = detect_log_level(text)
        assert detect_log_level(label.value) == label


class TestPriorityToLevel:
    @pytest.mark.parametrize(
        ("priority", "expected"),
        [
            ("0", LogLevel.EMERG),
            ("1", LogLevel.ALERT),
            ("2", LogLevel.CRIT),
            ("3", LogLevel.ERROR),
            ("4", LogLevel.WARN),
            ("5", LogLevel.NOTICE),
            ("6", LogLevel.INFO),
            ("7", LogLevel.DEBUG),
            (3, LogLevel.ERROR),
        ],
    )
    def test_ordinal_table(self, priority, expected):
        assert priority_to_level(priority) == expected

    @pytest.mark.parametrize("priority", [None, "", "8", "-1", "high", 42])
    def test_missing_or_out_of_range_is_info(self, priority):
        assert priority_to_level(priority) == LogLevel.INFO


class TestJournalJson:
    def test_structured_entry(self):
        line = json.dumps(
            {
                "__REALTIME_TIMESTAMP": "1700000000000000",
                "PRIORITY": "3",
                "MESSAGE": "Something broke",
                "_SYSTEMD_UNIT": "nginx.service",
            }
        )
        record = parse_journal_json(line, "journal-0")
        assert record.id == "journal-0"
        assert record.timestamp == "22:13:20"
        assert record.level == LogLevel.ERROR
        assert record.message == "Something broke"
        assert record.unit == "nginx.service"

    def test_priority_wins_over_message_text(self):
        line = json.dumps({"PRIORITY": "6", "MESSAGE": "0 errors found"})
        assert parse_journal_json(line, "journal-0").level == LogLevel.INFO

    def test_missing_priority_defaults_to_info(self):
        line = json.dumps({"MESSAGE": "fatal error"})
        assert parse_journal_json(line, "journal-0").level == LogLevel.INFO

    def test_syslog_identifier_fallback(self):
        line = json.dumps({"MESSAGE": "hi", "SYSLOG_IDENTIFIER": "kernel"})
        assert parse_journal_json(line, "journal-0").unit == "kernel"

    def test_byte_array_message(self):
        line = json.dumps({"MESSAGE": list(b"raw bytes")})
        assert parse_journal_json(line, "journal-0").message == "raw bytes"

    def test_bad_timestamp_uses_current_time(self):
        line = json.dumps({"MESSAGE": "x", "__REALTIME_TIMESTAMP": "soon"})
        assert _TIME_OF_DAY.match(parse_journal_json(line, "journal-0").timestamp)

    @pytest.mark.parametrize("stamp", ["9" * 30, "-" + "9" * 30, str(10**20)])
    def test_out_of_range_timestamp_uses_current_time(self, stamp):
        line = json.dumps({"PRIORITY": "6", "MESSAGE": "x", "__REALTIME_TIMESTAMP": stamp})
        record = parse_journal_line(line, "journal-0")
        assert record.message == "x"
        assert _TIME_OF_DAY.match(record.timestamp)

    @pytest.mark.parametrize("line", ["not json", "[1, 2]", "42"])
    def test_malformed_raises(self, line):
        with pytest.raises(MalformedUpstreamData):
            parse_journal_json(line, "journal-0")


class TestSyslogText:
    def test_loose_text_pattern(self):
        line = "Jan  5 12:00:01 web01 sshd[42]: Failed password for root"
        record = parse_syslog_text(line, "journal-3")
        assert record.timestamp == "Jan  5 12:00:01"
        assert record.unit == "sshd[42]"
        assert record.message == "Failed password for root"
        assert record.level == LogLevel.ERROR

    def test_unmatched_line_passes_through(self):
        record = parse_syslog_text("-- No entries --", "journal-0")
        assert record.message == "-- No entries --"
        assert record.level == LogLevel.INFO
        assert _TIME_OF_DAY.match(record.timestamp)


class TestJournalLine:
    def test_json_first(self):
        record = parse_journal_line(json.dumps({"PRIORITY": "4", "MESSAGE": "m"}), "journal-0")
        assert record.level == LogLevel.WARN

    def test_falls_back_to_text(self):
        record = parse_journal_line("Mar 10 08:15:00 host cron[1]: warning: clock skew", "journal-1")
        assert record.unit == "cron[1]"
        assert record.level == LogLevel.WARN


class TestKernelLine:
    def test_iso_timestamp_split(self):
        line = "2024-01-05T12:00:01,123456+00:00 usb 1-1: new high-speed USB device"
        record = parse_kernel_line(line, "dmesg-0")
        assert record.timestamp == "2024-01-05T12:00:01,123456+00:00"
        assert record.message == "usb 1-1: new high-speed USB device"
        assert record.level == LogLevel.INFO

    def test_single_token_line_passes_through(self):
        record = parse_kernel_line("garbage", "dmesg-1")
        assert record.message == "garbage"
        assert record.timestamp.endswith("Z")

    def test_severity_from_whole_line(self):
        record = parse_kernel_line("2024-01-05T12:00:01 EXT4-fs error (device sda1)", "dmesg-2")
        assert record.level == LogLevel.ERROR


class TestHelpers:
    def test_plain_record(self):
        record = plain_record("WARN disk 91%", "file-0", unit="app")
        assert record.level == LogLevel.WARN
        assert record.unit == "app"
        assert _TIME_OF_DAY.match(record.timestamp)

    def test_placeholder(self):
        record = placeholder("kernel-0", LogLevel.WARN, "dmesg not available")
        assert record.id == "kernel-0"
        assert record.level == LogLevel.WARN
        assert record.message == "dmesg not available"
