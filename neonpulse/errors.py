from __future__ import annotations


class AccessDenied(Exception):
    """Client address did not match any allow-list rule."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Access denied for {address}")
        self.address = address


class CollectionError(Exception):
    """An OS instrumentation query failed; the request cannot be answered."""

    def __init__(self, message: str, details: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class LogSourceUnavailable(Exception):
    """A single log acquisition strategy produced nothing usable."""


class MalformedUpstreamData(ValueError):
    """A log line did not match the shape a parser expected."""
