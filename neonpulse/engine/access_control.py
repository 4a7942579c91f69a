from __future__ import annotations

import ipaddress
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Protocol

logger = logging.getLogger(__name__)

_MAPPED_PREFIX = "::ffff:"


def normalize_address(address: str) -> str:
    """Strip the IPv6-mapped-IPv4 prefix (``::ffff:10.0.0.1`` -> ``10.0.0.1``)."""
    address = address.strip()
    if address.lower().startswith(_MAPPED_PREFIX):
        return address[len(_MAPPED_PREFIX):]
    return address


class AllowRule(Protocol):
    raw: str

    def matches(self, address: str, raw_address: str) -> bool: ...


@dataclass(frozen=True)
class ExactAddress:
    raw: str

    def matches(self, address: str, raw_address: str) -> bool:
        return address == normalize_address(self.raw) or raw_address == self.raw


@dataclass(frozen=True)
class WildcardPattern:
    raw: str
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        body = ".*".join(re.escape(part) for part in self.raw.split("*"))
        object.__setattr__(self, "_regex", re.compile(f"^{body}$"))

    def matches(self, address: str, raw_address: str) -> bool:
        return self._regex.match(address) is not None


@dataclass(frozen=True)
class CidrBlock:
    """IPv4-only network block; IPv6 candidates never match."""

    raw: str
    network: ipaddress.IPv4Network = field(init=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "network", ipaddress.IPv4Network(self.raw.strip(), strict=False))

    def matches(self, address: str, raw_address: str) -> bool:
        try:
            candidate = ipaddress.IPv4Address(address)
        except ValueError:
            return False
        mask = int(self.network.netmask)
        return (int(candidate) & mask) == (int(self.network.network_address) & mask)


def parse_rule(entry: str) -> AllowRule:
    """Build the rule for one allow-list entry. Raises ``ValueError`` on bad CIDR."""
    entry = entry.strip()
    if "/" in entry:
        return CidrBlock(entry)
    if "*" in entry:
        return WildcardPattern(entry)
    return ExactAddress(entry)


def load_rules(entries: Iterable[str]) -> tuple[AllowRule, ...]:
    rules: list[AllowRule] = []
    for entry in entries:
        if not entry or not entry.strip():
            continue
        try:
            rules.append(parse_rule(entry))
        except ValueError:
            logger.warning("Skipping invalid allow-list entry: %s", entry)
    return tuple(rules)


class AccessGate:
    """Admits a client address if any configured allow rule matches it."""

    def __init__(self, entries: Iterable[str]) -> None:
        self.rules: tuple[AllowRule, ...] = load_rules(entries)

    def is_allowed(self, client_address: str | None) -> bool:
        if not client_address:
            return False
        address = normalize_address(client_address)
        return any(rule.matches(address, client_address) for rule in self.rules)

    def describe(self, limit: int = 3) -> str:
        shown = ", ".join(rule.raw for rule in self.rules[:limit])
        return shown + ("..." if len(self.rules) > limit else "")
