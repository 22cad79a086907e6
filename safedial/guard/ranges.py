"""Denied CIDR ranges and IP classification."""

from __future__ import annotations

import ipaddress
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from safedial.config.settings import get_settings
from safedial.constants import DEFAULT_DENIED_CIDRS, RESERVED_CIDRS
from safedial.exceptions import AddressFormatError, RangeParseError
from safedial.types import AddressFamily, Verdict

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

__all__ = [
    "DEFAULT_DENIED_CIDRS",
    "RESERVED_CIDRS",
    "CidrRange",
    "Decision",
    "IPAddress",
    "RangeTable",
    "get_default_table",
    "parse_ip",
]

logger = structlog.get_logger(__name__)

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address
IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


def parse_ip(value: str | IPAddress) -> IPAddress:
    """Parse an IP literal, raising AddressFormatError when it is not one."""
    if isinstance(value, ipaddress.IPv4Address | ipaddress.IPv6Address):
        return value
    try:
        return ipaddress.ip_address(value)
    except ValueError as exc:
        raise AddressFormatError(f"invalid IP address {value!r}", value) from exc


def family_of(ip: IPAddress) -> AddressFamily:
    return AddressFamily.V4 if ip.version == 4 else AddressFamily.V6


@dataclass(frozen=True, slots=True)
class CidrRange:
    """One parsed network block, identified by the literal it was built from."""

    cidr: str
    network: IPNetwork

    @classmethod
    def parse(cls, cidr: str) -> CidrRange:
        literal = cidr.strip()
        try:
            network = ipaddress.ip_network(literal, strict=False)
        except ValueError as exc:
            raise RangeParseError(cidr) from exc
        return cls(cidr=literal, network=network)

    @property
    def family(self) -> AddressFamily:
        return AddressFamily.V4 if self.network.version == 4 else AddressFamily.V6

    def contains(self, ip: IPAddress) -> bool:
        return ip.version == self.network.version and ip in self.network

    def __str__(self) -> str:
        return self.cidr


@dataclass(frozen=True, slots=True)
class Decision:
    """Result of classifying a single address."""

    ip: IPAddress
    verdict: Verdict
    matched: CidrRange | None = None

    @property
    def allowed(self) -> bool:
        return self.verdict is Verdict.ALLOWED


class RangeTable:
    """Immutable set of denied ranges, partitioned by address family."""

    def __init__(self, ranges: Iterable[CidrRange] = ()) -> None:
        by_cidr: dict[str, CidrRange] = {}
        for block in ranges:
            by_cidr.setdefault(block.cidr, block)
        self._ranges = by_cidr
        self._v4 = tuple(r for r in by_cidr.values() if r.family is AddressFamily.V4)
        self._v6 = tuple(r for r in by_cidr.values() if r.family is AddressFamily.V6)

    @classmethod
    def build(cls, cidrs: Iterable[str]) -> RangeTable:
        """Parse every literal in ``cidrs``; any malformed one raises RangeParseError."""
        return cls(CidrRange.parse(cidr) for cidr in cidrs)

    @classmethod
    def default(cls, include_reserved: bool = True) -> RangeTable:
        cidrs = list(DEFAULT_DENIED_CIDRS)
        if include_reserved:
            cidrs.extend(RESERVED_CIDRS)
        return cls.build(cidrs)

    def extend(self, cidrs: Iterable[str]) -> RangeTable:
        """Return a new table holding these ranges plus ``cidrs``."""
        added = [CidrRange.parse(cidr) for cidr in cidrs]
        return RangeTable([*self._ranges.values(), *added])

    @property
    def ipv4(self) -> tuple[CidrRange, ...]:
        return self._v4

    @property
    def ipv6(self) -> tuple[CidrRange, ...]:
        return self._v6

    def lookup(self, ip: str | IPAddress) -> Decision:
        """Classify ``ip`` against the ranges of its own family.

        IPv4-mapped IPv6 addresses (``::ffff:a.b.c.d``) are checked against
        the IPv4 ranges as well, since the kernel routes them as IPv4.
        """
        addr = parse_ip(ip)
        checks: list[tuple[IPAddress, tuple[CidrRange, ...]]] = []
        if addr.version == 4:
            checks.append((addr, self._v4))
        else:
            checks.append((addr, self._v6))
            mapped = addr.ipv4_mapped
            if mapped is not None:
                checks.append((mapped, self._v4))

        for candidate, blocks in checks:
            for block in blocks:
                if block.contains(candidate):
                    return Decision(ip=addr, verdict=Verdict.DENIED, matched=block)
        return Decision(ip=addr, verdict=Verdict.ALLOWED)

    def __contains__(self, cidr: object) -> bool:
        return isinstance(cidr, str) and cidr.strip() in self._ranges

    def __iter__(self) -> Iterator[CidrRange]:
        return iter(self._ranges.values())

    def __len__(self) -> int:
        return len(self._ranges)

    def __repr__(self) -> str:
        return f"RangeTable(ipv4={len(self._v4)}, ipv6={len(self._v6)})"


_default_table: RangeTable | None = None
_default_lock = threading.Lock()


def get_default_table() -> RangeTable:
    """Return the process-wide table built from settings, building it once."""
    global _default_table
    table = _default_table
    if table is not None:
        return table
    with _default_lock:
        if _default_table is None:
            settings = get_settings()
            _default_table = RangeTable.build(settings.policy_cidrs())
            logger.info(
                "default_range_table_built",
                ipv4_ranges=len(_default_table.ipv4),
                ipv6_ranges=len(_default_table.ipv6),
            )
        return _default_table
