"""Hostname resolution into dial candidates."""

from __future__ import annotations

import asyncio
import ipaddress
import socket
from dataclasses import dataclass

import structlog

from safedial.exceptions import ResolutionError
from safedial.guard.ranges import IPAddress, family_of
from safedial.types import AddressFamily
from safedial.utils.hostport import join_host_port

logger = structlog.get_logger(__name__)

_SOCKET_FAMILY = {AddressFamily.V4: socket.AF_INET, AddressFamily.V6: socket.AF_INET6}


@dataclass(frozen=True, slots=True)
class Candidate:
    """A resolved address for a host, paired with the port being dialed."""

    ip: IPAddress
    port: int

    @property
    def family(self) -> AddressFamily:
        return family_of(self.ip)

    @property
    def target(self) -> str:
        return join_host_port(str(self.ip), self.port)


class Resolver:
    """Resolve a host to every address the system resolver reports."""

    async def resolve(
        self, host: str, port: int, family: AddressFamily | None = None
    ) -> list[Candidate]:
        """Return candidates in resolver order, without duplicates.

        ``family`` restricts the answers to IPv4 or IPv6. Raises
        ResolutionError when nothing usable comes back.
        """
        literal = _parse_literal(host)
        if literal is not None:
            if family is not None and family_of(literal) is not family:
                raise ResolutionError(
                    f"address {host} does not match network family {family.value}", host
                )
            return [Candidate(ip=literal, port=port)]

        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(
                host,
                port,
                family=_SOCKET_FAMILY[family] if family else socket.AF_UNSPEC,
                type=socket.SOCK_STREAM,
                proto=socket.IPPROTO_TCP,
            )
        except (OSError, UnicodeError) as exc:
            raise ResolutionError(f"cannot resolve host {host!r}: {exc}", host) from exc

        candidates: list[Candidate] = []
        seen: set[IPAddress] = set()
        for info_family, _type, _proto, _canonname, sockaddr in infos:
            if info_family not in (socket.AF_INET, socket.AF_INET6):
                continue
            ip = ipaddress.ip_address(_sockaddr_host(sockaddr, info_family))
            if ip in seen:
                continue
            seen.add(ip)
            candidates.append(Candidate(ip=ip, port=port))

        if not candidates:
            raise ResolutionError(f"host {host!r} resolved to no addresses", host)
        logger.debug("host_resolved", host=host, addresses=[str(c.ip) for c in candidates])
        return candidates


def _parse_literal(host: str) -> IPAddress | None:
    try:
        return ipaddress.ip_address(host)
    except ValueError:
        return None


def _sockaddr_host(sockaddr: tuple, family: int) -> str:
    host = str(sockaddr[0])
    # getaddrinfo reports link-local scope as a numeric id; keep it for the dial.
    if family == socket.AF_INET6 and len(sockaddr) >= 4 and sockaddr[3] and "%" not in host:
        return f"{host}%{sockaddr[3]}"
    return host
