"""Guarded dialer: resolve, classify every answer, then connect to a pinned IP."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import httpcore
import structlog

from safedial.constants import DEFAULT_DIAL_TIMEOUT_S
from safedial.exceptions import (
    AddressFormatError,
    ConnectError,
    DeniedError,
    DialError,
    DialTimeoutError,
)
from safedial.guard.ranges import get_default_table
from safedial.guard.resolver import Candidate, Resolver
from safedial.types import NETWORKS, AddressFamily, DialOutcome, SelectionPolicy
from safedial.utils.hostport import split_host_port

if TYPE_CHECKING:
    from safedial.guard.ranges import Decision, RangeTable

logger = structlog.get_logger(__name__)

BaseDial = Callable[[str, str, float | None], Awaitable[Any]]

# Failures of a single connect attempt; anything else aborts the dial.
CONNECT_FAILURES: tuple[type[BaseException], ...] = (
    OSError,
    httpcore.ConnectError,
    httpcore.ConnectTimeout,
)

_NETWORK_FAMILY: dict[str, AddressFamily | None] = {
    "tcp": None,
    "tcp4": AddressFamily.V4,
    "tcp6": AddressFamily.V6,
}

_backend = httpcore.AnyIOBackend()


async def open_tcp_stream(
    network: str, address: str, timeout: float | None = None
) -> httpcore.AsyncNetworkStream:
    """Default base dial: a plain TCP stream to a literal ``ip:port``."""
    host, port = split_host_port(address)
    return await _backend.connect_tcp(host, port, timeout=timeout)


class GuardedDialer:
    """Dials only addresses that every denied range has cleared.

    A target host is resolved once, every answer is classified, and the
    connection is opened to one of those literal IPs. If any answer falls in
    a denied range the whole dial is refused, even when other answers are
    public.
    """

    def __init__(
        self,
        table: RangeTable | None = None,
        resolver: Resolver | None = None,
        base_dial: BaseDial | None = None,
        policy: SelectionPolicy = SelectionPolicy.FALLBACK,
        timeout: float | None = DEFAULT_DIAL_TIMEOUT_S,
    ) -> None:
        self._table = table
        self._resolver = resolver or Resolver()
        self._base_dial = base_dial or open_tcp_stream
        self._policy = SelectionPolicy(policy)
        self._timeout = timeout

    @property
    def table(self) -> RangeTable:
        return self._table if self._table is not None else get_default_table()

    @property
    def policy(self) -> SelectionPolicy:
        return self._policy

    def classify(self, candidates: list[Candidate], address: str = "") -> list[Decision]:
        """Classify all candidates, raising DeniedError on the first denied one."""
        table = self.table
        decisions = []
        for candidate in candidates:
            decision = table.lookup(candidate.ip)
            if not decision.allowed:
                cidr = str(decision.matched)
                logger.warning("dial_denied", address=address, ip=str(candidate.ip), cidr=cidr)
                raise DeniedError(str(candidate.ip), cidr, address)
            decisions.append(decision)
        return decisions

    def select(self, candidates: list[Candidate]) -> list[Candidate]:
        """Return the candidates to attempt, in order."""
        if self._policy is SelectionPolicy.FIRST:
            return candidates[:1]
        return list(candidates)

    async def dial(
        self,
        network: str,
        address: str,
        *,
        timeout: float | None = None,
        base_dial: BaseDial | None = None,
    ) -> Any:
        """Open a connection to ``address`` (``host:port``) over ``network``.

        ``timeout`` bounds resolution plus connecting and falls back to the
        dialer's default. ``base_dial`` overrides the connect primitive for
        this call only.
        """
        limit = timeout if timeout is not None else self._timeout
        with structlog.contextvars.bound_contextvars(dial_address=address, dial_network=network):
            try:
                async with asyncio.timeout(limit):
                    return await self._dial(
                        network, address, timeout, limit, base_dial or self._base_dial
                    )
            except TimeoutError as exc:
                if isinstance(exc, DialError):
                    raise
                logger.info("dial_failed", outcome=DialOutcome.TIMED_OUT.value, timeout=limit)
                raise DialTimeoutError(
                    f"dialing {address} timed out after {limit}s", address
                ) from exc
            except DeniedError:
                raise
            except DialError as exc:
                logger.info("dial_failed", outcome=exc.outcome.value, error=str(exc))
                raise

    async def _dial(
        self,
        network: str,
        address: str,
        timeout: float | None,
        limit: float | None,
        base_dial: BaseDial,
    ) -> Any:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + limit if limit is not None else None
        if network not in NETWORKS:
            raise AddressFormatError(f"unsupported network {network!r}", address)
        host, port = split_host_port(address)

        candidates = await self._resolver.resolve(host, port, _NETWORK_FAMILY[network])
        logger.debug("dial_resolved", host=host, candidates=[c.target for c in candidates])

        self.classify(candidates, address)

        attempts: list[str] = []
        last_error: BaseException | None = None
        selected = self.select(candidates)
        for index, candidate in enumerate(selected):
            target = candidate.target
            attempts.append(target)
            left = len(selected) - index
            budget = _attempt_budget(deadline, loop.time(), left, timeout)
            try:
                # The last attempt runs under the overall deadline only.
                async with asyncio.timeout(budget if left > 1 else None):
                    conn = await base_dial(network, target, budget)
            except CONNECT_FAILURES as exc:
                last_error = exc
                logger.info("dial_candidate_failed", target=target, error=str(exc))
                continue
            logger.debug("dial_connected", target=target)
            return conn

        raise ConnectError(address, attempts) from last_error


def _attempt_budget(
    deadline: float | None, now: float, candidates_left: int, timeout: float | None
) -> float | None:
    """Split the time left evenly over the candidates still to try."""
    if deadline is None:
        return timeout
    share = max(deadline - now, 0.0) / candidates_left
    return share if timeout is None else min(share, timeout)
