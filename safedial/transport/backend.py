"""httpcore network backend that routes every TCP connect through GuardedDialer."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

import httpcore

from safedial.exceptions import AddressFormatError
from safedial.guard.dialer import GuardedDialer
from safedial.utils.hostport import join_host_port, split_host_port

if TYPE_CHECKING:
    from collections.abc import Iterable

_SocketOption = (
    tuple[int, int, int] | tuple[int, int, bytes | bytearray] | tuple[int, int, None, int]
)


class GuardedNetworkBackend(httpcore.AsyncNetworkBackend):
    """Network backend whose connect step only reaches classified IPs.

    httpcore starts TLS on the returned stream with the original hostname,
    so SNI and certificate verification are unaffected by the IP pinning.
    """

    def __init__(
        self,
        dialer: GuardedDialer | None = None,
        inner: httpcore.AsyncNetworkBackend | None = None,
    ) -> None:
        self._dialer = dialer or GuardedDialer()
        self._inner = inner or cast("httpcore.AsyncNetworkBackend", httpcore.AnyIOBackend())

    @property
    def dialer(self) -> GuardedDialer:
        return self._dialer

    async def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: float | None = None,
        local_address: str | None = None,
        socket_options: Iterable[_SocketOption] | None = None,
    ) -> httpcore.AsyncNetworkStream:
        async def base_dial(
            network: str, address: str, timeout: float | None
        ) -> httpcore.AsyncNetworkStream:
            ip, ip_port = split_host_port(address)
            return await self._inner.connect_tcp(
                ip,
                ip_port,
                timeout=timeout,
                local_address=local_address,
                socket_options=socket_options,
            )

        stream: httpcore.AsyncNetworkStream = await self._dialer.dial(
            "tcp", join_host_port(host, port), timeout=timeout, base_dial=base_dial
        )
        return stream

    async def connect_unix_socket(
        self,
        path: str,
        timeout: float | None = None,
        socket_options: Iterable[_SocketOption] | None = None,
    ) -> httpcore.AsyncNetworkStream:
        raise AddressFormatError("unix socket connections are not allowed", path)

    async def sleep(self, seconds: float) -> None:
        await self._inner.sleep(seconds)
