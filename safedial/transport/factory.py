"""Factories for guarded dialers and httpx transports/clients."""

from __future__ import annotations

import ssl
from typing import Any

import httpcore
import httpx
import structlog

from safedial.config.settings import Settings, get_settings
from safedial.exceptions import ConfigError
from safedial.guard.dialer import GuardedDialer
from safedial.guard.ranges import RangeTable, get_default_table
from safedial.transport.backend import GuardedNetworkBackend

logger = structlog.get_logger(__name__)

DEFAULT_LIMITS = httpx.Limits(max_connections=100, max_keepalive_connections=20)
DEFAULT_TIMEOUT = httpx.Timeout(30.0)

# Client arguments that install transports other than the guarded one.
_BYPASS_KWARGS = frozenset({"proxy", "proxies", "mounts", "transport"})


def create_dialer(settings: Settings | None = None) -> GuardedDialer:
    """Build a dialer from settings.

    Without explicit settings the shared, once-built default table is used.
    """
    if settings is None:
        settings = get_settings()
        table = get_default_table()
    else:
        table = RangeTable.build(settings.policy_cidrs())
    return GuardedDialer(
        table=table,
        policy=settings.selection_policy,
        timeout=settings.dial_timeout,
    )


def create_transport(
    dialer: GuardedDialer | None = None,
    *,
    verify: ssl.SSLContext | bool = True,
    http1: bool = True,
    http2: bool = False,
    limits: httpx.Limits = DEFAULT_LIMITS,
    retries: int = 0,
) -> httpx.AsyncHTTPTransport:
    """Return an AsyncHTTPTransport whose connections go through ``dialer``.

    ``verify`` is handed to httpx unchanged; TLS policy stays with the caller.
    """
    ssl_context = httpx.create_ssl_context(verify=verify)
    transport = httpx.AsyncHTTPTransport(
        verify=ssl_context, http1=http1, http2=http2, limits=limits, retries=retries
    )
    # httpx has no public hook for the network backend; swap the pool it built.
    transport._pool = httpcore.AsyncConnectionPool(
        ssl_context=ssl_context,
        max_connections=limits.max_connections,
        max_keepalive_connections=limits.max_keepalive_connections,
        keepalive_expiry=limits.keepalive_expiry,
        http1=http1,
        http2=http2,
        retries=retries,
        network_backend=GuardedNetworkBackend(dialer or create_dialer()),
    )
    return transport


def create_async_client(
    dialer: GuardedDialer | None = None,
    *,
    timeout: httpx.Timeout | float | None = DEFAULT_TIMEOUT,
    verify: ssl.SSLContext | bool = True,
    http2: bool = False,
    **client_kwargs: Any,
) -> httpx.AsyncClient:
    """Return an AsyncClient that refuses to connect to local addresses.

    Environment proxies are ignored (``trust_env=False``) and explicit
    ``proxy``, ``mounts`` or ``transport`` arguments raise ConfigError, since
    httpx would route those requests around the guarded transport.

    Only asyncio clients are supported; there is no ``httpx.Client``
    counterpart, so synchronous callers must run requests on an event loop.
    """
    bypassing = sorted(_BYPASS_KWARGS.intersection(client_kwargs))
    if bypassing:
        msg = f"{', '.join(bypassing)} would bypass the connection guard"
        raise ConfigError(msg)
    if client_kwargs.pop("trust_env", False):
        logger.warning("trust_env_ignored", reason="proxies would bypass the connection guard")
    transport = create_transport(dialer, verify=verify, http2=http2)
    return httpx.AsyncClient(
        transport=transport, timeout=timeout, trust_env=False, **client_kwargs
    )
