"""Outbound connection guard that refuses to dial local and internal addresses."""

from safedial.exceptions import (
    AddressFormatError,
    ConnectError,
    DeniedError,
    DialError,
    DialTimeoutError,
    RangeParseError,
    ResolutionError,
    SafeDialError,
)
from safedial.guard.dialer import GuardedDialer
from safedial.guard.ranges import DEFAULT_DENIED_CIDRS, RESERVED_CIDRS, RangeTable
from safedial.transport.factory import create_async_client, create_dialer, create_transport

__all__ = [
    "DEFAULT_DENIED_CIDRS",
    "RESERVED_CIDRS",
    "AddressFormatError",
    "ConnectError",
    "DeniedError",
    "DialError",
    "DialTimeoutError",
    "GuardedDialer",
    "RangeParseError",
    "RangeTable",
    "ResolutionError",
    "SafeDialError",
    "create_async_client",
    "create_dialer",
    "create_transport",
]
