"""Enums and type aliases for safedial."""

from enum import StrEnum


class AddressFamily(StrEnum):
    V4 = "v4"
    V6 = "v6"


class Verdict(StrEnum):
    ALLOWED = "allowed"
    DENIED = "denied"


class SelectionPolicy(StrEnum):
    """How a dial picks among classified candidates."""

    FALLBACK = "fallback"  # try each candidate in resolution order
    FIRST = "first"  # pin the first candidate, single attempt


class DialOutcome(StrEnum):
    CONNECTED = "connected"
    INVALID_ADDRESS = "invalid_address"
    RESOLUTION_FAILED = "resolution_failed"
    DENIED = "denied"
    CONNECT_FAILED = "connect_failed"
    TIMED_OUT = "timed_out"


NETWORKS = frozenset({"tcp", "tcp4", "tcp6"})
