"""Exception hierarchy for safedial."""

from __future__ import annotations

from safedial.types import DialOutcome


class SafeDialError(Exception):
    """Base exception for all safedial errors."""


class ConfigError(SafeDialError):
    """Raised when configuration is invalid."""


class RangeParseError(ConfigError):
    """Raised when a CIDR literal cannot be parsed."""

    def __init__(self, cidr: str) -> None:
        self.cidr = cidr
        super().__init__(f"invalid CIDR range {cidr!r}")


class DialError(SafeDialError):
    """Raised when a guarded dial does not produce a connection.

    ``outcome`` tags the terminal state of the dial so callers can branch
    on it without inspecting the message.
    """

    outcome: DialOutcome = DialOutcome.CONNECT_FAILED

    def __init__(self, message: str, address: str = "") -> None:
        self.address = address
        super().__init__(message)


class AddressFormatError(DialError):
    """Raised when a ``host:port`` target or network name is malformed."""

    outcome = DialOutcome.INVALID_ADDRESS


class ResolutionError(DialError):
    """Raised when a host resolves to no usable address."""

    outcome = DialOutcome.RESOLUTION_FAILED


class DeniedError(DialError):
    """Raised when a resolved address falls inside a denied range."""

    outcome = DialOutcome.DENIED

    def __init__(self, ip: str, cidr: str, address: str = "") -> None:
        self.ip = ip
        self.cidr = cidr
        super().__init__(f"ip address {ip} is denied as local (matched {cidr})", address)


class ConnectError(DialError):
    """Raised when every permitted candidate failed to connect."""

    outcome = DialOutcome.CONNECT_FAILED

    def __init__(self, address: str, attempts: list[str]) -> None:
        self.attempts = attempts
        tried = ", ".join(attempts) or "no candidates"
        super().__init__(f"failed to connect to {address} (tried {tried})", address)


class DialTimeoutError(DialError, TimeoutError):
    """Raised when resolving and connecting exceed the dial timeout."""

    outcome = DialOutcome.TIMED_OUT
