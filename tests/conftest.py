"""Shared test fixtures."""

from __future__ import annotations

import ipaddress
from typing import Any

import pytest

from safedial.config.settings import get_settings
from safedial.exceptions import ResolutionError
from safedial.guard import ranges
from safedial.guard.resolver import Candidate
from safedial.types import AddressFamily


class FakeResolver:
    """Resolver returning canned answers per host."""

    def __init__(self, answers: dict[str, list[str]]) -> None:
        self._answers = answers
        self.calls: list[tuple[str, int, AddressFamily | None]] = []

    async def resolve(
        self, host: str, port: int, family: AddressFamily | None = None
    ) -> list[Candidate]:
        self.calls.append((host, port, family))
        try:
            literal = ipaddress.ip_address(host)
        except ValueError:
            answers = self._answers.get(host, [])
        else:
            answers = [str(literal)]
        ips = [ipaddress.ip_address(ip) for ip in answers]
        if family is not None:
            ips = [ip for ip in ips if (ip.version == 4) == (family is AddressFamily.V4)]
        if not ips:
            raise ResolutionError(f"cannot resolve host {host!r}", host)
        return [Candidate(ip=ip, port=port) for ip in ips]


class RecordingDial:
    """Base dial that records targets and fails for the listed ones."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.targets: list[tuple[str, str, float | None]] = []

    async def __call__(self, network: str, address: str, timeout: float | None) -> Any:
        self.targets.append((network, address, timeout))
        if address in self.failing:
            raise ConnectionRefusedError(f"connection refused: {address}")
        return {"peer": address}


@pytest.fixture()
def fake_resolver():
    return FakeResolver(
        {
            "example.com": ["93.184.216.34", "2606:2800:220:1:248:1893:25c8:1946"],
            "public.test": ["8.8.8.8", "8.8.4.4"],
            "rebind.test": ["93.184.216.34", "10.0.0.5"],
            "mixed6.test": ["8.8.8.8", "fd00::1"],
            "localhost": ["127.0.0.1", "::1"],
        }
    )


@pytest.fixture()
def recording_dial():
    return RecordingDial()


@pytest.fixture(autouse=True)
def _reset_shared_state(monkeypatch: pytest.MonkeyPatch):
    """Isolate cached settings and the process-wide range table per test."""
    for name in (
        "SAFEDIAL_DENIED_CIDRS",
        "SAFEDIAL_EXTRA_DENIED_CIDRS",
        "SAFEDIAL_DENY_RESERVED",
        "SAFEDIAL_SELECTION_POLICY",
        "SAFEDIAL_DIAL_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    monkeypatch.setattr(ranges, "_default_table", None)
    yield
    get_settings.cache_clear()


@pytest.fixture()
def make_resolver():
    return FakeResolver


@pytest.fixture()
def make_dial():
    return RecordingDial
