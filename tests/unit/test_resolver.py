"""Unit tests for safedial/guard/resolver.py."""

from __future__ import annotations

import asyncio
import ipaddress
import socket
from unittest.mock import AsyncMock, patch

import pytest

from safedial.exceptions import ResolutionError
from safedial.guard.resolver import Candidate, Resolver
from safedial.types import AddressFamily


def _info(family: int, ip: str, port: int = 80) -> tuple:
    sockaddr: tuple = (ip, port) if family == socket.AF_INET else (ip, port, 0, 0)
    return (family, socket.SOCK_STREAM, socket.IPPROTO_TCP, "", sockaddr)


def _patch_getaddrinfo(**kwargs):
    loop = asyncio.get_running_loop()
    return patch.object(loop, "getaddrinfo", AsyncMock(**kwargs))


@pytest.mark.unit
class TestCandidate:
    def test_v4_target(self) -> None:
        candidate = Candidate(ip=ipaddress.ip_address("8.8.8.8"), port=53)
        assert candidate.family is AddressFamily.V4
        assert candidate.target == "8.8.8.8:53"

    def test_v6_target(self) -> None:
        candidate = Candidate(ip=ipaddress.ip_address("2001:4860::8888"), port=443)
        assert candidate.family is AddressFamily.V6
        assert candidate.target == "[2001:4860::8888]:443"


@pytest.mark.unit
class TestResolver:
    @pytest.mark.asyncio
    async def test_returns_all_answers_in_order(self) -> None:
        infos = [
            _info(socket.AF_INET6, "2606:2800:220:1::1"),
            _info(socket.AF_INET, "93.184.216.34"),
            _info(socket.AF_INET, "93.184.216.35"),
        ]
        with _patch_getaddrinfo(return_value=infos):
            candidates = await Resolver().resolve("example.com", 80)
        assert [str(c.ip) for c in candidates] == [
            "2606:2800:220:1::1",
            "93.184.216.34",
            "93.184.216.35",
        ]
        assert all(c.port == 80 for c in candidates)

    @pytest.mark.asyncio
    async def test_deduplicates(self) -> None:
        infos = [_info(socket.AF_INET, "8.8.8.8"), _info(socket.AF_INET, "8.8.8.8")]
        with _patch_getaddrinfo(return_value=infos):
            candidates = await Resolver().resolve("dns.google", 443)
        assert len(candidates) == 1

    @pytest.mark.asyncio
    async def test_family_is_passed_to_getaddrinfo(self) -> None:
        with _patch_getaddrinfo(return_value=[_info(socket.AF_INET6, "2001:4860::8888")]) as gai:
            await Resolver().resolve("dns.google", 443, AddressFamily.V6)
        assert gai.call_args.kwargs["family"] == socket.AF_INET6
        assert gai.call_args.kwargs["type"] == socket.SOCK_STREAM

    @pytest.mark.asyncio
    async def test_unspecified_family(self) -> None:
        with _patch_getaddrinfo(return_value=[_info(socket.AF_INET, "8.8.8.8")]) as gai:
            await Resolver().resolve("dns.google", 443)
        assert gai.call_args.kwargs["family"] == socket.AF_UNSPEC

    @pytest.mark.asyncio
    async def test_scope_id_is_kept(self) -> None:
        info = (socket.AF_INET6, socket.SOCK_STREAM, 6, "", ("fe80::1", 80, 0, 3))
        with _patch_getaddrinfo(return_value=[info]):
            candidates = await Resolver().resolve("printer.local", 80)
        assert str(candidates[0].ip) == "fe80::1%3"

    @pytest.mark.asyncio
    async def test_resolution_failure(self) -> None:
        with _patch_getaddrinfo(side_effect=socket.gaierror("Name or service not known")):
            with pytest.raises(ResolutionError, match="cannot resolve host") as exc_info:
                await Resolver().resolve("nope.invalid", 80)
        assert exc_info.value.address == "nope.invalid"
        assert isinstance(exc_info.value.__cause__, socket.gaierror)

    @pytest.mark.asyncio
    async def test_empty_answer(self) -> None:
        with _patch_getaddrinfo(return_value=[]):
            with pytest.raises(ResolutionError, match="no addresses"):
                await Resolver().resolve("empty.test", 80)

    @pytest.mark.asyncio
    async def test_ip_literal_skips_dns(self) -> None:
        with _patch_getaddrinfo(return_value=[]) as gai:
            candidates = await Resolver().resolve("169.254.169.254", 80)
        gai.assert_not_called()
        assert [str(c.ip) for c in candidates] == ["169.254.169.254"]

    @pytest.mark.asyncio
    async def test_ipv6_literal(self) -> None:
        candidates = await Resolver().resolve("fe80::1", 6379)
        assert candidates[0].target == "[fe80::1]:6379"

    @pytest.mark.asyncio
    async def test_literal_family_mismatch(self) -> None:
        with pytest.raises(ResolutionError, match="does not match network family v6"):
            await Resolver().resolve("127.0.0.1", 80, AddressFamily.V6)
