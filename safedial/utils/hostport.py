"""Helpers for ``host:port`` dial targets."""

from safedial.exceptions import AddressFormatError


def split_host_port(address: str) -> tuple[str, int]:
    """Split ``host:port`` or ``[ipv6]:port`` into host and numeric port."""
    if address.startswith("["):
        end = address.find("]")
        if end < 0:
            raise AddressFormatError(f"missing ']' in address {address!r}", address)
        host = address[1:end]
        rest = address[end + 1 :]
        if not rest.startswith(":"):
            raise AddressFormatError(f"missing port in address {address!r}", address)
        port_text = rest[1:]
    else:
        host, sep, port_text = address.rpartition(":")
        if not sep:
            raise AddressFormatError(f"missing port in address {address!r}", address)
        if ":" in host:
            raise AddressFormatError(f"too many colons in address {address!r}", address)

    if not host:
        raise AddressFormatError(f"missing host in address {address!r}", address)
    if not (port_text.isascii() and port_text.isdigit()) or not 0 < int(port_text) <= 65535:
        raise AddressFormatError(f"invalid port in address {address!r}", address)
    return host, int(port_text)


def join_host_port(host: str, port: int) -> str:
    """Render a dial target, bracketing IPv6 literals."""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"
