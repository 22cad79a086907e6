"""Policy defaults for safedial."""

# Minimum policy. Connecting to any of these reaches the local host or its
# private network.
DEFAULT_DENIED_CIDRS: tuple[str, ...] = (
    "0.0.0.0/8",  # "this network", dials the local host
    "127.0.0.0/8",  # IPv4 loopback
    "10.0.0.0/8",  # RFC1918
    "172.16.0.0/12",  # RFC1918
    "192.168.0.0/16",  # RFC1918
    "169.254.0.0/16",  # RFC3927 link-local, cloud metadata
    "::/128",  # IPv6 unspecified
    "::1/128",  # IPv6 loopback
    "fe80::/10",  # IPv6 link-local
    "fc00::/7",  # IPv6 unique local
)

# Special-purpose ranges that are never legitimate public destinations.
RESERVED_CIDRS: tuple[str, ...] = (
    "100.64.0.0/10",  # RFC6598 carrier-grade NAT
    "192.0.0.0/24",  # RFC6890 IETF protocol assignments
    "192.0.2.0/24",  # RFC5737 TEST-NET-1
    "198.18.0.0/15",  # RFC2544 benchmarking
    "198.51.100.0/24",  # RFC5737 TEST-NET-2
    "203.0.113.0/24",  # RFC5737 TEST-NET-3
    "224.0.0.0/4",  # multicast
    "240.0.0.0/4",  # reserved
    "255.255.255.255/32",  # limited broadcast
    "100::/64",  # RFC6666 discard-only
    "2001:db8::/32",  # RFC3849 documentation
    "fec0::/10",  # deprecated site-local
    "ff00::/8",  # multicast
)

DEFAULT_DIAL_TIMEOUT_S = 30.0
