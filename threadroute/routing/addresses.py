"""IPv6 address classification for route generation.

Both predicates fail closed: anything that does not parse as IPv6 is treated
as non-routable rather than raising.
"""

from __future__ import annotations

from ipaddress import IPv6Address, IPv6Network, ip_address

from threadroute.datastructures.type_aliases import PrefixString

ROUTE_PREFIX_LENGTH = 64

_NON_ROUTABLE: tuple[IPv6Network, ...] = (
    IPv6Network("fe80::/10"),  # link-local
    IPv6Network("::1/128"),  # loopback
    IPv6Network("::/128"),  # unspecified
    IPv6Network("ff00::/8"),  # multicast
    IPv6Network("2001:db8::/32"),  # documentation
    IPv6Network("2001::/32"),  # Teredo
    IPv6Network("2002::/16"),  # 6to4
)

_UNIQUE_LOCAL = IPv6Network("fc00::/7")


def _as_ipv6(value: object) -> IPv6Address | None:
    if value is None:
        return None
    if isinstance(value, IPv6Address):
        address = value
    else:
        try:
            parsed = ip_address(str(value).strip())
        except ValueError:
            return None
        if not isinstance(parsed, IPv6Address):
            return None
        address = parsed
    if address.ipv4_mapped is not None:
        return None
    if address.scope_id:
        # Zone index is interface-local; routes never carry it.
        address = IPv6Address(int(address))
    return address


def _in_excluded_range(address: IPv6Address) -> bool:
    return any(address in network for network in _NON_ROUTABLE)


def parse_ipv6(value: object) -> IPv6Address | None:
    """Parse a real IPv6 address; None for IPv4, IPv4-mapped or garbage."""
    return _as_ipv6(value)


def prefix64(address: object) -> PrefixString | None:
    """Return the /64 containing ``address`` as canonical CIDR text."""
    parsed = _as_ipv6(address)
    if parsed is None:
        return None
    network = IPv6Network((parsed, ROUTE_PREFIX_LENGTH), strict=False)
    return str(network)


def is_routable_prefix(cidr: object) -> bool:
    """True when ``cidr`` names a prefix worth routing.

    Unique-local prefixes are routable here; Thread networks live in them.
    """
    if cidr is None:
        return False
    try:
        network = IPv6Network(str(cidr).strip(), strict=False)
    except ValueError:
        return False
    return not _in_excluded_range(network.network_address)


def is_routable_next_hop(address: object) -> bool:
    """True when ``address`` can serve as a static route next hop.

    Border routers must advertise a global address, so unique-local is
    rejected on top of the prefix exclusions.
    """
    parsed = _as_ipv6(address)
    if parsed is None:
        return False
    if _in_excluded_range(parsed):
        return False
    return parsed not in _UNIQUE_LOCAL
