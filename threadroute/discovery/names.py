from __future__ import annotations

from collections.abc import Iterable
from ipaddress import IPv6Address

from threadroute.datastructures.type_aliases import InstanceName
from threadroute.routing.addresses import parse_ipv6


def extract_router_name(instance: InstanceName) -> str:
    """Return the first DNS-SD label of ``instance`` with escapes removed.

    ``Living\\ Room\\ TV._meshcop._udp.local.`` becomes ``Living Room TV``.
    Decimal escapes (``\\032``) decode to their character.
    """
    chars: list[str] = []
    index = 0
    while index < len(instance):
        char = instance[index]
        if char == "\\" and index + 1 < len(instance):
            digits = instance[index + 1 : index + 4]
            if len(digits) == 3 and digits.isdigit() and int(digits) < 256:
                chars.append(chr(int(digits)))
                index += 4
                continue
            chars.append(instance[index + 1])
            index += 2
            continue
        if char == "\\":
            index += 1
            continue
        if char == ".":
            break
        chars.append(char)
        index += 1
    return "".join(chars)


def extract_ipv6_addresses(addresses: Iterable[object]) -> list[IPv6Address]:
    """Keep the real IPv6 addresses, dropping None, IPv4 and IPv4-mapped."""
    result: list[IPv6Address] = []
    for value in addresses:
        parsed = parse_ipv6(value)
        if parsed is not None and parsed not in result:
            result.append(parsed)
    return result


def instance_label(name: str, service_type: str) -> InstanceName:
    """Strip the service type suffix from a full DNS-SD service name."""
    suffix = "." + service_type.strip(".") + "."
    if name.endswith(suffix):
        return name[: -len(suffix)]
    if name.endswith(suffix[:-1]):
        return name[: -len(suffix) + 1]
    return name
