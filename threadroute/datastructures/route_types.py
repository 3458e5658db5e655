"""Typed records shared by discovery, route generation and reconciliation."""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from ipaddress import IPv6Address, ip_address

from .type_aliases import (
    AddressString,
    InstanceName,
    JsonDict,
    PrefixString,
    RouteId,
    RouteLabel,
    RouterName,
    ServiceType,
    Timestamp,
)

MANAGED_LABEL_MARKER = "Thread route via"


def normalize_address(value: object) -> AddressString:
    """Return canonical IPv6 text, or the stripped input when it is not IPv6."""
    text = str(value).strip()
    try:
        parsed = ip_address(text)
    except ValueError:
        return text
    return str(parsed)


def normalize_prefix(value: object) -> PrefixString:
    text = str(value).strip()
    address, sep, length = text.partition("/")
    if not sep:
        return text
    return f"{normalize_address(address)}/{length.strip()}"


def managed_label(router_name: RouterName) -> RouteLabel:
    clean_name = router_name.replace("\\", "")
    return f"{MANAGED_LABEL_MARKER} {clean_name}"


def is_managed_label(label: RouteLabel) -> bool:
    return MANAGED_LABEL_MARKER in label


@dataclass(frozen=True, slots=True, order=True)
class RouteKey:
    """Route identity for diffing: the (prefix, next hop) pair."""

    prefix: PrefixString
    next_hop: AddressString

    @classmethod
    def of(cls, prefix: object, next_hop: object) -> RouteKey:
        return cls(prefix=normalize_prefix(prefix), next_hop=normalize_address(next_hop))

    def __str__(self) -> str:
        return f"{self.prefix}->{self.next_hop}"


@dataclass(frozen=True, slots=True)
class Device:
    """An end device seen through multicast service discovery."""

    name: InstanceName
    address: IPv6Address | None
    service_type: ServiceType = ""
    last_seen: Timestamp = field(default_factory=time.time, compare=False)

    def identity(self) -> tuple[InstanceName, IPv6Address | None]:
        return (self.name, self.address)


@dataclass(frozen=True, slots=True)
class BorderRouter:
    """A Thread border router and the /64 it advertises from."""

    name: RouterName
    address: IPv6Address | None
    prefix: PrefixString = ""
    last_seen: Timestamp = field(default_factory=time.time, compare=False)

    def identity(self) -> tuple[RouterName, IPv6Address | None]:
        return (self.name, self.address)


@dataclass(frozen=True, slots=True, order=True)
class DesiredRoute:
    prefix: PrefixString
    next_hop: AddressString
    router_name: RouterName = field(default="", compare=False)

    def key(self) -> RouteKey:
        return RouteKey.of(self.prefix, self.next_hop)

    def to_router_route(self) -> RouterRoute:
        return RouterRoute(
            prefix=self.prefix,
            next_hop=self.next_hop,
            label=managed_label(self.router_name),
            enabled=True,
        )


@dataclass(frozen=True, slots=True)
class RouterRoute:
    """A static route as the router reports it.

    ``id`` stays empty until the router has created the route.
    """

    prefix: PrefixString
    next_hop: AddressString
    label: RouteLabel = ""
    enabled: bool = True
    id: RouteId = ""

    def key(self) -> RouteKey:
        return RouteKey.of(self.prefix, self.next_hop)

    @property
    def managed(self) -> bool:
        return is_managed_label(self.label)

    def with_id(self, route_id: RouteId) -> RouterRoute:
        return replace(self, id=route_id)

    def to_dict(self) -> JsonDict:
        return {
            "id": self.id,
            "prefix": self.prefix,
            "next_hop": self.next_hop,
            "label": self.label,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, payload: JsonDict) -> RouterRoute:
        return cls(
            id=str(payload.get("id", "")),
            prefix=str(payload.get("prefix", "")),
            next_hop=str(payload.get("next_hop", "")),
            label=str(payload.get("label", "")),
            enabled=bool(payload.get("enabled", True)),
        )
