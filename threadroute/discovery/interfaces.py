"""Discovery source capability consumed by the daemon."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from ipaddress import IPv6Address
from typing import Protocol, runtime_checkable

from threadroute.datastructures.type_aliases import InstanceName, ServiceType

MATTER_SERVICE = "_matter._tcp.local."
BORDER_ROUTER_SERVICE = "_meshcop._udp.local."


@dataclass(frozen=True, slots=True)
class DiscoveredService:
    """One resolved DNS-SD instance and its IPv6 addresses."""

    instance_name: InstanceName
    service_type: ServiceType
    addresses: tuple[IPv6Address, ...] = field(default_factory=tuple)


@runtime_checkable
class DiscoverySource(Protocol):
    async def enumerate(self, service_type: ServiceType) -> list[DiscoveredService]:
        """One-shot scan of the currently visible instances."""
        ...

    def subscribe(
        self, service_type: ServiceType
    ) -> AsyncGenerator[DiscoveredService, None]:
        """Live announcements; ends only when cancelled or closed."""
        ...
