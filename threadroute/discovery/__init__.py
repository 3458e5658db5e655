"""mDNS discovery of Matter devices and Thread border routers."""

from .interfaces import (
    BORDER_ROUTER_SERVICE,
    MATTER_SERVICE,
    DiscoveredService,
    DiscoverySource,
)
from .names import extract_ipv6_addresses, extract_router_name, instance_label
from .registry import (
    DiscoveryRegistry,
    ExpiryResult,
    devices_from_service,
    routers_from_service,
)
from .zeroconf_source import ZeroconfDiscoverySource

__all__ = [
    "BORDER_ROUTER_SERVICE",
    "MATTER_SERVICE",
    "DiscoveredService",
    "DiscoveryRegistry",
    "DiscoverySource",
    "ExpiryResult",
    "ZeroconfDiscoverySource",
    "devices_from_service",
    "extract_ipv6_addresses",
    "extract_router_name",
    "instance_label",
    "routers_from_service",
]
