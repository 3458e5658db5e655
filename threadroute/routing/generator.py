"""Desired route derivation from discovered devices and border routers."""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from threadroute.datastructures.route_types import (
    BorderRouter,
    DesiredRoute,
    Device,
    RouteKey,
    normalize_address,
    normalize_prefix,
)
from threadroute.datastructures.type_aliases import PrefixString

from .addresses import is_routable_next_hop, is_routable_prefix, prefix64


def device_prefixes(devices: Iterable[Device]) -> set[PrefixString]:
    prefixes: set[PrefixString] = set()
    for device in devices:
        prefix = prefix64(device.address)
        if prefix is not None and is_routable_prefix(prefix):
            prefixes.add(prefix)
    return prefixes


def router_prefixes(routers: Iterable[BorderRouter]) -> set[PrefixString]:
    prefixes: set[PrefixString] = set()
    for router in routers:
        if router.prefix and is_routable_prefix(router.prefix):
            prefixes.add(normalize_prefix(router.prefix))
    return prefixes


def generate_routes(
    devices: Iterable[Device], routers: Iterable[BorderRouter]
) -> list[DesiredRoute]:
    """Derive the routes needed to reach device prefixes via border routers.

    A device prefix that equals a router's own prefix is the segment the
    router already sits on and gets no route. Every other routable device
    prefix gets one route per border router with a global next hop. Output
    is deduplicated by (prefix, next hop) and sorted.
    """
    router_list = list(routers)
    local_prefixes = router_prefixes(router_list)
    next_hops = [router for router in router_list if is_routable_next_hop(router.address)]

    routes: dict[RouteKey, DesiredRoute] = {}
    for prefix in sorted(device_prefixes(devices)):
        if prefix in local_prefixes:
            continue
        for router in next_hops:
            next_hop = normalize_address(router.address)
            key = RouteKey.of(prefix, next_hop)
            routes.setdefault(
                key,
                DesiredRoute(prefix=prefix, next_hop=next_hop, router_name=router.name),
            )

    if routes:
        logger.debug("Generated {} desired routes", len(routes))
    return sorted(routes.values())
