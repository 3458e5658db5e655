"""Pytest configuration and shared fixtures for threadroute tests.

Provides in-memory stand-ins for the router gateway and the discovery
source so routing and daemon tests run without a network.
"""

import asyncio
from dataclasses import replace
from ipaddress import IPv6Address

import pytest
from loguru import logger

from threadroute.core.config import RouteUpdaterSettings
from threadroute.datastructures.route_types import BorderRouter, Device, RouterRoute
from threadroute.discovery.interfaces import DiscoveredService
from threadroute.gateway.errors import RouteNotFoundError, RouterGatewayError

FIXED_NOW = 1_700_000_000.0


class FakeGateway:
    """In-memory router gateway recording every call.

    ``fail_list`` holds exceptions raised by successive ``list_routes`` calls;
    ``fail_add`` and ``fail_delete`` map prefixes and ids to exceptions.
    """

    def __init__(self, routes: list[RouterRoute] | None = None) -> None:
        self.routes: dict[str, RouterRoute] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_list: list[Exception] = []
        self.fail_add: dict[str, Exception] = {}
        self.fail_delete: dict[str, Exception] = {}
        self.session_valid = False
        self.logins = 0
        self.invalidations = 0
        self._next_id = 1
        for route in routes or []:
            self._store(route)

    def _store(self, route: RouterRoute) -> RouterRoute:
        if not route.id:
            route = route.with_id(f"route-{self._next_id}")
            self._next_id += 1
        self.routes[route.id] = route
        return route

    async def ensure_session(self, now: float | None = None) -> None:
        if not self.session_valid:
            self.logins += 1
            self.session_valid = True

    def invalidate_session(self) -> None:
        self.invalidations += 1
        self.session_valid = False

    async def list_routes(self) -> list[RouterRoute]:
        self.calls.append(("list", ""))
        if self.fail_list:
            raise self.fail_list.pop(0)
        return list(self.routes.values())

    async def add_route(self, route: RouterRoute) -> None:
        self.calls.append(("add", route.prefix))
        if route.prefix in self.fail_add:
            raise self.fail_add[route.prefix]
        for existing in self.routes.values():
            if existing.key() == route.key():
                raise RouterGatewayError("duplicate route")
        self._store(replace(route, id=""))

    async def delete_route(self, route_id: str) -> None:
        self.calls.append(("delete", route_id))
        if route_id in self.fail_delete:
            raise self.fail_delete[route_id]
        if route_id not in self.routes:
            raise RouteNotFoundError(f"IdInvalid: {route_id}", status=400)
        del self.routes[route_id]


class FakeDiscovery:
    """Discovery source serving canned scans and a queue of announcements."""

    def __init__(self, scans: dict[str, list[DiscoveredService]] | None = None) -> None:
        self.scans = scans or {}
        self.enumerated: list[str] = []
        self.announcements: dict[str, asyncio.Queue[DiscoveredService]] = {}
        self.closed_streams = 0
        self.closed = False

    def _queue(self, service_type: str) -> asyncio.Queue[DiscoveredService]:
        return self.announcements.setdefault(service_type, asyncio.Queue())

    def announce(self, service: DiscoveredService) -> None:
        self._queue(service.service_type).put_nowait(service)

    async def close(self) -> None:
        self.closed = True

    async def enumerate(self, service_type: str) -> list[DiscoveredService]:
        self.enumerated.append(service_type)
        return list(self.scans.get(service_type, []))

    async def subscribe(self, service_type: str):
        queue = self._queue(service_type)
        try:
            while True:
                yield await queue.get()
        finally:
            self.closed_streams += 1


@pytest.fixture(autouse=True)
def _quiet_logging():
    """Keep loguru output out of test runs unless a test adds its own sink."""
    logger.remove()
    yield
    logger.remove()


@pytest.fixture
def settings() -> RouteUpdaterSettings:
    return RouteUpdaterSettings(
        _env_file=None,
        enabled=True,
        route_grace_period=600.0,
        settle_delay=0.0,
        reconcile_interval=0.01,
        refresh_interval=3600.0,
    )


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def discovery() -> FakeDiscovery:
    return FakeDiscovery()


def make_device(address: str, name: str = "device", last_seen: float = FIXED_NOW) -> Device:
    return Device(
        name=name,
        address=IPv6Address(address),
        service_type="_matter._tcp.local.",
        last_seen=last_seen,
    )


def make_router(
    address: str, prefix: str, name: str = "router", last_seen: float = FIXED_NOW
) -> BorderRouter:
    return BorderRouter(
        name=name, address=IPv6Address(address), prefix=prefix, last_seen=last_seen
    )
