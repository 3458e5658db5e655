"""
Thread route updater daemon.

Runs as a set of cooperative asyncio tasks sharing one DiscoveryRegistry:

- one discovery task per service type: an initial scan, then a live listener;
- a refresh task that re-scans periodically and expires stale entries;
- a reconcile task that regenerates the desired routes, renders the status
  screen and, when router updates are enabled, brings the router in line.

Only the reconcile task touches the grace tracker and the applier.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from rich.console import Console

from threadroute.core.config import RouteUpdaterSettings
from threadroute.core.durations import format_duration
from threadroute.datastructures.route_types import DesiredRoute, RouterRoute
from threadroute.datastructures.type_aliases import (
    DurationSeconds,
    ServiceType,
    Timestamp,
)
from threadroute.discovery.interfaces import (
    BORDER_ROUTER_SERVICE,
    MATTER_SERVICE,
    DiscoveredService,
    DiscoverySource,
)
from threadroute.discovery.registry import (
    DiscoveryRegistry,
    devices_from_service,
    routers_from_service,
)
from threadroute.gateway.errors import RateLimitedError, RouterGatewayError
from threadroute.gateway.interfaces import RouterGateway, SessionManagedGateway
from threadroute.routing.applier import ApplyReport, RouteApplier
from threadroute.routing.generator import generate_routes
from threadroute.routing.reconciler import GraceTracker, reconcile
from threadroute.status import render_status

SERVICE_TYPES: tuple[ServiceType, ...] = (MATTER_SERVICE, BORDER_ROUTER_SERVICE)
LISTENER_RESTART_DELAY = 5.0


@dataclass(eq=False, slots=True)
class RouteUpdaterDaemon:
    """Discovery, status display and router reconciliation on timers."""

    settings: RouteUpdaterSettings
    discovery: DiscoverySource
    gateway: RouterGateway | None = None
    registry: DiscoveryRegistry = field(default_factory=DiscoveryRegistry)
    console: Console | None = None
    tracker: GraceTracker = field(default_factory=GraceTracker)
    clock: Callable[[], float] = time.time
    applier: RouteApplier | None = None
    last_report: ApplyReport | None = None

    _tasks: set[asyncio.Task[Any]] = field(default_factory=set)
    _shutdown_event: asyncio.Event = field(default_factory=asyncio.Event)

    def __post_init__(self) -> None:
        if self.applier is None and self.gateway is not None:
            self.applier = RouteApplier(
                gateway=self.gateway,
                tracker=self.tracker,
                settle_delay=self.settings.settle_delay,
            )

    # Lifecycle

    async def start(self) -> None:
        """Spawn the discovery, refresh and reconcile tasks."""
        logger.info(
            "Starting Thread route updater (router updates {}, grace period {})",
            "enabled" if self.settings.enabled else "disabled",
            format_duration(self.settings.route_grace_period),
        )
        self._shutdown_event.clear()
        for service_type in SERVICE_TYPES:
            self._spawn(self._discovery_loop(service_type))
        self._spawn(self._refresh_loop())
        self._spawn(self._reconcile_loop())

    async def stop(self) -> None:
        """Signal shutdown, then cancel and await every task."""
        logger.info("Stopping Thread route updater")
        self._shutdown_event.set()

        tasks = set(self._tasks)
        for task in tasks:
            if not task.done():
                task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    @property
    def running(self) -> bool:
        return bool(self._tasks) and not self._shutdown_event.is_set()

    async def run_until_shutdown(self) -> None:
        await self.start()
        try:
            await self._shutdown_event.wait()
        finally:
            await self.stop()

    def _spawn(self, coro: Any) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _wait_for_shutdown(self, timeout: DurationSeconds) -> bool:
        """Sleep up to ``timeout``; True if shutdown was requested meanwhile."""
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout)
        except TimeoutError:
            return False
        return True

    # Discovery

    def record(self, service: DiscoveredService, now: Timestamp | None = None) -> int:
        """Upsert a resolved service into the registry. Returns new entries."""
        timestamp = now if now is not None else self.clock()
        if service.service_type == BORDER_ROUTER_SERVICE:
            return self.registry.merge_routers(routers_from_service(service, now=timestamp))
        return self.registry.merge_devices(devices_from_service(service, now=timestamp))

    def _replace_from_scan(
        self, service_type: ServiceType, services: Iterable[DiscoveredService]
    ) -> None:
        timestamp = self.clock()
        if service_type == BORDER_ROUTER_SERVICE:
            routers = [
                router
                for service in services
                for router in routers_from_service(service, now=timestamp)
            ]
            self.registry.replace_routers(routers)
            logger.info("Initial scan found {} Thread Border Router(s)", len(routers))
        else:
            devices = [
                device
                for service in services
                for device in devices_from_service(service, now=timestamp)
            ]
            self.registry.replace_devices(devices)
            logger.info("Initial scan found {} Matter device(s)", len(devices))

    async def scan(self) -> list[DesiredRoute]:
        """One-shot scan of both service types, then the desired routes."""
        for service_type in SERVICE_TYPES:
            services = await self.discovery.enumerate(service_type)
            self._replace_from_scan(service_type, services)
        return generate_routes(self.registry.devices(), self.registry.routers())

    async def _discovery_loop(self, service_type: ServiceType) -> None:
        try:
            self._replace_from_scan(
                service_type, await self.discovery.enumerate(service_type)
            )
        except Exception as e:
            logger.error("Error discovering {}: {}", service_type, e)

        while not self._shutdown_event.is_set():
            try:
                async with aclosing(self.discovery.subscribe(service_type)) as stream:
                    async for service in stream:
                        self.record(service)
            except Exception as e:
                logger.error("Listener for {} failed: {}", service_type, e)
            if await self._wait_for_shutdown(LISTENER_RESTART_DELAY):
                break

    async def refresh(self, now: Timestamp | None = None) -> None:
        """Merge a fresh scan of both service types, then expire stale entries."""
        for service_type in SERVICE_TYPES:
            try:
                services = await self.discovery.enumerate(service_type)
            except Exception as e:
                logger.error("Periodic refresh of {} failed: {}", service_type, e)
                continue
            for service in services:
                self.record(service)

        timestamp = now if now is not None else self.clock()
        expired = self.registry.expire(self.settings.device_expiration, timestamp)
        if expired.devices_removed or expired.routers_removed:
            logger.info(
                "Expired {} device(s) and {} border router(s) not seen for {}",
                expired.devices_removed,
                expired.routers_removed,
                format_duration(self.settings.device_expiration),
            )

    async def _refresh_loop(self) -> None:
        while not await self._wait_for_shutdown(self.settings.refresh_interval):
            await self.refresh()

    # Reconciliation

    async def _reconcile_loop(self) -> None:
        while not self._shutdown_event.is_set():
            try:
                await self.run_once()
            except Exception as e:
                logger.error("Reconcile cycle failed: {}", e)
            if await self._wait_for_shutdown(self.settings.reconcile_interval):
                break

    async def run_once(self, now: Timestamp | None = None) -> list[DesiredRoute]:
        """Generate routes, render status, and update the router if enabled."""
        timestamp = now if now is not None else self.clock()
        devices = self.registry.devices()
        routers = self.registry.routers()
        desired = generate_routes(devices, routers)

        if self.console is not None:
            if self.console.is_terminal:
                self.console.clear()
            self.console.print(
                render_status(
                    devices,
                    routers,
                    desired,
                    last_update=self.registry.last_update,
                    next_update_in=self.settings.reconcile_interval,
                )
            )

        if self.settings.enabled and self.gateway is not None:
            await self.update_router(desired, timestamp)
        return desired

    async def update_router(
        self, desired: Iterable[DesiredRoute], now: Timestamp | None = None
    ) -> ApplyReport | None:
        """Bring the router's managed routes in line with ``desired``.

        Returns None when the cycle was skipped.
        """
        if self.gateway is None or self.applier is None:
            return None
        timestamp = now if now is not None else self.clock()
        desired_routes = list(desired)
        logger.info("Updating router static routes...")

        if not await self._ensure_session(timestamp):
            return None
        current = await self._list_current_routes(self.gateway, timestamp)
        if current is None:
            return None

        grace_period = self.settings.route_grace_period
        result = reconcile(current, desired_routes, self.tracker, grace_period, timestamp)
        desired_keys = {route.key() for route in desired_routes}
        self.applier.retain(desired_keys)

        if result.changed:
            logger.info(
                "Route changes: +{} routes, -{} routes (grace period: {})",
                len(result.to_add),
                len(result.to_remove),
                format_duration(grace_period),
            )
        report = await self.applier.apply(result.to_add, result.to_remove)
        if not result.changed:
            logger.info("Router routes are up to date")
        else:
            logger.info("Route update finished: {}", report.summary())

        for key, remaining in self.tracker.pending(grace_period, timestamp):
            if key not in desired_keys:
                logger.debug(
                    "Route {} pending removal in {}", key, format_duration(remaining)
                )
        self.last_report = report
        return report

    async def _ensure_session(self, now: Timestamp) -> bool:
        if not isinstance(self.gateway, SessionManagedGateway):
            return True
        try:
            await self.gateway.ensure_session(now)
        except RouterGatewayError as e:
            logger.error("Failed to login to router: {}", e)
            return False
        return True

    def _invalidate_session(self) -> None:
        if isinstance(self.gateway, SessionManagedGateway):
            self.gateway.invalidate_session()

    async def _list_current_routes(
        self, gateway: RouterGateway, now: Timestamp
    ) -> list[RouterRoute] | None:
        """List router routes, re-authenticating and retrying once on failure."""
        try:
            return await gateway.list_routes()
        except RateLimitedError as e:
            logger.warning("Rate limit reached, skipping this update cycle: {}", e)
            self._invalidate_session()
            return None
        except RouterGatewayError as e:
            logger.warning("Failed to get current routes, re-authenticating: {}", e)

        self._invalidate_session()
        if not await self._ensure_session(now):
            return None
        try:
            return await gateway.list_routes()
        except RouterGatewayError as e:
            logger.error("Failed to get current routes after re-login: {}", e)
            return None
