"""Apply reconciliation results to the router.

Policy:
- removals go out before additions, since the router refuses duplicate
  (prefix, next hop) entries;
- an add is submitted at most once per RouteKey until that key is removed,
  which tolerates a route list that lags behind a recent add;
- a delete that reports the route as already gone counts as deleted;
- any other delete failure leaves the grace tracker untouched so the route
  is retried next cycle without earning a fresh grace period.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field

from loguru import logger

from threadroute.datastructures.route_types import RouteKey, RouterRoute
from threadroute.datastructures.type_aliases import DurationSeconds
from threadroute.gateway.errors import RouteNotFoundError, RouterGatewayError
from threadroute.gateway.interfaces import RouterGateway

from .reconciler import GraceTracker


@dataclass(slots=True)
class ApplyReport:
    added: list[RouterRoute] = field(default_factory=list)
    removed: list[RouterRoute] = field(default_factory=list)
    already_gone: list[RouterRoute] = field(default_factory=list)
    failed_adds: list[RouterRoute] = field(default_factory=list)
    failed_removes: list[RouterRoute] = field(default_factory=list)
    skipped_adds: list[RouterRoute] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed or self.already_gone)

    def summary(self) -> str:
        return (
            f"+{len(self.added)} added, -{len(self.removed) + len(self.already_gone)} "
            f"removed, {len(self.failed_adds) + len(self.failed_removes)} failed, "
            f"{len(self.skipped_adds)} already submitted"
        )


@dataclass(eq=False, slots=True)
class RouteApplier:
    """Submit route changes to a gateway, tracking what was already sent."""

    gateway: RouterGateway
    tracker: GraceTracker
    settle_delay: DurationSeconds = 2.0
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    submitted: set[RouteKey] = field(default_factory=set)

    def pending_adds(self, routes: Iterable[RouterRoute]) -> list[RouterRoute]:
        """Routes whose key has not been submitted yet."""
        return [route for route in routes if route.key() not in self.submitted]

    def retain(self, desired: Iterable[RouteKey]) -> None:
        """Drop submitted keys that are no longer desired."""
        wanted = set(desired)
        self.submitted.intersection_update(wanted)

    def forget(self, key: RouteKey) -> None:
        self.tracker.forget(key)
        self.submitted.discard(key)

    async def apply(
        self, to_add: Iterable[RouterRoute], to_remove: Iterable[RouterRoute]
    ) -> ApplyReport:
        report = ApplyReport()

        for route in to_remove:
            await self._remove(route, report)

        submitted_any = False
        for route in to_add:
            key = route.key()
            if key in self.submitted:
                report.skipped_adds.append(route)
                continue
            self.submitted.add(key)
            submitted_any = True
            try:
                await self.gateway.add_route(route)
            except RouterGatewayError as e:
                logger.error("Failed to add route {}: {}", key, e)
                self.submitted.discard(key)
                report.failed_adds.append(route)
                continue
            logger.info("Added route: {} ({})", key, route.label)
            report.added.append(route)

        if submitted_any and self.settle_delay > 0:
            await self.sleep(self.settle_delay)

        return report

    async def _remove(self, route: RouterRoute, report: ApplyReport) -> None:
        key = route.key()
        logger.info("Attempting to delete route: {} (ID: {})", key, route.id)
        try:
            await self.gateway.delete_route(route.id)
        except RouteNotFoundError as e:
            logger.warning(
                "Route {} (ID: {}) no longer exists, removing from tracking: {}",
                key,
                route.id,
                e,
            )
            self.forget(key)
            report.already_gone.append(route)
            return
        except RouterGatewayError as e:
            logger.error("Failed to delete route {} (ID: {}): {}", key, route.id, e)
            report.failed_removes.append(route)
            return
        logger.info("Deleted route: {}", key)
        self.forget(key)
        report.removed.append(route)
