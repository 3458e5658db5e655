"""Grace-period aware diff of desired routes against router routes.

``reconcile`` is pure apart from the grace tracker it is handed: the tracker
records, per RouteKey, the last time the route was wanted. Absent routes are
only removed once that timestamp is at least one grace period old, and a
managed route never seen before is seeded with ``now`` so that a freshly
started process waits a full grace period before deleting anything.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import NamedTuple

from loguru import logger

from threadroute.core.durations import format_duration
from threadroute.datastructures.route_types import DesiredRoute, RouteKey, RouterRoute
from threadroute.datastructures.type_aliases import DurationSeconds, Timestamp


@dataclass(eq=False, slots=True)
class GraceTracker:
    """Last time each route was confirmed desired."""

    _last_seen: dict[RouteKey, Timestamp] = field(default_factory=dict)

    def touch(self, key: RouteKey, now: Timestamp) -> None:
        self._last_seen[key] = now

    def seed(self, key: RouteKey, now: Timestamp) -> bool:
        """Record ``now`` only if the key has no history. Returns True if seeded."""
        if key in self._last_seen:
            return False
        self._last_seen[key] = now
        return True

    def last_seen(self, key: RouteKey) -> Timestamp | None:
        return self._last_seen.get(key)

    def forget(self, key: RouteKey) -> bool:
        return self._last_seen.pop(key, None) is not None

    def remaining(
        self, key: RouteKey, grace_period: DurationSeconds, now: Timestamp
    ) -> DurationSeconds | None:
        """Seconds left in the key's grace window, None if untracked."""
        seen = self._last_seen.get(key)
        if seen is None:
            return None
        return max(0.0, grace_period - (now - seen))

    def pending(
        self, grace_period: DurationSeconds, now: Timestamp
    ) -> list[tuple[RouteKey, DurationSeconds]]:
        """Tracked routes whose grace window is still open, soonest first."""
        waiting = [
            (key, grace_period - (now - seen))
            for key, seen in self._last_seen.items()
            if now - seen < grace_period
        ]
        return sorted(waiting, key=lambda item: (item[1], item[0]))

    def __contains__(self, key: object) -> bool:
        return key in self._last_seen

    def __len__(self) -> int:
        return len(self._last_seen)

    def __iter__(self) -> Iterator[RouteKey]:
        return iter(list(self._last_seen))


class ReconcileResult(NamedTuple):
    to_add: list[RouterRoute]
    to_remove: list[RouterRoute]

    @property
    def changed(self) -> bool:
        return bool(self.to_add or self.to_remove)


def reconcile(
    current: Iterable[RouterRoute],
    desired: Iterable[DesiredRoute],
    tracker: GraceTracker,
    grace_period: DurationSeconds,
    now: Timestamp,
) -> ReconcileResult:
    """Compute route additions and removals.

    Only routes carrying the managed label are ever removed. Every desired
    route refreshes its tracker entry, after absent routes were evaluated.
    """
    current_routes = list(current)
    desired_by_key: dict[RouteKey, DesiredRoute] = {}
    for route in desired:
        desired_by_key.setdefault(route.key(), route)

    to_remove: list[RouterRoute] = []
    for route in current_routes:
        if not route.managed:
            continue
        key = route.key()
        if key in desired_by_key:
            continue

        seen = tracker.last_seen(key)
        if seen is None:
            tracker.seed(key, now)
            logger.info(
                "Route {} never seen before, giving grace period ({}), not removing",
                key,
                format_duration(grace_period),
            )
            continue

        elapsed = now - seen
        if elapsed < grace_period:
            logger.debug(
                "Route {} still within grace period ({} remaining), not removing",
                key,
                format_duration(grace_period - elapsed),
            )
            continue
        to_remove.append(route)

    for key in desired_by_key:
        tracker.touch(key, now)

    current_keys = {route.key() for route in current_routes}
    to_add = [
        route.to_router_route()
        for key, route in desired_by_key.items()
        if key not in current_keys
    ]

    return ReconcileResult(to_add=to_add, to_remove=to_remove)
