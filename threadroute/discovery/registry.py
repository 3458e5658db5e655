"""Shared registry of discovered devices and border routers.

Discovery listeners write, the reconciliation pass reads. Writers replace an
entry with the same name and address or append a new one; readers only ever
get immutable tuple snapshots, so a concurrent full read never observes a
half-applied update.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from threading import RLock

from loguru import logger

from threadroute.datastructures.route_types import BorderRouter, Device
from threadroute.datastructures.type_aliases import DurationSeconds, Timestamp
from threadroute.routing.addresses import prefix64

from .interfaces import DiscoveredService
from .names import extract_router_name


def devices_from_service(
    service: DiscoveredService, *, now: Timestamp | None = None
) -> list[Device]:
    timestamp = now if now is not None else time.time()
    return [
        Device(
            name=service.instance_name,
            address=address,
            service_type=service.service_type,
            last_seen=timestamp,
        )
        for address in service.addresses
    ]


def routers_from_service(
    service: DiscoveredService, *, now: Timestamp | None = None
) -> list[BorderRouter]:
    timestamp = now if now is not None else time.time()
    name = extract_router_name(service.instance_name)
    return [
        BorderRouter(
            name=name,
            address=address,
            prefix=prefix64(address) or "",
            last_seen=timestamp,
        )
        for address in service.addresses
    ]


@dataclass(frozen=True, slots=True)
class ExpiryResult:
    devices_removed: int
    routers_removed: int


@dataclass(eq=False, slots=True)
class DiscoveryRegistry:
    """Lock-guarded device and border router lists."""

    _devices: list[Device] = field(default_factory=list)
    _routers: list[BorderRouter] = field(default_factory=list)
    last_update: Timestamp = field(default_factory=time.time)
    _lock: RLock = field(default_factory=RLock)

    def devices(self) -> tuple[Device, ...]:
        with self._lock:
            return tuple(self._devices)

    def routers(self) -> tuple[BorderRouter, ...]:
        with self._lock:
            return tuple(self._routers)

    def upsert_device(self, device: Device) -> bool:
        """Insert or replace a device. Returns True if it was new."""
        with self._lock:
            is_new = _upsert(self._devices, device)
            self.last_update = time.time()
        if is_new:
            logger.debug("Discovered new Matter device: {} ({})", device.name, device.address)
        else:
            logger.debug("Updated existing Matter device: {} ({})", device.name, device.address)
        return is_new

    def upsert_router(self, router: BorderRouter) -> bool:
        """Insert or replace a border router. Returns True if it was new."""
        with self._lock:
            is_new = _upsert(self._routers, router)
            self.last_update = time.time()
        if is_new:
            logger.debug(
                "Discovered new Thread Border Router: {} ({})", router.name, router.address
            )
        else:
            logger.debug(
                "Updated existing Thread Border Router: {} ({})",
                router.name,
                router.address,
            )
        return is_new

    def replace_devices(self, devices: Iterable[Device]) -> None:
        with self._lock:
            self._devices = list(devices)
            self.last_update = time.time()

    def replace_routers(self, routers: Iterable[BorderRouter]) -> None:
        with self._lock:
            self._routers = list(routers)
            self.last_update = time.time()

    def merge_devices(self, devices: Iterable[Device]) -> int:
        return sum(1 for device in devices if self.upsert_device(device))

    def merge_routers(self, routers: Iterable[BorderRouter]) -> int:
        return sum(1 for router in routers if self.upsert_router(router))

    def expire(self, max_age: DurationSeconds, now: Timestamp | None = None) -> ExpiryResult:
        """Drop entries not seen within ``max_age`` seconds."""
        timestamp = now if now is not None else time.time()
        with self._lock:
            kept_devices = [d for d in self._devices if timestamp - d.last_seen <= max_age]
            kept_routers = [r for r in self._routers if timestamp - r.last_seen <= max_age]
            result = ExpiryResult(
                devices_removed=len(self._devices) - len(kept_devices),
                routers_removed=len(self._routers) - len(kept_routers),
            )
            self._devices = kept_devices
            self._routers = kept_routers
        return result


def _upsert(entries: list, entry: Device | BorderRouter) -> bool:
    identity = entry.identity()
    for index, existing in enumerate(entries):
        if existing.identity() == identity:
            entries[index] = entry
            return False
    entries.append(entry)
    return True
