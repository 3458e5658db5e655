"""
mDNS discovery backed by python-zeroconf.

``enumerate`` browses for a fixed window and resolves whatever appeared;
``subscribe`` keeps a browser open and yields each instance as it is added
or updated. Both resolve through ``AsyncServiceInfo`` and keep only IPv6
addresses.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass

from loguru import logger
from zeroconf import IPVersion, ServiceStateChange, Zeroconf
from zeroconf.asyncio import AsyncServiceBrowser, AsyncServiceInfo, AsyncZeroconf

from threadroute.datastructures.type_aliases import DurationSeconds, ServiceType

from .interfaces import DiscoveredService
from .names import extract_ipv6_addresses, instance_label

_INTERESTING_CHANGES = (ServiceStateChange.Added, ServiceStateChange.Updated)


@dataclass(eq=False, slots=True)
class ZeroconfDiscoverySource:
    """DiscoverySource over a lazily created AsyncZeroconf instance."""

    browse_timeout: DurationSeconds = 10.0
    resolve_timeout_ms: int = 3000
    _aiozc: AsyncZeroconf | None = None

    def _zeroconf(self) -> AsyncZeroconf:
        if self._aiozc is None:
            self._aiozc = AsyncZeroconf(ip_version=IPVersion.All)
        return self._aiozc

    async def close(self) -> None:
        if self._aiozc is not None:
            await self._aiozc.async_close()
            self._aiozc = None

    def _browser(
        self, service_type: ServiceType, on_name: Callable[[str], None]
    ) -> AsyncServiceBrowser:
        def on_service_state_change(
            zeroconf: Zeroconf,
            service_type: str,
            name: str,
            state_change: ServiceStateChange,
        ) -> None:
            if state_change in _INTERESTING_CHANGES:
                on_name(name)

        return AsyncServiceBrowser(
            self._zeroconf().zeroconf,
            [service_type],
            handlers=[on_service_state_change],
        )

    async def enumerate(self, service_type: ServiceType) -> list[DiscoveredService]:
        names: set[str] = set()
        browser = self._browser(service_type, names.add)
        try:
            await asyncio.sleep(self.browse_timeout)
        finally:
            await browser.async_cancel()

        resolved = await asyncio.gather(
            *(self._resolve(service_type, name) for name in sorted(names))
        )
        services = [service for service in resolved if service is not None]
        logger.debug(
            "Browse for {} found {} instance(s), {} with IPv6",
            service_type,
            len(names),
            len(services),
        )
        return services

    async def subscribe(
        self, service_type: ServiceType
    ) -> AsyncGenerator[DiscoveredService, None]:
        queue: asyncio.Queue[str] = asyncio.Queue()
        browser = self._browser(service_type, queue.put_nowait)
        logger.info("Listening for {} announcements", service_type)
        try:
            while True:
                name = await queue.get()
                service = await self._resolve(service_type, name)
                if service is not None:
                    yield service
        finally:
            await browser.async_cancel()

    async def _resolve(self, service_type: ServiceType, name: str) -> DiscoveredService | None:
        info = AsyncServiceInfo(service_type, name)
        try:
            found = await info.async_request(
                self._zeroconf().zeroconf, self.resolve_timeout_ms
            )
        except Exception as e:
            logger.warning("Failed to resolve {}: {}", name, e)
            return None
        if not found:
            logger.debug("No answer resolving {}", name)
            return None

        addresses = extract_ipv6_addresses(info.ip_addresses_by_version(IPVersion.V6Only))
        if not addresses:
            logger.debug("Skipping {}: no IPv6 addresses", name)
            return None
        return DiscoveredService(
            instance_name=instance_label(name, service_type),
            service_type=service_type,
            addresses=tuple(addresses),
        )
