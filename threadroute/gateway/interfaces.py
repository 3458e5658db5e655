"""Router gateway capability consumed by route application."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from threadroute.datastructures.route_types import RouterRoute
from threadroute.datastructures.type_aliases import RouteId, Timestamp


@runtime_checkable
class RouterGateway(Protocol):
    """Static route CRUD against a single router.

    Implementations raise ``RouterGatewayError`` subclasses on failure.
    """

    async def list_routes(self) -> list[RouterRoute]: ...

    async def add_route(self, route: RouterRoute) -> None: ...

    async def delete_route(self, route_id: RouteId) -> None: ...


@runtime_checkable
class SessionManagedGateway(RouterGateway, Protocol):
    """A gateway whose credentials can be refreshed explicitly."""

    async def ensure_session(self, now: Timestamp | None = None) -> None: ...

    def invalidate_session(self) -> None: ...
