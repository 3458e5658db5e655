"""Router gateway: static route CRUD against the home router."""

from .errors import (
    RateLimitedError,
    RouteNotFoundError,
    RouterGatewayError,
    TransientAuthError,
    classify_api_error,
)
from .interfaces import RouterGateway, SessionManagedGateway
from .unifi import RouterSession, UnifiGateway

__all__ = [
    "RateLimitedError",
    "RouteNotFoundError",
    "RouterGateway",
    "RouterGatewayError",
    "RouterSession",
    "SessionManagedGateway",
    "TransientAuthError",
    "UnifiGateway",
    "classify_api_error",
]
