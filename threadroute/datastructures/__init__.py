"""
threadroute datastructures.

Frozen records exchanged between discovery, route generation, reconciliation
and the router gateway.
"""

from __future__ import annotations

from .route_types import (
    MANAGED_LABEL_MARKER,
    BorderRouter,
    DesiredRoute,
    Device,
    RouteKey,
    RouterRoute,
    is_managed_label,
    managed_label,
    normalize_address,
    normalize_prefix,
)

__all__ = [
    "MANAGED_LABEL_MARKER",
    "BorderRouter",
    "DesiredRoute",
    "Device",
    "RouteKey",
    "RouterRoute",
    "is_managed_label",
    "managed_label",
    "normalize_address",
    "normalize_prefix",
]
