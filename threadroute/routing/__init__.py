"""Route engine: address classification, route generation, reconciliation."""

from .addresses import (
    is_routable_next_hop,
    is_routable_prefix,
    parse_ipv6,
    prefix64,
)
from .applier import ApplyReport, RouteApplier
from .generator import generate_routes
from .reconciler import GraceTracker, ReconcileResult, reconcile

__all__ = [
    "ApplyReport",
    "GraceTracker",
    "ReconcileResult",
    "RouteApplier",
    "generate_routes",
    "is_routable_next_hop",
    "is_routable_prefix",
    "parse_ipv6",
    "prefix64",
    "reconcile",
]
