"""
Semantic type aliases for threadroute datastructures.

These aliases keep signatures self-documenting where the underlying value is
a plain string or float (prefixes travel as canonical CIDR text, timestamps
as epoch seconds).
"""

from typing import Any

# Time and timestamp types
type Timestamp = float
type DurationSeconds = float

# Network types
type PrefixString = str  # Canonical /64 CIDR text, e.g. "fd00:1::/64"
type AddressString = str  # Canonical compressed IPv6 text
type HostName = str
type ServiceType = str  # DNS-SD service type, e.g. "_matter._tcp.local."
type InstanceName = str

# Router types
type RouteId = str  # Identifier assigned by the router
type RouteLabel = str
type RouterName = str

# Serialization types
type JsonDict = dict[str, Any]
