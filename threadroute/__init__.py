"""
threadroute - Thread route updater

Discovers Matter devices (``_matter._tcp``) and Thread border routers
(``_meshcop._udp``) over mDNS, derives the /64 prefixes that need explicit
routing through a border router, and keeps those static routes configured on
a UniFi gateway. Routes that stop being needed are only removed after a grace
period, so a device dropping off the network briefly does not churn the
router's table.

## Architecture

- **routing**: address classification, route generation, reconciliation and
  route application
- **gateway**: router gateway protocol, error taxonomy, UniFi client
- **discovery**: discovery source protocol, zeroconf source, device registry
- **daemon**: asyncio tasks tying discovery and reconciliation together
- **cli**: the ``threadroute`` command

## Quick Start

```python
from threadroute.routing import GraceTracker, generate_routes, reconcile

desired = generate_routes(devices, routers)
result = reconcile(current, desired, GraceTracker(), grace_period=600, now=now)
```
"""

__version__ = "1.0.0"
