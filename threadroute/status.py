"""Rich rendering of the daemon's live status screen."""

from __future__ import annotations

import time
from collections.abc import Sequence

from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from threadroute.datastructures.route_types import BorderRouter, DesiredRoute, Device
from threadroute.datastructures.type_aliases import DurationSeconds, Timestamp

MAX_LISTED_DEVICES = 5


def device_table(devices: Sequence[Device], limit: int = MAX_LISTED_DEVICES) -> Table:
    table = Table(title=f"📱 Matter Devices: {len(devices)}", title_justify="left")
    table.add_column("Name", style="magenta")
    table.add_column("IPv6 Address", style="cyan", no_wrap=True)
    for device in devices[:limit]:
        table.add_row(device.name, str(device.address))
    if len(devices) > limit:
        table.add_row(f"[dim]... and {len(devices) - limit} more[/dim]", "")
    return table


def router_table(routers: Sequence[BorderRouter]) -> Table:
    table = Table(
        title=f"🌐 Thread Border Routers: {len(routers)}", title_justify="left"
    )
    table.add_column("Name", style="magenta")
    table.add_column("IPv6 Address", style="cyan", no_wrap=True)
    table.add_column("Prefix", style="green", no_wrap=True)
    for router in routers:
        table.add_row(router.name, str(router.address), router.prefix)
    return table


def route_table(routes: Sequence[DesiredRoute], *, title: str = "🛣️  Current Routes") -> Table:
    table = Table(title=title, title_justify="left")
    table.add_column("Prefix", style="green", no_wrap=True)
    table.add_column("Next Hop", style="cyan", no_wrap=True)
    table.add_column("Border Router", style="magenta")
    for route in routes:
        table.add_row(route.prefix, route.next_hop, route.router_name)
    return table


def render_status(
    devices: Sequence[Device],
    routers: Sequence[BorderRouter],
    routes: Sequence[DesiredRoute],
    *,
    last_update: Timestamp | None = None,
    next_update_in: DurationSeconds | None = None,
) -> RenderableType:
    """Build the full status screen as one renderable."""
    stamp = time.strftime(
        "%H:%M:%S", time.localtime(last_update if last_update is not None else time.time())
    )
    parts: list[RenderableType] = [
        Text("🔍 Thread Route Updater Daemon - Live Status", style="bold blue"),
        Text(f"📅 Last Update: {stamp}"),
        device_table(devices),
        router_table(routers),
    ]
    if routes:
        parts.append(route_table(routes))
    else:
        parts.append(
            Text("⚠️  No routes available (no Thread networks detected)", style="yellow")
        )
    if next_update_in is not None:
        parts.append(Text(f"🔄 Monitoring... (Next update in {next_update_in:.0f}s)", style="dim"))
    return Group(*parts)
