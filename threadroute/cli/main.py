#!/usr/bin/env python3
"""
Main CLI entry point for the Thread route updater.

Commands:
- run: discover devices and keep the router's static routes in sync
- scan: one-shot discovery, printing the routes that would be configured
- classify: show how addresses and prefixes are classified
- config: show the effective configuration
"""

import asyncio
import json
import signal
import sys

import click
from loguru import logger
from rich.console import Console
from rich.table import Table

from threadroute.core.config import RouteUpdaterSettings
from threadroute.core.logging import configure_logging
from threadroute.daemon import RouteUpdaterDaemon
from threadroute.discovery.zeroconf_source import ZeroconfDiscoverySource
from threadroute.gateway.unifi import UnifiGateway
from threadroute.routing.addresses import (
    is_routable_next_hop,
    is_routable_prefix,
    parse_ipv6,
    prefix64,
)
from threadroute.status import route_table

console = Console()


def _yes_no(value: bool) -> str:
    return "[green]✅ yes[/green]" if value else "[red]❌ no[/red]"


@click.group()
@click.option("--log-level", help="Override LOG_LEVEL (DEBUG, INFO, WARN, ERROR)")
@click.option(
    "--debug-scope",
    "debug_scopes",
    multiple=True,
    help="Enable DEBUG output for a module scope, e.g. routing.reconciler",
)
@click.pass_context
def cli(ctx, log_level: str | None, debug_scopes: tuple[str, ...]):
    """
    Thread route updater.

    Discovers Matter devices and Thread border routers over mDNS and keeps
    matching IPv6 static routes configured on a UniFi gateway.
    """
    settings = RouteUpdaterSettings()
    configure_logging(
        log_level or settings.log_level,
        debug_scopes=debug_scopes,
        colorize=sys.stderr.isatty(),
    )
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.option("--no-status", is_flag=True, help="Do not render the live status screen")
@click.pass_context
def run(ctx, no_status: bool):
    """Run the daemon until SIGINT or SIGTERM."""
    settings: RouteUpdaterSettings = ctx.obj["settings"]

    async def _run():
        discovery = ZeroconfDiscoverySource(browse_timeout=settings.browse_timeout)
        async with UnifiGateway.from_settings(settings) as gateway:
            daemon = RouteUpdaterDaemon(
                settings=settings,
                discovery=discovery,
                gateway=gateway,
                console=None if no_status else console,
            )
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, daemon.request_shutdown)
            try:
                await daemon.run_until_shutdown()
            finally:
                await discovery.close()
        console.print("\n[yellow]🛑 Shut down gracefully[/yellow]")

    if not settings.enabled:
        logger.warning(
            "Router updates disabled; set UBIQUITY_ENABLED=true to manage routes"
        )
    asyncio.run(_run())


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print routes as JSON")
@click.pass_context
def scan(ctx, as_json: bool):
    """Discover once and print the routes that would be configured."""
    settings: RouteUpdaterSettings = ctx.obj["settings"]

    async def _scan():
        discovery = ZeroconfDiscoverySource(browse_timeout=settings.browse_timeout)
        daemon = RouteUpdaterDaemon(settings=settings, discovery=discovery)
        try:
            if as_json:
                routes = await daemon.scan()
            else:
                with console.status(
                    f"Browsing for {settings.browse_timeout:.0f}s...", spinner="dots"
                ):
                    routes = await daemon.scan()
        finally:
            await discovery.close()

        if as_json:
            payload = [route.to_router_route().to_dict() for route in routes]
            click.echo(json.dumps(payload, indent=2))
        elif routes:
            console.print(route_table(routes, title="🛣️  Desired Routes"))
        else:
            console.print(
                "[yellow]⚠️  No routes available (no Thread networks detected)[/yellow]"
            )

    asyncio.run(_scan())


@cli.command()
@click.argument("addresses", nargs=-1, required=True)
def classify(addresses: tuple[str, ...]):
    """Show prefix and next-hop routability for ADDRESSES."""
    table = Table(title="🔎 Address Classification")
    table.add_column("Input", style="cyan", no_wrap=True)
    table.add_column("/64 Prefix", style="green", no_wrap=True)
    table.add_column("Routable Prefix", justify="center")
    table.add_column("Routable Next Hop", justify="center")

    for text in addresses:
        if "/" in text:
            table.add_row(text, text, _yes_no(is_routable_prefix(text)), "[dim]n/a[/dim]")
            continue
        if parse_ipv6(text) is None:
            table.add_row(text, "[dim]-[/dim]", _yes_no(False), _yes_no(False))
            continue
        prefix = prefix64(text) or ""
        table.add_row(
            text,
            prefix,
            _yes_no(is_routable_prefix(prefix)),
            _yes_no(is_routable_next_hop(text)),
        )
    console.print(table)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print settings as JSON")
@click.pass_context
def config(ctx, as_json: bool):
    """Show the effective configuration (password masked)."""
    settings: RouteUpdaterSettings = ctx.obj["settings"]
    values = settings.describe()
    if as_json:
        click.echo(json.dumps(values, indent=2))
        return

    table = Table(title="🔧 Configuration")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="magenta")
    for name, value in values.items():
        table.add_row(name, value)
    console.print(table)


def main():
    """Main CLI entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️ Operation cancelled by user[/yellow]")
        sys.exit(1)


if __name__ == "__main__":
    main()
