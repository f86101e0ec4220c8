"""Tag commands — list, show, enable, disable, rename, edit."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape

from ruuvi_panel.client.errors import error_handler
from ruuvi_panel.commands._common import (
    FormatOpt,
    GatewayOpt,
    RestartOpt,
    TokenOpt,
    UrlOpt,
    finish_mutation,
    loaded,
    make_controller,
    run,
)
from ruuvi_panel.models.config import normalize_mac
from ruuvi_panel.output.formatter import output
from ruuvi_panel.output.tables import TAG_COLUMNS, tag_record, tag_rows

app = typer.Typer(name="tags", help="Discovered RuuviTags: readings, names, and enablement.")
console = Console()

MacArg = Annotated[str, typer.Argument(help="Tag MAC address, e.g. AA:BB:CC:DD:EE:FF")]


@app.command("list")
@error_handler
def list_tags(
    enabled_only: Annotated[
        bool, typer.Option("--enabled", help="Only tags enabled for publishing"),
    ] = False,
    gateway: GatewayOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """List discovered tags with their latest readings."""

    async def _run() -> None:
        async with loaded(make_controller(gateway, url, token)) as controller:
            session = controller.session
            devices = session.cache.devices()
            if enabled_only:
                devices = [d for d in devices if session.ledger.is_enabled(d.mac)]
            if not devices and fmt == "table":
                console.print("[yellow]No tags discovered yet.[/]")
                return
            keep = {d.key for d in devices}
            rows = [
                r for r in tag_rows(session.cache, session.ledger, markup=fmt == "table")
                if r[2] in keep
            ]
            records = [tag_record(d, session.ledger) for d in devices]
            output(records, fmt, columns=TAG_COLUMNS, rows=rows, title="Discovered")

    run(_run())


@app.command()
@error_handler
def show(
    mac: MacArg,
    gateway: GatewayOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Show one tag's readings and settings."""

    async def _run() -> None:
        async with loaded(make_controller(gateway, url, token)) as controller:
            session = controller.session
            snap = session.cache.get(mac)
            if snap is None:
                record = {
                    "name": session.ledger.display_name(mac),
                    "mac": normalize_mac(mac),
                    "enabled": session.ledger.is_enabled(mac),
                    "updated": "not discovered",
                }
            else:
                record = tag_record(snap, session.ledger)
            output(record, fmt, kv=True, title=record["name"])

    run(_run())


@app.command()
@error_handler
def enable(
    mac: MacArg,
    restart: RestartOpt = False,
    gateway: GatewayOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
) -> None:
    """Enable a tag: its measurements are published to the sinks."""
    _set_enabled(mac, True, restart, gateway, url, token)


@app.command()
@error_handler
def disable(
    mac: MacArg,
    restart: RestartOpt = False,
    gateway: GatewayOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
) -> None:
    """Disable a tag: it stays visible but is no longer published."""
    _set_enabled(mac, False, restart, gateway, url, token)


def _set_enabled(
    mac: str,
    enabled: bool,
    restart: bool,
    gateway: str | None,
    url: str | None,
    token: str | None,
) -> None:
    async def _run() -> None:
        async with loaded(make_controller(gateway, url, token)) as controller:
            await controller.set_tag_enabled(mac, enabled)
            state = "enabled" if enabled else "disabled"
            name = escape(controller.session.ledger.display_name(mac))
            console.print(f"[green]{name} ({normalize_mac(mac)}) {state}.[/]")
            await finish_mutation(controller, restart)

    run(_run())


@app.command()
@error_handler
def rename(
    mac: MacArg,
    name: Annotated[str, typer.Argument(help="New display name (empty string clears it)")],
    restart: RestartOpt = False,
    gateway: GatewayOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
) -> None:
    """Set a tag's display name."""

    async def _run() -> None:
        async with loaded(make_controller(gateway, url, token)) as controller:
            await controller.set_tag_name(mac, name)
            shown = escape(controller.session.ledger.display_name(mac))
            console.print(f"[green]{normalize_mac(mac)} is now '{shown}'.[/]")
            await finish_mutation(controller, restart)

    run(_run())


@app.command()
@error_handler
def edit(
    mac: MacArg,
    name: Annotated[
        Optional[str], typer.Option("--name", "-n", help="Display name"),
    ] = None,
    enabled: Annotated[
        Optional[bool], typer.Option("--enable/--disable", help="Publish this tag"),
    ] = None,
    restart: RestartOpt = False,
    gateway: GatewayOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
) -> None:
    """Save name and enabled state together.

    Both values are sent; unset options keep the tag's current value. If
    only one of the two saves succeeds, the command reports which one and
    exits with a distinct code.
    """

    async def _run() -> None:
        async with loaded(make_controller(gateway, url, token)) as controller:
            ledger = controller.session.ledger
            new_name = (ledger.custom_name(mac) or "") if name is None else name
            new_enabled = ledger.is_enabled(mac) if enabled is None else enabled
            await controller.save_tag(mac, name=new_name, enabled=new_enabled)
            state = "enabled" if ledger.is_enabled(mac) else "disabled"
            console.print(
                f"[green]Saved {escape(ledger.display_name(mac))} ({normalize_mac(mac)}), {state}.[/]"
            )
            await finish_mutation(controller, restart)

    run(_run())
