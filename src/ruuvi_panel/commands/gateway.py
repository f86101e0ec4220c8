"""Gateway commands — status, restart, bridge, watch."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.live import Live
from rich.table import Table

from ruuvi_panel.client.errors import error_handler
from ruuvi_panel.commands._common import (
    FormatOpt,
    GatewayOpt,
    TokenOpt,
    UrlOpt,
    loaded,
    make_controller,
    run,
)
from ruuvi_panel.models.config import IDENTITY_FIELDS, SINK_IDS
from ruuvi_panel.output.formatter import output
from ruuvi_panel.output.tables import tags_table
from ruuvi_panel.sync.controller import PanelController

app = typer.Typer(name="gateway", help="Gateway status, restart, Matter bridge, and live tag view.")
console = Console()


@app.command()
@error_handler
def status(
    gateway: GatewayOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Show gateway identity, active sinks, and tag counts."""

    async def _run() -> None:
        async with loaded(make_controller(gateway, url, token)) as controller:
            config = controller.config
            summary: dict = {key: getattr(config, key) for key in IDENTITY_FIELDS}
            active = [
                sink_id for sink_id in SINK_IDS
                if (section := config.sink(sink_id)) is not None and section.active
            ]
            summary["active_sinks"] = ", ".join(active) if fmt == "table" else active
            summary["tags_discovered"] = len(controller.session.cache)
            summary["tags_enabled"] = len(controller.session.ledger.enabled_tags())
            output(summary, fmt, kv=True, title="Gateway Status")

    run(_run())


@app.command()
@error_handler
def restart(
    force: Annotated[bool, typer.Option("--force", help="Skip confirmation")] = False,
    wait: Annotated[
        Optional[float],
        typer.Option("--wait", help="Seconds to wait before reloading (default from profile)"),
    ] = None,
    gateway: GatewayOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
) -> None:
    """Restart the gateway so saved configuration takes effect."""
    kwargs = {} if wait is None else {"restart_grace": wait}

    async def _run() -> None:
        async with loaded(make_controller(gateway, url, token, **kwargs)) as controller:
            controller.request_restart()
            if not force:
                from rich.prompt import Confirm

                if not Confirm.ask("Restart the gateway now? Tag data pauses while it restarts"):
                    controller.cancel_restart()
                    console.print("Cancelled.")
                    return
            console.print("[dim]Restarting gateway...[/]")
            session = await controller.confirm_restart()
            console.print(
                f"[green]Gateway restarted.[/] {len(session.cache)} tags discovered."
            )

    run(_run())


@app.command()
@error_handler
def bridge(
    gateway: GatewayOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Show Matter bridge pairing information."""

    async def _run() -> None:
        controller = make_controller(gateway, url, token)
        async with controller:
            info = await controller.bridge_status()
        data = {
            "pairing_code": info.formatted_code if fmt == "table" else info.pairing_code,
            "qr_payload": info.qr_payload,
        }
        output(data, fmt, kv=True, title="Matter Bridge")

    run(_run())


def _dashboard(controller: PanelController) -> Table:
    session = controller.session
    stamp = datetime.now().strftime("%H:%M:%S")
    return tags_table(
        session.cache,
        session.ledger,
        title=f"Discovered ({len(session.cache)}) at {stamp}",
    )


@app.command()
@error_handler
def watch(
    interval: Annotated[
        Optional[float],
        typer.Option("--interval", "-i", help="Seconds between refreshes (default from profile)"),
    ] = None,
    duration: Annotated[
        Optional[float],
        typer.Option("--duration", help="Stop after this many seconds"),
    ] = None,
    gateway: GatewayOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
) -> None:
    """Live view of discovered tags, refreshed until Ctrl+C."""
    live = Live(console=console, auto_refresh=False)
    kwargs = {} if interval is None else {"poll_interval": interval}
    controller = make_controller(
        gateway, url, token,
        on_refresh=lambda: live.update(_dashboard(controller), refresh=True),
        **kwargs,
    )

    async def _run() -> None:
        async with controller:
            await controller.load()
            with live:
                live.update(_dashboard(controller), refresh=True)
                if duration is None:
                    await asyncio.Event().wait()
                else:
                    await asyncio.sleep(duration)

    try:
        run(_run())
    except KeyboardInterrupt:
        console.print("Stopped.")
