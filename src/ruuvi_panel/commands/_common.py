"""Shared helpers for CLI commands — controller factory, options, async runner."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from typing import Annotated, Any, TypeVar

import typer
from rich.console import Console

from ruuvi_panel.config.manager import ConfigManager
from ruuvi_panel.config.models import PanelProfile
from ruuvi_panel.sync.controller import PanelController

T = TypeVar("T")

console = Console()

# Shared Typer option type aliases
GatewayOpt = Annotated[
    str | None,
    typer.Option("--gateway", "-g", help="Gateway profile"),
]
UrlOpt = Annotated[
    str | None,
    typer.Option("--url", help="Gateway URL override"),
]
TokenOpt = Annotated[
    str | None,
    typer.Option("--token", help="Proxy bearer token override"),
]
FormatOpt = Annotated[
    str,
    typer.Option("--format", "-f", help="Output format: table, json, yaml, csv"),
]
RestartOpt = Annotated[
    bool,
    typer.Option("--restart", help="Restart the gateway after saving"),
]


def resolve_profile(
    gateway: str | None,
    url: str | None,
    token: str | None,
) -> PanelProfile:
    """Resolve the gateway profile from CLI options, env vars, or config."""
    mgr = ConfigManager()
    return mgr.resolve_gateway(profile_name=gateway, url=url, token=token)


def make_controller(
    gateway: str | None,
    url: str | None,
    token: str | None,
    **kwargs: Any,
) -> PanelController:
    """Create a PanelController from CLI options, env vars, or config profile."""
    return PanelController.from_profile(resolve_profile(gateway, url, token), **kwargs)


@asynccontextmanager
async def loaded(controller: PanelController) -> AsyncIterator[PanelController]:
    """Load gateway state once (no background polling) and close afterwards."""
    async with controller:
        await controller.load(poll=False)
        yield controller


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a command's coroutine on a fresh event loop."""
    return asyncio.run(coro)


def restart_notice(controller: PanelController) -> None:
    if controller.restart_required:
        console.print(
            "[yellow]Restart required:[/] changes take effect after "
            "'ruuvi-panel gateway restart'."
        )


async def finish_mutation(controller: PanelController, restart: bool) -> None:
    """After a successful save: restart now, or tell the operator it is pending."""
    if not restart:
        restart_notice(controller)
        return
    console.print("[dim]Restarting gateway...[/]")
    session = await controller.restart()
    console.print(
        f"[green]Gateway reloaded[/] ({len(session.cache)} tags discovered)."
    )
