"""Root Typer app — global options and command group registration."""

from __future__ import annotations

from typing import Optional

import typer

from ruuvi_panel import __version__
from ruuvi_panel.commands import config_cmd, gateway, sinks, tags
from ruuvi_panel.utils.log import setup_logging

app = typer.Typer(
    name="ruuvi-panel",
    help="Control panel for a Ruuvi sensor gateway.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    if value:
        print(f"ruuvi-panel {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True, help="Show version and exit."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log requests and sync activity to stderr."
    ),
) -> None:
    """Ruuvi gateway panel — discovered tags, data sinks, and restarts."""
    setup_logging(verbose)


# Register command groups
app.add_typer(config_cmd.app, name="config")
app.add_typer(tags.app, name="tags")
app.add_typer(sinks.app, name="sinks")
app.add_typer(gateway.app, name="gateway")


def main() -> None:
    app()
