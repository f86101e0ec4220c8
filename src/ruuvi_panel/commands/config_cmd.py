"""Config commands — gateway profiles and their sync settings."""

from __future__ import annotations

from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.prompt import Confirm, FloatPrompt, Prompt

from ruuvi_panel.client.errors import ConfigurationError, error_handler
from ruuvi_panel.commands._common import FormatOpt, loaded, run
from ruuvi_panel.config.constants import DEFAULT_POLL_INTERVAL, DEFAULT_RESTART_GRACE
from ruuvi_panel.config.manager import ConfigManager
from ruuvi_panel.config.models import PanelProfile
from ruuvi_panel.output.formatter import output
from ruuvi_panel.sync.controller import PanelController

app = typer.Typer(name="config", help="Manage gateway profiles and panel configuration.")
console = Console()

ProfileArg = Annotated[str, typer.Argument(help="Profile name")]

PROFILE_COLUMNS = ["Name", "URL", "Auth", "Poll (s)", "Restart wait (s)", "Forget after", "Default"]


def _get_manager() -> ConfigManager:
    return ConfigManager()


def _existing(mgr: ConfigManager, name: str) -> PanelProfile:
    profile = mgr.get_profile(name)
    if profile is None:
        raise ConfigurationError(f"Profile '{name}' not found")
    return profile


def _auth_kind(profile: PanelProfile) -> str:
    if profile.token:
        return "token"
    return "basic" if profile.username else "none"


def _masked(profile: PanelProfile) -> dict[str, Any]:
    data = profile.model_dump(exclude_none=True)
    token = data.get("token")
    if token:
        data["token"] = f"{token[:8]}..." if len(token) > 8 else "***"
    if "password" in data:
        data["password"] = "***"
    return data


@app.command()
@error_handler
def init() -> None:
    """Interactive setup: create a profile for your gateway."""
    mgr = _get_manager()
    console.print("[bold]Ruuvi Panel setup[/]\n")

    name = Prompt.ask("Profile name", default="default")
    url = Prompt.ask("Gateway URL (e.g. http://raspberrypi.local:8080)")
    token = Prompt.ask("Proxy bearer token (leave empty for none)", default="")
    verify_ssl = Confirm.ask("Verify SSL certificates?", default=True)
    poll_interval = FloatPrompt.ask("Seconds between tag refreshes", default=DEFAULT_POLL_INTERVAL)
    restart_grace = FloatPrompt.ask(
        "Seconds to wait for the gateway after a restart", default=DEFAULT_RESTART_GRACE,
    )

    mgr.add_profile(PanelProfile(
        name=name,
        url=url,
        token=token or None,
        verify_ssl=verify_ssl,
        poll_interval=poll_interval,
        restart_grace=restart_grace,
    ))
    console.print(f"\n[green]Profile '{name}' saved.[/]")
    console.print(f"Config file: {mgr.config_path}")
    console.print("Run 'ruuvi-panel config test' to check the connection.")


@app.command()
@error_handler
def add(
    name: ProfileArg,
    url: Annotated[str, typer.Option("--url", "-u", help="Gateway URL")],
    token: Annotated[Optional[str], typer.Option("--token", "-t", help="Proxy bearer token")] = None,
    username: Annotated[Optional[str], typer.Option("--username", help="Basic auth username")] = None,
    password: Annotated[Optional[str], typer.Option("--password", help="Basic auth password")] = None,
    no_verify_ssl: Annotated[bool, typer.Option("--no-verify-ssl", help="Disable SSL verification")] = False,
    timeout: Annotated[Optional[float], typer.Option("--timeout", help="Request timeout in seconds")] = None,
    poll_interval: Annotated[
        Optional[float], typer.Option("--poll-interval", help="Seconds between tag refreshes"),
    ] = None,
    restart_grace: Annotated[
        Optional[float], typer.Option("--restart-grace", help="Seconds to wait after a restart"),
    ] = None,
    missing_poll_limit: Annotated[
        Optional[int],
        typer.Option("--missing-poll-limit", help="Forget a tag after this many polls without it"),
    ] = None,
    set_default: Annotated[bool, typer.Option("--default", help="Set as default profile")] = False,
) -> None:
    """Add (or replace) a gateway profile."""
    mgr = _get_manager()
    # Unset options fall back to the model defaults
    sync_settings = {
        key: value for key, value in (
            ("timeout", timeout),
            ("poll_interval", poll_interval),
            ("restart_grace", restart_grace),
            ("missing_poll_limit", missing_poll_limit),
        ) if value is not None
    }
    mgr.add_profile(PanelProfile(
        name=name,
        url=url,
        token=token,
        username=username,
        password=password,
        verify_ssl=not no_verify_ssl,
        **sync_settings,
    ))
    if set_default:
        mgr.set_default(name)
    console.print(f"[green]Profile '{name}' added.[/]")


@app.command("list")
@error_handler
def list_profiles(fmt: FormatOpt = "table") -> None:
    """List configured profiles."""
    mgr = _get_manager()
    profiles = list(mgr.config.profiles.values())
    if not profiles:
        console.print("[yellow]No profiles configured. Run 'ruuvi-panel config init' to get started.[/]")
        return

    default = mgr.config.default_profile
    rows = [
        [
            p.name,
            p.url,
            _auth_kind(p),
            f"{p.poll_interval:g}",
            f"{p.restart_grace:g}",
            "never" if p.missing_poll_limit is None else f"{p.missing_poll_limit} polls",
            "*" if p.name == default else "",
        ]
        for p in profiles
    ]
    records = [{**_masked(p), "default": p.name == default} for p in profiles]
    output(records, fmt, columns=PROFILE_COLUMNS, rows=rows, title="Gateway Profiles")


@app.command()
@error_handler
def show(name: ProfileArg, fmt: FormatOpt = "table") -> None:
    """Show one profile (secrets masked)."""
    profile = _existing(_get_manager(), name)
    output(_masked(profile), fmt, kv=True, title=f"Profile: {name}")


@app.command("set-default")
@error_handler
def set_default(name: ProfileArg) -> None:
    """Use this profile when no --gateway is given."""
    mgr = _get_manager()
    _existing(mgr, name)
    mgr.set_default(name)
    console.print(f"[green]Default profile set to '{name}'.[/]")


@app.command()
@error_handler
def test(
    name: Annotated[Optional[str], typer.Argument(help="Profile name (uses default if omitted)")] = None,
) -> None:
    """Check a profile by loading the gateway's configuration and tags."""
    profile = _get_manager().resolve_gateway(profile_name=name)
    console.print(f"Testing connection to [bold]{profile.url}[/]...")

    async def _run() -> None:
        async with loaded(PanelController.from_profile(profile)) as controller:
            session = controller.session
            gw_mac = session.store.get().gw_mac or "unknown"
            console.print(
                f"[green]Connected![/] Gateway {gw_mac}, "
                f"{len(session.cache)} tags discovered, "
                f"{len(session.ledger.enabled_tags())} enabled."
            )

    run(_run())


@app.command()
@error_handler
def remove(
    name: ProfileArg,
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation")] = False,
) -> None:
    """Remove a gateway profile."""
    mgr = _get_manager()
    _existing(mgr, name)
    if not force and not Confirm.ask(f"Remove profile '{name}'?"):
        console.print("Cancelled.")
        return
    mgr.remove_profile(name)
    console.print(f"[green]Profile '{name}' removed.[/]")
