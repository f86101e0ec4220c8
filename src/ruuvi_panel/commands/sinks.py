"""Sink commands — list, show, enable, disable, set."""

from __future__ import annotations

from typing import Annotated, Any, Optional, get_args

import typer
from rich.console import Console

from ruuvi_panel.client.errors import ValidationError, error_handler
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
from ruuvi_panel.models.config import (
    SINK_DEFAULTS,
    SINK_MODELS,
    SINK_TITLES,
    check_sink_id,
)
from ruuvi_panel.output.formatter import output
from ruuvi_panel.output.tables import SINK_COLUMNS, sink_rows

app = typer.Typer(name="sinks", help="Data sinks: MQTT, InfluxDB, Prometheus, Matter.")
console = Console()

SinkArg = Annotated[
    str,
    typer.Argument(help="Sink ID: mqtt_publisher, influxdb_publisher, influxdb3_publisher, prometheus, matter"),
]

_SECRETS = ("password", "auth_token")
_TRUE = ("true", "yes", "on", "1")
_FALSE = ("false", "no", "off", "0")


def _masked(section: dict[str, Any]) -> dict[str, Any]:
    data = dict(section)
    for key in _SECRETS:
        if data.get(key):
            data[key] = "***"
    return data


def _coerce(sink_id: str, key: str, raw: str) -> Any:
    """Convert a command-line value to the field's type."""
    field = SINK_MODELS[sink_id].model_fields.get(key)
    kinds = set(get_args(field.annotation)) if field is not None else set()
    if bool in kinds:
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValidationError(f"{key} must be true or false, got '{raw}'")
    if int in kinds:
        try:
            return int(raw, 0)
        except ValueError:
            raise ValidationError(f"{key} must be an integer, got '{raw}'") from None
    return raw


def parse_assignments(sink_id: str, pairs: list[str]) -> dict[str, Any]:
    """Parse ``key=value`` arguments into typed section fields."""
    fields: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValidationError(f"Expected key=value, got '{pair}'")
        fields[key] = _coerce(sink_id, key, value)
    return fields


@app.command("list")
@error_handler
def list_sinks(
    gateway: GatewayOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """List sinks and whether each is active."""

    async def _run() -> None:
        async with loaded(make_controller(gateway, url, token)) as controller:
            config = controller.config
            rows = sink_rows(config)
            records = [
                {"id": r[0], "title": r[1], "status": r[2]} for r in rows
            ]
            output(records, fmt, columns=SINK_COLUMNS, rows=rows, title="Sinks")

    run(_run())


@app.command()
@error_handler
def show(
    sink_id: SinkArg,
    gateway: GatewayOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Show one sink's settings (defaults if not configured yet)."""
    check_sink_id(sink_id)

    async def _run() -> None:
        async with loaded(make_controller(gateway, url, token)) as controller:
            section = controller.session.store.sink(sink_id)
            if section is None:
                console.print(
                    f"[yellow]{SINK_TITLES[sink_id]} is not configured; "
                    "showing the defaults a save would use.[/]"
                )
                data = dict(SINK_DEFAULTS[sink_id])
            else:
                data = section.model_dump(mode="json", exclude_none=True)
            output(_masked(data), fmt, kv=True, title=SINK_TITLES[sink_id])

    run(_run())


@app.command()
@error_handler
def enable(
    sink_id: SinkArg,
    restart: RestartOpt = False,
    gateway: GatewayOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
) -> None:
    """Enable a sink, creating it from defaults if needed."""
    _save(sink_id, {}, True, restart, gateway, url, token)


@app.command()
@error_handler
def disable(
    sink_id: SinkArg,
    restart: RestartOpt = False,
    gateway: GatewayOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
) -> None:
    """Disable a sink; its settings are kept."""
    _save(sink_id, {}, False, restart, gateway, url, token)


@app.command("set")
@error_handler
def set_fields(
    sink_id: SinkArg,
    assignments: Annotated[
        list[str], typer.Argument(help="Settings as key=value, e.g. broker_url=tcp://mqtt:1883"),
    ],
    enabled: Annotated[
        Optional[bool], typer.Option("--enable/--disable", help="Also set the enabled flag"),
    ] = None,
    restart: RestartOpt = False,
    gateway: GatewayOpt = None,
    url: UrlOpt = None,
    token: TokenOpt = None,
) -> None:
    """Change sink settings. Unset fields keep their current or default value."""
    check_sink_id(sink_id)
    fields = parse_assignments(sink_id, assignments)
    _save(sink_id, fields, enabled, restart, gateway, url, token)


def _save(
    sink_id: str,
    fields: dict[str, Any],
    enabled: bool | None,
    restart: bool,
    gateway: str | None,
    url: str | None,
    token: str | None,
) -> None:
    check_sink_id(sink_id)

    async def _run() -> None:
        async with loaded(make_controller(gateway, url, token)) as controller:
            config = await controller.save_sink(sink_id, fields, enabled=enabled)
            section = config.sink(sink_id)
            state = "active" if section is not None and section.active else "inactive"
            console.print(f"[green]{SINK_TITLES[sink_id]} saved ({state}).[/]")
            await finish_mutation(controller, restart)

    run(_run())
