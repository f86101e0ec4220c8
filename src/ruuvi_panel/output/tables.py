"""Rich table rendering helpers."""

from __future__ import annotations

import time
from typing import Any, Sequence

from rich.markup import escape
from rich.table import Table

from ruuvi_panel.models.config import SINK_IDS, SINK_TITLES, GatewayConfig
from ruuvi_panel.models.snapshot import DeviceSnapshot, Freshness
from ruuvi_panel.sync.ledger import TagLedger
from ruuvi_panel.sync.snapshots import SnapshotCache, classify_freshness, describe_age

_FRESHNESS_STYLE = {
    Freshness.LIVE: "[green]●[/]",
    Freshness.AGING: "[dim]○[/]",
    Freshness.STALE: "[dim red]○[/]",
}

TAG_COLUMNS = ["", "Name", "MAC", "Enabled", "Temp °C", "Hum %", "hPa", "Batt V", "RSSI", "Updated"]
SINK_COLUMNS = ["ID", "Integration", "Status"]


def make_table(
    title: str | None,
    columns: Sequence[str],
    rows: Sequence[Sequence[Any]],
    *,
    show_lines: bool = False,
) -> Table:
    """Build a Rich Table from column headers and row data."""
    table = Table(title=title, show_lines=show_lines)
    for col in columns:
        table.add_column(col, no_wrap=False)
    for row in rows:
        table.add_row(*(str(cell) if cell is not None else "" for cell in row))
    return table


def kv_table(data: dict[str, Any], *, title: str | None = None) -> Table:
    """Render a key-value dict as a two-column table."""
    table = Table(title=escape(title) if title else None, show_header=False, show_lines=False)
    table.add_column("Key", style="bold cyan", no_wrap=True)
    table.add_column("Value")
    for key, value in data.items():
        # Values are gateway data (tag names, URLs), never markup
        table.add_row(key, "" if value is None else escape(str(value)))
    return table


def _fmt(value: float | None, digits: int = 1) -> str:
    return "--" if value is None else f"{value:.{digits}f}"


def _hpa(pressure: float | None) -> float | None:
    # Decoders report pascals; mock data and older builds report hPa
    if pressure is not None and pressure > 2000:
        return pressure / 100
    return pressure


def tag_rows(
    cache: SnapshotCache,
    ledger: TagLedger,
    now: float | None = None,
    *,
    markup: bool = True,
) -> list[list[str]]:
    """One row per known tag, sorted by MAC."""
    now = time.time() if now is None else now
    rows = []
    for snap in cache.devices():
        freshness = classify_freshness(snap, now)
        name = ledger.display_name(snap.mac)
        rows.append([
            _FRESHNESS_STYLE[freshness] if markup else freshness.value,
            escape(name) if markup else name,
            snap.key,
            "yes" if ledger.is_enabled(snap.mac) else "no",
            _fmt(snap.temperature),
            _fmt(snap.humidity),
            _fmt(_hpa(snap.pressure)),
            _fmt(snap.battery_voltage, 2),
            str(snap.rssi),
            describe_age(snap, now),
        ])
    return rows


def tag_record(snap: DeviceSnapshot, ledger: TagLedger, now: float | None = None) -> dict[str, Any]:
    """Flat record of one tag for key/value and machine-readable output."""
    now = time.time() if now is None else now
    record: dict[str, Any] = {
        "name": ledger.display_name(snap.mac),
        "enabled": ledger.is_enabled(snap.mac),
        "freshness": classify_freshness(snap, now).value,
        "updated": describe_age(snap, now),
    }
    record.update(snap.model_dump(mode="json", exclude_none=True))
    return record


def tags_table(cache: SnapshotCache, ledger: TagLedger, title: str | None = "Discovered") -> Table:
    return make_table(title, TAG_COLUMNS, tag_rows(cache, ledger))


def sink_rows(config: GatewayConfig) -> list[list[str]]:
    rows = []
    for sink_id in SINK_IDS:
        section = config.sink(sink_id)
        if section is None:
            status = "not configured"
        else:
            status = "active" if section.active else "inactive"
        rows.append([sink_id, SINK_TITLES[sink_id], status])
    return rows
