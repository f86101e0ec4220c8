"""Output dispatcher — Rich tables for people, JSON/YAML/CSV for scripts."""

from __future__ import annotations

import csv
import io
from collections.abc import Sequence
from typing import Any

from rich.console import Console

from ruuvi_panel.output.tables import kv_table, make_table

console = Console()

FORMATS = ("table", "json", "yaml", "csv")


def to_plain(data: Any) -> Any:
    """Turn pydantic models (also nested in lists/dicts) into JSON-ready values."""
    if hasattr(data, "model_dump"):
        return data.model_dump(mode="json", exclude_none=True)
    if isinstance(data, dict):
        return {key: to_plain(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [to_plain(item) for item in data]
    return data


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ";".join(str(v) for v in value)
    return str(value)


def output_json(data: Any) -> None:
    console.print_json(data=to_plain(data), default=str)


def output_yaml(data: Any) -> None:
    import yaml

    text = yaml.safe_dump(to_plain(data), default_flow_style=False, sort_keys=False)
    console.print(text, end="", markup=False)


def output_csv(columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(columns)
    writer.writerows([_cell(v) for v in row] for row in rows)
    console.print(buf.getvalue(), end="", markup=False, soft_wrap=True)


def _csv_from_records(data: Any) -> None:
    """CSV for data without explicit rows.

    A single record becomes ``key,value`` lines; a list of records uses the
    first record's keys as the header.
    """
    data = to_plain(data)
    if isinstance(data, dict):
        output_csv(["key", "value"], [[k, v] for k, v in data.items()])
    elif data and isinstance(data, list) and isinstance(data[0], dict):
        columns = list(data[0])
        output_csv(columns, [[record.get(c) for c in columns] for record in data])
    else:
        output_json(data)


def output_table(
    data: Any,
    *,
    columns: Sequence[str] | None = None,
    rows: Sequence[Sequence[Any]] | None = None,
    title: str | None = None,
    kv: bool = False,
) -> None:
    data = to_plain(data)
    if columns and rows is not None and not kv:
        console.print(make_table(title, columns, rows))
    elif isinstance(data, dict):
        console.print(kv_table(data, title=title))
    else:
        console.print(data)


def output(
    data: Any,
    fmt: str = "table",
    *,
    columns: Sequence[str] | None = None,
    rows: Sequence[Sequence[Any]] | None = None,
    title: str | None = None,
    kv: bool = False,
) -> None:
    """Render *data* in *fmt*.

    ``columns``/``rows`` are the tabular view used by ``table`` and ``csv``;
    ``json`` and ``yaml`` always render *data* itself. ``kv`` shows a single
    record as a two-column key/value table.
    """
    if fmt not in FORMATS:
        raise ValueError(f"Unknown output format '{fmt}'. Use one of: {', '.join(FORMATS)}")
    if fmt == "json":
        output_json(data)
    elif fmt == "yaml":
        output_yaml(data)
    elif fmt == "csv":
        if columns and rows is not None:
            output_csv(columns, rows)
        else:
            _csv_from_records(data)
    else:
        output_table(data, columns=columns, rows=rows, title=title, kv=kv)
