"""Terminal rendering for diagnocatctl commands.

Command results (upload summaries, report status, diagnoses, profiles) go
to stdout as a Rich table, key/value listing or JSON. Errors and warnings
go to stderr so ``-o json`` output can be piped.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from enum import Enum
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TransferSpeedColumn,
)
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


class OutputFormat(Enum):
    """Value of the global ``--output`` option."""

    JSON = "json"
    TABLE = "table"

    @classmethod
    def from_string(cls, value: str) -> OutputFormat:
        return cls(value.lower())


def _cell(val: Any) -> str:
    if val is None:
        return ""
    if isinstance(val, bool):
        return "Yes" if val else "No"
    if isinstance(val, (list, dict)):
        return json.dumps(val, default=str)
    return str(val)


def print_table(
    rows: Sequence[dict[str, Any]],
    columns: Sequence[str],
    *,
    title: str | None = None,
    column_labels: dict[str, str] | None = None,
) -> None:
    """Render records, e.g. analyses or per-tooth diagnoses, one row each.

    Nested values such as diagnosis attributes are shown as compact JSON.
    Unlabelled column keys are title-cased (``tooth_number`` becomes
    ``Tooth Number``).
    """
    if not rows:
        console.print("[dim]No results[/dim]")
        return

    table = Table(title=title, show_header=True, header_style="bold")

    labels = column_labels or {}
    for col in columns:
        table.add_column(labels.get(col, col.replace("_", " ").title()))

    for row in rows:
        table.add_row(*(_cell(row.get(col, "")) for col in columns))

    console.print(table)


def print_key_value(
    data: dict[str, Any],
    *,
    title: str | None = None,
    key_labels: dict[str, str] | None = None,
) -> None:
    """Render a single record, such as an upload summary, as aligned pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")

    labels = key_labels or {}
    width = max(len(labels.get(k, k)) for k in data) if data else 0

    for key, value in data.items():
        label = labels.get(key, key.replace("_", " ").title())
        if value is None:
            value = "[dim]-[/dim]"
        elif isinstance(value, bool):
            value = "[green]Yes[/green]" if value else "[red]No[/red]"
        elif isinstance(value, (list, dict)):
            value = json.dumps(value, indent=2, default=str)

        console.print(f"  {label:<{width}}  {value}")


def print_json(data: Any, *, indent: int = 2) -> None:
    # Plain print keeps Rich markup and wrapping out of machine output.
    print(json.dumps(data, indent=indent, default=str))


def print_output(
    data: Any,
    *,
    format: OutputFormat = OutputFormat.TABLE,
    columns: Sequence[str] | None = None,
    column_labels: dict[str, str] | None = None,
    title: str | None = None,
    quiet: bool = False,
    id_field: str = "id",
) -> None:
    """Render a command result according to the global output options.

    With ``quiet`` only the ``id_field`` of each record is printed, one per
    line, so ``diagnocatctl study upload -q`` yields just the report ID.
    Otherwise lists need ``columns`` for a table, dicts without ``columns``
    become key/value listings and anything else falls back to JSON.
    """
    if quiet:
        records = data if isinstance(data, list) else [data]
        for item in records:
            if isinstance(item, dict):
                console.print(str(item.get(id_field) or ""), highlight=False)
        return

    if format == OutputFormat.JSON:
        print_json(data)
        return

    if isinstance(data, list) and columns:
        print_table(data, columns, title=title, column_labels=column_labels)
    elif isinstance(data, dict):
        if columns:
            print_table([data], columns, title=title, column_labels=column_labels)
        else:
            print_key_value(data, title=title, key_labels=column_labels)
    else:
        print_json(data)


def print_error(message: str) -> None:
    err_console.print(f"[red]Error:[/red] {message}")


def print_warning(message: str) -> None:
    err_console.print(f"[yellow]Warning:[/yellow] {message}")


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def create_transfer_progress() -> Progress:
    """Progress bar for the payload PUT, showing bytes sent and throughput."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        console=console,
    )
