"""Rich console singleton and output helpers for form data."""

import json as json_mod
import math
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

# Status/progress to stderr so it doesn't pollute piped JSON output
console = Console(stderr=True)

# Data output to stdout (pipeable to jq)
stdout_console = Console()


def print_ok(msg: str) -> None:
    """Print a success message to stderr."""
    console.print(f"[green]✓[/green] {escape(msg)}")


def print_err(msg: str) -> None:
    """Print an error message to stderr."""
    console.print(f"[red]✗[/red] {escape(msg)}")


def print_warn(msg: str) -> None:
    """Print a warning message to stderr."""
    console.print(f"[yellow]![/yellow] {escape(msg)}")


def format_float(number: float) -> Any:
    """Non-finite floats as "NaN" / "Infinity" / "-Infinity"; others unchanged."""
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Infinity" if number > 0 else "-Infinity"
    return number


def to_jsonable(data: Any) -> Any:
    """
    Convert output data to strict JSON values.

    Derived fields can hold ``nan`` or ``inf`` after a division by zero;
    those become strings. Dates, paths and other objects become ``str``.
    """
    if isinstance(data, dict):
        return {str(key): to_jsonable(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [to_jsonable(item) for item in data]
    if isinstance(data, float):
        return format_float(data)
    if data is None or isinstance(data, (str, int, bool)):
        return data
    return str(data)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def output_result(data: dict, *, ctx: typer.Context, title: str = "") -> None:
    """Print result as JSON (stdout) or a Rich panel (stderr)."""
    data = to_jsonable(data)
    if ctx.obj.get("json"):
        stdout_console.print_json(data=data)
        return

    formatted = Text(json_mod.dumps(data, indent=2, ensure_ascii=False))
    if title:
        console.print(Panel(formatted, title=title, border_style="blue"))
    else:
        console.print(formatted)


def output_table(
    rows: List[dict],
    *,
    ctx: typer.Context,
    title: str = "",
    columns: Optional[List[str]] = None,
) -> None:
    """Print rows as JSON array or Rich table."""
    rows = to_jsonable(rows)
    if ctx.obj.get("json"):
        stdout_console.print_json(data=rows)
        return

    if not rows:
        console.print("[dim]No data[/dim]")
        return

    cols = columns or list(rows[0].keys())
    table = Table(title=title, show_lines=False)
    for col in cols:
        table.add_column(col)
    for row in rows:
        table.add_row(*[Text(_cell(row.get(c))) for c in cols])
    console.print(table)
