"""Root Typer application with global options."""

from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug-level logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Warnings and errors only"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON to stdout"),
    storage_dir: Optional[Path] = typer.Option(
        None,
        "--storage-dir",
        help="Form store directory (default: settings storage_dir)",
    ),
):
    """Build, store, validate and fill form schemas."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["json"] = json_output
    ctx.obj["storage_dir"] = storage_dir
