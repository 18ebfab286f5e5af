"""CLI package: Typer-based command-line interface.

Usage:
    python -m form_builder --help
    python -m form_builder forms --help
"""

from form_builder.cli._app import app

# Register command modules (side-effect imports)
import form_builder.cli.cmd_forms  # noqa: F401
import form_builder.cli.cmd_fill  # noqa: F401

__all__ = ["app"]
