"""Shared CLI utilities: initialization, logging and store access."""

import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.logging import RichHandler

from form_builder.cli._console import console
from form_builder.config.settings import FormBuilderSettings, get_settings
from form_builder.exceptions import SchemaError
from form_builder.schemas.form_schema import FormSchema, schema_from_json
from form_builder.storage.backends import FileBackend
from form_builder.storage.form_store import FormStore

logger = logging.getLogger(__name__)

# Form id that refers to the stored preview form
PREVIEW_FORM_ID = "current"


def ensure_initialized() -> FormBuilderSettings:
    """Load .env from the working directory and return the settings."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    return get_settings()


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def init_command(ctx: typer.Context) -> FormBuilderSettings:
    """Common start of every command: environment, settings, logging."""
    settings = ensure_initialized()
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    return settings


def open_store(ctx: typer.Context, settings: FormBuilderSettings) -> FormStore:
    """Open the file-backed store chosen by --storage-dir or the settings."""
    storage_dir: Optional[Path] = ctx.obj.get("storage_dir") or settings.storage_dir
    logger.debug(f"Using form store at {storage_dir}")
    return FormStore(FileBackend(storage_dir), reject_cycles=settings.reject_cyclic_forms)


def resolve_form(store: FormStore, form_id: str) -> Optional[FormSchema]:
    """Look up a saved form, or the preview form for ``current``."""
    if form_id == PREVIEW_FORM_ID:
        return store.get_form_for_preview()
    return store.get_form_by_id(form_id)


def read_form_file(path: Path) -> FormSchema:
    """
    Read a schema from a JSON file.

    Raises:
        SchemaError: If the file cannot be read or is not a valid schema
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaError(f"Cannot read {path}: {e}", original_error=e)
    return schema_from_json(text)
