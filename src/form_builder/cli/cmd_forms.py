"""Form commands: list, show, import, export, delete and check stored forms."""

import json
from pathlib import Path
from typing import Optional

import typer

from form_builder.cli._app import app
from form_builder.cli._common import (
    init_command,
    open_store,
    read_form_file,
    resolve_form,
)
from form_builder.cli._console import console, output_result, output_table, print_err, print_ok, print_warn
from form_builder.exceptions import DerivedFieldCycleError, SchemaError
from form_builder.runtime.dependency_graph import check_schema
from form_builder.schemas.form_schema import dump_schema

forms_app = typer.Typer(
    no_args_is_help=True,
    help="Manage stored forms (list, show, import, export, delete, check).",
)
app.add_typer(forms_app, name="forms")


@forms_app.command("list", help="List all saved forms.")
def forms_list(ctx: typer.Context):
    """List all saved forms."""
    settings = init_command(ctx)
    store = open_store(ctx, settings)

    rows = [
        {
            "id": form.id,
            "name": form.name,
            "created_at": form.created_at.isoformat(),
            "fields": len(form.fields),
        }
        for form in store.get_all_forms()
    ]
    if not rows and not ctx.obj["json"]:
        console.print("No forms saved.")
        return
    output_table(rows, ctx=ctx, title="Saved forms")


@forms_app.command("show", help="Show a saved form ('current' for the preview form).")
def forms_show(
    ctx: typer.Context,
    form_id: str = typer.Argument(..., help="Form id, or 'current'"),
):
    """Print a stored form's schema."""
    settings = init_command(ctx)
    store = open_store(ctx, settings)

    form = resolve_form(store, form_id)
    if form is None:
        print_err(f"Form not found: {form_id}")
        raise typer.Exit(1)
    output_result(dump_schema(form), ctx=ctx, title=form.name)


@forms_app.command("import", help="Save a form from a JSON file.")
def forms_import(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Schema JSON file", exists=True, dir_okay=False),
    preview: bool = typer.Option(False, "--preview", help="Store as the preview form instead"),
):
    """Validate a schema file and store it."""
    settings = init_command(ctx)
    store = open_store(ctx, settings)

    try:
        form = read_form_file(file)
    except SchemaError as e:
        print_err(e.message)
        raise typer.Exit(1)

    if not form.name.strip():
        form = form.model_copy(update={"name": settings.default_form_name})

    if preview:
        saved = store.save_form_for_preview(form)
    else:
        try:
            saved = store.save_form(form)
        except DerivedFieldCycleError as e:
            print_err(e.message)
            raise typer.Exit(1)

    if not saved:
        print_err(f"Failed to store form '{form.id}'")
        raise typer.Exit(1)
    print_ok(f"Stored form '{form.id}' ({form.name}, {len(form.fields)} fields)")


@forms_app.command("export", help="Write a saved form as JSON.")
def forms_export(
    ctx: typer.Context,
    form_id: str = typer.Argument(..., help="Form id, or 'current'"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file (default: stdout)"),
):
    """Export a stored form's schema."""
    settings = init_command(ctx)
    store = open_store(ctx, settings)

    form = resolve_form(store, form_id)
    if form is None:
        print_err(f"Form not found: {form_id}")
        raise typer.Exit(1)

    text = json.dumps(dump_schema(form), indent=2, ensure_ascii=False)
    if output is None:
        typer.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    print_ok(f"Exported form '{form.id}' to {output}")


@forms_app.command("delete", help="Delete a saved form.")
def forms_delete(
    ctx: typer.Context,
    form_id: str = typer.Argument(..., help="Form id"),
):
    """Delete a stored form."""
    settings = init_command(ctx)
    store = open_store(ctx, settings)

    if not store.delete_form_by_id(form_id):
        print_err(f"Form not found or not deleted: {form_id}")
        raise typer.Exit(1)
    print_ok(f"Deleted form '{form_id}'")


@forms_app.command("check", help="Lint a form's derived fields (saved id, 'current', or JSON file).")
def forms_check(
    ctx: typer.Context,
    target: str = typer.Argument(..., help="Form id, 'current', or path to a schema file"),
):
    """Report cycles and misconfigured derived fields."""
    settings = init_command(ctx)

    path = Path(target)
    if path.is_file():
        try:
            form = read_form_file(path)
        except SchemaError as e:
            print_err(e.message)
            raise typer.Exit(1)
    else:
        form = resolve_form(open_store(ctx, settings), target)
        if form is None:
            print_err(f"Form not found: {target}")
            raise typer.Exit(1)

    problems = check_schema(form)
    if ctx.obj["json"]:
        output_result({"form_id": form.id, "problems": problems}, ctx=ctx)
    elif not problems:
        print_ok(f"Form '{form.id}' has no derived-field problems")
    else:
        for problem in problems:
            print_warn(problem)

    if problems:
        raise typer.Exit(1)
