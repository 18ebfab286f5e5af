"""Fill command: fill a stored form from the command line and validate it."""

from datetime import date
from typing import Any, Dict, List, Optional

import typer

from form_builder.cli._app import app
from form_builder.cli._common import init_command, open_store, resolve_form
from form_builder.cli._console import console, output_result, output_table, print_err, print_ok
from form_builder.exceptions import DerivedFieldCycleError
from form_builder.runtime.session import FormSession
from form_builder.schemas.form_schema import FieldType, FormSchema
from form_builder.utils.date_parsing import parse_date

_TRUE_VALUES = {"true", "1", "yes", "on"}


def parse_assignments(assignments: List[str], form: FormSchema) -> Dict[str, Any]:
    """
    Parse ``field=value`` pairs into raw field values.

    Checkbox values are read as booleans; everything else stays a string,
    the way form inputs deliver it.

    Raises:
        typer.BadParameter: On a malformed pair or unknown field id
    """
    values: Dict[str, Any] = {}
    for assignment in assignments:
        field_id, sep, raw = assignment.partition("=")
        field_id = field_id.strip()
        if not sep or not field_id:
            raise typer.BadParameter(f"Expected field=value, got {assignment!r}")
        field = form.get_field(field_id)
        if field is None:
            raise typer.BadParameter(f"Unknown field '{field_id}' in form '{form.id}'")
        if field.type == FieldType.CHECKBOX:
            values[field_id] = raw.strip().lower() in _TRUE_VALUES
        else:
            values[field_id] = raw
    return values


@app.command("fill", help="Fill a form with --set field=value pairs and validate it.")
def fill(
    ctx: typer.Context,
    form_id: str = typer.Argument(..., help="Form id, or 'current' for the preview form"),
    assignments: Optional[List[str]] = typer.Option(
        None, "--set", "-s", help="Field value as field=value (repeatable)"
    ),
    today: Optional[str] = typer.Option(
        None, "--today", help="Reference date for age fields (YYYY-MM-DD)"
    ),
):
    """Apply values in order, settle derived fields and submit."""
    settings = init_command(ctx)
    store = open_store(ctx, settings)

    form = resolve_form(store, form_id)
    if form is None:
        print_err(f"Form not found: {form_id}")
        raise typer.Exit(1)

    reference_date: Optional[date] = None
    if today:
        reference_date = parse_date(today)
        if reference_date is None:
            raise typer.BadParameter(f"Invalid date: {today!r}", param_hint="--today")

    values = parse_assignments(assignments or [], form)

    try:
        session = FormSession(form, settings=settings, today=reference_date)
        for field_id, value in values.items():
            session.set_value(field_id, value)
        result = session.submit()
    except DerivedFieldCycleError as e:
        print_err(e.message)
        raise typer.Exit(1)

    if ctx.obj["json"]:
        output_result(
            {
                "form_id": form.id,
                "is_valid": result.is_valid,
                "values": result.values,
                "errors": result.errors,
            },
            ctx=ctx,
        )
    else:
        rows = [
            {
                "field": field.id,
                "label": field.label,
                "value": result.values.get(field.id),
                "error": result.errors.get(field.id, ""),
            }
            for field in form.fields
        ]
        output_table(rows, ctx=ctx, title=form.name)
        if result.is_valid:
            print_ok("Form is valid")
        else:
            console.print(f"[red]{len(result.errors)} field(s) invalid[/red]")

    if not result.is_valid:
        raise typer.Exit(1)
