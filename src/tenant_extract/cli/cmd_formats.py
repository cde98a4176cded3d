"""Format commands: list format rules and check single values."""

import typer

from tenant_extract.cli._app import app
from tenant_extract.cli._console import (
    emit_json,
    format_check_document,
    render_format_check,
    render_format_rules,
)
from tenant_extract.validation.formats import FORMAT_RULES, validate_one

formats_app = typer.Typer(
    no_args_is_help=True,
    help="Inspect field format rules.",
)
app.add_typer(formats_app, name="formats")


@formats_app.command("list", help="List supported format rules.")
def formats_list(ctx: typer.Context):
    if ctx.obj["json"]:
        emit_json([{"format": rule.name, "description": rule.label} for rule in FORMAT_RULES.values()])
        return
    render_format_rules(FORMAT_RULES.values())


@formats_app.command("check", help="Check one value against a format rule.")
def formats_check(
    ctx: typer.Context,
    value: str = typer.Argument(..., help="Value to check"),
    format_name: str = typer.Argument(..., help="Format rule name, e.g. iso8601"),
):
    """Exit status is 1 when the value is invalid."""
    result = validate_one(value, format_name)

    if ctx.obj["json"]:
        emit_json(format_check_document(value, format_name, result))
    else:
        render_format_check(value, format_name, result)

    if not result.valid:
        raise typer.Exit(1)
