"""Prompt commands: preview the extraction prompt for a client."""

from typing import List, Optional

import typer

from tenant_extract.cli._app import app
from tenant_extract.cli._common import get_resolver, handle_config_errors, setup_logging
from tenant_extract.cli._console import emit_json
from tenant_extract.prompting.builder import (
    FieldFilter,
    build_extraction_prompt,
    build_prompt_preview,
)

prompt_app = typer.Typer(
    no_args_is_help=True,
    help="Preview extraction prompts.",
)
app.add_typer(prompt_app, name="prompt")


@prompt_app.command("preview", help="Print the prompt sent for a client's documents.")
def prompt_preview(
    ctx: typer.Context,
    client_id: str = typer.Argument(..., help="Client identifier"),
    fields: Optional[List[str]] = typer.Option(None, "--field", "-f", help="Only request these field keys"),
    tags: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Only request these tag ids"),
    summary: Optional[bool] = typer.Option(
        None, "--summary/--no-summary", help="Force the summary instruction on or off"
    ),
    structured: bool = typer.Option(
        False, "--structured", help="Assemble from prompt parts even if a raw prompt is set"
    ),
):
    """Preview the extraction prompt."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    resolver = get_resolver(ctx)

    with handle_config_errors():
        config = resolver.resolve_effective(client_id)

    if structured:
        prompt = build_prompt_preview(config)
    else:
        field_filter = FieldFilter(fields=fields or None, tags=tags or None, include_summary=summary)
        prompt = build_extraction_prompt(config, field_filter)

    if ctx.obj["json"]:
        emit_json({"clientId": client_id, "prompt": prompt})
        return
    typer.echo(prompt)
