"""Rich consoles and renderers for client configs and format checks."""

import json as json_mod
from typing import Any, Iterable, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tenant_extract.schemas.effective import AnnotatedConfig, ClientSummary, EffectiveConfig
from tenant_extract.validation.formats import FormatCheck, FormatRule

# Status and logs to stderr so they don't pollute piped JSON output
console = Console(stderr=True)

# Resolves sys.stdout at print time, so captured output (CliRunner) works
stdout_console = Console()

SOURCE_STYLES = {"global": "dim", "override": "yellow", "custom": "cyan"}

_MARKERS = {"ok": "[green]✓[/green]", "error": "[red]✗[/red]", "warn": "[yellow]![/yellow]"}


def print_status(kind: str, msg: str) -> None:
    """Print a status line (``ok``, ``error`` or ``warn``) to stderr."""
    console.print(f"{_MARKERS[kind]} {msg}")


def emit_json(data: Any) -> None:
    """Write machine-readable output to stdout."""
    stdout_console.print_json(data=data)


def source_text(source: str) -> Text:
    return Text(source, style=SOURCE_STYLES.get(source, ""))


def render_client_summaries(summaries: Iterable[ClientSummary]) -> None:
    table = Table(title="Clients")
    for col in ("id", "name", "enabled", "overrides", "legacy", "folder"):
        table.add_column(col)
    count = 0
    for s in summaries:
        count += 1
        table.add_row(
            s.client_id,
            s.name,
            "yes" if s.enabled else Text("no", style="dim"),
            "yes" if s.has_overrides else "",
            Text(", ".join(s.legacy_sections), style="yellow"),
            s.folder_path,
        )
    if not count:
        console.print("[dim]No clients[/dim]")
        return
    console.print(table)


def render_effective(config: EffectiveConfig) -> None:
    """Effective config as an indented JSON panel."""
    formatted = json_mod.dumps(
        config.model_dump(by_alias=True, exclude_none=True), indent=2, ensure_ascii=False
    )
    console.print(Panel(Text(formatted), title=f"{config.client_id} (effective)", border_style="blue"))


def render_annotated(config: AnnotatedConfig) -> None:
    """Fields, tags and scalar settings coloured by where they come from."""
    client = config.client
    status = client.folder_status
    if status is not None and status.exists:
        folder = f"{client.folder_path} ({status.pending_count} pending, {status.processed_count} processed)"
    elif status is not None:
        folder = f"{client.folder_path} [red](missing)[/red]"
    else:
        folder = f"{client.folder_path} [red]({escape(client.folder_status_error or '')})[/red]"
    console.print(f"[bold]{client.name}[/bold] ({client.client_id})  {folder}")

    fields = Table(title="Fields")
    for col in ("key", "type", "format", "enabled", "source"):
        fields.add_column(col)
    for f in config.field_definitions:
        fields.add_row(f.key, f.type, f.format or "", "yes" if f.enabled else "no", source_text(f.source))
    console.print(fields)

    if config.tag_definitions:
        tags = Table(title="Tags")
        for col in ("id", "enabled", "parameters", "source"):
            tags.add_column(col)
        for t in config.tag_definitions:
            params = Text()
            for name, param in t.parameters.items():
                if params:
                    params.append(", ")
                style = SOURCE_STYLES.get(t.parameter_sources.get(name, ""), "")
                params.append(f"{name}={param.default}", style=style)
            tags.add_row(t.id, "yes" if t.enabled else "no", params, source_text(t.source))
        console.print(tags)

    settings = Table(title="Settings", show_header=False)
    settings.add_column("setting")
    settings.add_column("value")
    settings.add_column("source")
    settings.add_row("model", config.model.value or "", source_text(config.model.source))
    settings.add_row(
        "filenameTemplate", config.filename_template.template or "", source_text(config.filename_template.source)
    )
    settings.add_row("promptTemplate", "", source_text(config.prompt_template.source))
    if config.raw_prompt.value:
        settings.add_row("rawPrompt", "(set)", source_text(config.raw_prompt.source))
    console.print(settings)


def render_format_rules(rules: Iterable[FormatRule]) -> None:
    table = Table(title="Format rules")
    table.add_column("format")
    table.add_column("description")
    for rule in rules:
        table.add_row(rule.name, rule.label)
    console.print(table)


def render_format_check(value: str, format_name: str, check: FormatCheck) -> None:
    if not check.valid:
        print_status("error", check.error or f"{value} is not a valid {format_name} value")
        return
    suffix = f" (corrected to [bold]{check.corrected}[/bold])" if check.corrected is not None else ""
    print_status("ok", f"{value} is a valid {format_name} value{suffix}")


def format_check_document(value: str, format_name: str, check: FormatCheck) -> dict:
    document = {"value": value, "format": format_name, "valid": check.valid}
    if check.corrected is not None:
        document["corrected"] = check.corrected
    if check.error is not None:
        document["error"] = check.error
    return document


def migration_line(client_id: str, changes: Optional[list], dry_run: bool) -> None:
    prefix = "[bold]DRY RUN[/bold] " if dry_run else ""
    console.print(f"  {prefix}{client_id}: {', '.join(changes or []) or 'moved to clients/'}")
