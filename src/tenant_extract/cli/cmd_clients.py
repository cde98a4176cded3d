"""Client commands: list, show and migrate client records."""

import typer

from tenant_extract.cli._app import app
from tenant_extract.cli._common import get_resolver, handle_config_errors, setup_logging
from tenant_extract.cli._console import (
    emit_json,
    migration_line,
    print_status,
    render_annotated,
    render_client_summaries,
    render_effective,
)
from tenant_extract.config.migration import migrate_client_record

clients_app = typer.Typer(
    no_args_is_help=True,
    help="Inspect and migrate client records.",
)
app.add_typer(clients_app, name="clients")


@clients_app.command("list", help="List all clients in the registry.")
def clients_list(ctx: typer.Context):
    """List clients with their override state."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    resolver = get_resolver(ctx)

    with handle_config_errors():
        multi_tenant = resolver.is_multi_tenant()
        summaries = resolver.list_summaries()

    if ctx.obj["json"]:
        emit_json(
            {
                "multiTenant": multi_tenant,
                "legacyRegistry": resolver.is_using_legacy_registry(),
                "clients": [s.model_dump(by_alias=True) for s in summaries],
            }
        )
        return

    if not multi_tenant:
        print_status("warn", "Multi-tenant mode inactive: no clients/ directory or clients.json found")
        return

    render_client_summaries(summaries)


@clients_app.command("show", help="Show the effective config for a client.")
def clients_show(
    ctx: typer.Context,
    client_id: str = typer.Argument(..., help="Client identifier"),
    annotated: bool = typer.Option(
        False, "--annotated", "-a", help="Show where each setting comes from (global/override/custom)"
    ),
):
    """Show the resolved configuration for one client."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    resolver = get_resolver(ctx)

    with handle_config_errors():
        if annotated:
            config = resolver.resolve_annotated(client_id)
        else:
            config = resolver.resolve_effective(client_id)

    if ctx.obj["json"]:
        emit_json(config.model_dump(by_alias=True, exclude_none=True))
    elif annotated:
        render_annotated(config)
    else:
        render_effective(config)


@clients_app.command("migrate", help="Convert legacy client records to sparse overrides.")
def clients_migrate(
    ctx: typer.Context,
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview changes without writing"),
):
    """Migrate legacy records.

    Clients from a legacy clients.json are written to the clients/ directory;
    full-replacement field lists become sparse field overrides.
    """
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    resolver = get_resolver(ctx)

    with handle_config_errors():
        global_config = resolver.load_global()
        registry = resolver.load_registry()
        if registry is None:
            print_status("warn", "No client configuration found. Nothing to migrate.")
            return

        results = [
            migrate_client_record(client_id, document, global_config)
            for client_id, document in registry.documents.items()
        ]
        from_legacy = registry.legacy

        if not dry_run:
            for result in results:
                if from_legacy:
                    resolver.create_client(result.client_id, result.document)
                elif result.changed:
                    resolver.update_client(result.client_id, result.document)

    migrated = [r for r in results if r.changed or from_legacy]

    if ctx.obj["json"]:
        emit_json(
            {
                "dryRun": dry_run,
                "fromLegacyRegistry": from_legacy,
                "migrated": [
                    {"clientId": r.client_id, "changes": r.changes} for r in migrated
                ],
            }
        )
        return

    for result in migrated:
        migration_line(result.client_id, result.changes, dry_run)
    print_status("ok", f"{'Would migrate' if dry_run else 'Migrated'} {len(migrated)} of {len(results)} client(s)")
