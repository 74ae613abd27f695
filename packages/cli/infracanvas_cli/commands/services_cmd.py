from __future__ import annotations

from typing import Annotated

import typer
from infracanvas.schema import get_schema_store
from infracanvas.synthesizers import get_synthesizer
from rich.console import Console
from rich.table import Table

console = Console()


def services(
    ctx: typer.Context,
    provider: Annotated[str | None, typer.Argument(help="Only list this provider (aws, gcp, azure)")] = None,
) -> None:
    """List the service types the compiler knows about."""
    store = get_schema_store()
    providers = [provider.lower()] if provider else store.list_providers()
    entries = [e for p in providers for e in store.list_services(p)]

    if ctx.obj and ctx.obj.get("json"):
        import json

        print(json.dumps({"services": [e.to_dict() for e in entries]}, default=str))
        return

    if not entries:
        console.print(f"[yellow]No services registered for {provider!r}.[/yellow]")
        raise typer.Exit(1)

    table = Table(title="Services")
    table.add_column("Provider", style="cyan")
    table.add_column("Service")
    table.add_column("Category")
    table.add_column("Resource type")
    table.add_column("Synthesizer", justify="center")

    for entry in entries:
        synthesized = get_synthesizer(entry.provider, entry.service_id) is not None
        table.add_row(
            entry.provider,
            entry.service_id,
            entry.category,
            entry.resource_type,
            "[green]yes[/green]" if synthesized else "[dim]pass-through[/dim]",
        )

    console.print(table)
