from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from infracanvas import GraphSnapshot
from infracanvas.dependencies import dangling_edges
from infracanvas.providers import get_profile
from infracanvas.schema import check_config, get_schema_store, merge_config
from rich.console import Console
from rich.text import Text

from infracanvas_cli.utils import handle_error

console = Console()


def check(
    ctx: typer.Context,
    snapshot_file: Annotated[Path, typer.Argument(help="Path to a graph snapshot (YAML or JSON)", exists=True)],
) -> None:
    """Report unknown services, config problems and dangling edges in a snapshot."""
    try:
        snapshot = GraphSnapshot.from_file(snapshot_file)
    except Exception as e:
        handle_error(ctx, e)
        return

    store = get_schema_store()
    issues: list[dict[str, str]] = []

    if get_profile(snapshot.provider) is None:
        issues.append({"node": "", "message": f"unsupported provider {snapshot.provider!r}"})

    for node in snapshot.nodes:
        provider = snapshot.node_provider(node)
        entry = store.resolve(provider, node.service_id)
        if entry is None:
            issues.append(
                {"node": node.id, "message": f"unknown service {provider}/{node.service_id}, config passed through"}
            )
            continue
        for message in check_config(entry, merge_config(entry, node.user_config)):
            issues.append({"node": node.id, "message": message})

    for edge in dangling_edges(snapshot.nodes, snapshot.edges):
        issues.append({"node": edge.target_id, "message": f"edge {edge.source_id} -> {edge.target_id} is dangling"})

    if ctx.obj and ctx.obj.get("json"):
        import json

        print(json.dumps({"issues": issues, "ok": not issues}))
    elif not issues:
        console.print(f"[green]OK[/green] {len(snapshot.nodes)} nodes, {len(snapshot.edges)} edges")
    else:
        for issue in issues:
            line = Text()
            line.append("[WARN]", style="yellow")
            if issue["node"]:
                line.append(f" {issue['node']}:", style="bold")
            line.append(f" {issue['message']}")
            console.print(line)

    if issues:
        raise typer.Exit(1)
