from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from infracanvas import GraphSnapshot
from infracanvas.compiler import DOCUMENT_NAMES, CompileOptions, compile_graph
from infracanvas.naming import DEFAULT_SESSION
from rich.console import Console
from rich.rule import Rule
from rich.syntax import Syntax

from infracanvas_cli.utils import handle_error

console = Console()


def compile_snapshot(
    ctx: typer.Context,
    snapshot_file: Annotated[Path, typer.Argument(help="Path to a graph snapshot (YAML or JSON)", exists=True)],
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Directory to write the Terraform documents into")
    ] = None,
    region: Annotated[str | None, typer.Option(help="Region for the provider block")] = None,
    project: Annotated[str | None, typer.Option(help="GCP project id")] = None,
    session: Annotated[str, typer.Option(help="Naming salt for generated unique names")] = DEFAULT_SESSION,
    document: Annotated[
        str | None, typer.Option("--document", "-d", help=f"Only show one document: {', '.join(DOCUMENT_NAMES)}")
    ] = None,
) -> None:
    """Compile a canvas graph snapshot into Terraform."""
    if document and document not in DOCUMENT_NAMES:
        console.print(f"[red]Error:[/red] Unknown document {document!r}. Choose from: {', '.join(DOCUMENT_NAMES)}")
        raise typer.Exit(1)

    try:
        snapshot = GraphSnapshot.from_file(snapshot_file)
        options = CompileOptions(region=region, project=project, session=session)
        result = compile_graph(snapshot, options=options)
        written = result.write(output) if output else []
    except Exception as e:
        handle_error(ctx, e)
        return

    if ctx.obj and ctx.obj.get("json"):
        import json

        data = result.to_dict()
        if document:
            data["documents"] = {document: result.documents[document]}
        data["written"] = [str(p) for p in written]
        print(json.dumps(data, default=str))
        return

    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    if output:
        console.print(
            f"[green]Wrote {len(written)} files to {output}[/green] "
            f"({len(result.resources)} resources, {len(result.variables)} variables, {len(result.outputs)} outputs)"
        )
        return

    names = [document] if document else list(result.documents)
    for name in names:
        console.print(Rule(f"[bold]{name}[/bold]"))
        console.print(Syntax(result.documents[name], "hcl", theme="monokai", word_wrap=True))
