from __future__ import annotations

import json
import logging

import typer
from infracanvas.compiler import UnsupportedProviderError
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

_err_console = Console(stderr=True)


def configure_logging(verbose: bool) -> None:
    """Route library logging through rich; debug detail only with --verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, show_path=verbose, rich_tracebacks=True)],
        force=True,
    )


def _describe_validation(e: ValidationError) -> str:
    errors = e.errors(include_url=False)
    first = errors[0]
    where = ".".join(str(part) for part in first["loc"]) or "snapshot"
    more = f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""
    return f"Invalid snapshot: {where}: {first['msg']}{more}"


def error_message(e: Exception) -> str:
    """One-line, user-facing description of a failure."""
    import yaml

    if isinstance(e, FileNotFoundError):
        return f"File not found: {e.filename or e}"
    if isinstance(e, (IsADirectoryError, NotADirectoryError, PermissionError)):
        return f"Cannot write output: {e}"
    if isinstance(e, yaml.YAMLError):
        mark = getattr(e, "problem_mark", None)
        where = f" at line {mark.line + 1}" if mark is not None else ""
        return f"Invalid YAML{where}: {getattr(e, 'problem', None) or e}"
    if isinstance(e, ValidationError):
        return _describe_validation(e)
    if isinstance(e, UnsupportedProviderError):
        return str(e)
    if isinstance(e, ValueError):
        return f"Invalid snapshot: {e}"
    return f"Error: {e}"


def handle_error(ctx: typer.Context, e: Exception) -> None:
    """Print a clean error message and exit 1."""
    verbose = ctx.obj.get("verbose", False) if ctx.obj else False
    msg = error_message(e)

    if ctx.obj and ctx.obj.get("json"):
        print(json.dumps({"error": msg}))
    else:
        _err_console.print(f"[red]Error:[/red] {msg}")

    if verbose:
        _err_console.print_exception()

    raise typer.Exit(1)
