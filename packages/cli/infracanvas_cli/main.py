import typer

from infracanvas_cli import __version__
from infracanvas_cli.commands.check_cmd import check
from infracanvas_cli.commands.compile_cmd import compile_snapshot
from infracanvas_cli.commands.services_cmd import services
from infracanvas_cli.utils import configure_logging


def _version_callback(value: bool) -> None:
    if value:
        print(f"infracanvas {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="infracanvas",
    help="Compile canvas architecture graphs into Terraform",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-V", help="Show version", callback=_version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["json"] = json_output
    configure_logging(verbose)


app.command(name="compile")(compile_snapshot)
app.command()(services)
app.command()(check)
