import typer
import rich_click  # noqa: F401
from .artifacts import artifacts, share
from .check import check
from .command import command
from .list_plugins import list_plugins
from .stages import stages, status
from .transitions import advance, jump, retreat
from buyerstage import __version__

app = typer.Typer(
    name="buyerstage",
    help="Buyer stage progression and completion tracking",
    no_args_is_help=True,
)

@app.command("version")
def version() -> None:
    """Show the buyerstage version."""
    typer.echo(f"buyerstage v{__version__}")

app.command()(stages)
app.command()(status)
app.command()(check)
app.command()(advance)
app.command()(retreat)
app.command()(jump)
app.command()(artifacts)
app.command()(share)
app.command("command")(command)
app.command("list-plugins")(list_plugins)
