from __future__ import annotations

from importlib.metadata import entry_points

import typer
from rich.console import Console

from buyerstage.cli.renderers import make_renderer
from buyerstage.core import events as ev

console = Console()


def list_plugins(
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable JSON report.",
    ),
) -> None:
    """List the installed buyer store backends."""
    renderer = make_renderer(console, json_output=json_output)
    renderer.handle(ev.CommandStarted(command="list-plugins"))
    plugins = [
        {"type_key": ep.name, "impl": ep.value}
        for ep in entry_points(group="buyerstage.stores")
    ]
    renderer.show_plugins(plugins)
    renderer.handle(ev.CommandCompleted(command="list-plugins", ok=True, exit_code=0))
    renderer.close()
