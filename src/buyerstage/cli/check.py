from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from buyerstage.cli.renderers import make_renderer, run_command
from buyerstage.core import events as ev
from buyerstage.core.session import Session

console = Console()


def check(
    buyer: str = typer.Argument(..., help="Buyer id."),
    stage: int = typer.Argument(..., help="Stage number."),
    index: int = typer.Argument(..., help="Criterion index within the stage (0-based)."),
    uncheck: bool = typer.Option(False, "--uncheck", help="Clear the criterion instead of checking it."),
    config: Path = typer.Option(Path("buyerstage.yaml"), "--config", "-c", help="Path to buyerstage.yaml."),
    project: Path = typer.Option(Path("."), "--project", "-p", help="Base directory for relative paths."),
    json_output: bool = typer.Option(False, "--json", help="Emit machine-readable JSON report."),
    debug: bool = typer.Option(False, "--debug", help="Show stack traces for unexpected errors."),
) -> None:
    """Check or uncheck one completion criterion for a buyer."""
    renderer = make_renderer(console, json_output=json_output)

    async def action(session: Session) -> bool:
        result = await session.tracker.toggle_criterion(buyer, stage, index, not uncheck)
        if result.error is not None:
            renderer.handle(
                ev.CommandFailed(command="check", error_code=result.error.kind.value, message=result.error.message)
            )
        return result.ok

    exit_code = run_command(
        "check", renderer, action, project=project, config=config, buyer_id=buyer, debug=debug
    )
    raise typer.Exit(code=exit_code)
