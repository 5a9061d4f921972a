from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from buyerstage.cli.renderers import make_renderer, run_command
from buyerstage.core import events as ev
from buyerstage.core.commands import Trigger, build_command, recommended_commands
from buyerstage.core.session import Session

console = Console()


def command(
    trigger: Trigger = typer.Argument(..., help="UI action that triggered the command."),
    buyer: str = typer.Argument(..., help="Buyer id."),
    stage: int | None = typer.Option(None, "--stage", "-s", help="Stage the action refers to (default: current)."),
    config: Path = typer.Option(Path("buyerstage.yaml"), "--config", "-c", help="Path to buyerstage.yaml."),
    project: Path = typer.Option(Path("."), "--project", "-p", help="Base directory for relative paths."),
    json_output: bool = typer.Option(False, "--json", help="Emit machine-readable JSON report."),
    debug: bool = typer.Option(False, "--debug", help="Show stack traces for unexpected errors."),
) -> None:
    """Print the assistant command a UI action would pre-fill."""
    renderer = make_renderer(console, json_output=json_output)

    async def action(session: Session) -> bool:
        record = await session.store.load_buyer(buyer)
        if record is None:
            renderer.handle(
                ev.CommandFailed(command="command", error_code="buyer_not_found", message=f"Unknown buyer: {buyer}")
            )
            return False
        number = record.current_stage_number if stage is None else stage
        target = session.catalog.get_stage(number)
        if target is None:
            renderer.handle(
                ev.CommandFailed(
                    command="command",
                    error_code="stage_not_configured",
                    message=f"Stage {number} is not yet configured.",
                )
            )
            return False
        text = build_command(trigger, target, record.name, current_stage_number=record.current_stage_number)
        renderer.show_command(trigger.value, text, recommended_commands(target, record.name))
        return True

    exit_code = run_command(
        "command", renderer, action, project=project, config=config, buyer_id=buyer, debug=debug
    )
    raise typer.Exit(code=exit_code)
