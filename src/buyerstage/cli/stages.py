from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from buyerstage.cli.renderers import StatusView, make_renderer, run_command
from buyerstage.core import events as ev
from buyerstage.core.session import Session

console = Console()


def stages(
    config: Path = typer.Option(Path("buyerstage.yaml"), "--config", "-c", help="Path to buyerstage.yaml."),
    project: Path = typer.Option(Path("."), "--project", "-p", help="Base directory for relative paths."),
    json_output: bool = typer.Option(False, "--json", help="Emit machine-readable JSON report."),
    debug: bool = typer.Option(False, "--debug", help="Show stack traces for unexpected errors."),
) -> None:
    """List the configured stage catalog."""
    renderer = make_renderer(console, json_output=json_output)

    async def action(session: Session) -> bool:
        renderer.show_stages(session.catalog.list_stages())
        return True

    exit_code = run_command("stages", renderer, action, project=project, config=config, debug=debug)
    raise typer.Exit(code=exit_code)


def status(
    buyer: str = typer.Argument(..., help="Buyer id."),
    config: Path = typer.Option(Path("buyerstage.yaml"), "--config", "-c", help="Path to buyerstage.yaml."),
    project: Path = typer.Option(Path("."), "--project", "-p", help="Base directory for relative paths."),
    json_output: bool = typer.Option(False, "--json", help="Emit machine-readable JSON report."),
    debug: bool = typer.Option(False, "--debug", help="Show stack traces for unexpected errors."),
) -> None:
    """Show a buyer's stage journey and current checklist."""
    renderer = make_renderer(console, json_output=json_output)

    async def action(session: Session) -> bool:
        record = await session.store.load_buyer(buyer)
        if record is None:
            renderer.handle(
                ev.CommandFailed(command="status", error_code="buyer_not_found", message=f"Unknown buyer: {buyer}")
            )
            return False
        stage = session.catalog.get_stage(record.current_stage_number)
        criteria: list[tuple[str, bool]] = []
        if stage is not None:
            for index, text in enumerate(stage.completion_criteria):
                checked = await session.tracker.is_criterion_completed(buyer, stage.stage_number, index)
                criteria.append((text, checked))
        renderer.show_status(
            StatusView(
                buyer_id=record.id,
                buyer_name=record.name,
                current_stage_number=record.current_stage_number,
                stages=session.catalog.list_stages(),
                criteria=criteria,
            )
        )
        return True

    exit_code = run_command(
        "status", renderer, action, project=project, config=config, buyer_id=buyer, debug=debug
    )
    raise typer.Exit(code=exit_code)
