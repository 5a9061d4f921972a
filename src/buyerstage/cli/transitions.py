from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from buyerstage.cli.renderers import make_renderer, run_command
from buyerstage.core.session import Session

console = Console()


def advance(
    buyer: str = typer.Argument(..., help="Buyer id."),
    config: Path = typer.Option(Path("buyerstage.yaml"), "--config", "-c", help="Path to buyerstage.yaml."),
    project: Path = typer.Option(Path("."), "--project", "-p", help="Base directory for relative paths."),
    json_output: bool = typer.Option(False, "--json", help="Emit machine-readable JSON report."),
    debug: bool = typer.Option(False, "--debug", help="Show stack traces for unexpected errors."),
) -> None:
    """Advance a buyer one stage once every completion criterion is checked."""
    renderer = make_renderer(console, json_output=json_output)

    async def action(session: Session) -> bool:
        result = await session.engine.advance(buyer)
        return result.ok

    exit_code = run_command(
        "advance", renderer, action, project=project, config=config, buyer_id=buyer, debug=debug
    )
    raise typer.Exit(code=exit_code)


def retreat(
    buyer: str = typer.Argument(..., help="Buyer id."),
    config: Path = typer.Option(Path("buyerstage.yaml"), "--config", "-c", help="Path to buyerstage.yaml."),
    project: Path = typer.Option(Path("."), "--project", "-p", help="Base directory for relative paths."),
    json_output: bool = typer.Option(False, "--json", help="Emit machine-readable JSON report."),
    debug: bool = typer.Option(False, "--debug", help="Show stack traces for unexpected errors."),
) -> None:
    """Move a buyer back one stage."""
    renderer = make_renderer(console, json_output=json_output)

    async def action(session: Session) -> bool:
        result = await session.engine.retreat(buyer)
        return result.ok

    exit_code = run_command(
        "retreat", renderer, action, project=project, config=config, buyer_id=buyer, debug=debug
    )
    raise typer.Exit(code=exit_code)


def jump(
    buyer: str = typer.Argument(..., help="Buyer id."),
    target: int = typer.Argument(..., help="Stage number to move to."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Confirm without prompting."),
    config: Path = typer.Option(Path("buyerstage.yaml"), "--config", "-c", help="Path to buyerstage.yaml."),
    project: Path = typer.Option(Path("."), "--project", "-p", help="Base directory for relative paths."),
    json_output: bool = typer.Option(False, "--json", help="Emit machine-readable JSON report."),
    debug: bool = typer.Option(False, "--debug", help="Show stack traces for unexpected errors."),
) -> None:
    """Move a buyer to any stage, bypassing the checklist, after confirmation."""
    renderer = make_renderer(console, json_output=json_output)

    async def action(session: Session) -> bool:
        requested = await session.engine.request_jump(buyer, target)
        if not requested.ok or requested.value is None:
            return False
        request = requested.value
        if not yes and not typer.confirm("Apply this stage change?", default=False):
            session.engine.cancel_jump(request.request_id)
            return True
        result = await session.engine.confirm_jump(request.request_id)
        return result.ok

    exit_code = run_command(
        "jump", renderer, action, project=project, config=config, buyer_id=buyer, debug=debug
    )
    raise typer.Exit(code=exit_code)
