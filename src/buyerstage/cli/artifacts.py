from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from buyerstage.cli.renderers import ArtifactsView, make_renderer, run_command
from buyerstage.core import events as ev
from buyerstage.core.scope import Audience
from buyerstage.core.session import Session

console = Console()


def artifacts(
    buyer: str = typer.Argument(..., help="Buyer id."),
    window: int | None = typer.Option(None, "--window", "-w", min=0, help="Trailing stages to show (default from config)."),
    show_all: bool = typer.Option(False, "--all", help="Show artifacts from every stage."),
    audience: Audience = typer.Option(Audience.AGENT, "--audience", help="Whose view to render; buyers only see shared artifacts."),
    config: Path = typer.Option(Path("buyerstage.yaml"), "--config", "-c", help="Path to buyerstage.yaml."),
    project: Path = typer.Option(Path("."), "--project", "-p", help="Base directory for relative paths."),
    json_output: bool = typer.Option(False, "--json", help="Emit machine-readable JSON report."),
    debug: bool = typer.Option(False, "--debug", help="Show stack traces for unexpected errors."),
) -> None:
    """List a buyer's saved artifacts scoped to the recent stage window."""
    renderer = make_renderer(console, json_output=json_output)

    async def action(session: Session) -> bool:
        record = await session.store.load_buyer(buyer)
        if record is None:
            renderer.handle(
                ev.CommandFailed(command="artifacts", error_code="buyer_not_found", message=f"Unknown buyer: {buyer}")
            )
            return False
        saved = await session.store.load_artifacts(buyer)
        current = record.current_stage_number
        for_audience = session.scope.visible_artifacts(saved, current, show_all=True, audience=audience)
        visible = session.scope.visible_artifacts(saved, current, window, show_all=show_all, audience=audience)
        renderer.show_artifacts(
            ArtifactsView(
                buyer_id=buyer,
                current_stage_number=current,
                window=None if show_all else session.scope.stage_window(current, window),
                artifacts=visible,
                stage_labels={stage.id: stage.label for stage in session.catalog.list_stages()},
                hidden=len(for_audience) - len(visible),
                audience=audience.value,
            )
        )
        return True

    exit_code = run_command(
        "artifacts", renderer, action, project=project, config=config, buyer_id=buyer, debug=debug
    )
    raise typer.Exit(code=exit_code)


def share(
    artifact_id: str = typer.Argument(..., help="Artifact id."),
    config: Path = typer.Option(Path("buyerstage.yaml"), "--config", "-c", help="Path to buyerstage.yaml."),
    project: Path = typer.Option(Path("."), "--project", "-p", help="Base directory for relative paths."),
    json_output: bool = typer.Option(False, "--json", help="Emit machine-readable JSON report."),
    debug: bool = typer.Option(False, "--debug", help="Show stack traces for unexpected errors."),
) -> None:
    """Share an artifact with its buyer."""
    renderer = make_renderer(console, json_output=json_output)

    async def action(session: Session) -> bool:
        artifact = await session.store.share_artifact(artifact_id)
        renderer.handle(
            ev.ArtifactShared(
                command="share",
                artifact_id=artifact.id,
                buyer_id=artifact.buyer_id or "",
                title=artifact.title,
                shared_at=artifact.shared_at.isoformat() if artifact.shared_at else None,
            )
        )
        return True

    exit_code = run_command("share", renderer, action, project=project, config=config, debug=debug)
    raise typer.Exit(code=exit_code)
