from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from buyerstage import __version__
from buyerstage.config.load import ConfigError
from buyerstage.core import events as ev
from buyerstage.core.models import Artifact, Stage
from buyerstage.core.session import Session, open_session
from buyerstage.stores.base import StoreError

RULE_WIDTH = 64
RULE_LINE = "-" * RULE_WIDTH
STATUS_GLYPHS = {
    "completed": "✅",
    "current": "▶",
    "locked": "🔒",
    "checked": "☑",
    "unchecked": "☐",
}


@dataclass
class StatusView:
    buyer_id: str
    buyer_name: str
    current_stage_number: int
    stages: Sequence[Stage]
    criteria: list[tuple[str, bool]] = field(default_factory=list)


@dataclass
class ArtifactsView:
    buyer_id: str
    current_stage_number: int
    window: tuple[int, int] | None
    artifacts: list[Artifact]
    stage_labels: dict[str, str] = field(default_factory=dict)
    hidden: int = 0
    audience: str = "agent"


def run_command(
    command: str,
    renderer: "Renderer",
    action: Callable[[Session], Awaitable[bool]],
    *,
    project: Path,
    config: Path | None,
    buyer_id: str | None = None,
    debug: bool = False,
) -> int:
    """Open a session, run ``action`` and return the process exit code.

    ``action`` returns False when the operation was refused (exit 1).
    Config and store problems exit 2; anything else exits 3 unless
    ``debug`` is set, in which case it is re-raised.
    """
    renderer.handle(
        ev.CommandStarted(
            command=command,
            project_dir=project,
            config_path=config,
            buyer_id=buyer_id,
        )
    )

    async def _run() -> bool:
        session = await open_session(project, config, listener=renderer.handle)
        return await action(session)

    try:
        ok = asyncio.run(_run())
    except ConfigError as exc:
        renderer.handle(
            ev.CommandFailed(
                command=command,
                error_code="config_error",
                message=str(exc),
                hint="Check buyerstage.yaml and the store settings.",
            )
        )
        return _finish(renderer, command, ok=False, exit_code=2)
    except StoreError as exc:
        renderer.handle(
            ev.CommandFailed(
                command=command,
                error_code="store_error",
                message=str(exc),
                hint="The store may be temporarily unavailable; retry.",
            )
        )
        return _finish(renderer, command, ok=False, exit_code=2)
    except Exception as exc:  # noqa: BLE001
        if debug:
            raise
        renderer.handle(
            ev.CommandFailed(
                command=command,
                error_code="unexpected",
                message=str(exc),
                hint="Run with --debug for details.",
            )
        )
        return _finish(renderer, command, ok=False, exit_code=3)
    return _finish(renderer, command, ok=ok, exit_code=0 if ok else 1)


def _finish(renderer: "Renderer", command: str, *, ok: bool, exit_code: int) -> int:
    renderer.handle(ev.CommandCompleted(command=command, ok=ok, exit_code=exit_code))
    renderer.close()
    return exit_code


class Renderer:
    def handle(self, event: ev.BuyerstageEvent) -> None:  # noqa: D401
        """Handle a single event."""

    def show_stages(self, stages: Sequence[Stage]) -> None:
        return None

    def show_status(self, view: StatusView) -> None:
        return None

    def show_artifacts(self, view: ArtifactsView) -> None:
        return None

    def show_command(self, trigger: str, text: str, suggestions: list[tuple[str, str]]) -> None:
        return None

    def show_plugins(self, plugins: list[dict[str, str]]) -> None:
        return None

    def close(self) -> None:
        return None


class RichRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console

    def handle(self, event: ev.BuyerstageEvent) -> None:
        if isinstance(event, ev.CommandStarted):
            _print_header(self.console, event)
            return
        if isinstance(event, ev.TransitionCommitted):
            self.console.print(
                Panel(
                    Text(event.message),
                    title=f"Stage {event.from_stage} → Stage {event.to_stage}",
                    box=box.ROUNDED,
                    title_align="left",
                    border_style="green",
                )
            )
            return
        if isinstance(event, ev.TransitionBlocked):
            body = [event.message]
            if event.remaining_criteria:
                body.append("")
                body.extend(f"{STATUS_GLYPHS['unchecked']} {item}" for item in event.remaining_criteria)
            self.console.print(
                Panel(
                    "\n".join(body),
                    title=f"[orange1]Blocked: {event.error_code}[/orange1]",
                    box=box.ROUNDED,
                    title_align="left",
                    border_style="orange1",
                )
            )
            return
        if isinstance(event, ev.JumpRequested):
            style = "orange1" if event.notice == "backward-warning" else "cyan"
            self.console.print(
                Panel(event.message, title=event.notice, box=box.ROUNDED, title_align="left", border_style=style)
            )
            return
        if isinstance(event, ev.JumpCancelled):
            self.console.print("Stage change cancelled; nothing was saved.")
            return
        if isinstance(event, ev.CriterionToggled):
            glyph = STATUS_GLYPHS["checked" if event.is_completed else "unchecked"]
            suffix = "" if event.changed else " (unchanged)"
            self.console.print(
                f"{glyph} Stage {event.stage_number} criterion {event.criteria_index}{suffix}"
            )
            return
        if isinstance(event, ev.ArtifactShared):
            self.console.print(f"Shared [bold]{event.title or event.artifact_id}[/bold] with {event.buyer_id}")
            return
        if isinstance(event, ev.StoreCallFailed):
            self.console.print(f"[red]Store error[/red] ({event.operation}): {event.message}")
            return
        if isinstance(event, ev.CommandFailed):
            body = event.message if not event.hint else f"{event.message}\n\nhint: {event.hint}"
            self.console.print(Panel(body, title=f"Error: {event.error_code}", box=box.ROUNDED, title_align="left"))
            return

    def show_stages(self, stages: Sequence[Stage]) -> None:
        table = Table(title="Stage catalog", show_header=True, box=box.MINIMAL)
        table.add_column("#", justify="right")
        table.add_column("", justify="center")
        table.add_column("STAGE", style="bold")
        table.add_column("CRITERIA", justify="right")
        table.add_column("OBJECTIVE")
        for stage in stages:
            table.add_row(
                str(stage.stage_number),
                stage.icon or "",
                stage.name,
                str(len(stage.completion_criteria)),
                stage.objective or "",
            )
        self.console.print(table)

    def show_status(self, view: StatusView) -> None:
        table = Table(show_header=False, box=box.MINIMAL)
        table.add_column("", justify="center")
        table.add_column("STAGE")
        for stage in view.stages:
            state = _journey_state(stage.stage_number, view.current_stage_number)
            label = Text(stage.label, style="bold" if state == "current" else "")
            table.add_row(STATUS_GLYPHS[state], label)
        self.console.print(Panel(table, title=f"{view.buyer_name} ({view.buyer_id})", box=box.ROUNDED, title_align="left"))
        if view.criteria:
            done = sum(1 for _, checked in view.criteria if checked)
            lines = [
                f"{STATUS_GLYPHS['checked' if checked else 'unchecked']} [{index}] {text}"
                for index, (text, checked) in enumerate(view.criteria)
            ]
            self.console.print(
                Panel("\n".join(lines), title=f"Completion criteria ({done}/{len(view.criteria)})", box=box.ROUNDED, title_align="left")
            )
        else:
            self.console.print("No completion criteria for this stage; it can always advance.")

    def show_artifacts(self, view: ArtifactsView) -> None:
        if view.window is None:
            title = "Artifacts (all stages)"
        else:
            title = f"Artifacts (stages {view.window[0]}-{view.window[1]})"
        if view.audience == "buyer":
            title += ", buyer view"
        table = Table(title=title, show_header=True, box=box.MINIMAL)
        table.add_column("ID")
        table.add_column("TITLE", style="bold")
        table.add_column("TYPE")
        table.add_column("STAGE")
        table.add_column("VISIBILITY")
        for artifact in view.artifacts:
            stage = view.stage_labels.get(artifact.stage_id or "", "unscoped")
            table.add_row(artifact.id, artifact.title, artifact.artifact_type, stage, artifact.visibility)
        self.console.print(table)
        if view.hidden:
            self.console.print(f"{view.hidden} artifact(s) hidden by the stage window; use --all to show them.")

    def show_command(self, trigger: str, text: str, suggestions: list[tuple[str, str]]) -> None:
        self.console.print(Panel(text, title=trigger, box=box.ROUNDED, title_align="left"))
        if suggestions:
            table = Table(title="Suggested", show_header=True, box=box.MINIMAL)
            table.add_column("ACTION", style="bold")
            table.add_column("COMMAND")
            for label, command in suggestions:
                table.add_row(label, command)
            self.console.print(table)

    def show_plugins(self, plugins: list[dict[str, str]]) -> None:
        table = Table(title="Stores", show_header=True, box=box.MINIMAL)
        table.add_column("TYPE", style="bold")
        table.add_column("IMPL")
        for plugin in plugins:
            table.add_row(plugin["type_key"], plugin["impl"])
        self.console.print(table)


class PlainRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console

    def handle(self, event: ev.BuyerstageEvent) -> None:
        if isinstance(event, ev.CommandStarted):
            _print_header(self.console, event)
            return
        if isinstance(event, ev.TransitionCommitted):
            self.console.print(f"OK {event.message}")
            return
        if isinstance(event, ev.TransitionBlocked):
            self.console.print(f"BLOCKED {event.error_code}: {event.message}")
            return
        if isinstance(event, ev.JumpRequested):
            self.console.print(f"CONFIRM {event.notice}: {event.message}")
            return
        if isinstance(event, ev.JumpCancelled):
            self.console.print("CANCELLED stage change")
            return
        if isinstance(event, ev.CriterionToggled):
            state = "checked" if event.is_completed else "unchecked"
            self.console.print(
                f"{state.upper()} stage {event.stage_number} criterion {event.criteria_index}"
                + ("" if event.changed else " (unchanged)")
            )
            return
        if isinstance(event, ev.ArtifactShared):
            self.console.print(f"SHARED {event.artifact_id} with {event.buyer_id}")
            return
        if isinstance(event, ev.StoreCallFailed):
            self.console.print(f"STORE ERROR {event.operation}: {event.message}")
            return
        if isinstance(event, ev.CommandFailed):
            self.console.print(f"Error: {event.message}")
            if event.hint:
                self.console.print(f"hint: {event.hint}")

    def show_stages(self, stages: Sequence[Stage]) -> None:
        for stage in stages:
            self.console.print(
                f"{stage.stage_number}. {stage.name} ({len(stage.completion_criteria)} criteria)"
            )

    def show_status(self, view: StatusView) -> None:
        self.console.print(f"buyer: {view.buyer_name} ({view.buyer_id})")
        for stage in view.stages:
            state = _journey_state(stage.stage_number, view.current_stage_number)
            self.console.print(f"  [{state}] {stage.label}", markup=False)
        for index, (text, checked) in enumerate(view.criteria):
            mark = "x" if checked else " "
            self.console.print(f"  [{mark}] {index}: {text}", markup=False)

    def show_artifacts(self, view: ArtifactsView) -> None:
        for artifact in view.artifacts:
            stage = view.stage_labels.get(artifact.stage_id or "", "unscoped")
            self.console.print(f"{artifact.id} {artifact.title} [{stage}] {artifact.visibility}", markup=False)
        if view.hidden:
            self.console.print(f"{view.hidden} hidden by the stage window")

    def show_command(self, trigger: str, text: str, suggestions: list[tuple[str, str]]) -> None:
        self.console.print(text)
        for label, command in suggestions:
            self.console.print(f"- {label}: {command}")

    def show_plugins(self, plugins: list[dict[str, str]]) -> None:
        for plugin in plugins:
            self.console.print(f"{plugin['type_key']} {plugin['impl']}")


class JsonRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console
        self._report: dict[str, Any] = {"events": []}

    def handle(self, event: ev.BuyerstageEvent) -> None:
        payload = event.to_dict()
        payload.pop("ts", None)
        self._report["events"].append(payload)
        if isinstance(event, ev.CommandCompleted):
            self._report["ok"] = event.ok
            self._report["exit_code"] = event.exit_code

    def show_stages(self, stages: Sequence[Stage]) -> None:
        self._report["stages"] = [stage.model_dump(mode="json") for stage in stages]

    def show_status(self, view: StatusView) -> None:
        self._report["status"] = {
            "buyer_id": view.buyer_id,
            "buyer_name": view.buyer_name,
            "current_stage_number": view.current_stage_number,
            "criteria": [{"text": text, "completed": checked} for text, checked in view.criteria],
        }

    def show_artifacts(self, view: ArtifactsView) -> None:
        self._report["artifacts"] = [artifact.model_dump(mode="json") for artifact in view.artifacts]
        self._report["window"] = list(view.window) if view.window else None
        self._report["hidden"] = view.hidden
        self._report["audience"] = view.audience

    def show_command(self, trigger: str, text: str, suggestions: list[tuple[str, str]]) -> None:
        self._report["command"] = {"trigger": trigger, "text": text}
        self._report["suggestions"] = [{"label": label, "command": command} for label, command in suggestions]

    def show_plugins(self, plugins: list[dict[str, str]]) -> None:
        self._report["plugins"] = plugins

    def close(self) -> None:
        self.console.print_json(json.dumps(self._report, ensure_ascii=False))


def make_renderer(console: Console, *, json_output: bool) -> Renderer:
    if json_output:
        return JsonRenderer(console)
    return RichRenderer(console) if console.is_terminal else PlainRenderer(console)


def _journey_state(stage_number: int, current: int) -> str:
    if stage_number < current:
        return "completed"
    if stage_number == current:
        return "current"
    return "locked"


def _print_header(console: Console, event: ev.CommandStarted) -> None:
    parts = [f"buyerstage v{__version__}"]
    if event.project_dir:
        parts.append(f"project: {event.project_dir}")
    if event.buyer_id:
        parts.append(f"buyer: {event.buyer_id}")
    console.print(" | ".join(parts))
    console.print(RULE_LINE)
