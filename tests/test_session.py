from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from buyerstage.cli.renderers import Renderer, run_command
from buyerstage.config.load import ConfigError
from buyerstage.core.events import CommandCompleted, CommandFailed, TransitionBlocked, TransitionCommitted
from buyerstage.core.session import open_session


class CollectingRenderer(Renderer):
    def __init__(self) -> None:
        self.events: list = []
        self.closed = False

    def handle(self, event) -> None:
        self.events.append(event)

    def close(self) -> None:
        self.closed = True


@pytest.mark.integration
def test_open_session_reads_catalog_from_store(sample_project: Path) -> None:
    session = asyncio.run(open_session(sample_project))

    assert session.catalog.max_stage_number() == 8
    assert session.catalog.get_stage(7) is None
    assert session.scope.window_size == 2


@pytest.mark.integration
def test_inline_stages_override_store_catalog(sample_project: Path) -> None:
    config = sample_project / "buyerstage.yaml"
    config.write_text(
        config.read_text(encoding="utf-8")
        + """
stages:
  - stage_number: 0
    name: Kickoff
  - stage_number: 1
    name: Close
""",
        encoding="utf-8",
    )

    session = asyncio.run(open_session(sample_project))

    assert [stage.name for stage in session.catalog.list_stages()] == ["Kickoff", "Close"]


@pytest.mark.integration
def test_unknown_store_type_is_config_error(sample_project: Path) -> None:
    (sample_project / "buyerstage.yaml").write_text(
        "version: v1\nstore:\n  type: mainframe\n", encoding="utf-8"
    )

    with pytest.raises(ConfigError, match="mainframe"):
        asyncio.run(open_session(sample_project))


@pytest.mark.integration
def test_run_command_exit_codes(sample_project: Path) -> None:
    renderer = CollectingRenderer()

    async def blocked_advance(session) -> bool:
        return (await session.engine.advance("b-sarah")).ok

    exit_code = run_command(
        "advance", renderer, blocked_advance, project=sample_project, config=None, buyer_id="b-sarah"
    )

    assert exit_code == 1
    assert renderer.closed
    blocked = [event for event in renderer.events if isinstance(event, TransitionBlocked)]
    assert blocked[0].remaining_criteria == ["Set budget"]
    assert isinstance(renderer.events[-1], CommandCompleted)
    assert renderer.events[-1].exit_code == 1


@pytest.mark.integration
def test_run_command_commits_jump(sample_project: Path) -> None:
    renderer = CollectingRenderer()

    async def jump(session) -> bool:
        requested = await session.engine.request_jump("b-omar", 2)
        return (await session.engine.confirm_jump(requested.value.request_id)).ok

    exit_code = run_command("jump", renderer, jump, project=sample_project, config=None)

    assert exit_code == 0
    committed = [event for event in renderer.events if isinstance(event, TransitionCommitted)]
    assert committed[0].direction == "jump"
    assert committed[0].to_stage == 2


@pytest.mark.integration
def test_run_command_missing_config_exits_2(tmp_path: Path) -> None:
    renderer = CollectingRenderer()

    async def action(session) -> bool:
        return True

    exit_code = run_command("stages", renderer, action, project=tmp_path, config=None)

    assert exit_code == 2
    failed = [event for event in renderer.events if isinstance(event, CommandFailed)]
    assert failed[0].error_code == "config_error"


@pytest.mark.integration
def test_run_command_unexpected_error_exits_3(sample_project: Path) -> None:
    renderer = CollectingRenderer()

    async def action(session) -> bool:
        raise LookupError("boom")

    exit_code = run_command("stages", renderer, action, project=sample_project, config=None)

    assert exit_code == 3
    with pytest.raises(LookupError):
        run_command("stages", CollectingRenderer(), action, project=sample_project, config=None, debug=True)


@pytest.mark.integration
def test_stages_file_catalog(sample_project: Path) -> None:
    (sample_project / "stages.yaml").write_text(
        """
stages:
  - stage_number: 0
    name: Kickoff
    completion_criteria: [Sign buyer agreement]
""".strip()
        + "\n",
        encoding="utf-8",
    )
    config = sample_project / "buyerstage.yaml"
    config.write_text(config.read_text(encoding="utf-8") + "stages_file: stages.yaml\n", encoding="utf-8")

    session = asyncio.run(open_session(sample_project))

    stage = session.catalog.get_stage(0)
    assert stage.completion_criteria == ("Sign buyer agreement",)
    assert stage.id == "0"
