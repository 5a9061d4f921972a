from __future__ import annotations

import pytest

from buyerstage.core.catalog import StageCatalog
from buyerstage.core.commands import Trigger, build_command, is_navigation, recommended_commands


def test_generate_next_steps_mentions_stage_and_buyer(catalog: StageCatalog) -> None:
    text = build_command("generate-next-steps", catalog.get_stage(1), "Sarah Chen")

    assert text == "Generate next steps for Sarah Chen in Stage 1: Financing"


def test_clicking_current_stage_asks_for_strategy(catalog: StageCatalog) -> None:
    stage = catalog.get_stage(1)

    text = build_command(Trigger.STAGE_CLICKED, stage, "Sarah Chen", current_stage_number=1)

    assert text.startswith("Generate a strategy for Sarah Chen")
    assert "Confirm buying power" in text
    assert text == build_command(Trigger.STAGE_CLICKED_CURRENT, stage, "Sarah Chen")
    assert not is_navigation(Trigger.STAGE_CLICKED, stage, 1)


def test_clicking_other_stage_requests_navigation(catalog: StageCatalog) -> None:
    stage = catalog.get_stage(3)

    text = build_command(Trigger.STAGE_CLICKED, stage, "Sarah Chen", current_stage_number=1)

    assert text == "Move Sarah Chen to Stage 3: Touring"
    assert is_navigation("stage-clicked", stage, 1)


def test_stage_click_without_current_stage_is_an_error(catalog: StageCatalog) -> None:
    with pytest.raises(ValueError):
        build_command(Trigger.STAGE_CLICKED, catalog.get_stage(3), "Sarah Chen")


def test_unknown_trigger_rejected(catalog: StageCatalog) -> None:
    with pytest.raises(ValueError):
        build_command("launch-rocket", catalog.get_stage(1), "Sarah Chen")


def test_activity_followup(catalog: StageCatalog) -> None:
    text = build_command(Trigger.ACTIVITY_FOLLOWUP, catalog.get_stage(5), "Omar Diaz")

    assert "Omar Diaz" in text
    assert "Stage 5: Negotiation" in text


def test_recommended_commands_use_first_name(catalog: StageCatalog) -> None:
    suggestions = recommended_commands(catalog.get_stage(1), "Sarah Chen")

    assert suggestions == [
        ("Initiate pre-approval", "Initiate pre-approval for Sarah (Stage 1: Financing)"),
        ("Define budget bands", "Define budget bands for Sarah (Stage 1: Financing)"),
    ]
