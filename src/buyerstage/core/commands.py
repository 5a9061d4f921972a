"""Turn a stage and a UI trigger into a pre-filled assistant command.

Pure string templating; the result is handed to the chat layer by the caller.
"""

from __future__ import annotations

from enum import Enum

from buyerstage.core.models import Stage


class Trigger(str, Enum):
    GENERATE_NEXT_STEPS = "generate-next-steps"
    STAGE_CLICKED = "stage-clicked"
    STAGE_CLICKED_CURRENT = "stage-clicked-current"
    ACTIVITY_FOLLOWUP = "activity-followup"
    ADVANCE_STAGE = "advance-stage"
    DRAFT_STAGE_UPDATE = "draft-stage-update"
    STAGE_DETAILS = "stage-details"


_TEMPLATES = {
    Trigger.GENERATE_NEXT_STEPS: "Generate next steps for {buyer} in {stage}",
    Trigger.STAGE_CLICKED_CURRENT: (
        "Generate a strategy for {buyer} to complete {stage}: {objective}"
    ),
    Trigger.ACTIVITY_FOLLOWUP: "Draft a follow-up for {buyer} on recent activity during {stage}",
    Trigger.ADVANCE_STAGE: "Advance {buyer} to the next stage with a summary of {stage}",
    Trigger.DRAFT_STAGE_UPDATE: "Draft stage update for {buyer} covering {stage}",
    Trigger.STAGE_DETAILS: "Show details for {stage}",
}

_NAVIGATE_TEMPLATE = "Move {buyer} to {stage}"


def build_command(
    trigger: Trigger | str,
    stage: Stage,
    buyer_name: str,
    current_stage_number: int | None = None,
) -> str:
    trigger = Trigger(trigger)
    if trigger is Trigger.STAGE_CLICKED:
        if current_stage_number is None:
            raise ValueError("stage-clicked needs the buyer's current stage number")
        if stage.stage_number == current_stage_number:
            # Clicking the current stage asks for a strategy, not a jump.
            trigger = Trigger.STAGE_CLICKED_CURRENT
        else:
            return _NAVIGATE_TEMPLATE.format(buyer=buyer_name, stage=stage.label)
    return _TEMPLATES[trigger].format(
        buyer=buyer_name,
        stage=stage.label,
        objective=stage.objective or stage.name,
    )


def is_navigation(trigger: Trigger | str, stage: Stage, current_stage_number: int) -> bool:
    return Trigger(trigger) is Trigger.STAGE_CLICKED and stage.stage_number != current_stage_number


def recommended_commands(stage: Stage, buyer_name: str) -> list[tuple[str, str]]:
    first_name = buyer_name.split(" ")[0] if buyer_name else buyer_name
    return [
        (action, f"{action} for {first_name} ({stage.label})")
        for action in stage.next_actions
    ]
