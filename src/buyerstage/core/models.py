from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


class Stage(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    stage_number: int = Field(ge=0)
    name: str = Field(min_length=1)
    id: str = ""
    objective: str | None = None
    completion_criteria: tuple[str, ...] = ()
    next_actions: tuple[str, ...] = ()
    icon: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _default_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("id") and "stage_number" in data:
            data = {**data, "id": str(data["stage_number"])}
        return data

    @property
    def label(self) -> str:
        return f"Stage {self.stage_number}: {self.name}"


class Buyer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    current_stage_number: int = Field(default=0, ge=0)


class CompletionRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    buyer_id: str
    stage_number: int
    criteria_index: int
    is_completed: bool = False
    completed_at: datetime | None = None


class TextBlock(BaseModel):
    kind: Literal["text"] = "text"
    body: str


class ChecklistBlock(BaseModel):
    kind: Literal["checklist"] = "checklist"
    items: list[str] = Field(default_factory=list)


class PriceBand(BaseModel):
    low: float
    high: float


class BudgetBandsBlock(BaseModel):
    kind: Literal["budget-bands"] = "budget-bands"
    conservative: PriceBand
    target: PriceBand
    stretch: PriceBand


ArtifactBlock = Annotated[
    Union[TextBlock, ChecklistBlock, BudgetBandsBlock],
    Field(discriminator="kind"),
]

_blocks_adapter = TypeAdapter(list[ArtifactBlock])


def parse_blocks(data: object) -> list[ArtifactBlock]:
    """Decide block kinds once, when artifact data enters the system."""
    return _blocks_adapter.validate_python(data or [])


class Artifact(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    buyer_id: str | None = None
    stage_id: str | None = None
    artifact_type: str = "agent-generated"
    title: str = ""
    content: str = ""
    visibility: Literal["internal", "shared"] = "internal"
    created_at: datetime | None = None
    shared_at: datetime | None = None
    blocks: list[ArtifactBlock] = Field(default_factory=list)
