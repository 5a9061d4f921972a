from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class StoreSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    type: str = "memory"
    with_: dict[str, Any] = Field(default_factory=dict, alias="with")


class StageSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    stage_number: int = Field(ge=0)
    name: str
    id: str | None = None
    objective: str | None = None
    completion_criteria: list[str] = Field(default_factory=list)
    next_actions: list[str] = Field(default_factory=list)
    icon: str | None = None


class Scope(BaseModel):
    model_config = ConfigDict(extra="forbid")

    window_size: int = Field(default=2, ge=0)


class Config(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: str = "v1"
    store: StoreSpec = Field(default_factory=StoreSpec)
    stages: list[StageSpec] = Field(default_factory=list)
    stages_file: str | None = None
    scope: Scope = Field(default_factory=Scope)

    @model_validator(mode="after")
    def _validate_config(self) -> "Config":
        if self.version != "v1":
            raise ValueError("Only version v1 is supported.")
        seen: set[int] = set()
        duplicates: set[int] = set()
        for stage in self.stages:
            if stage.stage_number in seen:
                duplicates.add(stage.stage_number)
            seen.add(stage.stage_number)
        if duplicates:
            dup_list = ", ".join(str(number) for number in sorted(duplicates))
            raise ValueError(f"Duplicate stage numbers: {dup_list}")
        if self.stages and self.stages_file:
            raise ValueError("Use either inline stages or stages_file, not both.")
        return self

    def stage_records(self) -> list[dict[str, Any]]:
        return [stage.model_dump(exclude_none=True) for stage in self.stages]
