from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable


@dataclass(frozen=True)
class BuyerstageEvent:
    ts: float = field(default_factory=time.perf_counter)
    level: str = "INFO"
    command: str = ""
    type: str = ""

    def to_dict(self) -> dict[str, Any]:
        return _serialize(asdict(self))


EventListener = Callable[[BuyerstageEvent], None]


@dataclass(frozen=True)
class CommandStarted(BuyerstageEvent):
    type: str = "CommandStarted"
    project_dir: Path | None = None
    config_path: Path | None = None
    buyer_id: str | None = None


@dataclass(frozen=True)
class CommandCompleted(BuyerstageEvent):
    type: str = "CommandCompleted"
    ok: bool = True
    exit_code: int = 0


@dataclass(frozen=True)
class TransitionCommitted(BuyerstageEvent):
    type: str = "TransitionCommitted"
    buyer_id: str = ""
    from_stage: int = 0
    to_stage: int = 0
    direction: str = ""
    message: str = ""


@dataclass(frozen=True)
class TransitionBlocked(BuyerstageEvent):
    type: str = "TransitionBlocked"
    level: str = "WARNING"
    buyer_id: str = ""
    error_code: str = ""
    message: str = ""
    remaining_criteria: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class JumpRequested(BuyerstageEvent):
    type: str = "JumpRequested"
    request_id: str = ""
    buyer_id: str = ""
    from_stage: int = 0
    to_stage: int = 0
    notice: str = ""
    message: str = ""


@dataclass(frozen=True)
class JumpCancelled(BuyerstageEvent):
    type: str = "JumpCancelled"
    request_id: str = ""
    buyer_id: str = ""


@dataclass(frozen=True)
class CriterionToggled(BuyerstageEvent):
    type: str = "CriterionToggled"
    buyer_id: str = ""
    stage_number: int = 0
    criteria_index: int = 0
    is_completed: bool = False
    changed: bool = True


@dataclass(frozen=True)
class ArtifactShared(BuyerstageEvent):
    type: str = "ArtifactShared"
    artifact_id: str = ""
    buyer_id: str = ""
    title: str = ""
    shared_at: str | None = None


@dataclass(frozen=True)
class StoreCallFailed(BuyerstageEvent):
    type: str = "StoreCallFailed"
    level: str = "ERROR"
    buyer_id: str = ""
    operation: str = ""
    message: str = ""


@dataclass(frozen=True)
class CommandFailed(BuyerstageEvent):
    type: str = "CommandFailed"
    level: str = "ERROR"
    error_code: str = ""
    message: str = ""
    hint: str | None = None


def _serialize(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _serialize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_serialize(item) for item in value]
    return value
