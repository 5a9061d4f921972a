from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    CRITERIA_NOT_MET = "criteria_not_met"
    STAGE_NOT_CONFIGURED = "stage_not_configured"
    OUT_OF_RANGE = "out_of_range"
    PERSISTENCE_FAILURE = "persistence_failure"
    BUYER_NOT_FOUND = "buyer_not_found"
    REQUEST_NOT_FOUND = "request_not_found"
    STALE_REQUEST = "stale_request"
    TRANSITION_PENDING = "transition_pending"


class Direction(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"
    JUMP = "jump"


@dataclass(frozen=True)
class TransitionError:
    kind: ErrorKind
    message: str
    remaining_criteria: tuple[str, ...] = ()
    stage_number: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "remaining_criteria": list(self.remaining_criteria),
            "stage_number": self.stage_number,
        }


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    error: TransitionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, **details: Any) -> "Result[T]":
        return cls(error=TransitionError(kind=kind, message=message, **details))


@dataclass(frozen=True)
class TransitionSummary:
    buyer_id: str
    buyer_name: str
    from_stage: int
    to_stage: int
    from_label: str
    to_label: str
    direction: Direction

    @property
    def message(self) -> str:
        verb = {
            Direction.FORWARD: "advanced",
            Direction.BACKWARD: "moved back",
            Direction.JUMP: "jumped",
        }[self.direction]
        return f"{self.buyer_name} {verb} from {self.from_label} to {self.to_label}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "buyer_id": self.buyer_id,
            "buyer_name": self.buyer_name,
            "from_stage": self.from_stage,
            "to_stage": self.to_stage,
            "from_label": self.from_label,
            "to_label": self.to_label,
            "direction": self.direction.value,
            "message": self.message,
        }
