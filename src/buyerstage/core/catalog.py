from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

from pydantic import ValidationError

from buyerstage.core.models import Stage
from buyerstage.core.stages import DEFAULT_STAGES

if TYPE_CHECKING:
    from buyerstage.stores.base import BuyerStore


class CatalogNotLoaded(RuntimeError):
    pass


class CatalogError(ValueError):
    pass


class StageCatalog:
    """Ordered, read-only set of stages.

    Ordering by ``stage_number`` is the only notion of forward and backward.
    Lookups of unknown numbers return ``None`` so callers can report a
    configuration gap instead of failing.
    """

    def __init__(self, stages: Iterable[Stage | dict[str, Any]]):
        parsed: list[Stage] = []
        for item in stages:
            try:
                parsed.append(item if isinstance(item, Stage) else Stage.model_validate(item))
            except ValidationError as exc:
                raise CatalogError(f"Invalid stage entry: {exc}") from exc
        _check_unique(parsed)
        self._stages = tuple(sorted(parsed, key=lambda stage: stage.stage_number))
        self._by_number = {stage.stage_number: stage for stage in self._stages}
        self._by_id = {stage.id: stage for stage in self._stages}

    @classmethod
    def default(cls) -> "StageCatalog":
        return cls(DEFAULT_STAGES)

    @classmethod
    async def load(cls, store: "BuyerStore") -> "StageCatalog":
        return cls(await store.load_stage_catalog())

    def __len__(self) -> int:
        return len(self._stages)

    def __contains__(self, stage_number: object) -> bool:
        return stage_number in self._by_number

    def list_stages(self) -> tuple[Stage, ...]:
        self._require_loaded()
        return self._stages

    def get_stage(self, stage_number: int) -> Stage | None:
        self._require_loaded()
        return self._by_number.get(stage_number)

    def resolve_stage_id(self, stage_id: str | None) -> Stage | None:
        self._require_loaded()
        if stage_id is None:
            return None
        return self._by_id.get(stage_id)

    def max_stage_number(self) -> int:
        self._require_loaded()
        return self._stages[-1].stage_number

    def label(self, stage_number: int) -> str:
        stage = self.get_stage(stage_number)
        if stage is None:
            return f"Stage {stage_number} (not yet configured)"
        return stage.label

    def _require_loaded(self) -> None:
        if not self._stages:
            raise CatalogNotLoaded("Stage catalog queried before any stages were loaded.")


def _check_unique(stages: list[Stage]) -> None:
    for attr, title in (("stage_number", "stage numbers"), ("name", "stage names"), ("id", "stage ids")):
        seen: set[Any] = set()
        duplicates: set[Any] = set()
        for stage in stages:
            value = getattr(stage, attr)
            if value in seen:
                duplicates.add(value)
            seen.add(value)
        if duplicates:
            dup_list = ", ".join(sorted(str(item) for item in duplicates))
            raise CatalogError(f"Duplicate {title}: {dup_list}")
