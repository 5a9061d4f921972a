from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, TypeVar

from buyerstage.core.catalog import StageCatalog

DEFAULT_WINDOW_SIZE = 2


T = TypeVar("T")


class Audience(str, Enum):
    AGENT = "agent"
    BUYER = "buyer"


class ArtifactStageScope:
    """Trailing stage window over anything that carries an optional ``stage_id``.

    Artifacts, tasks and offers all qualify. Records without a ``stage_id``
    are always visible; records whose ``stage_id`` no longer resolves to a
    catalog entry are hidden while windowing. The buyer audience only ever
    sees records whose ``visibility`` is ``shared``, window or not.
    """

    def __init__(self, catalog: StageCatalog, *, window_size: int = DEFAULT_WINDOW_SIZE):
        _check_window(window_size)
        self.catalog = catalog
        self.window_size = window_size

    def stage_window(self, current_stage_number: int, window_size: int | None = None) -> tuple[int, int]:
        size = self.window_size if window_size is None else window_size
        _check_window(size)
        return max(0, current_stage_number - size), current_stage_number

    def visible_artifacts(
        self,
        all_artifacts: Iterable[T],
        current_stage_number: int,
        window_size: int | None = None,
        show_all: bool = False,
        audience: Audience | str = Audience.AGENT,
    ) -> list[T]:
        if Audience(audience) is Audience.BUYER:
            all_artifacts = [item for item in all_artifacts if _field(item, "visibility") == "shared"]
        if show_all:
            return list(all_artifacts)
        min_stage, max_stage = self.stage_window(current_stage_number, window_size)
        visible: list[T] = []
        for artifact in all_artifacts:
            stage_id = _stage_id(artifact)
            if stage_id is None:
                visible.append(artifact)
                continue
            stage = self.catalog.resolve_stage_id(stage_id)
            if stage is not None and min_stage <= stage.stage_number <= max_stage:
                visible.append(artifact)
        return visible


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def _stage_id(item: Any) -> str | None:
    value = _field(item, "stage_id")
    if value is None or value == "":
        return None
    return str(value)


def _check_window(window_size: int) -> None:
    if window_size < 0:
        raise ValueError(f"window_size must be >= 0, got {window_size}")
