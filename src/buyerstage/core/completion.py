from __future__ import annotations

from buyerstage.core import events as ev
from buyerstage.core.catalog import StageCatalog
from buyerstage.core.models import CompletionRecord
from buyerstage.core.result import ErrorKind, Result
from buyerstage.stores.base import BuyerStore, StoreError


class CompletionTracker:
    """Per-buyer checklist state, one cell per (buyer, stage, criterion index).

    Cells are loaded lazily per (buyer, stage) and cached for reads. Every
    toggle re-reads the cells and writes through to the store, and drops the
    cached entry afterwards, so several trackers may share one store. Call
    ``invalidate`` before a read that must see other writers. Reads that hit
    the store may raise ``StoreError``; callers retry.
    """

    def __init__(
        self,
        store: BuyerStore,
        catalog: StageCatalog,
        *,
        listener: ev.EventListener | None = None,
    ):
        self.store = store
        self.catalog = catalog
        self.listener = listener
        self._cells: dict[tuple[str, int], dict[int, bool]] = {}

    async def is_criterion_completed(self, buyer_id: str, stage_number: int, index: int) -> bool:
        cells = await self._load(buyer_id, stage_number)
        return cells.get(index, False)

    async def all_criteria_completed(
        self, buyer_id: str, stage_number: int, total_criteria_count: int
    ) -> bool:
        if total_criteria_count == 0:
            return True
        cells = await self._load(buyer_id, stage_number)
        return all(cells.get(index, False) for index in range(total_criteria_count))

    async def remaining_criteria(self, buyer_id: str, stage_number: int) -> tuple[str, ...]:
        stage = self.catalog.get_stage(stage_number)
        if stage is None:
            return ()
        cells = await self._load(buyer_id, stage_number)
        return tuple(
            text
            for index, text in enumerate(stage.completion_criteria)
            if not cells.get(index, False)
        )

    async def completion_ratio(self, buyer_id: str, stage_number: int) -> tuple[int, int]:
        stage = self.catalog.get_stage(stage_number)
        if stage is None:
            return 0, 0
        total = len(stage.completion_criteria)
        remaining = await self.remaining_criteria(buyer_id, stage_number)
        return total - len(remaining), total

    async def toggle_criterion(
        self, buyer_id: str, stage_number: int, index: int, new_value: bool
    ) -> Result[CompletionRecord]:
        """Write one cell through to the store. The last write wins."""
        stage = self.catalog.get_stage(stage_number)
        if stage is None:
            return Result.failure(
                ErrorKind.STAGE_NOT_CONFIGURED,
                f"Stage {stage_number} is not yet configured.",
                stage_number=stage_number,
            )
        if index < 0 or index >= len(stage.completion_criteria):
            return Result.failure(
                ErrorKind.OUT_OF_RANGE,
                f"{stage.label} has {len(stage.completion_criteria)} criteria; "
                f"index {index} does not exist.",
                stage_number=stage_number,
            )
        # Another tracker may have written since our last read.
        self.invalidate(buyer_id, stage_number)
        try:
            previous = (await self._load(buyer_id, stage_number)).get(index, False)
        except StoreError as exc:
            return self._store_failed(buyer_id, "load_completion_records", str(exc))
        try:
            record = await self.store.save_completion_record(
                buyer_id, stage_number, index, new_value
            )
        except StoreError as exc:
            return self._store_failed(buyer_id, "save_completion_record", str(exc))
        finally:
            self.invalidate(buyer_id, stage_number)
        self._emit(
            ev.CriterionToggled(
                buyer_id=buyer_id,
                stage_number=stage_number,
                criteria_index=index,
                is_completed=record.is_completed,
                changed=previous != record.is_completed,
            )
        )
        return Result.success(record)

    def invalidate(self, buyer_id: str | None = None, stage_number: int | None = None) -> None:
        if buyer_id is None:
            self._cells.clear()
            return
        for key in [key for key in self._cells if key[0] == buyer_id]:
            if stage_number is None or key[1] == stage_number:
                del self._cells[key]

    async def _load(self, buyer_id: str, stage_number: int) -> dict[int, bool]:
        key = (buyer_id, stage_number)
        cells = self._cells.get(key)
        if cells is None:
            records = await self.store.load_completion_records(buyer_id, stage_number)
            loaded = {record.criteria_index: record.is_completed for record in records}
            # A concurrent load for the same key may have finished first.
            cells = self._cells.setdefault(key, loaded)
        return cells

    def _store_failed(self, buyer_id: str, operation: str, message: str) -> Result[CompletionRecord]:
        self._emit(
            ev.StoreCallFailed(buyer_id=buyer_id, operation=operation, message=message)
        )
        return Result.failure(ErrorKind.PERSISTENCE_FAILURE, f"Could not update checklist item: {message}")

    def _emit(self, event: ev.BuyerstageEvent) -> None:
        if self.listener is not None:
            self.listener(event)
