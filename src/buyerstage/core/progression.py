from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator

from buyerstage.core import events as ev
from buyerstage.core.catalog import StageCatalog
from buyerstage.core.completion import CompletionTracker
from buyerstage.core.models import Buyer, Stage
from buyerstage.core.result import Direction, ErrorKind, Result, TransitionSummary
from buyerstage.stores.base import BuyerStore, StoreError


class JumpNotice(str, Enum):
    BACKWARD_WARNING = "backward-warning"
    SKIP_AHEAD = "skip-ahead-notice"


@dataclass(frozen=True)
class StageTransitionRequest:
    request_id: str
    buyer_id: str
    buyer_name: str
    from_stage: int
    to_stage: int
    notice: JumpNotice
    message: str
    direction: Direction = Direction.JUMP

    @property
    def is_backward(self) -> bool:
        return self.to_stage < self.from_stage


_RETRYABLE = (ErrorKind.PERSISTENCE_FAILURE, ErrorKind.TRANSITION_PENDING)


class _Refused(Exception):
    def __init__(self, result: Result):
        super().__init__(result.error.message if result.error else "")
        self.result = result


class StageProgressionEngine:
    """State machine over a buyer's ``current_stage_number``.

    The store is the single source of truth for the stage pointer; every
    operation reads the buyer fresh and only reports success once the store
    has confirmed the write. Transitions for one buyer must be issued one at
    a time: a transition started while another for the same buyer is still
    in flight is refused with ``TransitionPending``. Nothing is queued.
    """

    def __init__(
        self,
        store: BuyerStore,
        catalog: StageCatalog,
        tracker: CompletionTracker | None = None,
        *,
        listener: ev.EventListener | None = None,
    ):
        self.store = store
        self.catalog = catalog
        self.tracker = tracker or CompletionTracker(store, catalog, listener=listener)
        self.listener = listener
        self._pending: dict[str, StageTransitionRequest] = {}
        self._in_flight: set[str] = set()

    async def advance(self, buyer_id: str) -> Result[TransitionSummary]:
        try:
            async with self._single_flight(buyer_id):
                buyer = await self._load_buyer(buyer_id)
                current = self._current_stage(buyer)
                if current.stage_number >= self.catalog.max_stage_number():
                    raise self._refuse(
                        buyer_id,
                        ErrorKind.OUT_OF_RANGE,
                        f"{buyer.name} is already at the final stage ({current.label}).",
                    )
                target = self._target_stage(buyer_id, current.stage_number + 1)
                total = len(current.completion_criteria)
                # Gate on the stored records.
                self.tracker.invalidate(buyer_id, current.stage_number)
                try:
                    ready = await self.tracker.all_criteria_completed(
                        buyer_id, current.stage_number, total
                    )
                    remaining = () if ready else await self.tracker.remaining_criteria(
                        buyer_id, current.stage_number
                    )
                except StoreError as exc:
                    raise self._store_failure(buyer_id, "load_completion_records", exc)
                if not ready:
                    raise self._refuse(
                        buyer_id,
                        ErrorKind.CRITERIA_NOT_MET,
                        f"Complete {current.label} before advancing. Remaining: "
                        + ", ".join(remaining),
                        remaining_criteria=remaining,
                        stage_number=current.stage_number,
                    )
                return await self._commit(buyer, current, target, Direction.FORWARD)
        except _Refused as refused:
            return refused.result

    async def retreat(self, buyer_id: str) -> Result[TransitionSummary]:
        try:
            async with self._single_flight(buyer_id):
                buyer = await self._load_buyer(buyer_id)
                if buyer.current_stage_number <= 0:
                    raise self._refuse(
                        buyer_id,
                        ErrorKind.OUT_OF_RANGE,
                        f"{buyer.name} is already at the first stage.",
                    )
                # Only the target needs a catalog entry.
                target = self._target_stage(buyer_id, buyer.current_stage_number - 1)
                current = self.catalog.get_stage(buyer.current_stage_number)
                return await self._commit(buyer, current, target, Direction.BACKWARD)
        except _Refused as refused:
            return refused.result

    async def request_jump(self, buyer_id: str, target: int) -> Result[StageTransitionRequest]:
        """First phase of a jump. Nothing is written until ``confirm_jump``."""
        try:
            buyer = await self._load_buyer(buyer_id)
            if target == buyer.current_stage_number:
                raise self._refuse(
                    buyer_id,
                    ErrorKind.OUT_OF_RANGE,
                    f"{buyer.name} is already at {self.catalog.label(target)}.",
                )
            target_stage = self._target_stage(buyer_id, target)
        except _Refused as refused:
            return refused.result

        from_label = self.catalog.label(buyer.current_stage_number)
        if target < buyer.current_stage_number:
            notice = JumpNotice.BACKWARD_WARNING
            message = (
                f"Move {buyer.name} back from {from_label} to {target_stage.label}? "
                "Checklist progress for later stages is kept."
            )
        else:
            skipped = target - buyer.current_stage_number - 1
            notice = JumpNotice.SKIP_AHEAD
            message = (
                f"Skip {buyer.name} ahead from {from_label} to {target_stage.label}? "
                f"Completion checklists are bypassed ({skipped} stage(s) skipped)."
            )
        request = StageTransitionRequest(
            request_id=uuid.uuid4().hex,
            buyer_id=buyer_id,
            buyer_name=buyer.name,
            from_stage=buyer.current_stage_number,
            to_stage=target,
            notice=notice,
            message=message,
        )
        self._pending[request.request_id] = request
        self._emit(
            ev.JumpRequested(
                request_id=request.request_id,
                buyer_id=buyer_id,
                from_stage=request.from_stage,
                to_stage=request.to_stage,
                notice=notice.value,
                message=message,
            )
        )
        return Result.success(request)

    async def confirm_jump(self, request_id: str) -> Result[TransitionSummary]:
        request = self._pending.get(request_id)
        if request is None:
            return Result.failure(
                ErrorKind.REQUEST_NOT_FOUND,
                "No pending stage change to confirm; request it again.",
            )
        try:
            async with self._single_flight(request.buyer_id):
                buyer = await self._load_buyer(request.buyer_id)
                if buyer.current_stage_number != request.from_stage:
                    self._pending.pop(request_id, None)
                    raise self._refuse(
                        request.buyer_id,
                        ErrorKind.STALE_REQUEST,
                        f"{buyer.name} moved to {self.catalog.label(buyer.current_stage_number)} "
                        "after this change was requested.",
                    )
                current = self.catalog.get_stage(request.from_stage)
                target = self._target_stage(request.buyer_id, request.to_stage)
                result = await self._commit(buyer, current, target, Direction.JUMP)
        except _Refused as refused:
            if refused.result.error and refused.result.error.kind not in _RETRYABLE:
                self._pending.pop(request_id, None)
            return refused.result
        self._pending.pop(request_id, None)
        return result

    def cancel_jump(self, request_id: str) -> Result[StageTransitionRequest]:
        request = self._pending.pop(request_id, None)
        if request is None:
            return Result.failure(ErrorKind.REQUEST_NOT_FOUND, "No pending stage change to cancel.")
        self._emit(ev.JumpCancelled(request_id=request_id, buyer_id=request.buyer_id))
        return Result.success(request)

    def pending_request(self, request_id: str) -> StageTransitionRequest | None:
        return self._pending.get(request_id)

    async def _commit(
        self,
        buyer: Buyer,
        current: Stage | None,
        target: Stage,
        direction: Direction,
    ) -> Result[TransitionSummary]:
        try:
            await self.store.save_buyer_stage(buyer.id, target.stage_number)
        except StoreError as exc:
            raise self._store_failure(buyer.id, "save_buyer_stage", exc)
        summary = build_summary(buyer, current, target, direction, self.catalog)
        self._emit(
            ev.TransitionCommitted(
                buyer_id=buyer.id,
                from_stage=summary.from_stage,
                to_stage=summary.to_stage,
                direction=direction.value,
                message=summary.message,
            )
        )
        return Result.success(summary)

    async def _load_buyer(self, buyer_id: str) -> Buyer:
        try:
            buyer = await self.store.load_buyer(buyer_id)
        except StoreError as exc:
            raise self._store_failure(buyer_id, "load_buyer", exc)
        if buyer is None:
            raise self._refuse(buyer_id, ErrorKind.BUYER_NOT_FOUND, f"Unknown buyer: {buyer_id}")
        return buyer

    def _current_stage(self, buyer: Buyer) -> Stage:
        stage = self.catalog.get_stage(buyer.current_stage_number)
        if stage is None:
            raise self._refuse(
                buyer.id,
                ErrorKind.STAGE_NOT_CONFIGURED,
                f"Current stage {buyer.current_stage_number} is not yet configured.",
                stage_number=buyer.current_stage_number,
            )
        return stage

    def _target_stage(self, buyer_id: str, target: int) -> Stage:
        if target < 0 or target > self.catalog.max_stage_number():
            raise self._refuse(
                buyer_id,
                ErrorKind.OUT_OF_RANGE,
                f"Stage {target} is outside the journey "
                f"(0-{self.catalog.max_stage_number()}).",
                stage_number=target,
            )
        stage = self.catalog.get_stage(target)
        if stage is None:
            raise self._refuse(
                buyer_id,
                ErrorKind.STAGE_NOT_CONFIGURED,
                f"Stage {target} is not yet configured.",
                stage_number=target,
            )
        return stage

    @asynccontextmanager
    async def _single_flight(self, buyer_id: str) -> AsyncIterator[None]:
        if buyer_id in self._in_flight:
            raise self._refuse(
                buyer_id,
                ErrorKind.TRANSITION_PENDING,
                "A stage change for this buyer is still being saved.",
            )
        self._in_flight.add(buyer_id)
        try:
            yield
        finally:
            self._in_flight.discard(buyer_id)

    def _refuse(self, buyer_id: str, kind: ErrorKind, message: str, **details) -> _Refused:
        result: Result = Result.failure(kind, message, **details)
        self._emit(
            ev.TransitionBlocked(
                buyer_id=buyer_id,
                error_code=kind.value,
                message=message,
                remaining_criteria=list(details.get("remaining_criteria", ())),
            )
        )
        return _Refused(result)

    def _store_failure(self, buyer_id: str, operation: str, exc: StoreError) -> _Refused:
        self._emit(ev.StoreCallFailed(buyer_id=buyer_id, operation=operation, message=str(exc)))
        return _Refused(
            Result.failure(ErrorKind.PERSISTENCE_FAILURE, f"Could not reach the buyer store: {exc}")
        )

    def _emit(self, event: ev.BuyerstageEvent) -> None:
        if self.listener is not None:
            self.listener(event)


def build_summary(
    buyer: Buyer,
    current: Stage | None,
    target: Stage,
    direction: Direction,
    catalog: StageCatalog,
) -> TransitionSummary:
    from_stage = current.stage_number if current else buyer.current_stage_number
    return TransitionSummary(
        buyer_id=buyer.id,
        buyer_name=buyer.name,
        from_stage=from_stage,
        to_stage=target.stage_number,
        from_label=current.label if current else catalog.label(from_stage),
        to_label=target.label,
        direction=direction,
    )
