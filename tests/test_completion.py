from __future__ import annotations

import asyncio

from buyerstage.core.completion import CompletionTracker
from buyerstage.core.events import CriterionToggled, StoreCallFailed
from buyerstage.core.result import ErrorKind
from buyerstage.stores.base import StoreError
from buyerstage.stores.memory import MemoryStore


def test_missing_record_defaults_to_false(tracker: CompletionTracker) -> None:
    assert asyncio.run(tracker.is_criterion_completed("b-sarah", 1, 0)) is False


def test_toggle_is_idempotent(tracker: CompletionTracker, store: MemoryStore, listener) -> None:
    async def scenario() -> tuple[bool, bool]:
        first = await tracker.toggle_criterion("b-sarah", 1, 0, True)
        after_first = await tracker.is_criterion_completed("b-sarah", 1, 0)
        second = await tracker.toggle_criterion("b-sarah", 1, 0, True)
        after_second = await tracker.is_criterion_completed("b-sarah", 1, 0)
        assert first.ok and second.ok
        return after_first, after_second

    assert asyncio.run(scenario()) == (True, True)
    assert len(store.completion) == 1
    toggled = listener.of_type(CriterionToggled)
    assert [event.changed for event in toggled] == [True, False]


def test_all_criteria_completed_requires_every_index(tracker: CompletionTracker) -> None:
    async def scenario() -> list[bool]:
        seen = [await tracker.all_criteria_completed("b-sarah", 2, 3)]
        for index in range(3):
            await tracker.toggle_criterion("b-sarah", 2, index, True)
            seen.append(await tracker.all_criteria_completed("b-sarah", 2, 3))
        return seen

    assert asyncio.run(scenario()) == [False, False, False, True]


def test_zero_criteria_is_vacuously_complete(tracker: CompletionTracker) -> None:
    assert asyncio.run(tracker.all_criteria_completed("b-sarah", 0, 0)) is True


def test_unchecking_clears_completion(tracker: CompletionTracker, store: MemoryStore) -> None:
    async def scenario() -> bool:
        await tracker.toggle_criterion("b-sarah", 5, 0, True)
        await tracker.toggle_criterion("b-sarah", 5, 0, False)
        return await tracker.is_criterion_completed("b-sarah", 5, 0)

    assert asyncio.run(scenario()) is False
    record = store.completion[("b-sarah", 5, 0)]
    assert record.completed_at is None


def test_remaining_criteria_and_ratio(tracker: CompletionTracker) -> None:
    async def scenario():
        await tracker.toggle_criterion("b-sarah", 2, 1, True)
        return (
            await tracker.remaining_criteria("b-sarah", 2),
            await tracker.completion_ratio("b-sarah", 2),
        )

    remaining, ratio = asyncio.run(scenario())
    assert remaining == ("Review market brief", "Confirm touring cadence")
    assert ratio == (1, 3)


def test_toggle_rejects_index_past_criteria(tracker: CompletionTracker) -> None:
    result = asyncio.run(tracker.toggle_criterion("b-sarah", 1, 2, True))

    assert not result.ok
    assert result.error.kind is ErrorKind.OUT_OF_RANGE


def test_toggle_on_unconfigured_stage(tracker: CompletionTracker) -> None:
    result = asyncio.run(tracker.toggle_criterion("b-sarah", 7, 0, True))

    assert result.error.kind is ErrorKind.STAGE_NOT_CONFIGURED


def test_orphaned_index_lookup_does_not_crash(store: MemoryStore, tracker: CompletionTracker) -> None:
    async def scenario() -> bool:
        await store.save_completion_record("b-sarah", 1, 9, True)
        return await tracker.is_criterion_completed("b-sarah", 1, 9)

    assert asyncio.run(scenario()) is True
    assert asyncio.run(tracker.all_criteria_completed("b-sarah", 1, 2)) is False


def test_records_survive_stage_moves(tracker: CompletionTracker, store: MemoryStore) -> None:
    async def scenario() -> bool:
        await tracker.toggle_criterion("b-omar", 2, 0, True)
        await store.save_buyer_stage("b-omar", 6)
        tracker.invalidate("b-omar")
        return await tracker.is_criterion_completed("b-omar", 2, 0)

    assert asyncio.run(scenario()) is True


class FailingWrites(MemoryStore):
    async def save_completion_record(self, buyer_id, stage_number, index, value):
        raise StoreError("timeout")


def test_failed_write_is_not_applied(catalog, listener) -> None:
    store = FailingWrites(buyers=[{"id": "b-1", "name": "Ana Ruiz", "current_stage_number": 1}])
    tracker = CompletionTracker(store, catalog, listener=listener)

    async def scenario():
        result = await tracker.toggle_criterion("b-1", 1, 0, True)
        return result, await tracker.is_criterion_completed("b-1", 1, 0)

    result, completed = asyncio.run(scenario())
    assert result.error.kind is ErrorKind.PERSISTENCE_FAILURE
    assert completed is False
    assert listener.of_type(StoreCallFailed)


def test_concurrent_toggles_on_different_cells(tracker: CompletionTracker) -> None:
    async def scenario() -> bool:
        await asyncio.gather(
            tracker.toggle_criterion("b-sarah", 2, 0, True),
            tracker.toggle_criterion("b-sarah", 2, 1, True),
            tracker.toggle_criterion("b-sarah", 2, 2, True),
        )
        return await tracker.all_criteria_completed("b-sarah", 2, 3)

    assert asyncio.run(scenario()) is True


def test_last_write_wins_across_trackers(store: MemoryStore, catalog) -> None:
    agent = CompletionTracker(store, catalog)
    portal = CompletionTracker(store, catalog)

    async def scenario():
        await agent.toggle_criterion("b-sarah", 1, 0, True)
        await portal.toggle_criterion("b-sarah", 1, 0, False)
        again = await agent.toggle_criterion("b-sarah", 1, 0, True)
        return again, await portal.is_criterion_completed("b-sarah", 1, 0)

    again, seen_by_portal = asyncio.run(scenario())

    assert again.ok
    assert store.completion[("b-sarah", 1, 0)].is_completed is True
    assert seen_by_portal is True


def test_toggle_reports_change_against_stored_state(store: MemoryStore, catalog, listener) -> None:
    agent = CompletionTracker(store, catalog, listener=listener)
    portal = CompletionTracker(store, catalog)

    async def scenario() -> None:
        await agent.is_criterion_completed("b-sarah", 2, 0)
        await portal.toggle_criterion("b-sarah", 2, 0, True)
        await agent.toggle_criterion("b-sarah", 2, 0, True)

    asyncio.run(scenario())

    toggled = listener.of_type(CriterionToggled)
    assert toggled[-1].changed is False
