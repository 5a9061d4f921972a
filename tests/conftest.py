from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from buyerstage.core.catalog import StageCatalog  # noqa: E402
from buyerstage.core.completion import CompletionTracker  # noqa: E402
from buyerstage.core.progression import StageProgressionEngine  # noqa: E402
from buyerstage.stores.memory import MemoryStore  # noqa: E402

JOURNEY = [
    {"stage_number": 0, "name": "Readiness", "id": "stg-0", "completion_criteria": []},
    {
        "stage_number": 1,
        "name": "Financing",
        "id": "stg-1",
        "objective": "Confirm buying power",
        "completion_criteria": ["Confirm pre-approval", "Set budget"],
        "next_actions": ["Initiate pre-approval", "Define budget bands"],
    },
    {
        "stage_number": 2,
        "name": "Search Setup",
        "id": "stg-2",
        "completion_criteria": ["Review market brief", "Pick neighborhoods", "Confirm touring cadence"],
    },
    {"stage_number": 3, "name": "Touring", "id": "stg-3", "completion_criteria": []},
    {"stage_number": 4, "name": "Offer", "id": "stg-4", "completion_criteria": []},
    {"stage_number": 5, "name": "Negotiation", "id": "stg-5", "completion_criteria": ["Sign agreement"]},
    {"stage_number": 6, "name": "Due Diligence", "id": "stg-6", "completion_criteria": []},
    {"stage_number": 8, "name": "Final Walkthrough", "id": "stg-8", "completion_criteria": []},
]


class RecordingListener:
    def __init__(self) -> None:
        self.events: list = []

    def __call__(self, event) -> None:
        self.events.append(event)

    def of_type(self, cls) -> list:
        return [event for event in self.events if isinstance(event, cls)]


@pytest.fixture
def catalog() -> StageCatalog:
    return StageCatalog(JOURNEY)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore(
        stages=JOURNEY,
        buyers=[
            {"id": "b-sarah", "name": "Sarah Chen", "current_stage_number": 1},
            {"id": "b-omar", "name": "Omar Diaz", "current_stage_number": 5},
            {"id": "b-new", "name": "Lee Park", "current_stage_number": 0},
        ],
    )


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def tracker(store: MemoryStore, catalog: StageCatalog, listener: RecordingListener) -> CompletionTracker:
    return CompletionTracker(store, catalog, listener=listener)


@pytest.fixture
def engine(
    store: MemoryStore,
    catalog: StageCatalog,
    tracker: CompletionTracker,
    listener: RecordingListener,
) -> StageProgressionEngine:
    return StageProgressionEngine(store, catalog, tracker, listener=listener)


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    project_dir = tmp_path / "project"
    project_dir.mkdir(parents=True)
    (project_dir / "data").mkdir()

    (project_dir / "buyerstage.yaml").write_text(
        """
version: v1

store:
  type: file
  with:
    path: data/store.json

scope:
  window_size: 2
""".strip()
        + "\n",
        encoding="utf-8",
    )

    document = {
        "stages": JOURNEY,
        "buyers": [
            {"id": "b-sarah", "name": "Sarah Chen", "current_stage_number": 1},
            {"id": "b-omar", "name": "Omar Diaz", "current_stage_number": 5},
        ],
        "completion": [
            {"buyer_id": "b-sarah", "stage_number": 1, "criteria_index": 0, "is_completed": True},
        ],
        "artifacts": [
            {"id": "a-2", "buyer_id": "b-omar", "stage_id": "stg-2", "title": "Market brief"},
            {"id": "a-3", "buyer_id": "b-omar", "stage_id": "stg-3", "title": "Tour notes"},
            {"id": "a-4", "buyer_id": "b-omar", "stage_id": "stg-4", "title": "Offer strategy"},
            {"id": "a-5", "buyer_id": "b-omar", "stage_id": "stg-5", "title": "Counter analysis"},
            {"id": "a-none", "buyer_id": "b-omar", "title": "Welcome packet", "visibility": "shared"},
        ],
    }
    (project_dir / "data" / "store.json").write_text(
        json.dumps(document, indent=2) + "\n",
        encoding="utf-8",
    )

    return project_dir
