from __future__ import annotations

import copy
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from buyerstage.core.models import Artifact, Buyer, CompletionRecord
from buyerstage.core.stages import DEFAULT_STAGES
from buyerstage.stores.base import StoreError


class MemoryStore:
    def __init__(
        self,
        project_dir: Path | None = None,
        *,
        stages: list[dict[str, Any]] | None = None,
        buyers: list[dict[str, Any]] | None = None,
        artifacts: list[dict[str, Any]] | None = None,
        **_: Any,
    ):
        self.stages = copy.deepcopy(stages if stages is not None else DEFAULT_STAGES)
        self.buyers: dict[str, Buyer] = {}
        self.completion: dict[tuple[str, int, int], CompletionRecord] = {}
        self.artifacts: list[Artifact] = [Artifact.model_validate(item) for item in artifacts or []]
        for item in buyers or []:
            self.add_buyer(Buyer.model_validate(item))

    def add_buyer(self, buyer: Buyer) -> None:
        self.buyers[buyer.id] = buyer

    async def load_buyer(self, buyer_id: str) -> Buyer | None:
        buyer = self.buyers.get(buyer_id)
        return buyer.model_copy() if buyer else None

    async def save_buyer_stage(self, buyer_id: str, stage_number: int) -> None:
        buyer = self.buyers.get(buyer_id)
        if buyer is None:
            raise StoreError(f"Unknown buyer: {buyer_id}")
        self.buyers[buyer_id] = buyer.model_copy(update={"current_stage_number": stage_number})

    async def load_completion_records(
        self, buyer_id: str, stage_number: int
    ) -> list[CompletionRecord]:
        records = [
            record
            for (b_id, s_num, _), record in self.completion.items()
            if b_id == buyer_id and s_num == stage_number
        ]
        return sorted(records, key=lambda record: record.criteria_index)

    async def save_completion_record(
        self, buyer_id: str, stage_number: int, index: int, value: bool
    ) -> CompletionRecord:
        existing = self.completion.get((buyer_id, stage_number, index))
        if existing is not None and existing.is_completed == value:
            return existing
        record = CompletionRecord(
            buyer_id=buyer_id,
            stage_number=stage_number,
            criteria_index=index,
            is_completed=value,
            completed_at=datetime.now(timezone.utc) if value else None,
        )
        self.completion[(buyer_id, stage_number, index)] = record
        return record

    async def load_stage_catalog(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self.stages)

    async def load_artifacts(self, buyer_id: str) -> list[Artifact]:
        return [artifact for artifact in self.artifacts if artifact.buyer_id == buyer_id]

    async def share_artifact(self, artifact_id: str) -> Artifact:
        for position, artifact in enumerate(self.artifacts):
            if artifact.id == artifact_id:
                shared = artifact.model_copy(
                    update={"visibility": "shared", "shared_at": datetime.now(timezone.utc)}
                )
                self.artifacts[position] = shared
                return shared
        raise StoreError(f"Unknown artifact: {artifact_id}")
