from __future__ import annotations

from typing import Any, Protocol

from buyerstage.core.models import Artifact, Buyer, CompletionRecord


class StoreError(RuntimeError):
    pass


class BuyerStore(Protocol):
    async def load_buyer(self, buyer_id: str) -> Buyer | None: ...

    async def save_buyer_stage(self, buyer_id: str, stage_number: int) -> None: ...

    async def load_completion_records(
        self, buyer_id: str, stage_number: int
    ) -> list[CompletionRecord]: ...

    async def save_completion_record(
        self, buyer_id: str, stage_number: int, index: int, value: bool
    ) -> CompletionRecord: ...

    async def load_stage_catalog(self) -> list[dict[str, Any]]: ...

    async def load_artifacts(self, buyer_id: str) -> list[Artifact]: ...

    async def share_artifact(self, artifact_id: str) -> Artifact: ...
