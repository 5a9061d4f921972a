from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from buyerstage.core.models import Artifact, Buyer, CompletionRecord
from buyerstage.core.stages import DEFAULT_STAGES
from buyerstage.stores.base import StoreError


class FileStore:
    """Single JSON document holding stages, buyers, completion rows and artifacts."""

    def __init__(self, project_dir: Path, *, path: str, **_: Any):
        self.path = project_dir / path

    async def load_buyer(self, buyer_id: str) -> Buyer | None:
        for item in self._read().get("buyers", []):
            if item.get("id") == buyer_id:
                return Buyer.model_validate(item)
        return None

    async def save_buyer_stage(self, buyer_id: str, stage_number: int) -> None:
        document = self._read()
        for item in document.get("buyers", []):
            if item.get("id") == buyer_id:
                item["current_stage_number"] = stage_number
                break
        else:
            raise StoreError(f"Unknown buyer: {buyer_id}")
        self._write(document)

    async def load_completion_records(
        self, buyer_id: str, stage_number: int
    ) -> list[CompletionRecord]:
        records = [
            CompletionRecord.model_validate(item)
            for item in self._read().get("completion", [])
            if item.get("buyer_id") == buyer_id and item.get("stage_number") == stage_number
        ]
        return sorted(records, key=lambda record: record.criteria_index)

    async def save_completion_record(
        self, buyer_id: str, stage_number: int, index: int, value: bool
    ) -> CompletionRecord:
        document = self._read()
        rows = document.setdefault("completion", [])
        record = CompletionRecord(
            buyer_id=buyer_id,
            stage_number=stage_number,
            criteria_index=index,
            is_completed=value,
            completed_at=datetime.now(timezone.utc) if value else None,
        )
        for i, item in enumerate(rows):
            if (
                item.get("buyer_id") == buyer_id
                and item.get("stage_number") == stage_number
                and item.get("criteria_index") == index
            ):
                if item.get("is_completed") == value:
                    return CompletionRecord.model_validate(item)
                rows[i] = record.model_dump(mode="json")
                break
        else:
            rows.append(record.model_dump(mode="json"))
        self._write(document)
        return record

    async def load_stage_catalog(self) -> list[dict[str, Any]]:
        return self._read().get("stages") or list(DEFAULT_STAGES)

    async def load_artifacts(self, buyer_id: str) -> list[Artifact]:
        return [
            Artifact.model_validate(item)
            for item in self._read().get("artifacts", [])
            if item.get("buyer_id") == buyer_id
        ]

    async def share_artifact(self, artifact_id: str) -> Artifact:
        document = self._read()
        for item in document.get("artifacts", []):
            if item.get("id") == artifact_id:
                item["visibility"] = "shared"
                item["shared_at"] = datetime.now(timezone.utc).isoformat()
                break
        else:
            raise StoreError(f"Unknown artifact: {artifact_id}")
        self._write(document)
        return Artifact.model_validate(item)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            raise StoreError(f"Missing store file: {self.path}")
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Failed to read store file: {self.path}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"{self.path} must hold a JSON object at the top level.")
        return data

    def _write(self, document: dict[str, Any]) -> None:
        payload = json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp_path.write_text(f"{payload}\n", encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise StoreError(f"Failed to write store file: {self.path}") from exc
