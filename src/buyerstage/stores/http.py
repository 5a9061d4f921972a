from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import httpx

from buyerstage.core.models import Artifact, Buyer, CompletionRecord
from buyerstage.stores.base import StoreError


class HttpStore:
    """PostgREST-style backend (``/stages``, ``/buyers``, ``/stage_completion``, ``/artifacts``)."""

    def __init__(
        self,
        project_dir: object,
        *,
        url: str,
        headers: dict[str, str] | None = None,
        api_key: str | None = None,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        **_: Any,
    ):
        self.url = url.rstrip("/")
        self.headers = dict(headers or {})
        if api_key:
            self.headers.setdefault("apikey", api_key)
            self.headers.setdefault("Authorization", f"Bearer {api_key}")
        self.timeout = timeout_s
        self.transport = transport

    async def load_buyer(self, buyer_id: str) -> Buyer | None:
        rows = await self._request(
            "GET",
            "/buyers",
            params={"id": f"eq.{buyer_id}", "select": "id,name,current_stage_number"},
        )
        return Buyer.model_validate(rows[0]) if rows else None

    async def save_buyer_stage(self, buyer_id: str, stage_number: int) -> None:
        rows = await self._request(
            "PATCH",
            "/buyers",
            params={"id": f"eq.{buyer_id}"},
            json={"current_stage_number": stage_number},
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise StoreError(f"Unknown buyer: {buyer_id}")

    async def load_completion_records(
        self, buyer_id: str, stage_number: int
    ) -> list[CompletionRecord]:
        rows = await self._request(
            "GET",
            "/stage_completion",
            params={
                "buyer_id": f"eq.{buyer_id}",
                "stage_number": f"eq.{stage_number}",
                "order": "criteria_index.asc",
            },
        )
        return [CompletionRecord.model_validate(row) for row in rows]

    async def save_completion_record(
        self, buyer_id: str, stage_number: int, index: int, value: bool
    ) -> CompletionRecord:
        body = {
            "buyer_id": buyer_id,
            "stage_number": stage_number,
            "criteria_index": index,
            "is_completed": value,
            "completed_at": datetime.now(timezone.utc).isoformat() if value else None,
        }
        rows = await self._request(
            "POST",
            "/stage_completion",
            params={"on_conflict": "buyer_id,stage_number,criteria_index"},
            json=body,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        return CompletionRecord.model_validate(rows[0] if rows else body)

    async def load_stage_catalog(self) -> list[dict[str, Any]]:
        rows = await self._request(
            "GET",
            "/stages",
            params={"select": "*", "order": "stage_number.asc"},
        )
        return [_stage_row(row) for row in rows]

    async def load_artifacts(self, buyer_id: str) -> list[Artifact]:
        rows = await self._request(
            "GET",
            "/artifacts",
            params={"buyer_id": f"eq.{buyer_id}", "order": "created_at.desc"},
        )
        return [Artifact.model_validate(row) for row in rows]

    async def share_artifact(self, artifact_id: str) -> Artifact:
        rows = await self._request(
            "PATCH",
            "/artifacts",
            params={"id": f"eq.{artifact_id}"},
            json={"visibility": "shared", "shared_at": datetime.now(timezone.utc).isoformat()},
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise StoreError(f"Unknown artifact: {artifact_id}")
        return Artifact.model_validate(rows[0])

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        try:
            async with httpx.AsyncClient(
                base_url=self.url,
                headers=self.headers,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.request(
                    method, path, params=params, json=json, headers=headers
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StoreError(f"{method} {path} failed: {exc}") from exc
        if not response.content:
            return []
        data = response.json()
        if isinstance(data, dict):
            return [data]
        return data


def _stage_row(row: dict[str, Any]) -> dict[str, Any]:
    # The stages table names its columns stage_name/stage_objective.
    mapped = dict(row)
    if "stage_name" in mapped:
        mapped.setdefault("name", mapped.pop("stage_name"))
    if "stage_objective" in mapped:
        mapped.setdefault("objective", mapped.pop("stage_objective"))
    for key in ("completion_criteria", "next_actions"):
        mapped[key] = [str(item) for item in mapped.get(key) or []]
    return mapped
