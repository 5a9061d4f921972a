from __future__ import annotations

import asyncio

import pytest

from buyerstage.core.catalog import CatalogError, CatalogNotLoaded, StageCatalog
from buyerstage.core.stages import DEFAULT_STAGES
from buyerstage.stores.memory import MemoryStore


def test_list_stages_orders_by_stage_number() -> None:
    catalog = StageCatalog(
        [
            {"stage_number": 2, "name": "Touring"},
            {"stage_number": 0, "name": "Readiness"},
            {"stage_number": 1, "name": "Financing"},
        ]
    )

    assert [stage.stage_number for stage in catalog.list_stages()] == [0, 1, 2]
    assert catalog.max_stage_number() == 2


def test_get_stage_returns_none_for_gap(catalog: StageCatalog) -> None:
    assert catalog.get_stage(7) is None
    assert catalog.get_stage(8).name == "Final Walkthrough"
    assert catalog.label(7) == "Stage 7 (not yet configured)"


def test_stage_id_defaults_to_stage_number() -> None:
    catalog = StageCatalog([{"stage_number": 3, "name": "Touring"}])

    assert catalog.get_stage(3).id == "3"
    assert catalog.resolve_stage_id("3").name == "Touring"


def test_resolve_stage_id(catalog: StageCatalog) -> None:
    assert catalog.resolve_stage_id("stg-5").stage_number == 5
    assert catalog.resolve_stage_id("missing") is None
    assert catalog.resolve_stage_id(None) is None


def test_duplicate_stage_numbers_rejected() -> None:
    with pytest.raises(CatalogError, match="Duplicate stage numbers: 1"):
        StageCatalog(
            [
                {"stage_number": 1, "name": "Financing"},
                {"stage_number": 1, "name": "Budget"},
            ]
        )


def test_duplicate_stage_names_rejected() -> None:
    with pytest.raises(CatalogError, match="Duplicate stage names"):
        StageCatalog(
            [
                {"stage_number": 0, "name": "Touring"},
                {"stage_number": 1, "name": "Touring"},
            ]
        )


def test_negative_stage_number_rejected() -> None:
    with pytest.raises(CatalogError, match="Invalid stage entry"):
        StageCatalog([{"stage_number": -1, "name": "Before"}])


def test_empty_catalog_query_is_programmer_error() -> None:
    catalog = StageCatalog([])

    with pytest.raises(CatalogNotLoaded):
        catalog.max_stage_number()
    with pytest.raises(CatalogNotLoaded):
        catalog.get_stage(0)


def test_default_catalog_has_ten_stages() -> None:
    catalog = StageCatalog.default()

    assert len(catalog) == 10
    assert catalog.max_stage_number() == 9
    assert catalog.get_stage(0).name == "Readiness & Expectations"
    assert catalog.get_stage(9).name == "Closing & Post-Close"
    assert len(DEFAULT_STAGES) == 10


def test_load_from_store() -> None:
    catalog = asyncio.run(StageCatalog.load(MemoryStore()))

    assert catalog.get_stage(1).label == "Stage 1: Financing & Capability"
    assert catalog.get_stage(1).completion_criteria == ("Submit pre-approval docs", "Confirm budget")
