from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from buyerstage.config.load import ConfigError, load_config, load_stage_file, resolve_path
from buyerstage.config.model import Config
from buyerstage.core import events as ev
from buyerstage.core.catalog import CatalogError, StageCatalog
from buyerstage.core.completion import CompletionTracker
from buyerstage.core.progression import StageProgressionEngine
from buyerstage.core.scope import ArtifactStageScope
from buyerstage.plugins.registry import load_store
from buyerstage.stores.base import BuyerStore, StoreError


@dataclass
class Session:
    config: Config
    store: BuyerStore
    catalog: StageCatalog
    tracker: CompletionTracker
    engine: StageProgressionEngine
    scope: ArtifactStageScope


async def open_session(
    project_dir: Path,
    config_path: Path | None = None,
    *,
    listener: ev.EventListener | None = None,
) -> Session:
    project_dir = project_dir.resolve()
    config = load_config(project_dir, config_path)
    try:
        store_cls = load_store(config.store.type)
        store = store_cls(project_dir, **config.store.with_)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Cannot create {config.store.type} store: {exc}") from exc
    catalog = await _load_catalog(project_dir, config, store)
    tracker = CompletionTracker(store, catalog, listener=listener)
    engine = StageProgressionEngine(store, catalog, tracker, listener=listener)
    scope = ArtifactStageScope(catalog, window_size=config.scope.window_size)
    return Session(
        config=config,
        store=store,
        catalog=catalog,
        tracker=tracker,
        engine=engine,
        scope=scope,
    )


async def _load_catalog(project_dir: Path, config: Config, store: BuyerStore) -> StageCatalog:
    if config.stages:
        records = config.stage_records()
    elif config.stages_file:
        records = load_stage_file(resolve_path(project_dir, config.stages_file))
    else:
        try:
            records = await store.load_stage_catalog()
        except StoreError as exc:
            raise ConfigError(f"Could not load stage catalog: {exc}") from exc
    if not records:
        raise ConfigError("No stages configured.")
    try:
        return StageCatalog(records)
    except CatalogError as exc:
        raise ConfigError(str(exc)) from exc
