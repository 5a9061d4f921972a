from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import ValidationError
from ruamel.yaml import YAML

from .model import Config, StageSpec

DEFAULT_CONFIG_NAME = "buyerstage.yaml"


class ConfigError(RuntimeError):
    pass


_yaml = YAML(typ="safe")


def resolve_path(project_dir: Path, path: Path | str) -> Path:
    path = Path(path)
    return path if path.is_absolute() else project_dir / path


def load_config(project_dir: Path, config_path: Path | None = None) -> Config:
    config_path = resolve_path(project_dir, config_path or DEFAULT_CONFIG_NAME)
    if not config_path.exists():
        raise ConfigError(f"Missing config: {config_path}")
    data = _load_yaml(config_path)
    if data is None:
        # An empty file means every default applies.
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must be a YAML mapping at the top level.")
    try:
        return Config.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config {config_path}:\n{exc}") from exc


def load_stage_file(path: Path) -> list[dict[str, Any]]:
    """Read a ``stages:`` catalog file into plain stage records."""
    if not path.exists():
        raise ConfigError(f"Missing stage catalog file: {path}")
    data = _load_yaml(path)
    if not isinstance(data, dict) or not isinstance(data.get("stages"), list):
        raise ConfigError(f"{path} must hold a top-level 'stages' list.")
    records = []
    for position, item in enumerate(data["stages"]):
        try:
            spec = StageSpec.model_validate(item)
        except ValidationError as exc:
            raise ConfigError(f"{path}: stage entry {position} is invalid:\n{exc}") from exc
        records.append(spec.model_dump(exclude_none=True))
    return records


def _load_yaml(path: Path) -> Any:
    try:
        return _yaml.load(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ConfigError(f"Failed to parse YAML: {path}") from exc
