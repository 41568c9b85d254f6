from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from step_kernel.config.models import RunConfig


# ConfigError is raised for invalid configuration (fail fast).
class ConfigError(ValueError):
    pass


def load_yaml_config(path: Path) -> dict[str, object]:
    # Raw mapping for validation.
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config {path} is not valid YAML: {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a mapping")
    return raw


def parse_config(raw: dict[str, object]) -> RunConfig:
    try:
        return RunConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config: {exc}") from exc


def load_config(path: Path) -> RunConfig:
    # Relative feature paths are resolved against the config file's directory.
    config = parse_config(load_yaml_config(path))
    base = path.parent
    config.features = [str(p if Path(p).is_absolute() else base / p) for p in config.features]
    return config
