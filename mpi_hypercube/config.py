## YAML config loading and merging.

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from .errors import ConfigurationError
from .tokens import DEFAULT_MAX_TOKEN_LENGTH


@dataclass
class HypercubeConfig:
    dimension: Any = None
    input_path: str | None = None
    log_level: str = "WARNING"
    max_token_length: int = DEFAULT_MAX_TOKEN_LENGTH
    local: bool = False
    group_size: int | None = None


CONFIG_KEYS = frozenset(f.name for f in dataclasses.fields(HypercubeConfig))


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dictionary.

    Raises:
        ConfigurationError: If the file cannot be read or parsed, or its
            root is not a mapping
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except OSError as exc:
        raise ConfigurationError(f"could not read config `{path}': {exc.strerror or exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in `{path}': {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"config root must be a mapping: {path}")
    return data


def deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge two dictionaries; values from ``override`` win.

    Returns a new dictionary, neither input is modified.
    """
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def merge_yaml_files(paths: Iterable[Path]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for path in paths:
        merged = deep_merge(merged, load_yaml_file(path))
    return merged


def resolve_config(paths: Iterable[Path] = (), overrides: Mapping[str, Any] | None = None) -> HypercubeConfig:
    """Merge config files left to right, then apply non-None overrides."""
    merged = merge_yaml_files(paths)
    if overrides:
        merged = deep_merge(merged, {k: v for k, v in overrides.items() if v is not None})

    unknown = sorted(set(merged) - CONFIG_KEYS)
    if unknown:
        raise ConfigurationError(f"unknown config keys: {', '.join(unknown)}")

    cfg = HypercubeConfig(**merged)
    if cfg.input_path is not None:
        cfg.input_path = str(cfg.input_path)
    try:
        cfg.max_token_length = int(cfg.max_token_length)
        if cfg.group_size is not None:
            cfg.group_size = int(cfg.group_size)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"invalid config value: {exc}") from exc
    if cfg.group_size is not None and cfg.group_size < 1:
        raise ConfigurationError(f"group_size must be positive, got {cfg.group_size}")
    if cfg.max_token_length < 1:
        raise ConfigurationError(f"max_token_length must be positive, got {cfg.max_token_length}")
    if not isinstance(logging.getLevelName(str(cfg.log_level).upper()), int):
        raise ConfigurationError(f"unknown log level: {cfg.log_level}")
    cfg.log_level = str(cfg.log_level).upper()
    return cfg


def config_to_yaml(cfg: HypercubeConfig) -> str:
    return yaml.safe_dump(dataclasses.asdict(cfg), sort_keys=False)
