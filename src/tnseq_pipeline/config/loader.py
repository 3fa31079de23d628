"""Configuration loading with YAML parsing and validation."""

from pathlib import Path
from typing import Any

import pydantic_yaml

from .schema import PipelineConfig


def load_config(config_path: Path | str) -> PipelineConfig:
    """
    Load and validate pipeline configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated PipelineConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        pydantic.ValidationError: If config is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        yaml_content = f.read()

    config = pydantic_yaml.parse_yaml_raw_as(PipelineConfig, yaml_content)

    return config


def _apply_override(config_dict: dict[str, Any], key: str, value: Any) -> None:
    """Set a dotted key (e.g. "simulation.seed") in a dumped config dict.

    Raises:
        KeyError: If any part of the key is not a PipelineConfig field
    """
    parts = key.split(".")
    target = config_dict
    for depth, part in enumerate(parts):
        if not isinstance(target, dict) or part not in target:
            known = sorted(target) if isinstance(target, dict) else []
            raise KeyError(
                f"unknown config key {key!r} at {'.'.join(parts[:depth + 1])!r}; "
                f"expected one of {known}"
            )
        if depth < len(parts) - 1:
            target = target[part]
    target[parts[-1]] = value


def load_config_with_overrides(
    config_path: Path | str,
    overrides: dict[str, Any],
) -> PipelineConfig:
    """
    Load config from YAML and apply dictionary overrides.

    Used by CLI flags (--seed, --workers) that override config file values.
    Overrides go through the same validation as the YAML, so a seed of -1 or
    zero workers fails exactly as it would in the file.

    Args:
        config_path: Path to YAML configuration file
        overrides: Dictionary of values to override (dotted keys for nesting,
                   e.g. "simulation.max_workers")

    Returns:
        Validated PipelineConfig with overrides applied

    Raises:
        FileNotFoundError: If config file doesn't exist
        KeyError: If an override key names no config field
        pydantic.ValidationError: If final config is invalid
    """
    config = load_config(config_path)

    config_dict = config.model_dump()
    for key, value in overrides.items():
        _apply_override(config_dict, key, value)

    return PipelineConfig.model_validate(config_dict)
