# src/onepass/core/config.py
"""
Configuration schema and loading for OnePass.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import os
import re
from enum import StrEnum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from onepass.core.weights.policy import AggregationMode


class ExecutionMode(StrEnum):
    """How the bottom-up pass writes the weight table."""

    DIRECT = "direct"
    PARTITIONED = "partitioned"


class ExecutionSettings(BaseModel):
    """Execution strategy for the weight engine.

    Example YAML:
        execution:
          mode: partitioned
          shards: 8
          max_workers: 4
    """

    model_config = {"frozen": True}

    mode: ExecutionMode = Field(
        default=ExecutionMode.DIRECT,
        description="direct: one owner per node; partitioned: sharded partial sums then reduce",
    )
    shards: int = Field(default=4, gt=0, description="Partial tables per layer (partitioned mode)")
    max_workers: int = Field(default=4, gt=0, description="Thread pool size (partitioned mode)")
    salt: str = Field(default="onepass", min_length=1, description="Salt for the edge shard hash")


class SamplingSettings(BaseModel):
    """Random source configuration for row sampling."""

    model_config = {"frozen": True}

    seed: int | None = Field(default=None, description="Seed for reproducible draws (None = OS entropy)")


class LoggingSettings(BaseModel):
    """Log output configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    json_output: bool = Field(default=False, description="Emit JSON lines instead of console output")


class OnePassSettings(BaseModel):
    """Top-level OnePass configuration.

    Example YAML:
        layers: [A, B, C]
        leaf_bonus: 1.0
        aggregation: sum_children
    """

    model_config = {"frozen": True}

    layers: list[str] = Field(description="Join layers in left-to-right order")
    leaf_bonus: float = Field(
        default=1.0,
        allow_inf_nan=False,
        description="Bonus weight for nodes without children",
    )
    aggregation: AggregationMode = Field(
        default=AggregationMode.SUM_CHILDREN,
        description="How children contribute to a parent's group weight",
    )
    execution: ExecutionSettings = Field(default_factory=ExecutionSettings)
    sampling: SamplingSettings = Field(default_factory=SamplingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("layers")
    @classmethod
    def validate_layers(cls, v: list[str]) -> list[str]:
        """Layers must be non-empty, trimmed, and unique."""
        if not v:
            raise ValueError("At least one layer is required")
        cleaned = [layer.strip() for layer in v]
        if any(not layer for layer in cleaned):
            raise ValueError("Layer names must be non-empty")
        duplicates = sorted({layer for layer in cleaned if cleaned.count(layer) > 1})
        if duplicates:
            raise ValueError(f"Duplicate layer name(s): {duplicates}")
        return cleaned


# Regex pattern for ${VAR} or ${VAR:-default} syntax
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values."""

    def _expand_string(value: str) -> str:
        def replacer(match: re.Match[str]) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            default = match.group(2)
            if default is not None:
                return default
            # No env var and no default - keep original (validation will report it)
            return match.group(0)

        return _ENV_VAR_PATTERN.sub(replacer, value)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _expand_string(value)
        elif isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [_expand_value(item) for item in value]
        else:
            return value

    return {k: _expand_value(v) for k, v in config.items()}


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_lower_keys(item) for item in value]
    return value


def load_settings(config_path: Path) -> OnePassSettings:
    """Load settings from YAML file with environment variable overrides.

    Precedence:
    1. Environment variables (ONEPASS_*) - highest priority
    2. Config file
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: ONEPASS_EXECUTION__SHARDS for nested keys.

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="ONEPASS",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k: v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config = _lower_keys(raw_config)

    raw_config = _expand_env_vars(raw_config)

    return OnePassSettings(**raw_config)
