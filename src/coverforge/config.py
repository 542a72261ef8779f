"""Generation settings and loading."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from coverforge.engines.aetg import DEFAULT_PERMUTATION_LIMIT, DEFAULT_TRIAL_BUDGET
from coverforge.engines.base import DEFAULT_SEED, DEFAULT_STRENGTH
from coverforge.errors import ConfigurationError, ErrorCode, ErrorContext

VALID_ENGINES = ("aetg", "ipo")


class GenerationSettings(BaseSettings):
    """Configuration for a generation run."""

    model_config = SettingsConfigDict(
        env_prefix="COVERFORGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    engine: str = "aetg"
    strength: int = DEFAULT_STRENGTH
    seed: int = DEFAULT_SEED
    trial_budget: int = DEFAULT_TRIAL_BUDGET
    permutation_limit: int = DEFAULT_PERMUTATION_LIMIT
    shuffle_remaining: bool = False
    strict: bool = False
    verbose: bool = False

    @field_validator("engine", mode="before")
    @classmethod
    def validate_engine(cls, v: str) -> str:
        name = str(v).lower()
        if name not in VALID_ENGINES:
            raise ConfigurationError(
                message=f"Invalid engine: {v!r}. Valid: {list(VALID_ENGINES)}",
                error_code=ErrorCode.UNKNOWN_ENGINE,
                context=ErrorContext(engine=str(v), extra={"valid_engines": list(VALID_ENGINES)}),
            )
        return name

    @field_validator("strength", "trial_budget", "permutation_limit")
    @classmethod
    def validate_positive(cls, v: int, info: ValidationInfo) -> int:
        if v < 1:
            raise ConfigurationError(
                message=f"{info.field_name} must be at least 1, got {v}",
                error_code=(
                    ErrorCode.INVALID_STRENGTH if info.field_name == "strength" else ErrorCode.INVALID_SETTING
                ),
                context=ErrorContext(extra={"field": info.field_name, "value": v}),
            )
        return v


def load_settings(config_path: str | Path | None = None, **overrides: Any) -> GenerationSettings:
    """Load settings from file and environment.

    Priority: explicit overrides > env vars > config file > defaults.

    Raises:
        ConfigurationError: If the file is not a YAML mapping or a value is invalid.
    """
    config_data: dict[str, Any] = {}

    if config_path is not None:
        config_path = Path(config_path)
        if config_path.exists():
            with open(config_path) as f:
                loaded = yaml.safe_load(f) or {}
            if not isinstance(loaded, dict):
                raise ConfigurationError(
                    message=f"Settings file {config_path} must contain a mapping",
                    error_code=ErrorCode.INVALID_SETTING,
                    context=ErrorContext(extra={"path": str(config_path)}),
                )
            config_data = dict(loaded.get("settings", loaded))

    config_data.update(_get_env_overrides())
    config_data.update({k: v for k, v in overrides.items() if v is not None})

    return GenerationSettings(**config_data)


def _get_env_overrides() -> dict[str, Any]:
    """Get setting overrides from environment variables."""
    overrides: dict[str, Any] = {}

    env_mappings = {
        "COVERFORGE_ENGINE": "engine",
        "COVERFORGE_STRENGTH": ("strength", int),
        "COVERFORGE_SEED": ("seed", int),
        "COVERFORGE_TRIAL_BUDGET": ("trial_budget", int),
        "COVERFORGE_PERMUTATION_LIMIT": ("permutation_limit", int),
        "COVERFORGE_SHUFFLE_REMAINING": ("shuffle_remaining", lambda x: x.lower() in ("true", "1", "yes")),
        "COVERFORGE_VERBOSE": ("verbose", lambda x: x.lower() in ("true", "1", "yes")),
    }

    for env_key, config_key in env_mappings.items():
        value = os.environ.get(env_key)
        if value is not None:
            if isinstance(config_key, tuple):
                key, converter = config_key
                try:
                    overrides[key] = converter(value)
                except ValueError as e:
                    raise ConfigurationError(
                        message=f"{env_key}={value!r} is not valid for '{key}'",
                        error_code=ErrorCode.INVALID_SETTING,
                        context=ErrorContext(extra={"env": env_key}),
                        cause=e,
                    ) from e
            else:
                overrides[config_key] = value

    return overrides
