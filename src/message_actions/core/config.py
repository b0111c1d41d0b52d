"""Application configuration models and loader utilities."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import BaseModel, Field


class ServiceSettings(BaseModel):
    """Settings for the external text-understanding service."""

    base_url: str = Field(
        default="http://localhost:3000", description="Analysis service URL"
    )
    endpoint: str = Field(
        default="/api/analyze-message", description="Path of the analyze endpoint"
    )
    timeout_seconds: float = Field(
        default=30, gt=0, description="Request timeout for analysis calls"
    )
    api_key: str | None = Field(
        default=None, description="Optional bearer token sent to the service"
    )
    enabled: bool = Field(
        default=True, description="Call the service before the rule-based fallback"
    )


class CacheSettings(BaseModel):
    """Settings for the analysis result cache."""

    ttl_seconds: int = Field(
        default=300, ge=1, description="Seconds before a cached analysis is stale"
    )
    max_entries: int = Field(
        default=1000, ge=1, description="Entries kept before LRU eviction"
    )
    stale_grace_seconds: int = Field(
        default=0,
        ge=0,
        description="Reuse a stale analysis this old when the service fails",
    )


class LoggingSettings(BaseModel):
    """Logging preferences."""

    level: str = Field(default="INFO", description="Root logging level")
    structured: bool = Field(
        default=False, description="Toggle JSON structured logging"
    )


class AppSettings(BaseModel):
    """Aggregated application configuration."""

    service: ServiceSettings = Field(default_factory=ServiceSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


ENV_PREFIX = "MESSAGE_ACTIONS_"


def _normalize_key(raw_key: str) -> list[str]:
    """Convert an environment variable key into a nested attribute path."""
    trimmed = raw_key.removeprefix(ENV_PREFIX)
    return [segment.lower() for segment in trimmed.split("__") if segment]


def _merge_into_tree(tree: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a value to a nested dictionary given a path."""
    cursor = tree
    for segment in path[:-1]:
        next_node = cursor.setdefault(segment, {})
        cursor = cast(dict[str, Any], next_node)
    cursor[path[-1]] = value


def _collect_env_values(
    env_file: Path | str | None, *, include_environment: bool = True
) -> dict[str, Any]:
    """Load configuration values from environment variables and optional file."""
    collected: dict[str, Any] = {}

    file_values = {}
    if env_file:
        env_path = Path(env_file)
        if env_path.is_file():
            file_values = {
                key: value
                for key, value in dotenv_values(env_path).items()
                if key and key.startswith(ENV_PREFIX)
            }

    env_values = {}
    if include_environment:
        env_values = {
            key: value
            for key, value in os.environ.items()
            if key.startswith(ENV_PREFIX)
        }

    combined: dict[str, Any] = {**file_values, **env_values}

    for key, value in combined.items():
        path = _normalize_key(key)
        if not path:
            continue
        normalized_value: Any = value
        if isinstance(value, str) and value == "":
            normalized_value = None
        elif isinstance(value, str):
            lowercase_value = value.lower()
            if lowercase_value == "true":
                normalized_value = True
            elif lowercase_value == "false":
                normalized_value = False
        _merge_into_tree(collected, path, normalized_value)

    return collected


@lru_cache(maxsize=1)
def load_app_settings(
    env_file: Path | str | None = None,
    include_environment: bool = True,
    **overrides: Any,
) -> AppSettings:
    """Load application settings, applying env files and overrides."""
    collected = _collect_env_values(env_file, include_environment=include_environment)
    if overrides:
        collected.update(overrides)
    return AppSettings.model_validate(collected)


__all__ = [
    "AppSettings",
    "CacheSettings",
    "LoggingSettings",
    "ServiceSettings",
    "load_app_settings",
]
