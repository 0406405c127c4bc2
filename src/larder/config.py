"""Larder settings from `LARDER_*` environment variables and .env files."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from larder.models.planning import MealType

ENV_FILE_CANDIDATES = (Path(".env"), Path(".env.local"))


class Settings(BaseModel):
    """Global application settings loaded from environment variables or .env files."""

    database_path: Path = Field(
        default=Path("./data/larder.db"),
        description="SQLite database location.",
    )
    api_token: Optional[str] = Field(
        default=None,
        description="Bearer token required for mutating endpoints.",
    )
    log_level: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        default="plain",
        description="Logging format (plain/json).",
    )
    log_requests: bool = Field(
        default=True,
        description="Emit request access logs when true.",
    )
    convert_units: bool = Field(
        default=True,
        description="Convert compatible units (g/kg, ml/L/cup/...) before summing demand.",
    )
    default_servings: int = Field(
        default=2,
        ge=0,
        description="Servings assigned to newly created meal slots.",
    )
    default_meal_types: tuple[str, ...] = Field(
        default=("breakfast", "lunch", "dinner"),
        description="Meal types created for every day when a period gets default slots.",
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("default_meal_types", mode="before")
    @classmethod
    def split_meal_types(cls, value: object) -> object:
        if isinstance(value, str):
            value = tuple(part.strip().lower() for part in value.split(",") if part.strip())
        return value

    @field_validator("default_meal_types")
    @classmethod
    def known_meal_types(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for meal_type in value:
            MealType(meal_type)
        return value

    @field_validator("log_format")
    @classmethod
    def known_log_format(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"plain", "json"}:
            raise ValueError("log_format must be 'plain' or 'json'")
        return normalized


def _coerce_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


# Environment variable -> (settings field, converter).
ENV_FIELDS: dict[str, tuple[str, Callable[[str], object]]] = {
    "LARDER_DATABASE_PATH": ("database_path", Path),
    "LARDER_API_TOKEN": ("api_token", str),
    "LARDER_LOG_LEVEL": ("log_level", str),
    "LARDER_LOG_FORMAT": ("log_format", str),
    "LARDER_LOG_REQUESTS": ("log_requests", _coerce_bool),
    "LARDER_CONVERT_UNITS": ("convert_units", _coerce_bool),
    "LARDER_DEFAULT_SERVINGS": ("default_servings", int),
    "LARDER_DEFAULT_MEAL_TYPES": ("default_meal_types", str),
}


def _parse_env_file(path: Path) -> dict[str, str]:
    if not path.is_file():
        return {}
    values: dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if line and not line.startswith("#") and "=" in line:
            key, raw_value = line.split("=", 1)
            values[key.strip()] = raw_value.strip()
    return values


def _load_from_env() -> dict[str, object]:
    """Collect overrides from ``LARDER_*`` variables, falling back to .env files.

    Values that fail conversion (a non-numeric servings count) are ignored.
    """

    file_values: dict[str, str] = {}
    for candidate in ENV_FILE_CANDIDATES:
        file_values.update(_parse_env_file(candidate))

    payload: dict[str, object] = {}
    for env_name, (field_name, convert) in ENV_FIELDS.items():
        raw = os.environ.get(env_name) or file_values.get(env_name)
        if not raw:
            continue
        try:
            payload[field_name] = convert(raw)
        except ValueError:
            continue
    return payload


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(**_load_from_env())


__all__ = ["ENV_FIELDS", "Settings", "get_settings"]
