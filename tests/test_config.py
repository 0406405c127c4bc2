"""Tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from larder.config import Settings, get_settings


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LARDER_CONVERT_UNITS", "false")
    monkeypatch.setenv("LARDER_DEFAULT_MEAL_TYPES", " Lunch, dinner ")
    monkeypatch.setenv("LARDER_DEFAULT_SERVINGS", "four")
    monkeypatch.setenv("LARDER_LOG_FORMAT", "JSON")
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.convert_units is False
    assert settings.default_meal_types == ("lunch", "dinner")
    assert settings.default_servings == 2
    assert settings.log_format == "json"


def test_env_file_fallback(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LARDER_DATABASE_PATH", raising=False)
    Path(".env").write_text("# local\nLARDER_DATABASE_PATH=from-file.db\nLARDER_LOG_LEVEL=DEBUG\n")
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.database_path == Path("from-file.db")
    assert settings.log_level == "DEBUG"


def test_invalid_values_are_rejected():
    with pytest.raises(ValidationError):
        Settings(default_meal_types="brunch")
    with pytest.raises(ValidationError):
        Settings(log_format="xml")
