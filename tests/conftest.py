"""Shared pytest fixtures for the Larder test suite."""

from __future__ import annotations

from datetime import date
from typing import Callable, Generator, Optional

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from larder.config import get_settings
from larder.db.catalog import create_ingredient, create_recipe
from larder.db.periods import add_meal, assign_recipe, create_period, get_period_for_date
from larder.db.repository import reset_repository_state
from larder.models.catalog import Ingredient, IngredientCategory, MeasurementUnit, Recipe
from larder.models.planning import DayOfWeek, MealType, ScheduledMeal
from larder.server.app import create_app

# A Monday.
WEEK_ONE = date(2024, 1, 1)


@pytest.fixture()
def app() -> Generator[FastAPI, None, None]:
    """Create a new FastAPI app instance for each test and reset overrides."""

    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    """Return a test client bound to the FastAPI app."""

    return TestClient(app)


@pytest.fixture()
def rice() -> Ingredient:
    return create_ingredient(name="Rice", category=IngredientCategory.GRAIN)


@pytest.fixture()
def onion() -> Ingredient:
    return create_ingredient(name="Onion", category=IngredientCategory.PRODUCE)


@pytest.fixture()
def rice_bowl(rice, onion) -> Recipe:
    """Two-serving recipe needing 500 g rice and 1 onion."""

    return create_recipe(
        title="Rice Bowl",
        servings=2,
        ingredients=[
            {"ingredient_id": rice.id, "quantity": 500, "unit": MeasurementUnit.GRAM},
            {"ingredient_id": onion.id, "quantity": 1, "unit": MeasurementUnit.PIECE},
        ],
    )


@pytest.fixture()
def plan_meal() -> Callable[..., ScheduledMeal]:
    """Return a helper scheduling a recipe into the week containing ``start``."""

    def _plan(
        recipe_id: int,
        *,
        start: date = WEEK_ONE,
        day: DayOfWeek = DayOfWeek.MONDAY,
        meal_type: MealType = MealType.DINNER,
        servings: int = 2,
        period_id: Optional[int] = None,
    ) -> ScheduledMeal:
        if period_id is None:
            existing = get_period_for_date(start)
            period_id = existing.id if existing is not None else create_period(start).id
        meal = add_meal(period_id, day=day, meal_type=meal_type, servings_planned=servings)
        return assign_recipe(meal.id, recipe_id)

    return _plan


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Ensure each test uses an isolated SQLite database location."""

    db_path = tmp_path / "test_larder.db"
    monkeypatch.setenv("LARDER_DATABASE_PATH", str(db_path))
    monkeypatch.delenv("LARDER_API_TOKEN", raising=False)
    get_settings.cache_clear()
    reset_repository_state()
    yield
    reset_repository_state()
    monkeypatch.delenv("LARDER_DATABASE_PATH", raising=False)
    get_settings.cache_clear()
