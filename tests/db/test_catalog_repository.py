"""Unit tests for the ingredient and recipe catalog repository."""

from __future__ import annotations

import pytest

from larder.db.catalog import (
    create_ingredient,
    create_recipe,
    delete_recipe,
    find_ingredient_by_name,
    get_ingredient,
    get_recipe,
    list_ingredients,
    list_recipes,
    rename_ingredient,
)
from larder.models.catalog import IngredientCategory, MeasurementUnit


def test_create_and_find_ingredient():
    created = create_ingredient(name="  Basmati Rice ", category=IngredientCategory.GRAIN)

    assert created.name == "Basmati Rice"
    assert created.normalized_name == "basmati rice"
    assert created.category == IngredientCategory.GRAIN
    assert find_ingredient_by_name("BASMATI rice").id == created.id
    assert find_ingredient_by_name("jasmine rice") is None
    assert get_ingredient(created.id) == created


def test_duplicate_and_blank_ingredient_names_rejected():
    create_ingredient(name="Garlic")

    with pytest.raises(ValueError):
        create_ingredient(name="garlic ")
    with pytest.raises(ValueError):
        create_ingredient(name="   ")


def test_rename_keeps_normalized_name_in_sync():
    ingredient = create_ingredient(name="Scallion")

    renamed = rename_ingredient(ingredient.id, "Green Onion")

    assert renamed.normalized_name == "green onion"
    assert find_ingredient_by_name("green onion").id == ingredient.id
    assert [item.name for item in list_ingredients()] == ["Green Onion"]

    with pytest.raises(ValueError):
        rename_ingredient(999, "Nope")


def test_create_recipe_with_ordered_uses():
    rice = create_ingredient(name="Rice")
    onion = create_ingredient(name="Onion")

    recipe = create_recipe(
        title="Pilaf",
        servings=4,
        ingredients=[
            {"ingredient_id": rice.id, "quantity": 300, "unit": "gram"},
            {"ingredient_id": onion.id, "quantity": 1, "unit": "piece", "preparation_note": "diced"},
            {"custom_name": "Saffron", "quantity": 1, "unit": "pinch", "is_optional": True},
        ],
    )

    fetched = get_recipe(recipe.id)
    assert fetched.servings == 4
    assert [use.display_name for use in fetched.ingredients] == ["Rice", "Onion", "Saffron"]
    assert fetched.ingredients[1].preparation_note == "diced"
    assert fetched.ingredients[2].ingredient is None
    assert fetched.ingredients[2].unit == MeasurementUnit.PINCH


def test_create_recipe_validates_uses():
    with pytest.raises(ValueError):
        create_recipe(title="Ghost", ingredients=[{"ingredient_id": 42, "quantity": 1, "unit": "gram"}])
    with pytest.raises(ValueError):
        create_recipe(title="Nameless", ingredients=[{"quantity": 1, "unit": "gram"}])
    assert list_recipes() == []


def test_delete_recipe():
    recipe = create_recipe(title="Toast", servings=1)

    delete_recipe(recipe.id)

    assert get_recipe(recipe.id) is None
    with pytest.raises(ValueError):
        delete_recipe(recipe.id)
