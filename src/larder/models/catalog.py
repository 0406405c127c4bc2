"""Ingredient and recipe catalog models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class IngredientCategory(str, Enum):
    """Store-layout category used to group list entries."""

    PRODUCE = "produce"
    PROTEIN = "protein"
    DAIRY = "dairy"
    GRAIN = "grain"
    PANTRY = "pantry"
    FROZEN = "frozen"
    CONDIMENT = "condiment"
    BEVERAGE = "beverage"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return _CATEGORY_DISPLAY[self]

    @property
    def sort_order(self) -> int:
        return _CATEGORY_ORDER[self]


_CATEGORY_DISPLAY = {
    IngredientCategory.PRODUCE: "Produce",
    IngredientCategory.PROTEIN: "Protein",
    IngredientCategory.DAIRY: "Dairy",
    IngredientCategory.GRAIN: "Grains & Bread",
    IngredientCategory.PANTRY: "Pantry",
    IngredientCategory.FROZEN: "Frozen",
    IngredientCategory.CONDIMENT: "Condiments & Sauces",
    IngredientCategory.BEVERAGE: "Beverages",
    IngredientCategory.OTHER: "Other",
}

# Walking order through a typical store.
_CATEGORY_ORDER = {
    IngredientCategory.PRODUCE: 0,
    IngredientCategory.DAIRY: 1,
    IngredientCategory.PROTEIN: 2,
    IngredientCategory.FROZEN: 3,
    IngredientCategory.GRAIN: 4,
    IngredientCategory.PANTRY: 5,
    IngredientCategory.CONDIMENT: 6,
    IngredientCategory.BEVERAGE: 7,
    IngredientCategory.OTHER: 8,
}


class MeasurementUnit(str, Enum):
    """Units a recipe or list entry can be measured in."""

    GRAM = "gram"
    KILOGRAM = "kilogram"
    MILLILITER = "milliliter"
    LITER = "liter"
    CUP = "cup"
    TABLESPOON = "tablespoon"
    TEASPOON = "teaspoon"
    PIECE = "piece"
    SLICE = "slice"
    CLOVE = "clove"
    BUNCH = "bunch"
    PINCH = "pinch"
    TO_TASTE = "to_taste"

    @property
    def abbreviation(self) -> str:
        return _UNIT_ABBREVIATIONS[self]


_UNIT_ABBREVIATIONS = {
    MeasurementUnit.GRAM: "g",
    MeasurementUnit.KILOGRAM: "kg",
    MeasurementUnit.MILLILITER: "ml",
    MeasurementUnit.LITER: "L",
    MeasurementUnit.CUP: "cup",
    MeasurementUnit.TABLESPOON: "tbsp",
    MeasurementUnit.TEASPOON: "tsp",
    MeasurementUnit.PIECE: "pc",
    MeasurementUnit.SLICE: "slice",
    MeasurementUnit.CLOVE: "clove",
    MeasurementUnit.BUNCH: "bunch",
    MeasurementUnit.PINCH: "pinch",
    MeasurementUnit.TO_TASTE: "to taste",
}


def normalize_name(name: str) -> str:
    """Lowercase and trim a name for matching."""

    return (name or "").strip().lower()


class Ingredient(BaseModel):
    """Canonical food concept referenced by recipes and list entries."""

    id: int
    name: str
    normalized_name: str
    category: IngredientCategory = Field(default=IngredientCategory.OTHER)
    default_unit: MeasurementUnit = Field(default=MeasurementUnit.GRAM)
    is_user_created: bool = Field(default=True)
    created_at: Optional[datetime] = Field(default=None)
    modified_at: Optional[datetime] = Field(default=None)

    model_config = ConfigDict(frozen=True)


class RecipeIngredientUse(BaseModel):
    """Quantity of an ingredient required by one recipe."""

    id: Optional[int] = Field(default=None)
    ingredient: Optional[Ingredient] = Field(default=None)
    quantity: float = Field(ge=0)
    unit: MeasurementUnit
    position: int = Field(default=0)
    preparation_note: Optional[str] = Field(default=None, max_length=255)
    is_optional: bool = Field(default=False)
    custom_name: Optional[str] = Field(default=None, max_length=255)

    model_config = ConfigDict(frozen=True)

    @property
    def display_name(self) -> str:
        if self.ingredient is not None:
            return self.ingredient.name
        return self.custom_name or "Unknown Ingredient"


class Recipe(BaseModel):
    """Recipe with its base servings and ordered ingredient uses."""

    id: int
    title: str
    servings: int = Field(default=2, ge=0)
    ingredients: list[RecipeIngredientUse] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


__all__ = [
    "Ingredient",
    "IngredientCategory",
    "MeasurementUnit",
    "Recipe",
    "RecipeIngredientUse",
    "normalize_name",
]
