"""Pydantic models defining shared data contracts."""

from larder.models.catalog import (
    Ingredient,
    IngredientCategory,
    MeasurementUnit,
    Recipe,
    RecipeIngredientUse,
)
from larder.models.grocery import (
    EntryState,
    GroupedListView,
    GroupedRow,
    IngredientDemand,
    ListEntry,
    ListGenerationResult,
    ListProgress,
    ListView,
    UnconvertedQuantity,
    UnreconciledQuantity,
)
from larder.models.planning import (
    DayOfWeek,
    MealType,
    Period,
    PeriodStatus,
    ScheduledMeal,
)

__all__ = [
    "Ingredient",
    "IngredientCategory",
    "MeasurementUnit",
    "Recipe",
    "RecipeIngredientUse",
    "EntryState",
    "GroupedListView",
    "GroupedRow",
    "IngredientDemand",
    "ListEntry",
    "ListGenerationResult",
    "ListProgress",
    "ListView",
    "UnconvertedQuantity",
    "UnreconciledQuantity",
    "DayOfWeek",
    "MealType",
    "Period",
    "PeriodStatus",
    "ScheduledMeal",
]
