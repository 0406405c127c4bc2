"""Aggregate ingredient demand from a period's scheduled meals."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from larder import metrics
from larder.models.catalog import Ingredient, MeasurementUnit, RecipeIngredientUse
from larder.models.grocery import IngredientDemand, UnreconciledQuantity
from larder.models.planning import ScheduledMeal

from .units import convert_quantity

logger = logging.getLogger(__name__)


@dataclass
class _Accumulator:
    ingredient: Ingredient
    unit: MeasurementUnit
    quantity: float = 0.0
    meal_ids: List[int] = field(default_factory=list)
    unreconciled: List[UnreconciledQuantity] = field(default_factory=list)

    def add_meal(self, meal_id: int) -> None:
        if meal_id not in self.meal_ids:
            self.meal_ids.append(meal_id)


def scaled_quantity(use: RecipeIngredientUse, base_servings: int | None, servings_planned: int) -> float:
    """Scale a recipe quantity to the servings planned for a meal.

    A recipe without base servings (zero or missing) contributes its quantity unscaled.
    """

    if not base_servings or base_servings <= 0:
        return use.quantity
    return use.quantity * servings_planned / base_servings


def _meal_order(meal: ScheduledMeal) -> tuple[int, int, int]:
    return (int(meal.day), meal.meal_type.sort_order, meal.id)


def aggregate_demand(
    meals: Iterable[ScheduledMeal],
    *,
    convert_units: bool = True,
) -> List[IngredientDemand]:
    """Return one demand record per distinct ingredient used by the planned meals.

    Skipped meals and meals without recipes contribute nothing. Ingredient uses that
    are not linked to a catalog ingredient are skipped. The unit of a demand is the
    unit of its first occurrence; with ``convert_units`` later contributions in the
    same family (mass or volume) are converted into it, and contributions that cannot
    be converted are reported as ``unreconciled`` instead of being summed.
    """

    accumulators: Dict[int, _Accumulator] = {}

    for meal in sorted(meals, key=_meal_order):
        if meal.is_skipped or not meal.recipes:
            continue

        for recipe in meal.recipes:
            for use in sorted(recipe.ingredients, key=lambda item: item.position):
                if use.ingredient is None:
                    logger.debug(
                        "Skipping unlinked ingredient '%s' in recipe %s",
                        use.display_name,
                        recipe.id,
                    )
                    continue

                quantity = scaled_quantity(use, recipe.servings, meal.servings_planned)
                entry = accumulators.get(use.ingredient.id)
                if entry is None:
                    entry = _Accumulator(ingredient=use.ingredient, unit=use.unit)
                    accumulators[use.ingredient.id] = entry

                if convert_units:
                    converted = convert_quantity(quantity, use.unit, entry.unit)
                    if converted is None:
                        entry.unreconciled.append(
                            UnreconciledQuantity(quantity=quantity, unit=use.unit, meal_id=meal.id)
                        )
                        metrics.UNRECONCILED_UNITS.inc()
                        logger.warning(
                            "Cannot combine %s %s of '%s' with %s; kept out of the list quantity",
                            quantity,
                            use.unit.value,
                            use.ingredient.name,
                            entry.unit.value,
                        )
                        continue
                    quantity = converted

                entry.quantity += quantity
                entry.add_meal(meal.id)

    return [
        IngredientDemand(
            ingredient=entry.ingredient,
            quantity=entry.quantity,
            unit=entry.unit,
            meal_ids=list(entry.meal_ids),
            unreconciled=list(entry.unreconciled),
        )
        for entry in accumulators.values()
    ]


__all__ = ["aggregate_demand", "scaled_quantity"]
