"""Week plan (period) and scheduled meal persistence helpers."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from larder.config import get_settings
from larder.grocery.states import utcnow
from larder.models.planning import (
    DayOfWeek,
    MealType,
    Period,
    PeriodStatus,
    ScheduledMeal,
    normalize_period_start,
)

from .catalog import recipe_to_model
from .models import PeriodORM, RecipeORM, ScheduledMealORM
from .repository import session_scope

logger = logging.getLogger(__name__)

_UNSET = object()


def meal_to_model(row: ScheduledMealORM) -> ScheduledMeal:
    return ScheduledMeal.model_validate(
        {
            "id": row.id,
            "period_id": row.period_id,
            "day": DayOfWeek(row.day),
            "meal_type": MealType(row.meal_type),
            "servings_planned": row.servings_planned,
            "recipes": [recipe_to_model(recipe) for recipe in row.recipes],
            "custom_meal_name": row.custom_meal_name,
            "notes": row.notes,
            "is_skipped": row.is_skipped,
        }
    )


def slot_order(row: ScheduledMealORM) -> tuple[int, int, int]:
    return (row.day, MealType(row.meal_type).sort_order, row.id)


def _to_model(row: PeriodORM) -> Period:
    return Period.model_validate(
        {
            "id": row.id,
            "start_date": row.start_date,
            "status": row.status,
            "household_note": row.household_note,
            "meals": [meal_to_model(meal) for meal in sorted(row.meals, key=slot_order)],
            "created_at": row.created_at,
            "modified_at": row.modified_at,
        }
    )


def get_period_row(session: Session, period_id: int) -> PeriodORM:
    row = session.get(PeriodORM, period_id)
    if row is None:
        raise ValueError(f"Period {period_id} not found")
    return row


def _get_meal_row(session: Session, meal_id: int) -> ScheduledMealORM:
    row = session.get(ScheduledMealORM, meal_id)
    if row is None:
        raise ValueError(f"Scheduled meal {meal_id} not found")
    return row


def touch_period(row: PeriodORM) -> None:
    row.modified_at = utcnow()


def create_period(
    start_date: date,
    *,
    status: PeriodStatus | str = PeriodStatus.DRAFT,
    household_note: Optional[str] = None,
    with_default_slots: bool = False,
) -> Period:
    """Create the week plan containing ``start_date``.

    The start is normalized to the Monday of its week; only one period may exist per
    week. With ``with_default_slots`` an empty meal is created for every day and each
    configured default meal type.
    """

    monday = normalize_period_start(start_date)
    settings = get_settings()

    with session_scope() as session:
        existing = session.execute(
            select(PeriodORM).where(PeriodORM.start_date == monday)
        ).scalar_one_or_none()
        if existing is not None:
            raise ValueError(f"Period starting {monday.isoformat()} already exists")

        row = PeriodORM(
            start_date=monday,
            status=PeriodStatus(status).value,
            household_note=household_note,
        )
        if with_default_slots:
            meal_types = [MealType(value) for value in settings.default_meal_types]
            row.meals = [
                ScheduledMealORM(
                    day=int(day),
                    meal_type=meal_type.value,
                    servings_planned=settings.default_servings,
                )
                for day in DayOfWeek
                for meal_type in meal_types
            ]
        session.add(row)
        session.flush()
        logger.info(
            "Created period starting %s with %d meal slots",
            monday.isoformat(),
            len(row.meals),
            extra={"period_id": row.id},
        )
        return _to_model(row)


def get_period(period_id: int) -> Optional[Period]:
    with session_scope() as session:
        row = session.get(PeriodORM, period_id)
        if row is None:
            return None
        return _to_model(row)


def get_period_for_date(value: date) -> Optional[Period]:
    """Return the period whose week contains ``value``."""

    with session_scope() as session:
        row = session.execute(
            select(PeriodORM).where(PeriodORM.start_date == normalize_period_start(value))
        ).scalar_one_or_none()
        if row is None:
            return None
        return _to_model(row)


def list_periods(start: Optional[date] = None, end: Optional[date] = None) -> List[Period]:
    """Return periods ordered by start date, optionally limited to starts within a range."""

    stmt = select(PeriodORM).order_by(PeriodORM.start_date.asc())
    if start is not None:
        stmt = stmt.where(PeriodORM.start_date >= start)
    if end is not None:
        stmt = stmt.where(PeriodORM.start_date <= end)

    with session_scope() as session:
        rows = session.execute(stmt).scalars().all()
        return [_to_model(row) for row in rows]


def delete_period(period_id: int) -> None:
    """Delete a period together with its meals and list entries."""

    with session_scope() as session:
        row = get_period_row(session, period_id)
        session.delete(row)


def set_period_status(period_id: int, status: PeriodStatus | str) -> Period:
    with session_scope() as session:
        row = get_period_row(session, period_id)
        row.status = PeriodStatus(status).value
        touch_period(row)
        session.flush()
        return _to_model(row)


def update_household_note(period_id: int, note: Optional[str]) -> Period:
    with session_scope() as session:
        row = get_period_row(session, period_id)
        row.household_note = note.strip() if note and note.strip() else None
        touch_period(row)
        session.flush()
        return _to_model(row)


def add_meal(
    period_id: int,
    *,
    day: DayOfWeek | int,
    meal_type: MealType | str,
    servings_planned: Optional[int] = None,
    notes: Optional[str] = None,
) -> ScheduledMeal:
    servings = get_settings().default_servings if servings_planned is None else servings_planned
    if servings < 0:
        raise ValueError("Servings must not be negative")

    with session_scope() as session:
        period = get_period_row(session, period_id)
        row = ScheduledMealORM(
            day=int(DayOfWeek(day)),
            meal_type=MealType(meal_type).value,
            servings_planned=servings,
            notes=notes,
        )
        period.meals.append(row)
        touch_period(period)
        session.flush()
        return meal_to_model(row)


def get_meal(meal_id: int) -> Optional[ScheduledMeal]:
    with session_scope() as session:
        row = session.get(ScheduledMealORM, meal_id)
        if row is None:
            return None
        return meal_to_model(row)


def _apply_meal_changes(
    session: Session,
    row: ScheduledMealORM,
    *,
    add_recipe_id: Optional[int] = None,
    remove_recipe_id: Optional[int] = None,
    recipes: Optional[List[RecipeORM]] = None,
    custom_meal_name: str | None | object = _UNSET,
    is_skipped: bool | object = _UNSET,
    clear_recipes: bool = False,
    servings_planned: int | object = _UNSET,
) -> None:
    if clear_recipes:
        row.recipes = []
    if recipes is not None:
        row.recipes = list(recipes)
    if add_recipe_id is not None:
        recipe = session.get(RecipeORM, add_recipe_id)
        if recipe is None:
            raise ValueError(f"Recipe {add_recipe_id} not found")
        if recipe not in row.recipes:
            row.recipes.append(recipe)
    if remove_recipe_id is not None:
        row.recipes = [recipe for recipe in row.recipes if recipe.id != remove_recipe_id]
    if custom_meal_name is not _UNSET:
        row.custom_meal_name = custom_meal_name  # type: ignore[assignment]
    if is_skipped is not _UNSET:
        row.is_skipped = bool(is_skipped)
    if servings_planned is not _UNSET:
        row.servings_planned = int(servings_planned)  # type: ignore[arg-type]


def _update_meal(meal_id: int, **changes: Any) -> ScheduledMeal:
    with session_scope() as session:
        row = _get_meal_row(session, meal_id)
        _apply_meal_changes(session, row, **changes)
        touch_period(row.period)
        session.flush()
        return meal_to_model(row)


def assign_recipe(meal_id: int, recipe_id: int) -> ScheduledMeal:
    """Add a recipe to a meal; a meal with recipes has no custom name and is not skipped."""

    return _update_meal(
        meal_id,
        add_recipe_id=recipe_id,
        custom_meal_name=None,
        is_skipped=False,
    )


def remove_recipe(meal_id: int, recipe_id: int) -> ScheduledMeal:
    return _update_meal(meal_id, remove_recipe_id=recipe_id)


def set_custom_meal(meal_id: int, name: str) -> ScheduledMeal:
    """Plan a meal by name only (eating out, leftovers); drops recipes and the skip."""

    cleaned = (name or "").strip()
    if not cleaned:
        raise ValueError("Custom meal name must not be blank")
    return _update_meal(
        meal_id,
        clear_recipes=True,
        custom_meal_name=cleaned,
        is_skipped=False,
    )


def skip_meal(meal_id: int) -> ScheduledMeal:
    return _update_meal(meal_id, clear_recipes=True, custom_meal_name=None, is_skipped=True)


def clear_meal(meal_id: int) -> ScheduledMeal:
    return _update_meal(meal_id, clear_recipes=True, custom_meal_name=None, is_skipped=False)


def set_servings(meal_id: int, servings: int) -> ScheduledMeal:
    if servings < 0:
        raise ValueError("Servings must not be negative")
    return _update_meal(meal_id, servings_planned=servings)


def copy_period_meals(target_id: int, source_id: int) -> Period:
    """Copy another week's plan onto the matching slots of this one.

    Slots are matched by day and meal type; target slots without a counterpart
    are left alone and no slots are created. Recipes win over a custom name, and
    servings are always copied. The grocery list is not regenerated here.
    """

    if target_id == source_id:
        raise ValueError("Cannot copy a week plan onto itself")

    with session_scope() as session:
        target = get_period_row(session, target_id)
        source = get_period_row(session, source_id)
        slots = {(meal.day, meal.meal_type): meal for meal in target.meals}

        copied = 0
        for source_meal in sorted(source.meals, key=slot_order):
            row = slots.get((source_meal.day, source_meal.meal_type))
            if row is None:
                continue
            if source_meal.recipes:
                _apply_meal_changes(
                    session,
                    row,
                    recipes=source_meal.recipes,
                    custom_meal_name=None,
                    is_skipped=False,
                )
            elif source_meal.custom_meal_name:
                _apply_meal_changes(
                    session,
                    row,
                    clear_recipes=True,
                    custom_meal_name=source_meal.custom_meal_name,
                    is_skipped=False,
                )
            _apply_meal_changes(session, row, servings_planned=source_meal.servings_planned)
            copied += 1

        touch_period(target)
        session.flush()
        logger.info(
            "Copied %d slots from period %s",
            copied,
            source_id,
            extra={"period_id": target_id, "operation": "copy_period"},
        )
        return _to_model(target)


def clear_period(period_id: int) -> Period:
    """Empty every slot of a week plan, keeping the slots themselves."""

    with session_scope() as session:
        period = get_period_row(session, period_id)
        for row in period.meals:
            _apply_meal_changes(
                session,
                row,
                clear_recipes=True,
                custom_meal_name=None,
                is_skipped=False,
            )
        touch_period(period)
        session.flush()
        return _to_model(period)


__all__ = [
    "add_meal",
    "assign_recipe",
    "clear_meal",
    "clear_period",
    "copy_period_meals",
    "create_period",
    "delete_period",
    "get_meal",
    "get_period",
    "get_period_for_date",
    "get_period_row",
    "list_periods",
    "meal_to_model",
    "remove_recipe",
    "set_custom_meal",
    "set_period_status",
    "set_servings",
    "skip_meal",
    "slot_order",
    "touch_period",
    "update_household_note",
]
