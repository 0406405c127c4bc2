"""Grocery list persistence: regeneration from the meal plan and per-entry actions."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from larder import metrics
from larder.config import get_settings
from larder.grocery import states
from larder.grocery.demand import aggregate_demand
from larder.grocery.reconciler import plan_reconciliation
from larder.models.catalog import IngredientCategory, MeasurementUnit
from larder.models.grocery import (
    ListEntry,
    ListGenerationResult,
    ListProgress,
    ListView,
)
from larder.models.planning import DayOfWeek, MealType

from .catalog import find_ingredient_row
from .models import ListEntryORM, ScheduledMealORM
from .periods import get_period_row, meal_to_model, slot_order, touch_period
from .repository import session_scope

logger = logging.getLogger(__name__)


def _slot_label(meal: ScheduledMealORM) -> str:
    return f"{DayOfWeek(meal.day).short_name} {MealType(meal.meal_type).display_name}"


def entry_to_model(row: ListEntryORM) -> ListEntry:
    meals = sorted(row.meals, key=slot_order)
    return ListEntry.model_validate(
        {
            "id": row.id,
            "period_id": row.period_id,
            "ingredient_id": row.ingredient_id,
            "ingredient_name": row.ingredient.name if row.ingredient is not None else None,
            "custom_name": row.custom_name,
            "quantity": row.quantity,
            "unit": row.unit,
            "category": row.category,
            "is_manually_added": row.is_manually_added,
            "pantry_checked": row.pantry_checked,
            "is_in_pantry": row.is_in_pantry,
            "is_checked": row.is_checked,
            "state": states.classify(row),
            "created_at": row.created_at,
            "checked_at": row.checked_at,
            "checked_by": row.checked_by,
            "meal_ids": [meal.id for meal in meals],
            "source_meals": [_slot_label(meal) for meal in meals],
        }
    )


def display_sort_key(entry: ListEntry) -> tuple[int, str, int]:
    return (entry.category.sort_order, entry.display_name.casefold(), entry.id)


def _get_entry_row(session: Session, entry_id: int) -> ListEntryORM:
    row = session.get(ListEntryORM, entry_id)
    if row is None:
        raise ValueError(f"List entry {entry_id} not found")
    return row


def generate_list_for_period(period_id: int) -> ListGenerationResult:
    """Bring a period's derived entries in line with its current meal plan.

    Matched entries are updated in place and keep their pantry and purchase state.
    New ingredients get fresh pending entries; entries for ingredients no longer
    needed, and duplicate entries, are deleted. Manual entries are never touched.
    Everything happens in one transaction.
    """

    convert_units = get_settings().convert_units

    with session_scope() as session:
        period = get_period_row(session, period_id)
        demands = aggregate_demand(
            [meal_to_model(meal) for meal in period.meals],
            convert_units=convert_units,
        )
        rows = list(period.entries)
        plan = plan_reconciliation(demands, [entry_to_model(row) for row in rows])

        rows_by_id = {row.id: row for row in rows}
        meals_by_id = {meal.id: meal for meal in period.meals}

        for update in plan.updates:
            row = rows_by_id[update.entry_id]
            row.quantity = update.quantity
            row.unit = update.unit.value
            row.meals = [meals_by_id[meal_id] for meal_id in update.meal_ids]

        for demand in plan.creations:
            period.entries.append(
                ListEntryORM(
                    ingredient_id=demand.ingredient_id,
                    quantity=demand.quantity,
                    unit=demand.unit.value,
                    category=demand.ingredient.category.value,
                    is_manually_added=False,
                    pantry_checked=False,
                    is_in_pantry=False,
                    is_checked=False,
                    meals=[meals_by_id[meal_id] for meal_id in demand.meal_ids],
                )
            )

        for removal in plan.removals:
            row = rows_by_id[removal.entry_id]
            period.entries.remove(row)
            session.delete(row)
            logger.debug(
                "Removing %s entry %s for ingredient %s",
                removal.reason,
                removal.entry_id,
                removal.ingredient_id,
                extra={"period_id": period_id, "entry_id": removal.entry_id},
            )

        if not plan.is_empty:
            touch_period(period)
        session.flush()

    result = ListGenerationResult(
        period_id=period_id,
        created=len(plan.creations),
        updated=len(plan.updates),
        removed=len(plan.removals),
        unreconciled={
            demand.ingredient.name: list(demand.unreconciled)
            for demand in demands
            if demand.unreconciled
        },
    )

    metrics.RECONCILED_ENTRIES.labels(action="created").inc(result.created)
    metrics.RECONCILED_ENTRIES.labels(action="updated").inc(result.updated)
    metrics.RECONCILED_ENTRIES.labels(action="removed").inc(result.removed)
    metrics.LIST_GENERATIONS.labels(outcome="changed" if result.changed else "unchanged").inc()
    logger.info(
        "Regenerated grocery list: %d created, %d updated, %d removed",
        result.created,
        result.updated,
        result.removed,
        extra={"period_id": period_id, "operation": "generate"},
    )
    return result


def cleanup_orphaned_entries() -> int:
    """Delete derived entries that no longer belong to any period.

    Manual entries without a period are kept; they were added on purpose.
    """

    with session_scope() as session:
        rows = (
            session.execute(
                select(ListEntryORM).where(
                    ListEntryORM.period_id.is_(None),
                    ListEntryORM.is_manually_added.is_(False),
                )
            )
            .scalars()
            .all()
        )
        for row in rows:
            session.delete(row)
        count = len(rows)

    if count:
        metrics.ORPHANS_REMOVED.inc(count)
        logger.info("Removed %d orphaned list entries", count, extra={"operation": "cleanup"})
    return count


def add_manual_entry(
    *,
    name: str,
    period_id: Optional[int] = None,
    quantity: float = 1.0,
    unit: MeasurementUnit | str = MeasurementUnit.PIECE,
    category: IngredientCategory | str | None = None,
) -> ListEntry:
    """Add a user-entered item, linked to a catalog ingredient when the name matches one.

    Manual entries skip the pantry check and go straight onto the shopping list.
    """

    cleaned = (name or "").strip()
    if not cleaned:
        raise ValueError("Item name must not be blank")
    if quantity < 0:
        raise ValueError("Quantity must not be negative")

    with session_scope() as session:
        if period_id is not None:
            get_period_row(session, period_id)

        ingredient = find_ingredient_row(session, cleaned)
        if category is not None:
            resolved_category = IngredientCategory(category).value
        elif ingredient is not None:
            resolved_category = ingredient.category
        else:
            resolved_category = IngredientCategory.OTHER.value

        row = ListEntryORM(
            period_id=period_id,
            ingredient_id=ingredient.id if ingredient is not None else None,
            custom_name=None if ingredient is not None else cleaned,
            quantity=float(quantity),
            unit=MeasurementUnit(unit).value,
            category=resolved_category,
            is_manually_added=True,
            pantry_checked=True,
            is_in_pantry=False,
            is_checked=False,
        )
        session.add(row)
        session.flush()
        return entry_to_model(row)


def get_entry(entry_id: int) -> Optional[ListEntry]:
    with session_scope() as session:
        row = session.get(ListEntryORM, entry_id)
        if row is None:
            return None
        return entry_to_model(row)


def list_entries(period_id: int, view: ListView | str = ListView.ALL) -> List[ListEntry]:
    """Return a period's entries matching ``view`` in store-walking order."""

    selected = ListView(view)
    with session_scope() as session:
        period = get_period_row(session, period_id)
        entries = [
            entry_to_model(row) for row in period.entries if states.matches_view(row, selected)
        ]
    return sorted(entries, key=display_sort_key)


def update_entry_quantity(
    entry_id: int,
    quantity: float,
    unit: MeasurementUnit | str | None = None,
) -> ListEntry:
    if quantity < 0:
        raise ValueError("Quantity must not be negative")

    with session_scope() as session:
        row = _get_entry_row(session, entry_id)
        row.quantity = float(quantity)
        if unit is not None:
            row.unit = MeasurementUnit(unit).value
        session.flush()
        return entry_to_model(row)


def _transition(entry_id: int, action: Callable[[ListEntryORM], bool]) -> ListEntry:
    with session_scope() as session:
        row = _get_entry_row(session, entry_id)
        if action(row):
            logger.debug(
                "Entry state is now %s",
                states.classify(row).value,
                extra={"entry_id": entry_id, "period_id": row.period_id},
            )
        session.flush()
        return entry_to_model(row)


def mark_in_pantry(entry_id: int) -> ListEntry:
    return _transition(entry_id, states.mark_in_pantry)


def unmark_from_pantry(entry_id: int) -> ListEntry:
    return _transition(entry_id, states.unmark_from_pantry)


def toggle_pantry(entry_id: int) -> ListEntry:
    return _transition(entry_id, states.toggle_pantry)


def mark_needed(entry_id: int) -> ListEntry:
    return _transition(entry_id, states.mark_needed)


def check_entry(entry_id: int, by: Optional[str] = None) -> ListEntry:
    return _transition(entry_id, lambda row: states.check(row, by=by))


def uncheck_entry(entry_id: int) -> ListEntry:
    return _transition(entry_id, states.uncheck)


def toggle_checked(entry_id: int, by: Optional[str] = None) -> ListEntry:
    return _transition(entry_id, lambda row: states.toggle_checked(row, by=by))


def mark_all_remaining_as_needed(period_id: int) -> int:
    """Finish a period's pantry check: every pending entry goes on the shopping list."""

    with session_scope() as session:
        period = get_period_row(session, period_id)
        count = states.mark_all_remaining_as_needed(period.entries)
    logger.info(
        "Marked %d remaining entries as needed",
        count,
        extra={"period_id": period_id, "operation": "mark_remaining_needed"},
    )
    return count


def delete_entry(entry_id: int) -> None:
    with session_scope() as session:
        row = _get_entry_row(session, entry_id)
        session.delete(row)


def progress_for(entries) -> ListProgress:
    pantry_items = [entry for entry in entries if states.is_pantry_check_item(entry)]
    shopping_items = [entry for entry in entries if states.is_shopping_item(entry)]
    return ListProgress(
        pantry_check_total=len(pantry_items),
        in_pantry=sum(1 for entry in pantry_items if entry.is_in_pantry),
        shopping_total=len(shopping_items),
        purchased=sum(1 for entry in shopping_items if entry.is_checked),
    )


def period_progress(period_id: int) -> ListProgress:
    with session_scope() as session:
        period = get_period_row(session, period_id)
        return progress_for(period.entries)


__all__ = [
    "add_manual_entry",
    "check_entry",
    "cleanup_orphaned_entries",
    "delete_entry",
    "display_sort_key",
    "entry_to_model",
    "generate_list_for_period",
    "get_entry",
    "list_entries",
    "mark_all_remaining_as_needed",
    "mark_in_pantry",
    "mark_needed",
    "period_progress",
    "progress_for",
    "toggle_checked",
    "toggle_pantry",
    "uncheck_entry",
    "unmark_from_pantry",
    "update_entry_quantity",
]
