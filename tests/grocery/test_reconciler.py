"""Tests for the pure reconciliation plan."""

from __future__ import annotations

from larder.grocery.reconciler import plan_reconciliation
from larder.models.catalog import Ingredient, MeasurementUnit
from larder.models.grocery import IngredientDemand, ListEntry

RICE = Ingredient(id=1, name="Rice", normalized_name="rice")
ONION = Ingredient(id=2, name="Onion", normalized_name="onion")


def demand(ingredient, quantity, meal_ids, unit=MeasurementUnit.GRAM):
    return IngredientDemand(ingredient=ingredient, quantity=quantity, unit=unit, meal_ids=meal_ids)


def entry(entry_id, ingredient_id, quantity, meal_ids, **flags):
    return ListEntry(
        id=entry_id,
        period_id=1,
        ingredient_id=ingredient_id,
        quantity=quantity,
        unit=flags.pop("unit", MeasurementUnit.GRAM),
        meal_ids=meal_ids,
        **flags,
    )


def test_unchanged_demand_yields_empty_plan():
    plan = plan_reconciliation(
        [demand(RICE, 1000, [1, 2])],
        [entry(5, RICE.id, 1000.0000000001, [2, 1], pantry_checked=True, is_in_pantry=True)],
    )

    assert plan.is_empty


def test_new_changed_and_obsolete_entries():
    plan = plan_reconciliation(
        [demand(RICE, 1500, [1]), demand(ONION, 2, [1], MeasurementUnit.PIECE)],
        [entry(5, RICE.id, 1000, [1]), entry(6, 99, 3, [1])],
    )

    assert [(update.entry_id, update.quantity) for update in plan.updates] == [(5, 1500)]
    assert [creation.ingredient_id for creation in plan.creations] == [ONION.id]
    assert [(removal.entry_id, removal.reason) for removal in plan.removals] == [(6, "obsolete")]


def test_duplicates_are_removed_keeping_first_entry():
    plan = plan_reconciliation(
        [demand(RICE, 1000, [1])],
        [entry(5, RICE.id, 1000, [1]), entry(7, RICE.id, 1000, [1])],
    )

    assert plan.updates == ()
    assert plan.creations == ()
    assert plan.removed_ids == [7]
    assert plan.removals[0].reason == "duplicate"


def test_manual_and_unlinked_entries_are_ignored():
    manual = ListEntry(
        id=8,
        custom_name="Paper towels",
        quantity=1,
        unit=MeasurementUnit.PIECE,
        is_manually_added=True,
        pantry_checked=True,
    )
    manual_rice = entry(9, RICE.id, 1, [], is_manually_added=True, pantry_checked=True)
    unlinked = ListEntry(id=10, quantity=3, unit=MeasurementUnit.GRAM)

    plan = plan_reconciliation([], [manual, manual_rice, unlinked])

    assert plan.is_empty


def test_unit_change_triggers_update():
    plan = plan_reconciliation(
        [demand(RICE, 1, [1], MeasurementUnit.KILOGRAM)],
        [entry(5, RICE.id, 1, [1])],
    )

    assert plan.updates[0].unit == MeasurementUnit.KILOGRAM
