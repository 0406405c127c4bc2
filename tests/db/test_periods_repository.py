"""Unit tests for week plan and scheduled meal persistence."""

from __future__ import annotations

from datetime import date

import pytest

from larder.config import get_settings
from larder.db.grocery_list import generate_list_for_period, list_entries
from larder.db.periods import (
    add_meal,
    assign_recipe,
    clear_meal,
    clear_period,
    copy_period_meals,
    create_period,
    delete_period,
    get_meal,
    get_period,
    get_period_for_date,
    list_periods,
    remove_recipe,
    set_custom_meal,
    set_period_status,
    set_servings,
    skip_meal,
    update_household_note,
)
from larder.models.planning import DayOfWeek, MealType, PeriodStatus


def test_create_period_normalizes_to_monday():
    period = create_period(date(2024, 1, 4))

    assert period.start_date == date(2024, 1, 1)
    assert period.end_date == date(2024, 1, 7)
    assert period.status == PeriodStatus.DRAFT
    assert get_period_for_date(date(2024, 1, 7)).id == period.id

    with pytest.raises(ValueError):
        create_period(date(2024, 1, 2))


def test_default_slots_follow_settings(monkeypatch):
    monkeypatch.setenv("LARDER_DEFAULT_MEAL_TYPES", "lunch,dinner")
    monkeypatch.setenv("LARDER_DEFAULT_SERVINGS", "3")
    get_settings.cache_clear()

    period = create_period(date(2024, 1, 8), with_default_slots=True)

    assert len(period.meals) == 14
    assert period.meals[0].slot_label == "Mon Lunch"
    assert period.meals[-1].slot_label == "Sun Dinner"
    assert {meal.servings_planned for meal in period.meals} == {3}


def test_list_periods_by_range():
    first = create_period(date(2024, 1, 1))
    second = create_period(date(2024, 1, 8))
    create_period(date(2024, 1, 15))

    assert [period.id for period in list_periods(date(2024, 1, 1), date(2024, 1, 8))] == [
        first.id,
        second.id,
    ]
    assert len(list_periods()) == 3


def test_meal_planning_modes_are_mutually_exclusive(rice_bowl):
    period = create_period(date(2024, 1, 1))
    meal = add_meal(period.id, day=DayOfWeek.TUESDAY, meal_type=MealType.LUNCH)

    skipped = skip_meal(meal.id)
    assert skipped.is_skipped is True
    assert skipped.display_title == "Skipped"

    planned = assign_recipe(meal.id, rice_bowl.id)
    assert planned.is_skipped is False
    assert [recipe.title for recipe in planned.recipes] == ["Rice Bowl"]
    assert assign_recipe(meal.id, rice_bowl.id).recipes == planned.recipes

    custom = set_custom_meal(meal.id, "Eating out")
    assert custom.recipes == []
    assert custom.display_title == "Eating out"

    assign_recipe(meal.id, rice_bowl.id)
    assert get_meal(meal.id).custom_meal_name is None

    assert remove_recipe(meal.id, rice_bowl.id).recipes == []
    cleared = clear_meal(meal.id)
    assert cleared.is_planned is False

    with pytest.raises(ValueError):
        set_custom_meal(meal.id, "  ")


def test_set_servings_and_status():
    period = create_period(date(2024, 1, 1))
    meal = add_meal(period.id, day=DayOfWeek.MONDAY, meal_type=MealType.DINNER)

    assert meal.servings_planned == 2
    assert set_servings(meal.id, 6).servings_planned == 6
    with pytest.raises(ValueError):
        set_servings(meal.id, -1)

    assert set_period_status(period.id, "active").status == PeriodStatus.ACTIVE


def test_missing_entities_raise():
    with pytest.raises(ValueError):
        add_meal(999, day=DayOfWeek.MONDAY, meal_type=MealType.DINNER)
    with pytest.raises(ValueError):
        skip_meal(999)
    with pytest.raises(ValueError):
        delete_period(999)


def test_delete_period_removes_meals(rice_bowl, plan_meal):
    meal = plan_meal(rice_bowl.id)

    delete_period(meal.period_id)

    assert get_period(meal.period_id) is None
    assert get_meal(meal.id) is None


def test_household_note_is_trimmed_and_cleared():
    period = create_period(date(2024, 3, 4), household_note="Guests on Friday")
    assert period.household_note == "Guests on Friday"

    assert update_household_note(period.id, "  Low salt  ").household_note == "Low salt"
    assert update_household_note(period.id, "   ").household_note is None


def _slot(period, day, meal_type):
    return next(meal for meal in period.meals if meal.day == day and meal.meal_type == meal_type)


def test_copy_period_meals_fills_matching_slots(rice_bowl, plan_meal):
    dinner = plan_meal(rice_bowl.id, servings=4)
    lunch = add_meal(dinner.period_id, day=DayOfWeek.TUESDAY, meal_type=MealType.LUNCH)
    set_custom_meal(lunch.id, "Leftovers")
    add_meal(dinner.period_id, day=DayOfWeek.SUNDAY, meal_type=MealType.SNACK)
    target = create_period(date(2024, 1, 8), with_default_slots=True)

    copied = copy_period_meals(target.id, dinner.period_id)

    monday = _slot(copied, DayOfWeek.MONDAY, MealType.DINNER)
    assert [recipe.id for recipe in monday.recipes] == [rice_bowl.id]
    assert monday.servings_planned == 4
    tuesday = _slot(copied, DayOfWeek.TUESDAY, MealType.LUNCH)
    assert tuesday.custom_meal_name == "Leftovers"
    assert tuesday.recipes == []
    assert len(copied.meals) == len(target.meals)
    assert copied.modified_at is not None

    result = generate_list_for_period(target.id)
    assert result.created == 2
    quantities = {entry.display_name: entry.quantity for entry in list_entries(target.id)}
    assert quantities["Rice"] == pytest.approx(1000)


def test_copy_period_meals_rejects_bad_ids(plan_meal, rice_bowl):
    meal = plan_meal(rice_bowl.id)

    with pytest.raises(ValueError):
        copy_period_meals(meal.period_id, meal.period_id)
    with pytest.raises(ValueError):
        copy_period_meals(meal.period_id, 999)


def test_clear_period_empties_slots_and_list(rice_bowl, plan_meal):
    meal = plan_meal(rice_bowl.id)
    skipped = add_meal(meal.period_id, day=DayOfWeek.FRIDAY, meal_type=MealType.DINNER)
    skip_meal(skipped.id)
    generate_list_for_period(meal.period_id)

    cleared = clear_period(meal.period_id)

    assert len(cleared.meals) == 2
    assert all(not slot.recipes and not slot.is_skipped and slot.custom_meal_name is None for slot in cleared.meals)
    assert generate_list_for_period(meal.period_id).removed == 2
    assert list_entries(meal.period_id) == []
    with pytest.raises(ValueError):
        clear_period(999)
