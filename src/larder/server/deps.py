"""Dependency definitions for the Larder API server."""

from __future__ import annotations

from datetime import date
from typing import Callable, List, Optional

from fastapi import Depends, HTTPException, Request, status

from larder.config import get_settings
from larder.db import catalog, grocery_list, grouped_views, periods
from larder.models.catalog import Ingredient, Recipe
from larder.models.grocery import (
    GroupedListView,
    ListEntry,
    ListGenerationResult,
    ListProgress,
    ListView,
)
from larder.models.planning import Period, ScheduledMeal

IngredientProvider = Callable[[], List[Ingredient]]
IngredientCreator = Callable[[dict], Ingredient]
RecipeProvider = Callable[[], List[Recipe]]
RecipeFetcher = Callable[[int], Optional[Recipe]]
RecipeCreator = Callable[[dict], Recipe]
RecipeDeleter = Callable[[int], None]
PeriodProvider = Callable[[Optional[date], Optional[date]], List[Period]]
PeriodFetcher = Callable[[int], Optional[Period]]
PeriodCreator = Callable[[dict], Period]
PeriodDeleter = Callable[[int], None]
PeriodCopier = Callable[[int, int], Period]
PeriodClearer = Callable[[int], Period]
MealCreator = Callable[[int, dict], ScheduledMeal]
MealUpdater = Callable[[int, dict], ScheduledMeal]
ListGenerator = Callable[[int], ListGenerationResult]
OrphanCleaner = Callable[[], int]
EntryProvider = Callable[[int, ListView], List[ListEntry]]
EntryCreator = Callable[[dict], ListEntry]
EntryAction = Callable[[int, str, Optional[str]], ListEntry]
EntryQuantityUpdater = Callable[[int, dict], ListEntry]
EntryDeleter = Callable[[int], None]
RemainingNeededMarker = Callable[[int], int]
ProgressProvider = Callable[[int], ListProgress]
GroupedViewProvider = Callable[[str, Optional[date], Optional[date], bool], GroupedListView]
GroupAction = Callable[[int, str, Optional[date], Optional[date], Optional[str]], int]
RangeAction = Callable[[str, Optional[date], Optional[date]], int]


def get_ingredient_provider() -> IngredientProvider:
    return catalog.list_ingredients


def get_ingredient_creator() -> IngredientCreator:
    return lambda payload: catalog.create_ingredient(**payload)


def get_recipe_provider() -> RecipeProvider:
    return catalog.list_recipes


def get_recipe_fetcher() -> RecipeFetcher:
    return catalog.get_recipe


def get_recipe_creator() -> RecipeCreator:
    return lambda payload: catalog.create_recipe(**payload)


def get_recipe_deleter() -> RecipeDeleter:
    return catalog.delete_recipe


def get_period_provider() -> PeriodProvider:
    return lambda start, end: periods.list_periods(start, end)


def get_period_fetcher() -> PeriodFetcher:
    return periods.get_period


def get_period_creator() -> PeriodCreator:
    return lambda payload: periods.create_period(**payload)


def get_period_deleter() -> PeriodDeleter:
    return periods.delete_period


def get_period_copier() -> PeriodCopier:
    return periods.copy_period_meals


def get_period_clearer() -> PeriodClearer:
    return periods.clear_period


def get_meal_creator() -> MealCreator:
    return lambda period_id, payload: periods.add_meal(period_id, **payload)


_MEAL_ACTIONS = {
    "assign_recipe": lambda meal_id, payload: periods.assign_recipe(meal_id, payload["recipe_id"]),
    "remove_recipe": lambda meal_id, payload: periods.remove_recipe(meal_id, payload["recipe_id"]),
    "custom": lambda meal_id, payload: periods.set_custom_meal(meal_id, payload["name"]),
    "skip": lambda meal_id, payload: periods.skip_meal(meal_id),
    "clear": lambda meal_id, payload: periods.clear_meal(meal_id),
    "servings": lambda meal_id, payload: periods.set_servings(meal_id, payload["servings"]),
}


def get_meal_updater() -> MealUpdater:
    """Dispatch a meal change payload (``{"action": ..., ...}``) to the repository."""

    def _update(meal_id: int, payload: dict) -> ScheduledMeal:
        return _MEAL_ACTIONS[payload["action"]](meal_id, payload)

    return _update


def get_list_generator() -> ListGenerator:
    return grocery_list.generate_list_for_period


def get_orphan_cleaner() -> OrphanCleaner:
    return grocery_list.cleanup_orphaned_entries


def get_entry_provider() -> EntryProvider:
    return lambda period_id, view: grocery_list.list_entries(period_id, view)


def get_entry_creator() -> EntryCreator:
    return lambda payload: grocery_list.add_manual_entry(**payload)


_ENTRY_ACTIONS = {
    "mark_in_pantry": lambda entry_id, by: grocery_list.mark_in_pantry(entry_id),
    "unmark_from_pantry": lambda entry_id, by: grocery_list.unmark_from_pantry(entry_id),
    "toggle_pantry": lambda entry_id, by: grocery_list.toggle_pantry(entry_id),
    "mark_needed": lambda entry_id, by: grocery_list.mark_needed(entry_id),
    "check": lambda entry_id, by: grocery_list.check_entry(entry_id, by=by),
    "uncheck": lambda entry_id, by: grocery_list.uncheck_entry(entry_id),
    "toggle_checked": lambda entry_id, by: grocery_list.toggle_checked(entry_id, by=by),
}


def get_entry_action() -> EntryAction:
    return lambda entry_id, action, by: _ENTRY_ACTIONS[action](entry_id, by)


def get_entry_quantity_updater() -> EntryQuantityUpdater:
    return lambda entry_id, payload: grocery_list.update_entry_quantity(entry_id, **payload)


def get_entry_deleter() -> EntryDeleter:
    return grocery_list.delete_entry


def get_remaining_needed_marker() -> RemainingNeededMarker:
    return grocery_list.mark_all_remaining_as_needed


def get_progress_provider() -> ProgressProvider:
    return grocery_list.period_progress


def get_grouped_view_provider() -> GroupedViewProvider:
    """Build a combined view, generating lists for newly planned periods first."""

    def _provide(kind: str, start: Optional[date], end: Optional[date], refresh: bool) -> GroupedListView:
        if refresh:
            grouped_views.generate_for_new_periods(start, end)
        if kind == ListView.PANTRY_CHECK.value:
            return grouped_views.pantry_check_view(start, end)
        return grouped_views.shopping_view(start, end)

    return _provide


_GROUP_ACTIONS = {
    "toggle_pantry": lambda entry_id, start, end, by: grouped_views.toggle_group_pantry(
        entry_id, start, end
    ),
    "toggle_checked": lambda entry_id, start, end, by: grouped_views.toggle_group_checked(
        entry_id, start, end, by=by
    ),
    "delete_shopping": lambda entry_id, start, end, by: grouped_views.delete_group(
        entry_id, ListView.SHOPPING, start, end
    ),
    "delete_pantry_check": lambda entry_id, start, end, by: grouped_views.delete_group(
        entry_id, ListView.PANTRY_CHECK, start, end
    ),
}


def get_group_action() -> GroupAction:
    return lambda entry_id, action, start, end, by: _GROUP_ACTIONS[action](entry_id, start, end, by)


_RANGE_ACTIONS = {
    "mark_remaining_needed": grouped_views.mark_remaining_needed_in_range,
    "sync_pantry": grouped_views.sync_pantry_states,
    "regenerate": lambda start, end: len(grouped_views.regenerate_range(start, end)),
}


def get_range_action() -> RangeAction:
    return lambda action, start, end: _RANGE_ACTIONS[action](start, end)


def require_api_token(
    request: Request,
    settings = Depends(get_settings),
) -> None:
    """Ensure requests carry the configured API token when required."""

    token = settings.api_token
    if not token:
        return

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.split("Bearer ")[-1].strip() == token:
        return

    if request.headers.get("X-API-Key") == token:
        return

    if request.query_params.get("api_token") == token:
        return

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
