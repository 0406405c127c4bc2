"""Weekly planning models: periods and their scheduled meals."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from larder.models.catalog import Recipe


class DayOfWeek(int, Enum):
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7

    @property
    def short_name(self) -> str:
        return self.name[:3].title()

    @property
    def full_name(self) -> str:
        return self.name.title()


class MealType(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"

    @property
    def display_name(self) -> str:
        return self.value.title()

    @property
    def sort_order(self) -> int:
        return _MEAL_ORDER[self]


_MEAL_ORDER = {
    MealType.BREAKFAST: 0,
    MealType.LUNCH: 1,
    MealType.DINNER: 2,
    MealType.SNACK: 3,
}


class PeriodStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"


def normalize_period_start(value: date) -> date:
    """Return the Monday of the week containing ``value``."""

    if isinstance(value, datetime):
        value = value.date()
    return value - timedelta(days=value.weekday())


class ScheduledMeal(BaseModel):
    """One meal occurrence within a planning period."""

    id: int
    period_id: int
    day: DayOfWeek
    meal_type: MealType
    servings_planned: int = Field(default=2, ge=0)
    recipes: list[Recipe] = Field(default_factory=list)
    custom_meal_name: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None, max_length=1000)
    is_skipped: bool = Field(default=False)

    model_config = ConfigDict(frozen=True)

    @property
    def is_planned(self) -> bool:
        return not self.is_skipped and (bool(self.recipes) or bool(self.custom_meal_name))

    @property
    def display_title(self) -> str:
        if self.is_skipped:
            return "Skipped"
        if self.recipes:
            return " & ".join(recipe.title for recipe in self.recipes)
        return self.custom_meal_name or "Unplanned"

    @property
    def slot_label(self) -> str:
        """Short label such as ``Mon Dinner``."""

        return f"{self.day.short_name} {self.meal_type.display_name}"


class Period(BaseModel):
    """Seven-day planning container starting on a Monday."""

    id: int
    start_date: date
    status: PeriodStatus = Field(default=PeriodStatus.DRAFT)
    household_note: Optional[str] = Field(default=None, max_length=1000)
    meals: list[ScheduledMeal] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None)
    modified_at: Optional[datetime] = Field(default=None)

    model_config = ConfigDict(frozen=True)

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(days=6)

    @property
    def planned_meals(self) -> list[ScheduledMeal]:
        return [meal for meal in self.meals if meal.is_planned]

    def date_for(self, day: DayOfWeek) -> date:
        return self.start_date + timedelta(days=int(day) - 1)


__all__ = [
    "DayOfWeek",
    "MealType",
    "Period",
    "PeriodStatus",
    "ScheduledMeal",
    "normalize_period_start",
]
