"""Grocery list models shared by the engine, repositories and API."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from larder.models.catalog import Ingredient, IngredientCategory, MeasurementUnit


class EntryState(str, Enum):
    """Workflow state of a list entry, derived from its flags."""

    PENDING = "pending"
    NEEDED = "needed"
    IN_PANTRY = "in_pantry"
    PURCHASED = "purchased"


class ListView(str, Enum):
    """Named filters over a period's list entries."""

    ALL = "all"
    PANTRY_CHECK = "pantry_check"
    IN_PANTRY = "in_pantry"
    SHOPPING = "shopping"
    UNPURCHASED = "unpurchased"


def format_quantity(quantity: float) -> str:
    """Render a quantity without trailing zeros (``2``, ``1.5``, ``0.33``)."""

    if float(quantity).is_integer():
        return str(int(quantity))
    return f"{quantity:.2f}".rstrip("0").rstrip(".")


class ListEntry(BaseModel):
    """Single grocery list entry, derived from recipes or added manually."""

    id: int
    period_id: Optional[int] = Field(default=None)
    ingredient_id: Optional[int] = Field(default=None)
    ingredient_name: Optional[str] = Field(default=None)
    custom_name: Optional[str] = Field(default=None, max_length=255)
    quantity: float
    unit: MeasurementUnit
    category: IngredientCategory = Field(default=IngredientCategory.OTHER)
    is_manually_added: bool = Field(default=False)
    pantry_checked: bool = Field(default=False)
    is_in_pantry: bool = Field(default=False)
    is_checked: bool = Field(default=False)
    state: EntryState = Field(default=EntryState.PENDING)
    created_at: Optional[datetime] = Field(default=None)
    checked_at: Optional[datetime] = Field(default=None)
    checked_by: Optional[str] = Field(default=None)
    meal_ids: list[int] = Field(default_factory=list)
    source_meals: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def display_name(self) -> str:
        return self.ingredient_name or self.custom_name or "Unknown Item"

    @property
    def full_display(self) -> str:
        return f"{format_quantity(self.quantity)} {self.unit.abbreviation} {self.display_name}"


class UnreconciledQuantity(BaseModel):
    """Recipe contribution that could not be converted into the demand's unit."""

    quantity: float
    unit: MeasurementUnit
    meal_id: int

    model_config = ConfigDict(frozen=True)


class IngredientDemand(BaseModel):
    """Aggregate quantity of one ingredient needed by a period's meals."""

    ingredient: Ingredient
    quantity: float
    unit: MeasurementUnit
    meal_ids: list[int] = Field(default_factory=list)
    unreconciled: list[UnreconciledQuantity] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def ingredient_id(self) -> int:
        return self.ingredient.id


class ListGenerationResult(BaseModel):
    """Outcome of regenerating one period's grocery list."""

    period_id: int
    created: int = 0
    updated: int = 0
    removed: int = 0
    unreconciled: dict[str, list[UnreconciledQuantity]] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.removed)


class ListProgress(BaseModel):
    """Completion ratios for the pantry check and shopping phases."""

    pantry_check_total: int = 0
    in_pantry: int = 0
    shopping_total: int = 0
    purchased: int = 0

    model_config = ConfigDict(frozen=True)

    @property
    def pantry_check_ratio(self) -> float:
        return self.in_pantry / self.pantry_check_total if self.pantry_check_total else 0.0

    @property
    def shopping_ratio(self) -> float:
        return self.purchased / self.shopping_total if self.shopping_total else 0.0


class UnconvertedQuantity(BaseModel):
    """Group member whose unit cannot be converted into the row's unit."""

    entry_id: int
    quantity: float
    unit: MeasurementUnit

    model_config = ConfigDict(frozen=True)


class GroupedRow(BaseModel):
    """One interactive row merging same-ingredient entries across periods."""

    key: str
    representative: ListEntry
    members: list[ListEntry]
    quantity: float
    unit: MeasurementUnit
    category: IngredientCategory
    display_name: str
    in_pantry: bool
    is_checked: bool
    unconverted: list[UnconvertedQuantity] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def member_ids(self) -> list[int]:
        return [member.id for member in self.members]

    @property
    def quantity_text(self) -> str:
        """``1.3 kg``, followed by any quantities kept in another unit (``+ 2 pc``)."""

        parts = [f"{format_quantity(self.quantity)} {self.unit.abbreviation}"]
        parts.extend(
            f"{format_quantity(extra.quantity)} {extra.unit.abbreviation}"
            for extra in self.unconverted
        )
        return " + ".join(parts)


class GroupedListView(BaseModel):
    """Cross-period pantry-check or shopping view."""

    kind: ListView
    period_ids: list[int] = Field(default_factory=list)
    rows: list[GroupedRow] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def total(self) -> int:
        return len(self.rows)

    @property
    def completed(self) -> int:
        """Rows done for this phase: in pantry (pantry check) or checked (shopping)."""

        if self.kind == ListView.PANTRY_CHECK:
            return sum(1 for row in self.rows if row.in_pantry)
        return sum(1 for row in self.rows if row.is_checked)

    def share_text(self) -> str:
        """Plain-text list of unchecked rows grouped by category."""

        lines = ["Shopping List", ""]
        current: Optional[IngredientCategory] = None
        for row in self.rows:
            if row.is_checked:
                continue
            if row.category != current:
                if current is not None:
                    lines.append("")
                lines.append(f"{row.category.display_name}:")
                current = row.category
            lines.append(f"  - {row.display_name} ({row.quantity_text})")
        return "\n".join(lines).rstrip() + "\n"


__all__ = [
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
    "format_quantity",
]
