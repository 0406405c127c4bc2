"""Diff a period's current ingredient demand against its persisted list entries."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Literal, Sequence, Tuple

from larder.models.catalog import MeasurementUnit
from larder.models.grocery import IngredientDemand, ListEntry

RemovalReason = Literal["duplicate", "obsolete"]


@dataclass(frozen=True)
class EntryUpdate:
    """In-place change to a matched derived entry; flags are never part of it."""

    entry_id: int
    quantity: float
    unit: MeasurementUnit
    meal_ids: Tuple[int, ...]


@dataclass(frozen=True)
class EntryRemoval:
    entry_id: int
    ingredient_id: int
    reason: RemovalReason


@dataclass(frozen=True)
class ReconciliationPlan:
    """Minimal set of mutations that brings a period's list in line with demand."""

    updates: Tuple[EntryUpdate, ...] = field(default_factory=tuple)
    creations: Tuple[IngredientDemand, ...] = field(default_factory=tuple)
    removals: Tuple[EntryRemoval, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not (self.updates or self.creations or self.removals)

    @property
    def removed_ids(self) -> List[int]:
        return [removal.entry_id for removal in self.removals]


def _needs_update(entry: ListEntry, demand: IngredientDemand) -> bool:
    if not math.isclose(entry.quantity, demand.quantity, rel_tol=1e-9, abs_tol=1e-9):
        return True
    if entry.unit != demand.unit:
        return True
    return sorted(entry.meal_ids) != sorted(demand.meal_ids)


def plan_reconciliation(
    demands: Sequence[IngredientDemand],
    entries: Iterable[ListEntry],
) -> ReconciliationPlan:
    """Compute updates, creations and removals for one period.

    Only derived entries take part. The first derived entry seen for an ingredient
    is the match; any later one is a duplicate and is removed. Matched entries keep
    their pantry and purchase flags, and are only updated when quantity, unit or
    contributing meals actually changed, so an unchanged period yields an empty plan.
    Derived entries without an ingredient reference are left untouched.
    """

    existing: Dict[int, ListEntry] = {}
    removals: List[EntryRemoval] = []

    for entry in entries:
        if entry.is_manually_added or entry.ingredient_id is None:
            continue
        if entry.ingredient_id in existing:
            removals.append(EntryRemoval(entry.id, entry.ingredient_id, "duplicate"))
        else:
            existing[entry.ingredient_id] = entry

    updates: List[EntryUpdate] = []
    creations: List[IngredientDemand] = []
    demanded = set()

    for demand in demands:
        demanded.add(demand.ingredient_id)
        match = existing.get(demand.ingredient_id)
        if match is None:
            creations.append(demand)
        elif _needs_update(match, demand):
            updates.append(
                EntryUpdate(
                    entry_id=match.id,
                    quantity=demand.quantity,
                    unit=demand.unit,
                    meal_ids=tuple(demand.meal_ids),
                )
            )

    for ingredient_id, entry in existing.items():
        if ingredient_id not in demanded:
            removals.append(EntryRemoval(entry.id, ingredient_id, "obsolete"))

    return ReconciliationPlan(
        updates=tuple(updates),
        creations=tuple(creations),
        removals=tuple(removals),
    )


__all__ = [
    "EntryRemoval",
    "EntryUpdate",
    "ReconciliationPlan",
    "RemovalReason",
    "plan_reconciliation",
]
