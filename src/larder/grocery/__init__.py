"""Grocery aggregation, reconciliation, item state and cross-period grouping."""

from larder.grocery.demand import aggregate_demand, scaled_quantity
from larder.grocery.grouping import (
    ByEntryId,
    ByIngredient,
    ByManualName,
    EntryGroup,
    GroupKey,
    group_entries,
    group_key,
)
from larder.grocery.reconciler import ReconciliationPlan, plan_reconciliation

__all__ = [
    "aggregate_demand",
    "scaled_quantity",
    "ByEntryId",
    "ByIngredient",
    "ByManualName",
    "EntryGroup",
    "GroupKey",
    "group_entries",
    "group_key",
    "ReconciliationPlan",
    "plan_reconciliation",
]
