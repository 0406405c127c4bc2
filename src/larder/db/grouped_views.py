"""Combined pantry-check and shopping views over a range of periods."""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from larder import metrics
from larder.grocery import grouping, states
from larder.models.grocery import (
    GroupedListView,
    GroupedRow,
    ListGenerationResult,
    ListView,
    UnconvertedQuantity,
)

from .grocery_list import cleanup_orphaned_entries, entry_to_model, generate_list_for_period
from .models import ListEntryORM, PeriodORM
from .repository import session_scope

logger = logging.getLogger(__name__)

# Entries each combined view is built from.
_SCOPES = {
    ListView.PANTRY_CHECK: states.is_pantry_check_item,
    ListView.SHOPPING: states.is_shopping_item,
}


def _periods_in_range(
    session: Session,
    start: Optional[date],
    end: Optional[date],
) -> List[PeriodORM]:
    stmt = select(PeriodORM).order_by(PeriodORM.start_date.asc())
    if start is not None:
        stmt = stmt.where(PeriodORM.start_date >= start)
    if end is not None:
        stmt = stmt.where(PeriodORM.start_date <= end)
    return list(session.execute(stmt).scalars().all())


def _scoped_rows(
    session: Session,
    kind: ListView,
    start: Optional[date],
    end: Optional[date],
) -> List[ListEntryORM]:
    if kind not in _SCOPES:
        raise ValueError(f"Unsupported grouped view: {kind.value}")
    in_scope = _SCOPES[kind]
    return [
        row
        for period in _periods_in_range(session, start, end)
        for row in period.entries
        if in_scope(row)
    ]


def _to_row(group: grouping.EntryGroup) -> GroupedRow:
    members = [entry_to_model(member) for member in group.members]
    representative = members[0]
    return GroupedRow(
        key=group.key.label,
        representative=representative,
        members=members,
        quantity=group.quantity,
        unit=group.unit,
        category=representative.category,
        display_name=representative.display_name,
        in_pantry=group.in_pantry,
        is_checked=group.is_checked,
        unconverted=[
            UnconvertedQuantity(entry_id=member.id, quantity=member.quantity, unit=member.unit)
            for member in group.unconverted
        ],
    )


def _build_view(kind: ListView, start: Optional[date], end: Optional[date]) -> GroupedListView:
    with session_scope() as session:
        period_ids = [period.id for period in _periods_in_range(session, start, end)]
        groups = grouping.group_entries(_scoped_rows(session, kind, start, end))
        rows = [_to_row(group) for group in groups]

    rows.sort(key=lambda row: (row.category.sort_order, row.display_name.casefold()))
    return GroupedListView(kind=kind, period_ids=period_ids, rows=rows)


def pantry_check_view(start: Optional[date] = None, end: Optional[date] = None) -> GroupedListView:
    """Derived entries of every period in range, one row per ingredient."""

    return _build_view(ListView.PANTRY_CHECK, start, end)


def shopping_view(start: Optional[date] = None, end: Optional[date] = None) -> GroupedListView:
    """Entries still to buy (or bought) across the range, one row per ingredient or name."""

    return _build_view(ListView.SHOPPING, start, end)


def _mutate_group(
    entry_id: int,
    kind: ListView,
    operation: str,
    action: Callable[[Session, grouping.EntryGroup], int],
    start: Optional[date],
    end: Optional[date],
) -> int:
    with session_scope() as session:
        groups = grouping.group_entries(_scoped_rows(session, kind, start, end))
        group = grouping.find_group(groups, entry_id)
        if group is None:
            raise ValueError(f"List entry {entry_id} not found")
        changed = action(session, group)

    metrics.GROUP_MUTATIONS.labels(operation=operation).inc(changed)
    logger.info(
        "Group %s changed %d entries",
        operation,
        changed,
        extra={"entry_id": entry_id, "operation": operation},
    )
    return changed


def toggle_group_pantry(
    entry_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> int:
    """Flip the pantry mark of the pantry-check row containing ``entry_id``."""

    return _mutate_group(
        entry_id,
        ListView.PANTRY_CHECK,
        "toggle_pantry",
        lambda session, group: grouping.toggle_group_pantry(group),
        start,
        end,
    )


def toggle_group_checked(
    entry_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
    by: Optional[str] = None,
) -> int:
    """Flip the purchase state of the shopping row containing ``entry_id``."""

    return _mutate_group(
        entry_id,
        ListView.SHOPPING,
        "toggle_checked",
        lambda session, group: grouping.toggle_group_checked(group, by=by),
        start,
        end,
    )


def delete_group(
    entry_id: int,
    view: ListView | str = ListView.SHOPPING,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> int:
    """Delete every entry of the row containing ``entry_id`` in the given view."""

    def _delete(session: Session, group: grouping.EntryGroup) -> int:
        for member in group.members:
            session.delete(member)
        return len(group.members)

    return _mutate_group(entry_id, ListView(view), "delete", _delete, start, end)


def mark_remaining_needed_in_range(start: Optional[date] = None, end: Optional[date] = None) -> int:
    """Finish the combined pantry check: rows not in the pantry go on the shopping list."""

    with session_scope() as session:
        groups = grouping.group_entries(_scoped_rows(session, ListView.PANTRY_CHECK, start, end))
        changed = grouping.mark_groups_needed(groups)

    metrics.GROUP_MUTATIONS.labels(operation="mark_remaining_needed").inc(changed)
    return changed


def sync_pantry_states(start: Optional[date] = None, end: Optional[date] = None) -> int:
    """Mark every entry of a row in the pantry when one of its entries already is."""

    with session_scope() as session:
        groups = grouping.group_entries(_scoped_rows(session, ListView.PANTRY_CHECK, start, end))
        changed = grouping.sync_pantry_state(groups)

    metrics.GROUP_MUTATIONS.labels(operation="sync_pantry").inc(changed)
    if changed:
        logger.info("Synced pantry state of %d entries", changed, extra={"operation": "sync_pantry"})
    return changed


def _has_recipes(period: PeriodORM) -> bool:
    return any(meal.recipes and not meal.is_skipped for meal in period.meals)


def _has_derived_entries(period: PeriodORM) -> bool:
    return any(not entry.is_manually_added for entry in period.entries)


def generate_for_new_periods(
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[ListGenerationResult]:
    """Generate lists for periods in range that have recipes but no derived entries yet."""

    with session_scope() as session:
        pending = [
            period.id
            for period in _periods_in_range(session, start, end)
            if _has_recipes(period) and not _has_derived_entries(period)
        ]

    results = [generate_list_for_period(period_id) for period_id in pending]
    if results:
        cleanup_orphaned_entries()
    return results


def regenerate_range(
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[ListGenerationResult]:
    """Regenerate the list of every period in range, then drop orphaned entries."""

    with session_scope() as session:
        period_ids = [period.id for period in _periods_in_range(session, start, end)]

    results = [generate_list_for_period(period_id) for period_id in period_ids]
    cleanup_orphaned_entries()
    return results


__all__ = [
    "delete_group",
    "generate_for_new_periods",
    "mark_remaining_needed_in_range",
    "pantry_check_view",
    "regenerate_range",
    "shopping_view",
    "sync_pantry_states",
    "toggle_group_checked",
    "toggle_group_pantry",
]
