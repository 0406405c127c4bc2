"""Lifecycle flags of a single list entry and the transitions between them.

An entry's state is fully described by four flags:

* ``is_manually_added`` - added by a user rather than derived from recipes
* ``pantry_checked`` - the entry went through the pantry check
* ``is_in_pantry`` - the household already owns it
* ``is_checked`` - purchased

Derived entries start out ``PENDING``. Touching an entry's pantry state completes
its pantry check, after which it is either ``IN_PANTRY`` or on the shopping list
(``NEEDED``, then ``PURCHASED`` once checked off). Manual entries skip the pantry
check. Every transition is reversible.

Transitions mutate the entry in place (ORM rows in practice) and return whether
anything changed. Predicates also accept the read-only ``ListEntry`` snapshots.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional, Protocol

from larder.models.grocery import EntryState, ListView


class EntryLike(Protocol):
    is_manually_added: bool
    pantry_checked: bool
    is_in_pantry: bool
    is_checked: bool
    checked_at: Optional[datetime]
    checked_by: Optional[str]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def classify(entry: EntryLike) -> EntryState:
    if not entry.pantry_checked:
        return EntryState.PENDING
    if entry.is_in_pantry:
        return EntryState.IN_PANTRY
    if entry.is_checked:
        return EntryState.PURCHASED
    return EntryState.NEEDED


# Derived views

def is_pantry_check_item(entry: EntryLike) -> bool:
    return not entry.is_manually_added


def is_in_pantry_item(entry: EntryLike) -> bool:
    return entry.is_in_pantry


def is_shopping_item(entry: EntryLike) -> bool:
    return entry.pantry_checked and not entry.is_in_pantry


def is_unpurchased_item(entry: EntryLike) -> bool:
    return is_shopping_item(entry) and not entry.is_checked


VIEW_PREDICATES = {
    ListView.ALL: lambda entry: True,
    ListView.PANTRY_CHECK: is_pantry_check_item,
    ListView.IN_PANTRY: is_in_pantry_item,
    ListView.SHOPPING: is_shopping_item,
    ListView.UNPURCHASED: is_unpurchased_item,
}


def matches_view(entry: EntryLike, view: ListView) -> bool:
    return VIEW_PREDICATES[view](entry)


# Pantry transitions

def _set_pantry(entry: EntryLike, in_pantry: bool) -> bool:
    changed = entry.is_in_pantry != in_pantry or not entry.pantry_checked
    entry.is_in_pantry = in_pantry
    entry.pantry_checked = True
    return changed


def mark_in_pantry(entry: EntryLike) -> bool:
    return _set_pantry(entry, True)


def unmark_from_pantry(entry: EntryLike) -> bool:
    return _set_pantry(entry, False)


def toggle_pantry(entry: EntryLike) -> bool:
    return _set_pantry(entry, not entry.is_in_pantry)


def mark_needed(entry: EntryLike) -> bool:
    """Complete the pantry check with "need it": the entry goes on the shopping list."""

    return _set_pantry(entry, False)


def mark_all_remaining_as_needed(entries: Iterable[EntryLike]) -> int:
    """Pantry-check every pending entry without touching its pantry mark."""

    count = 0
    for entry in entries:
        if not entry.pantry_checked:
            entry.pantry_checked = True
            count += 1
    return count


# Purchase transitions

def check(entry: EntryLike, by: Optional[str] = None, at: Optional[datetime] = None) -> bool:
    if entry.is_checked:
        return False
    entry.is_checked = True
    entry.checked_at = at or utcnow()
    entry.checked_by = by
    return True


def uncheck(entry: EntryLike) -> bool:
    changed = entry.is_checked or entry.checked_at is not None or entry.checked_by is not None
    entry.is_checked = False
    entry.checked_at = None
    entry.checked_by = None
    return changed


def toggle_checked(entry: EntryLike, by: Optional[str] = None) -> bool:
    if entry.is_checked:
        return uncheck(entry)
    return check(entry, by=by)


def set_checked(entry: EntryLike, checked: bool, by: Optional[str] = None) -> bool:
    return check(entry, by=by) if checked else uncheck(entry)


__all__ = [
    "EntryLike",
    "VIEW_PREDICATES",
    "check",
    "classify",
    "is_in_pantry_item",
    "is_pantry_check_item",
    "is_shopping_item",
    "is_unpurchased_item",
    "mark_all_remaining_as_needed",
    "mark_in_pantry",
    "mark_needed",
    "matches_view",
    "set_checked",
    "toggle_checked",
    "toggle_pantry",
    "uncheck",
    "unmark_from_pantry",
    "utcnow",
]
