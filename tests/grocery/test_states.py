"""Tests for list entry state classification and transitions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import pytest

from larder.grocery import states
from larder.models.grocery import EntryState, ListView


@dataclass
class Entry:
    is_manually_added: bool = False
    pantry_checked: bool = False
    is_in_pantry: bool = False
    is_checked: bool = False
    checked_at: Optional[datetime] = None
    checked_by: Optional[str] = None


@pytest.mark.parametrize(
    ("flags", "expected"),
    [
        ({}, EntryState.PENDING),
        ({"pantry_checked": True, "is_in_pantry": True}, EntryState.IN_PANTRY),
        ({"pantry_checked": True}, EntryState.NEEDED),
        ({"pantry_checked": True, "is_checked": True}, EntryState.PURCHASED),
    ],
)
def test_classify(flags, expected):
    assert states.classify(Entry(**flags)) == expected


def test_pantry_transitions_complete_the_pantry_check():
    entry = Entry()

    assert states.mark_in_pantry(entry) is True
    assert (entry.pantry_checked, entry.is_in_pantry) == (True, True)
    assert states.mark_in_pantry(entry) is False

    assert states.toggle_pantry(entry) is True
    assert states.classify(entry) == EntryState.NEEDED

    entry = Entry()
    assert states.unmark_from_pantry(entry) is True
    assert entry.pantry_checked is True

    entry = Entry(pantry_checked=True, is_in_pantry=True)
    assert states.mark_needed(entry) is True
    assert entry.is_in_pantry is False


def test_mark_all_remaining_as_needed_only_touches_pending_entries():
    pending = Entry()
    in_pantry = Entry(pantry_checked=True, is_in_pantry=True)
    stray = Entry(is_in_pantry=True)

    assert states.mark_all_remaining_as_needed([pending, in_pantry, stray]) == 2
    assert states.classify(pending) == EntryState.NEEDED
    assert stray.is_in_pantry is True
    assert stray.pantry_checked is True


def test_check_and_uncheck_maintain_timestamp():
    entry = Entry(pantry_checked=True)
    moment = datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc)

    assert states.check(entry, by="sam", at=moment) is True
    assert (entry.is_checked, entry.checked_at, entry.checked_by) == (True, moment, "sam")
    assert states.check(entry) is False

    assert states.uncheck(entry) is True
    assert (entry.is_checked, entry.checked_at, entry.checked_by) == (False, None, None)

    assert states.toggle_checked(entry) is True
    assert entry.is_checked is True
    assert entry.checked_at is not None


def test_view_predicates():
    manual = Entry(is_manually_added=True, pantry_checked=True)
    pending = Entry()
    owned = Entry(pantry_checked=True, is_in_pantry=True)
    bought = Entry(pantry_checked=True, is_checked=True)

    assert [states.matches_view(e, ListView.PANTRY_CHECK) for e in (manual, pending, owned, bought)] == [
        False,
        True,
        True,
        True,
    ]
    assert [states.matches_view(e, ListView.SHOPPING) for e in (manual, pending, owned, bought)] == [
        True,
        False,
        False,
        True,
    ]
    assert [states.matches_view(e, ListView.UNPURCHASED) for e in (manual, pending, owned, bought)] == [
        True,
        False,
        False,
        False,
    ]
    assert states.matches_view(owned, ListView.IN_PANTRY)
