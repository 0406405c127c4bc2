"""Tests for cross-period grouping and group fan-out."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pytest

from larder.grocery import grouping


@dataclass
class Entry:
    id: int
    ingredient_id: Optional[int] = None
    custom_name: Optional[str] = None
    quantity: float = 1.0
    unit: str = "gram"
    is_manually_added: bool = False
    pantry_checked: bool = True
    is_in_pantry: bool = False
    is_checked: bool = False
    checked_at: Optional[datetime] = None
    checked_by: Optional[str] = None


def test_group_keys():
    assert grouping.group_key(Entry(1, ingredient_id=4)) == grouping.ByIngredient(4)
    assert grouping.group_key(Entry(2, ingredient_id=4, is_manually_added=True)) == grouping.ByIngredient(4)
    assert grouping.group_key(
        Entry(3, custom_name="  Paper Towels ", is_manually_added=True)
    ) == grouping.ByManualName("paper towels")
    assert grouping.group_key(Entry(4, custom_name=" ", is_manually_added=True)) == grouping.ByEntryId(4)
    assert grouping.group_key(Entry(5)) is None


def test_group_entries_keeps_encounter_order_and_sums():
    entries = [
        Entry(1, ingredient_id=7, quantity=200),
        Entry(2, custom_name="Foil", is_manually_added=True),
        Entry(3, ingredient_id=7, quantity=300),
        Entry(4),
        Entry(5, custom_name="foil", is_manually_added=True),
    ]

    groups = grouping.group_entries(entries)

    assert [group.key.label for group in groups] == ["ingredient:7", "manual:foil"]
    assert groups[0].representative.id == 1
    assert groups[0].quantity == pytest.approx(500)
    assert [member.id for member in groups[1].members] == [2, 5]
    assert grouping.find_group(groups, 5) is groups[1]
    assert grouping.find_group(groups, 4) is None


def test_group_quantity_converts_into_the_representative_unit():
    (group,) = grouping.group_entries(
        [
            Entry(1, ingredient_id=7, quantity=1, unit="kilogram"),
            Entry(2, ingredient_id=7, quantity=300, unit="gram"),
            Entry(3, ingredient_id=7, quantity=2, unit="piece"),
        ]
    )

    assert group.unit.value == "kilogram"
    assert group.quantity == pytest.approx(1.3)
    assert [member.id for member in group.unconverted] == [3]


def test_toggle_checked_follows_representative():
    members = [
        Entry(1, ingredient_id=7, quantity=200, is_checked=False),
        Entry(2, ingredient_id=7, quantity=300, is_checked=True, checked_at=datetime(2024, 1, 1)),
        Entry(3, ingredient_id=7, quantity=150, is_checked=False),
    ]
    (group,) = grouping.group_entries(members)

    changed = grouping.toggle_group_checked(group, by="alex")

    assert changed == 2
    assert all(member.is_checked for member in members)
    assert members[0].checked_by == "alex"
    assert group.quantity == pytest.approx(650)


def test_toggle_pantry_uses_any_member():
    members = [
        Entry(1, ingredient_id=7, pantry_checked=False),
        Entry(2, ingredient_id=7, is_in_pantry=True),
    ]
    (group,) = grouping.group_entries(members)
    assert group.in_pantry is True

    grouping.toggle_group_pantry(group)

    assert [member.is_in_pantry for member in members] == [False, False]
    assert all(member.pantry_checked for member in members)


def test_mark_groups_needed_and_sync_pantry_state():
    owned = [Entry(1, ingredient_id=7, pantry_checked=False), Entry(2, ingredient_id=7, is_in_pantry=True)]
    needed = [Entry(3, ingredient_id=8, pantry_checked=False), Entry(4, ingredient_id=8, pantry_checked=False)]
    groups = grouping.group_entries(owned + needed)

    assert grouping.mark_groups_needed(groups) == 2
    assert all(member.pantry_checked for member in needed)
    assert owned[0].pantry_checked is False

    assert grouping.sync_pantry_state(groups) == 1
    assert owned[0].is_in_pantry is True
    assert owned[0].pantry_checked is True
