"""Group same-ingredient entries across periods into single interactive rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from larder.models.catalog import MeasurementUnit

from . import states
from .units import convert_quantity


@dataclass(frozen=True)
class ByIngredient:
    ingredient_id: int

    @property
    def label(self) -> str:
        return f"ingredient:{self.ingredient_id}"


@dataclass(frozen=True)
class ByManualName:
    name: str

    @property
    def label(self) -> str:
        return f"manual:{self.name}"


@dataclass(frozen=True)
class ByEntryId:
    entry_id: int

    @property
    def label(self) -> str:
        return f"entry:{self.entry_id}"


GroupKey = Union[ByIngredient, ByManualName, ByEntryId]


def group_key(entry: Any) -> Optional[GroupKey]:
    """Return the grouping key of an entry, or ``None`` when it has no identity.

    Entries linked to a catalog ingredient group by that ingredient, whether derived
    or added by hand. Free-text manual entries group by their case-folded name and
    fall back to their own id when the name is blank.
    """

    if entry.ingredient_id is not None:
        return ByIngredient(entry.ingredient_id)
    if not entry.is_manually_added:
        return None
    name = (entry.custom_name or "").strip().casefold()
    if name:
        return ByManualName(name)
    return ByEntryId(entry.id)


@dataclass
class EntryGroup:
    """Entries sharing a key; the first member is the row's binding target."""

    key: GroupKey
    members: List[Any] = field(default_factory=list)

    @property
    def representative(self) -> Any:
        return self.members[0]

    @property
    def unit(self) -> MeasurementUnit:
        return MeasurementUnit(self.representative.unit)

    def _converted(self, member: Any) -> Optional[float]:
        return convert_quantity(member.quantity, MeasurementUnit(member.unit), self.unit)

    @property
    def quantity(self) -> float:
        """Sum of the members convertible into the representative's unit."""

        total = 0.0
        for member in self.members:
            converted = self._converted(member)
            if converted is not None:
                total += converted
        return total

    @property
    def unconverted(self) -> List[Any]:
        """Members whose unit cannot be converted into the representative's unit."""

        return [member for member in self.members if self._converted(member) is None]

    @property
    def in_pantry(self) -> bool:
        return any(member.is_in_pantry for member in self.members)

    @property
    def is_checked(self) -> bool:
        return bool(self.representative.is_checked)

    def contains(self, entry_id: int) -> bool:
        return any(member.id == entry_id for member in self.members)


def group_entries(entries: Iterable[Any]) -> List[EntryGroup]:
    """Bucket entries by group key, keeping first-encounter order."""

    groups: Dict[GroupKey, EntryGroup] = {}
    for entry in entries:
        key = group_key(entry)
        if key is None:
            continue
        group = groups.get(key)
        if group is None:
            group = groups[key] = EntryGroup(key)
        group.members.append(entry)
    return list(groups.values())


def find_group(groups: Iterable[EntryGroup], entry_id: int) -> Optional[EntryGroup]:
    for group in groups:
        if group.contains(entry_id):
            return group
    return None


def set_group_checked(group: EntryGroup, checked: bool, by: Optional[str] = None) -> int:
    changed = 0
    for member in group.members:
        if bool(member.is_checked) != checked:
            states.set_checked(member, checked, by=by)
            changed += 1
    return changed


def toggle_group_checked(group: EntryGroup, by: Optional[str] = None) -> int:
    """Flip the representative's purchase state and apply it to the whole group."""

    return set_group_checked(group, not group.is_checked, by=by)


def set_group_pantry(group: EntryGroup, in_pantry: bool) -> int:
    changed = 0
    for member in group.members:
        if in_pantry:
            changed += states.mark_in_pantry(member)
        else:
            changed += states.unmark_from_pantry(member)
    return changed


def toggle_group_pantry(group: EntryGroup) -> int:
    """A group counts as in the pantry when any member is; toggling flips that for all."""

    return set_group_pantry(group, not group.in_pantry)


def mark_groups_needed(groups: Iterable[EntryGroup]) -> int:
    """Pantry-check every member of the groups that are not in the pantry."""

    changed = 0
    for group in groups:
        if not group.in_pantry:
            changed += states.mark_all_remaining_as_needed(group.members)
    return changed


def sync_pantry_state(groups: Iterable[EntryGroup]) -> int:
    """Mark every member in the pantry when any member of its group already is.

    Members still pending also complete their pantry check.
    """

    changed = 0
    for group in groups:
        if group.in_pantry:
            changed += sum(states.mark_in_pantry(member) for member in group.members)
    return changed


__all__ = [
    "ByEntryId",
    "ByIngredient",
    "ByManualName",
    "EntryGroup",
    "GroupKey",
    "find_group",
    "group_entries",
    "group_key",
    "mark_groups_needed",
    "set_group_checked",
    "set_group_pantry",
    "sync_pantry_state",
    "toggle_group_checked",
    "toggle_group_pantry",
]
