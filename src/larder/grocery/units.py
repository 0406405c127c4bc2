"""Unit families and conversions used when summing ingredient demand."""

from __future__ import annotations

from typing import Optional

from larder.models.catalog import MeasurementUnit

# Factors to the family base unit (grams for mass, milliliters for volume).
_MASS_UNITS = {
    MeasurementUnit.GRAM: 1.0,
    MeasurementUnit.KILOGRAM: 1000.0,
}
_VOLUME_UNITS = {
    MeasurementUnit.MILLILITER: 1.0,
    MeasurementUnit.LITER: 1000.0,
    MeasurementUnit.CUP: 240.0,
    MeasurementUnit.TABLESPOON: 15.0,
    MeasurementUnit.TEASPOON: 5.0,
}


def unit_family(unit: MeasurementUnit) -> str:
    """Return ``mass``, ``volume`` or the unit's own value for countable units."""

    if unit in _MASS_UNITS:
        return "mass"
    if unit in _VOLUME_UNITS:
        return "volume"
    return unit.value


def convert_quantity(
    quantity: float,
    from_unit: MeasurementUnit,
    to_unit: MeasurementUnit,
) -> Optional[float]:
    """Convert ``quantity`` between units of the same family, or return ``None``."""

    if from_unit == to_unit:
        return quantity
    for table in (_MASS_UNITS, _VOLUME_UNITS):
        if from_unit in table and to_unit in table:
            return quantity * table[from_unit] / table[to_unit]
    return None


__all__ = ["convert_quantity", "unit_family"]
