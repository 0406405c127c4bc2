"""Tests for unit families and conversions."""

from __future__ import annotations

import pytest

from larder.grocery.units import convert_quantity, unit_family
from larder.models.catalog import MeasurementUnit


def test_unit_families():
    assert unit_family(MeasurementUnit.KILOGRAM) == "mass"
    assert unit_family(MeasurementUnit.TEASPOON) == "volume"
    assert unit_family(MeasurementUnit.CLOVE) == "clove"


def test_converts_within_a_family():
    assert convert_quantity(1.5, MeasurementUnit.KILOGRAM, MeasurementUnit.GRAM) == pytest.approx(1500)
    assert convert_quantity(2, MeasurementUnit.CUP, MeasurementUnit.MILLILITER) == pytest.approx(480)
    assert convert_quantity(3, MeasurementUnit.TEASPOON, MeasurementUnit.TABLESPOON) == pytest.approx(1)


def test_countable_units_only_convert_to_themselves():
    assert convert_quantity(4, MeasurementUnit.PIECE, MeasurementUnit.PIECE) == 4
    assert convert_quantity(4, MeasurementUnit.PIECE, MeasurementUnit.SLICE) is None
    assert convert_quantity(100, MeasurementUnit.GRAM, MeasurementUnit.MILLILITER) is None
