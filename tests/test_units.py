"""Tests for stock unit conversion."""

import pytest

from farm_analytics.units import convert_quantity, deduct


class TestConvertQuantity:
    def test_same_unit(self):
        assert convert_quantity(3.0, "kg", "kg") == 3.0

    def test_kg_to_tons(self):
        assert convert_quantity(500.0, "kg", "tons") == 0.5

    def test_tons_to_kg(self):
        assert convert_quantity(2.0, "tons", "kg") == 2000.0

    def test_quintals_to_tons(self):
        assert convert_quantity(5.0, "quintals", "tons") == 0.5

    def test_non_mass_pair_is_one_to_one(self):
        assert convert_quantity(4.0, "liters", "units") == 4.0

    def test_mass_to_count_is_one_to_one(self):
        assert convert_quantity(7.0, "kg", "units") == 7.0


class TestDeduct:
    def test_sale_in_kg_from_tons(self):
        assert deduct(2.0, "tons", 500.0, "kg") == pytest.approx(1.5)

    def test_floors_at_zero(self):
        assert deduct(1.0, "tons", 3000.0, "kg") == 0.0

    def test_same_unit(self):
        assert deduct(10.0, "units", 4.0, "units") == 6.0
