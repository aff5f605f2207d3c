#!/usr/bin/env python3
"""Tests for VehicleStatus and ExpenseCategory enums."""

import pytest

from fleet import ExpenseCategory, VehicleStatus


class TestVehicleStatus:
    """Tests for VehicleStatus."""

    def test_values(self):
        assert VehicleStatus.ACTIVE.value == "active"
        assert VehicleStatus.INACTIVE.value == "inactive"
        assert VehicleStatus.MAINTENANCE.value == "maintenance"

    def test_parse_ignores_case_and_whitespace(self):
        assert VehicleStatus.parse(" Maintenance ") == VehicleStatus.MAINTENANCE

    def test_parse_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown vehicle status"):
            VehicleStatus.parse("scrapped")


class TestExpenseCategory:
    """Tests for ExpenseCategory."""

    def test_declaration_order(self):
        assert [c.value for c in ExpenseCategory] == [
            "fuel",
            "repair",
            "fine",
            "insurance",
            "other",
        ]

    def test_display_name(self):
        assert ExpenseCategory.INSURANCE.display_name == "Insurance"

    def test_parse(self):
        assert ExpenseCategory.parse("FUEL") == ExpenseCategory.FUEL

    def test_parse_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown expense category"):
            ExpenseCategory.parse("tolls")
