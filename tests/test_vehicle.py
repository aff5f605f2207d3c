#!/usr/bin/env python3
"""Tests for Vehicle and Driver classes."""

from datetime import date

from fleet import Driver, Vehicle, VehicleStatus


class TestVehicle:
    """Tests for Vehicle class."""

    def test_defaults(self):
        vehicle = Vehicle("v001", "KCB 123A", 14, "CBD - Kibera", 2000.0)
        assert vehicle.status == VehicleStatus.ACTIVE
        assert vehicle.assigned_driver_id is None
        assert not vehicle.is_assigned

    def test_label(self):
        vehicle = Vehicle("v001", "KCB 123A", 14, "CBD - Kibera", 2000.0)
        assert vehicle.label == "KCB 123A (CBD - Kibera)"

    def test_is_assigned(self):
        vehicle = Vehicle("v001", "KCB 123A", 14, "CBD - Kibera", 2000.0, assigned_driver_id="d001")
        assert vehicle.is_assigned

    def test_repr(self):
        vehicle = Vehicle("v001", "KCB 123A", 14, "CBD - Kibera", 2000.0)
        assert "v001" in repr(vehicle)
        assert "KCB 123A" in repr(vehicle)


class TestDriver:
    """Tests for Driver class."""

    def test_defaults(self):
        driver = Driver("d001", "John Kamau", "+254712345678", "DL12345", date(2025, 6, 30))
        assert driver.assigned_vehicle_id is None
        assert not driver.is_assigned

    def test_days_until_expiry(self):
        driver = Driver("d001", "John Kamau", "+254712345678", "DL12345", date(2024, 1, 31))
        assert driver.days_until_expiry(date(2024, 1, 1)) == 30
        assert driver.days_until_expiry(date(2024, 2, 2)) == -2

    def test_repr(self):
        driver = Driver("d001", "John Kamau", "+254712345678", "DL12345", date(2025, 6, 30), "v001")
        assert "John Kamau" in repr(driver)
        assert "v001" in repr(driver)
