#!/usr/bin/env python3
"""Tests for alert evaluation."""

from datetime import date

import pytest

from fleet import (
    AlertKind,
    Collection,
    Driver,
    LicenseExpired,
    LicenseExpiring,
    UnassignedActiveVehicle,
    UnderMaintenance,
    UnderperformingVehicle,
    Vehicle,
    VehicleStatus,
    evaluate,
    resolve_period,
    vehicle_performance,
)
from fleet.alerts import by_urgency, license_alerts

TODAY = date(2024, 1, 1)


def driver_expiring(driver_id, expiry):
    return Driver(driver_id, f"Driver {driver_id}", "+254712345678", "DL12345", expiry)


class TestLicenseAlerts:
    """Tests for license_alerts."""

    @pytest.mark.parametrize(
        "expiry, kind",
        [
            (date(2023, 12, 31), LicenseExpired),
            (date(2024, 1, 1), LicenseExpiring),
            (date(2024, 1, 31), LicenseExpiring),
        ],
    )
    def test_boundaries(self, expiry, kind):
        alerts = license_alerts([driver_expiring("d001", expiry)], TODAY)
        assert len(alerts) == 1
        assert isinstance(alerts[0], kind)

    def test_beyond_window_no_alert(self):
        assert license_alerts([driver_expiring("d001", date(2024, 2, 1))], TODAY) == []

    def test_days_reported(self):
        expired, expiring = license_alerts(
            [driver_expiring("d001", date(2023, 12, 25)), driver_expiring("d002", date(2024, 1, 8))],
            TODAY,
        )
        assert expired.days_overdue == 7
        assert expiring.days_remaining == 7
        assert "EXPIRED 7 days ago" in expired.message
        assert "expires in 7 days" in expiring.message

    def test_expires_today_message(self):
        alert = license_alerts([driver_expiring("d001", TODAY)], TODAY)[0]
        assert alert.message.endswith("license expires today")

    def test_custom_window(self):
        alerts = license_alerts([driver_expiring("d001", date(2024, 1, 10))], TODAY, warning_days=7)
        assert alerts == []


class TestEvaluate:
    """Tests for evaluate."""

    def test_healthy_fleet_has_no_alerts(self):
        vehicles = [Vehicle("v001", "KCB 123A", 14, "CBD - Kibera", 2000.0, assigned_driver_id="d001")]
        drivers = [
            Driver("d001", "John Kamau", "+254712345678", "DL12345", date(2025, 1, 1), "v001")
        ]
        assert evaluate(vehicles, drivers, [], TODAY) == []

    def test_vehicle_alerts(self):
        vehicles = [
            Vehicle("v001", "KCB 123A", 14, "CBD - Kibera", 2000.0),
            Vehicle("v002", "KDA 456B", 14, "CBD - Rongai", 1500.0, VehicleStatus.MAINTENANCE),
            Vehicle("v003", "KDB 789C", 14, "CBD - Ngong", 1500.0, VehicleStatus.INACTIVE),
        ]
        alerts = evaluate(vehicles, [], [], TODAY)

        assert [type(a) for a in alerts] == [UnassignedActiveVehicle, UnderMaintenance]
        assert alerts[0].vehicle.id == "v001"
        assert alerts[1].vehicle.id == "v002"

    def test_underperforming_threshold(self):
        vehicles = [
            Vehicle("v001", "KCB 123A", 14, "CBD - Kibera", 1000.0, assigned_driver_id="d001"),
            Vehicle("v002", "KDA 456B", 14, "CBD - Rongai", 1000.0, assigned_driver_id="d002"),
            Vehicle("v003", "KDB 789C", 14, "CBD - Ngong", 1000.0, assigned_driver_id="d003"),
        ]
        drivers = [
            Driver(f"d00{i}", f"Driver {i}", "+254712345678", "DL12345", date(2025, 1, 1), f"v00{i}")
            for i in range(1, 4)
        ]
        collections = [
            Collection("c001", "v001", "d001", TODAY, 799.0),
            Collection("c002", "v002", "d002", TODAY, 800.0),
        ]
        performance = vehicle_performance(vehicles, collections, [], resolve_period("today", TODAY))

        alerts = evaluate(vehicles, drivers, performance, TODAY)

        assert len(alerts) == 1
        assert isinstance(alerts[0], UnderperformingVehicle)
        assert alerts[0].vehicle.id == "v001"
        assert alerts[0].percent_of_target == pytest.approx(79.9)

    def test_order_and_urgency(self):
        vehicles = [
            Vehicle("v001", "KCB 123A", 14, "CBD - Kibera", 2000.0, VehicleStatus.MAINTENANCE),
            Vehicle("v002", "KDA 456B", 14, "CBD - Rongai", 2000.0),
        ]
        drivers = [
            driver_expiring("d001", date(2024, 1, 15)),
            driver_expiring("d002", date(2023, 12, 1)),
        ]
        alerts = evaluate(vehicles, drivers, [], TODAY)

        assert [a.kind for a in alerts] == [
            AlertKind.LICENSE_EXPIRING,
            AlertKind.LICENSE_EXPIRED,
            AlertKind.UNASSIGNED_ACTIVE_VEHICLE,
            AlertKind.UNDER_MAINTENANCE,
        ]
        assert [a.kind for a in by_urgency(alerts)] == [
            AlertKind.LICENSE_EXPIRED,
            AlertKind.LICENSE_EXPIRING,
            AlertKind.UNASSIGNED_ACTIVE_VEHICLE,
            AlertKind.UNDER_MAINTENANCE,
        ]
