"""Alerts derived from current fleet state and period performance."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import ClassVar, Iterable, List, Sequence, Union

from .aggregation import VehiclePerformance
from .driver import Driver
from .vehicle import Vehicle
from .vehicle_status import VehicleStatus


class AlertKind(Enum):
    """Alert categories. Lower value = more urgent."""

    LICENSE_EXPIRED = 1
    LICENSE_EXPIRING = 2
    UNDERPERFORMING_VEHICLE = 3
    UNASSIGNED_ACTIVE_VEHICLE = 4
    UNDER_MAINTENANCE = 5


@dataclass
class LicenseExpiring:
    driver: Driver
    days_remaining: int

    kind: ClassVar[AlertKind] = AlertKind.LICENSE_EXPIRING

    @property
    def message(self) -> str:
        if self.days_remaining == 0:
            return f"{self.driver.name}: license expires today"
        return f"{self.driver.name}: license expires in {self.days_remaining} days"


@dataclass
class LicenseExpired:
    driver: Driver
    days_overdue: int

    kind: ClassVar[AlertKind] = AlertKind.LICENSE_EXPIRED

    @property
    def message(self) -> str:
        return f"{self.driver.name}: license EXPIRED {self.days_overdue} days ago"


@dataclass
class UnassignedActiveVehicle:
    vehicle: Vehicle

    kind: ClassVar[AlertKind] = AlertKind.UNASSIGNED_ACTIVE_VEHICLE

    @property
    def message(self) -> str:
        return f"{self.vehicle.label}: active with no assigned driver"


@dataclass
class UnderMaintenance:
    vehicle: Vehicle

    kind: ClassVar[AlertKind] = AlertKind.UNDER_MAINTENANCE

    @property
    def message(self) -> str:
        return f"{self.vehicle.label}: under maintenance"


@dataclass
class UnderperformingVehicle:
    vehicle: Vehicle
    percent_of_target: float

    kind: ClassVar[AlertKind] = AlertKind.UNDERPERFORMING_VEHICLE

    @property
    def message(self) -> str:
        return f"{self.vehicle.registration}: {self.percent_of_target:.1f}% of target"


Alert = Union[
    LicenseExpiring,
    LicenseExpired,
    UnassignedActiveVehicle,
    UnderMaintenance,
    UnderperformingVehicle,
]


def license_alerts(
    drivers: Iterable[Driver], today: date, warning_days: int = 30
) -> List[Alert]:
    """Expired licenses, and licenses expiring within warning_days (inclusive)."""
    alerts: List[Alert] = []
    for driver in drivers:
        days = driver.days_until_expiry(today)
        if days < 0:
            alerts.append(LicenseExpired(driver, days_overdue=-days))
        elif days <= warning_days:
            alerts.append(LicenseExpiring(driver, days_remaining=days))
    return alerts


def evaluate(
    vehicles: Sequence[Vehicle],
    drivers: Sequence[Driver],
    performance: Iterable[VehiclePerformance],
    today: date,
    license_warning_days: int = 30,
    underperforming_percent: float = 80.0,
) -> List[Alert]:
    """
    Derive every alert for the current snapshot.

    Order: license alerts (driver order), active vehicles without a driver,
    vehicles under maintenance, then vehicles below target. An empty list
    means the fleet is operating smoothly.
    """
    alerts = license_alerts(drivers, today, license_warning_days)

    alerts.extend(
        UnassignedActiveVehicle(v)
        for v in vehicles
        if v.status == VehicleStatus.ACTIVE and v.assigned_driver_id is None
    )
    alerts.extend(
        UnderMaintenance(v) for v in vehicles if v.status == VehicleStatus.MAINTENANCE
    )
    alerts.extend(
        UnderperformingVehicle(p.vehicle, p.percent_of_target)
        for p in performance
        if p.count > 0 and p.percent_of_target < underperforming_percent
    )
    return alerts


def by_urgency(alerts: Iterable[Alert]) -> List[Alert]:
    """Alerts sorted most urgent first, keeping evaluation order within a kind."""
    return sorted(alerts, key=lambda a: a.kind.value)
