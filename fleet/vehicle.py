"""Vehicle class - a fleet vehicle and its current driver reference."""

from typing import Optional

from .vehicle_status import VehicleStatus


class Vehicle:
    """A vehicle operating on a route with a daily collection target.

    ``assigned_driver_id`` is one half of the vehicle/driver pairing and is
    only changed through ``fleet.assignment``.
    """

    def __init__(
        self,
        id: str,
        registration: str,
        capacity: int,
        route: str,
        daily_target: float,
        status: VehicleStatus = VehicleStatus.ACTIVE,
        assigned_driver_id: Optional[str] = None,
    ):
        self.id = id
        self.registration = registration
        self.capacity = capacity
        self.route = route
        self.daily_target = daily_target
        self.status = status
        self.assigned_driver_id = assigned_driver_id

    @property
    def label(self) -> str:
        """Human-readable vehicle name."""
        return f"{self.registration} ({self.route})"

    @property
    def is_assigned(self) -> bool:
        return self.assigned_driver_id is not None

    def __repr__(self) -> str:
        return (
            f"Vehicle(id={self.id!r}, registration={self.registration!r}, "
            f"assigned_driver_id={self.assigned_driver_id!r})"
        )
