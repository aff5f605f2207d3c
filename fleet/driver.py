"""Driver class for licensed drivers and their vehicle reference."""

from datetime import date
from typing import Optional

from .calculations import days_until


class Driver:
    """A driver, their license details and the vehicle they currently drive."""

    def __init__(
        self,
        id: str,
        name: str,
        phone: str,
        license_number: str,
        license_expiry: date,
        assigned_vehicle_id: Optional[str] = None,
    ):
        self.id = id
        self.name = name
        self.phone = phone
        self.license_number = license_number
        self.license_expiry = license_expiry
        self.assigned_vehicle_id = assigned_vehicle_id

    @property
    def is_assigned(self) -> bool:
        return self.assigned_vehicle_id is not None

    def days_until_expiry(self, today: date) -> int:
        """Whole days from today to license expiry (negative once expired)."""
        return days_until(self.license_expiry, today)

    def __repr__(self) -> str:
        return (
            f"Driver(id={self.id!r}, name={self.name!r}, "
            f"assigned_vehicle_id={self.assigned_vehicle_id!r})"
        )
