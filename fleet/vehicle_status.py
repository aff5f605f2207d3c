"""VehicleStatus enum for fleet operating states."""

from enum import Enum


class VehicleStatus(Enum):
    """Operating state of a vehicle."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"

    @classmethod
    def parse(cls, value: str) -> "VehicleStatus":
        """Coerce arbitrary casing into a status, raising ValueError if unknown."""
        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError) as error:
            raise ValueError(f"Unknown vehicle status: {value}") from error
