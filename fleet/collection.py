"""Collection class for a vehicle's daily revenue."""
from datetime import date
from typing import Optional


class Collection:
    """Money collected by one vehicle on one day.

    ``driver_id`` is None when the day was worked without a driver on record.
    """

    def __init__(
            self,
            id: str,
            vehicle_id: str,
            driver_id: Optional[str],
            date: date,
            amount: float,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.driver_id = driver_id
        self.date = date
        self.amount = amount
