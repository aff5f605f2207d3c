"""Expense class for money spent on a vehicle."""
from datetime import date

from .expense_category import ExpenseCategory


class Expense:
    """A single expense charged to a vehicle."""

    def __init__(
            self,
            id: str,
            vehicle_id: str,
            category: ExpenseCategory,
            description: str,
            amount: float,
            date: date,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.category = category
        self.description = description
        self.amount = amount
        self.date = date
