"""ExpenseCategory enum. Declaration order is the report bucket order."""

from enum import Enum


class ExpenseCategory(Enum):
    """Kinds of money spent on a vehicle."""

    FUEL = "fuel"
    REPAIR = "repair"
    FINE = "fine"
    INSURANCE = "insurance"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: str) -> "ExpenseCategory":
        """Coerce arbitrary casing into a category, raising ValueError if unknown."""
        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError) as error:
            raise ValueError(f"Unknown expense category: {value}") from error
