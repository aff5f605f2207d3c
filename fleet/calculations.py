"""Helper functions for aggregate ratios and date arithmetic."""

from datetime import date
from typing import Iterable


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0 when the denominator is 0."""
    if denominator == 0:
        return 0.0
    return numerator / denominator


def percent(part: float, whole: float) -> float:
    """part as a percentage of whole, 0 when whole is 0."""
    return safe_ratio(part, whole) * 100


def total_amount(records: Iterable) -> float:
    """Sum of ``amount`` over records."""
    return sum(r.amount for r in records)


def days_until(target: date, today: date) -> int:
    """
    Whole days from today until target.

    Negative when target is in the past, 0 when it is today.
    """
    return (target - today).days
