"""Period selectors resolved to inclusive whole-day date intervals."""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, TypeVar

from dateutil.relativedelta import relativedelta

from .errors import InvalidRange
from .validation import is_valid_date

T = TypeVar("T")

SELECTORS = ("today", "last7", "last30", "all", "custom")

_LOOKBACK_DAYS = {"last7": 7, "last30": 30}


@dataclass(frozen=True)
class Period:
    """Inclusive date interval; records match on their date alone."""

    start: date
    end: date
    label: str = ""

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def filter(self, records: Iterable[T]) -> List[T]:
        """Records whose ``date`` falls inside the period, in input order."""
        return [r for r in records if self.contains(r.date)]


def resolve_period(
    selector: str,
    today: date,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> Period:
    """
    Convert a period selector into a concrete interval.

    Selectors:
        today   - today only
        last7   - today minus 7 days through today
        last30  - today minus 30 days through today
        all     - every record
        custom  - start/end given as YYYY-MM-DD strings

    Raises InvalidRange for an unknown selector, a malformed custom date,
    or a custom range whose end precedes its start.
    """
    if selector == "today":
        return Period(today, today, "Today")

    if selector in _LOOKBACK_DAYS:
        days = _LOOKBACK_DAYS[selector]
        return Period(today - relativedelta(days=days), today, f"Last {days} Days")

    if selector == "all":
        return Period(date.min, date.max, "All Time")

    if selector == "custom":
        for value in (start, end):
            if value is None or not is_valid_date(value):
                raise InvalidRange(f"Invalid date '{value}'. Use YYYY-MM-DD")
        start_date = date.fromisoformat(start)
        end_date = date.fromisoformat(end)
        if start_date > end_date:
            raise InvalidRange(f"Period end {end} is before start {start}")
        return Period(start_date, end_date, f"{start} to {end}")

    raise InvalidRange(
        f"Unknown period '{selector}' (expected one of: {', '.join(SELECTORS)})"
    )
