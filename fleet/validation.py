"""
Field-level checks and normalisation for user-entered values.

Formats follow the Kenyan conventions the fleet operates under:
- Registration: three letters, three digits, one letter ("KCB 123A")
- Phone: 07XXXXXXXX / 01XXXXXXXX, optionally prefixed 254 or +254
- Dates: strict ISO YYYY-MM-DD
"""

import re
from datetime import date

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_PHONE_RE = re.compile(r"^(\+?254|0)?[17]\d{8}$")
_REGISTRATION_RE = re.compile(r"^[A-Z]{3}\s?\d{3}[A-Z]$")

MAX_CAPACITY = 60


def is_valid_date(text: str) -> bool:
    """True for a real calendar date written as YYYY-MM-DD."""
    if not isinstance(text, str) or not _DATE_RE.match(text):
        return False
    try:
        date.fromisoformat(text)
    except ValueError:
        return False
    return True


def parse_date(text: str) -> date:
    """Parse YYYY-MM-DD, raising ValueError with a readable message."""
    if not is_valid_date(text):
        raise ValueError(f"Invalid date '{text}'. Use YYYY-MM-DD (e.g., 2026-12-31)")
    return date.fromisoformat(text)


def is_valid_phone(phone: str) -> bool:
    return bool(_PHONE_RE.match(re.sub(r"\s", "", phone)))


def format_phone(phone: str) -> str:
    """Normalise a valid phone number to +254XXXXXXXXX."""
    cleaned = re.sub(r"\s", "", phone)
    if cleaned.startswith("+254"):
        return cleaned
    if cleaned.startswith("254"):
        return f"+{cleaned}"
    if cleaned.startswith("0"):
        return f"+254{cleaned[1:]}"
    if len(cleaned) == 9:
        return f"+254{cleaned}"
    return phone


def is_valid_registration(registration: str) -> bool:
    return bool(_REGISTRATION_RE.match(registration.strip().upper()))


def format_registration(registration: str) -> str:
    """Uppercase and insert the single space: 'kcb123a' -> 'KCB 123A'."""
    cleaned = re.sub(r"\s", "", registration).upper()
    if len(cleaned) == 7:
        return f"{cleaned[:3]} {cleaned[3:]}"
    return registration.strip().upper()


def validate_capacity(capacity: int) -> int:
    if capacity <= 0:
        raise ValueError("Capacity must be a positive number.")
    if capacity > MAX_CAPACITY:
        raise ValueError(f"Capacity {capacity} is above the {MAX_CAPACITY} seat limit.")
    return capacity


def validate_target(daily_target: float) -> float:
    if daily_target <= 0:
        raise ValueError("Daily target must be greater than zero.")
    return daily_target


def validate_amount(amount: float, allow_zero: bool = True) -> float:
    """Collections may be zero, expenses must be positive."""
    if amount < 0 or (amount == 0 and not allow_zero):
        qualifier = "zero or more" if allow_zero else "greater than zero"
        raise ValueError(f"Amount must be {qualifier}.")
    return amount


def validate_name(name: str, min_length: int = 3) -> str:
    name = name.strip()
    if len(name) < min_length:
        raise ValueError(f"Name must be at least {min_length} characters.")
    return name


def validate_license_number(license_number: str, min_length: int = 5) -> str:
    license_number = license_number.strip().upper()
    if len(license_number) < min_length:
        raise ValueError(f"License number must be at least {min_length} characters.")
    return license_number
