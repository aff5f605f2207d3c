"""Lookup, id generation and insertion helpers over in-memory collections."""

import logging
import re
from datetime import date
from typing import Iterable, List, Optional, Sequence, TypeVar

from .collection import Collection
from .driver import Driver
from .errors import DuplicateCollection, NotFound
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

T = TypeVar("T")

ID_PREFIXES = {
    "vehicles": "v",
    "drivers": "d",
    "collections": "c",
    "expenses": "e",
}


def generate_id(prefix: str, existing_ids: Iterable[str]) -> str:
    """First unused id of the form prefix + 3-digit counter (v001, v002, ...)."""
    taken = set(existing_ids)
    counter = 1
    while f"{prefix}{counter:03d}" in taken:
        counter += 1
    return f"{prefix}{counter:03d}"


def next_id(name: str, records: Iterable) -> str:
    """Generate the next id for a named collection."""
    return generate_id(ID_PREFIXES[name], (r.id for r in records))


def find_by_id(records: Sequence[T], record_id: str, kind: str = "Record") -> T:
    """Find a record by id, raising NotFound when absent."""
    for record in records:
        if record.id == record_id:
            return record
    raise NotFound(kind, record_id)


def _squash(text: str) -> str:
    return re.sub(r"\s", "", text).lower()


def find_vehicle_by_registration(
    vehicles: Sequence[Vehicle], registration: str
) -> Optional[Vehicle]:
    """Match a registration ignoring case and spacing."""
    wanted = _squash(registration)
    for vehicle in vehicles:
        if _squash(vehicle.registration) == wanted:
            return vehicle
    return None


def find_drivers_by_name(drivers: Sequence[Driver], name: str) -> List[Driver]:
    """Case-insensitive substring match on driver name."""
    term = name.strip().lower()
    return [d for d in drivers if term in d.name.lower()]


def find_driver_by_license(
    drivers: Sequence[Driver], license_number: str
) -> Optional[Driver]:
    wanted = license_number.strip().upper()
    for driver in drivers:
        if driver.license_number.upper() == wanted:
            return driver
    return None


def find_driver_by_phone(drivers: Sequence[Driver], phone: str) -> Optional[Driver]:
    for driver in drivers:
        if driver.phone == phone:
            return driver
    return None


def find_collection(
    collections: Sequence[Collection], vehicle_id: str, day: date
) -> Optional[Collection]:
    """The collection already recorded for a vehicle on a day, if any."""
    for collection in collections:
        if collection.vehicle_id == vehicle_id and collection.date == day:
            return collection
    return None


def record_collection(
    collections: List[Collection], collection: Collection, overwrite: bool = False
) -> Optional[Collection]:
    """
    Add a collection, deciding what happens at an existing (vehicle, date).

    Raises DuplicateCollection when an entry exists and overwrite is False.
    With overwrite, the existing entry is replaced in place and returned.
    """
    existing = find_collection(collections, collection.vehicle_id, collection.date)
    if existing is None:
        collections.append(collection)
        return None
    if not overwrite:
        raise DuplicateCollection(existing)

    index = collections.index(existing)
    collections[index] = collection
    logger.info(
        "Replaced collection %s with %s for %s on %s",
        existing.id,
        collection.id,
        collection.vehicle_id,
        collection.date.isoformat(),
    )
    return existing
