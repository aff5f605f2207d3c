"""CSV export of fleet listings and computed result rows."""

import csv
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Union

from .collection import Collection
from .driver import Driver
from .expense import Expense
from .vehicle import Vehicle

VEHICLE_HEADERS = [
    "ID", "Registration", "Capacity", "Route", "Daily Target", "Status", "Assigned Driver ID",
]
COLLECTION_HEADERS = ["ID", "Date", "Vehicle Registration", "Driver Name", "Amount", "Route"]
EXPENSE_HEADERS = ["ID", "Date", "Vehicle Registration", "Category", "Description", "Amount"]


def vehicle_rows(vehicles: Iterable[Vehicle]) -> List[List[Any]]:
    return [
        [
            v.id,
            v.registration,
            v.capacity,
            v.route,
            v.daily_target,
            v.status.value,
            v.assigned_driver_id or "None",
        ]
        for v in vehicles
    ]


def collection_rows(
    collections: Iterable[Collection],
    vehicles: Sequence[Vehicle],
    drivers: Sequence[Driver],
) -> List[List[Any]]:
    """Collections with registration, driver name and route looked up."""
    vehicles_by_id = {v.id: v for v in vehicles}
    drivers_by_id = {d.id: d for d in drivers}
    rows = []
    for c in collections:
        vehicle = vehicles_by_id.get(c.vehicle_id)
        driver = drivers_by_id.get(c.driver_id)
        rows.append([
            c.id,
            c.date.isoformat(),
            vehicle.registration if vehicle else "Unknown",
            driver.name if driver else "Unknown",
            c.amount,
            vehicle.route if vehicle else "Unknown",
        ])
    return rows


def expense_rows(expenses: Iterable[Expense], vehicles: Sequence[Vehicle]) -> List[List[Any]]:
    vehicles_by_id = {v.id: v for v in vehicles}
    rows = []
    for e in expenses:
        vehicle = vehicles_by_id.get(e.vehicle_id)
        rows.append([
            e.id,
            e.date.isoformat(),
            vehicle.registration if vehicle else "Unknown",
            e.category.value,
            e.description,
            e.amount,
        ])
    return rows


def write_csv(path: Union[str, Path], headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> int:
    """Write a header row plus rows; returns the number of data rows."""
    count = 0
    with open(path, "w", newline="", encoding="utf-8") as fp:
        writer = csv.writer(fp)
        writer.writerow(headers)
        for row in rows:
            writer.writerow(row)
            count += 1
    return count


def write_records_csv(path: Union[str, Path], records: Iterable[Dict[str, Any]]) -> int:
    """Write ``as_dict()`` result records, columns taken from the first one."""
    records = list(records)
    if not records:
        return write_csv(path, [], [])
    headers = list(records[0].keys())
    return write_csv(path, headers, ([r.get(h) for h in headers] for r in records))
