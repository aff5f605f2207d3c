"""YAML-backed entity store: one file per record collection."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

import yaml

from .collection import Collection
from .driver import Driver
from .errors import PersistenceFailure
from .expense import Expense
from .expense_category import ExpenseCategory
from .vehicle import Vehicle
from .vehicle_status import VehicleStatus

logger = logging.getLogger(__name__)

COLLECTION_NAMES = ("vehicles", "drivers", "collections", "expenses")

# Written by older data files for collections taken without a driver
UNASSIGNED_DRIVER = "unassigned"


def _parse_date(value: Any) -> date:
    """Accept ISO strings or the date objects YAML produces for bare dates."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


# =============================================================================
# Record <-> dict (camelCase keys, null kept for unset references)
# =============================================================================


def _vehicle_to_dict(vehicle: Vehicle) -> Dict[str, Any]:
    return {
        "id": vehicle.id,
        "registration": vehicle.registration,
        "capacity": vehicle.capacity,
        "route": vehicle.route,
        "dailyTarget": vehicle.daily_target,
        "status": vehicle.status.value,
        "assignedDriverId": vehicle.assigned_driver_id,
    }


def _parse_vehicle(dct: Dict[str, Any]) -> Vehicle:
    return Vehicle(
        dct["id"],
        str(dct["registration"]),
        int(dct["capacity"]),
        dct["route"],
        float(dct["dailyTarget"]),
        VehicleStatus.parse(dct.get("status") or "active"),
        dct.get("assignedDriverId"),
    )


def _driver_to_dict(driver: Driver) -> Dict[str, Any]:
    return {
        "id": driver.id,
        "name": driver.name,
        "phone": driver.phone,
        "licenseNumber": driver.license_number,
        "licenseExpiry": driver.license_expiry.isoformat(),
        "assignedVehicleId": driver.assigned_vehicle_id,
    }


def _parse_driver(dct: Dict[str, Any]) -> Driver:
    return Driver(
        dct["id"],
        dct["name"],
        str(dct["phone"]),
        str(dct["licenseNumber"]),
        _parse_date(dct["licenseExpiry"]),
        dct.get("assignedVehicleId"),
    )


def _collection_to_dict(collection: Collection) -> Dict[str, Any]:
    return {
        "id": collection.id,
        "vehicleId": collection.vehicle_id,
        "driverId": collection.driver_id,
        "date": collection.date.isoformat(),
        "amount": collection.amount,
    }


def _parse_collection(dct: Dict[str, Any]) -> Collection:
    driver_id = dct.get("driverId")
    if driver_id == UNASSIGNED_DRIVER:
        driver_id = None
    return Collection(
        dct["id"],
        dct["vehicleId"],
        driver_id,
        _parse_date(dct["date"]),
        float(dct["amount"]),
    )


def _expense_to_dict(expense: Expense) -> Dict[str, Any]:
    return {
        "id": expense.id,
        "vehicleId": expense.vehicle_id,
        "category": expense.category.value,
        "description": expense.description,
        "amount": expense.amount,
        "date": expense.date.isoformat(),
    }


def _parse_expense(dct: Dict[str, Any]) -> Expense:
    return Expense(
        dct["id"],
        dct["vehicleId"],
        ExpenseCategory.parse(dct["category"]),
        dct.get("description") or "",
        float(dct["amount"]),
        _parse_date(dct["date"]),
    )


_CODECS: Dict[str, tuple] = {
    "vehicles": (_parse_vehicle, _vehicle_to_dict),
    "drivers": (_parse_driver, _driver_to_dict),
    "collections": (_parse_collection, _collection_to_dict),
    "expenses": (_parse_expense, _expense_to_dict),
}


def _codec(name: str) -> tuple:
    if name not in _CODECS:
        raise ValueError(
            f"Unknown collection '{name}' (expected one of: {', '.join(COLLECTION_NAMES)})"
        )
    return _CODECS[name]


# =============================================================================
# Store
# =============================================================================


@dataclass
class FleetData:
    """All four collections, as loaded together."""

    vehicles: List[Vehicle] = field(default_factory=list)
    drivers: List[Driver] = field(default_factory=list)
    collections: List[Collection] = field(default_factory=list)
    expenses: List[Expense] = field(default_factory=list)


class EntityStore:
    """
    Loads and saves record collections as YAML lists under data_dir.

    A missing or empty file is an empty collection. Read and write errors
    surface as PersistenceFailure; nothing is retried here.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    def path_for(self, name: str) -> Path:
        _codec(name)
        return self.data_dir / f"{name}.yaml"

    def load_raw(self, name: str) -> List[Dict[str, Any]]:
        """The collection as plain dicts, exactly as stored."""
        path = self.path_for(name)
        if not path.exists():
            logger.debug("No %s file at %s; starting empty", name, path)
            return []
        try:
            with open(path, "r") as fp:
                data = yaml.load(fp, Loader=yaml.SafeLoader)
        except (OSError, yaml.YAMLError) as error:
            raise PersistenceFailure(f"Could not read {path}: {error}", collection=name) from error
        if data is None:
            return []
        if not isinstance(data, list):
            raise PersistenceFailure(f"{path} does not contain a list", collection=name)
        return data

    def load(self, name: str) -> list:
        """Load one collection as model objects."""
        parse, _ = _codec(name)
        raw = self.load_raw(name)
        try:
            records = [parse(dct) for dct in raw]
        except (KeyError, TypeError, ValueError) as error:
            raise PersistenceFailure(
                f"Malformed record in {self.path_for(name)}: {error}", collection=name
            ) from error
        logger.debug("Loaded %d %s", len(records), name)
        return records

    def save(self, name: str, records: Sequence) -> None:
        """Replace the stored collection with records."""
        _, serialise = _codec(name)
        path = self.path_for(name)
        data: List[Dict[str, Any]] = [serialise(r) for r in records]
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as fp:
                yaml.dump(
                    data,
                    fp,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                    width=120,
                )
        except (OSError, yaml.YAMLError) as error:
            raise PersistenceFailure(f"Could not write {path}: {error}", collection=name) from error
        logger.debug("Saved %d %s to %s", len(data), name, path)

    def load_all(self) -> FleetData:
        return FleetData(
            vehicles=self.load("vehicles"),
            drivers=self.load("drivers"),
            collections=self.load("collections"),
            expenses=self.load("expenses"),
        )

    def save_assignment(self, drivers: Sequence[Driver], vehicles: Sequence[Vehicle]) -> None:
        """
        Persist both sides of an assignment change, drivers first.

        If the vehicles write fails after drivers succeeded, the two files
        disagree until the next successful save; the failure is re-raised.
        """
        self.save("drivers", drivers)
        try:
            self.save("vehicles", vehicles)
        except PersistenceFailure:
            logger.warning(
                "drivers saved but vehicles failed; stored assignments diverge in %s",
                self.data_dir,
            )
            raise
