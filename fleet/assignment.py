"""
Vehicle/driver assignment.

A vehicle and a driver are paired through two stored references,
``Vehicle.assigned_driver_id`` and ``Driver.assigned_vehicle_id``. The
functions here are the only code that writes either field, and they keep
the pairing a matching:

    vehicle.assigned_driver_id == driver.id
        <=> driver.assigned_vehicle_id == vehicle.id

Both collections are mutated in memory; the caller persists them together
(see ``EntityStore.save_assignment``).
"""

import logging
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Sequence

from .driver import Driver
from .errors import InconsistentAssignment
from .records import find_by_id
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


class Inconsistency(NamedTuple):
    """One broken pairing. kind is 'mismatch', 'shared' or 'missing'."""

    kind: str
    driver_id: Optional[str]
    vehicle_id: Optional[str]
    message: str


@dataclass
class AssignmentResult:
    """Records touched by an assignment change."""

    driver: Driver
    vehicle: Optional[Vehicle]
    unassigned_driver: Optional[Driver] = None
    unassigned_vehicle: Optional[Vehicle] = None
    changed: bool = True


def find_inconsistencies(
    drivers: Sequence[Driver], vehicles: Sequence[Vehicle]
) -> List[Inconsistency]:
    """Every place where the two sides of the pairing disagree."""
    drivers_by_id = {d.id: d for d in drivers}
    vehicles_by_id = {v.id: v for v in vehicles}
    problems: List[Inconsistency] = []

    claimed_vehicles = {}
    for driver in drivers:
        vehicle_id = driver.assigned_vehicle_id
        if vehicle_id is None:
            continue
        if vehicle_id in claimed_vehicles:
            problems.append(Inconsistency(
                "shared", driver.id, vehicle_id,
                f"Vehicle '{vehicle_id}' is claimed by drivers "
                f"'{claimed_vehicles[vehicle_id]}' and '{driver.id}'",
            ))
        claimed_vehicles[vehicle_id] = driver.id
        vehicle = vehicles_by_id.get(vehicle_id)
        if vehicle is None:
            problems.append(Inconsistency(
                "missing", driver.id, vehicle_id,
                f"Driver '{driver.id}' references missing vehicle '{vehicle_id}'",
            ))
        elif vehicle.assigned_driver_id != driver.id:
            problems.append(Inconsistency(
                "mismatch", driver.id, vehicle_id,
                f"Driver '{driver.id}' points to vehicle '{vehicle_id}' "
                f"but the vehicle points to {vehicle.assigned_driver_id!r}",
            ))

    claimed_drivers = {}
    for vehicle in vehicles:
        driver_id = vehicle.assigned_driver_id
        if driver_id is None:
            continue
        if driver_id in claimed_drivers:
            problems.append(Inconsistency(
                "shared", driver_id, vehicle.id,
                f"Driver '{driver_id}' is claimed by vehicles "
                f"'{claimed_drivers[driver_id]}' and '{vehicle.id}'",
            ))
        claimed_drivers[driver_id] = vehicle.id
        driver = drivers_by_id.get(driver_id)
        if driver is None:
            problems.append(Inconsistency(
                "missing", driver_id, vehicle.id,
                f"Vehicle '{vehicle.id}' references missing driver '{driver_id}'",
            ))
        elif driver.assigned_vehicle_id != vehicle.id:
            problems.append(Inconsistency(
                "mismatch", driver_id, vehicle.id,
                f"Vehicle '{vehicle.id}' points to driver '{driver_id}' "
                f"but the driver points to {driver.assigned_vehicle_id!r}",
            ))

    return problems


def _check_touched(
    driver: Driver,
    vehicle: Optional[Vehicle],
    drivers: Sequence[Driver],
    vehicles: Sequence[Vehicle],
) -> None:
    """Refuse to build on broken pairings among the records about to change."""
    driver_ids = {driver.id}
    vehicle_ids = {driver.assigned_vehicle_id}
    if vehicle is not None:
        vehicle_ids.add(vehicle.id)
        driver_ids.add(vehicle.assigned_driver_id)
    driver_ids.discard(None)
    vehicle_ids.discard(None)

    # Dangling references are cleared by assign(), not refused
    problems = [
        p.message
        for p in find_inconsistencies(drivers, vehicles)
        if p.kind != "missing"
        and (p.driver_id in driver_ids or p.vehicle_id in vehicle_ids)
    ]
    if problems:
        raise InconsistentAssignment(problems)


def _lookup(records, record_id):
    for record in records:
        if record.id == record_id:
            return record
    return None


def assign(
    driver: Driver,
    vehicle: Optional[Vehicle],
    drivers: Sequence[Driver],
    vehicles: Sequence[Vehicle],
) -> AssignmentResult:
    """
    Pair driver with vehicle, or unpair the driver when vehicle is None.

    Steps:
    1. If the driver drives another vehicle, that vehicle loses its driver
    2. If the vehicle has another driver, that driver loses the vehicle
    3. Driver and vehicle point at each other

    The records updated are the instances held in ``drivers``/``vehicles``
    (looked up by id). Assigning an existing pair, or unassigning a driver
    with no vehicle, changes nothing and returns ``changed=False``.

    Raises:
        NotFound: driver or vehicle id is not in its collection
        InconsistentAssignment: touched records already disagree
    """
    driver = find_by_id(drivers, driver.id, "Driver")
    if vehicle is not None:
        vehicle = find_by_id(vehicles, vehicle.id, "Vehicle")

    _check_touched(driver, vehicle, drivers, vehicles)

    if vehicle is None and driver.assigned_vehicle_id is None:
        return AssignmentResult(driver=driver, vehicle=None, changed=False)
    if (
        vehicle is not None
        and driver.assigned_vehicle_id == vehicle.id
        and vehicle.assigned_driver_id == driver.id
    ):
        return AssignmentResult(driver=driver, vehicle=vehicle, changed=False)

    result = AssignmentResult(driver=driver, vehicle=vehicle)

    previous_vehicle_id = driver.assigned_vehicle_id
    if previous_vehicle_id is not None and (
        vehicle is None or previous_vehicle_id != vehicle.id
    ):
        previous_vehicle = _lookup(vehicles, previous_vehicle_id)
        if previous_vehicle is None:
            logger.warning(
                "Driver %s referenced missing vehicle %s; clearing",
                driver.id,
                previous_vehicle_id,
            )
        else:
            previous_vehicle.assigned_driver_id = None
            result.unassigned_vehicle = previous_vehicle
        driver.assigned_vehicle_id = None

    if vehicle is not None:
        previous_driver_id = vehicle.assigned_driver_id
        if previous_driver_id is not None and previous_driver_id != driver.id:
            previous_driver = _lookup(drivers, previous_driver_id)
            if previous_driver is None:
                logger.warning(
                    "Vehicle %s referenced missing driver %s; clearing",
                    vehicle.id,
                    previous_driver_id,
                )
            else:
                previous_driver.assigned_vehicle_id = None
                result.unassigned_driver = previous_driver

        driver.assigned_vehicle_id = vehicle.id
        vehicle.assigned_driver_id = driver.id
        logger.info("Assigned driver %s to vehicle %s", driver.id, vehicle.id)
    else:
        logger.info("Unassigned driver %s from vehicle %s", driver.id, previous_vehicle_id)

    return result


def unassign(
    driver: Driver, drivers: Sequence[Driver], vehicles: Sequence[Vehicle]
) -> AssignmentResult:
    """Take the driver off whatever vehicle they drive."""
    return assign(driver, None, drivers, vehicles)


def release_vehicle(
    vehicle: Vehicle, drivers: Sequence[Driver], vehicles: Sequence[Vehicle]
) -> Optional[AssignmentResult]:
    """
    Take the current driver off a vehicle.

    Returns None when the vehicle had no driver.
    """
    vehicle = find_by_id(vehicles, vehicle.id, "Vehicle")
    if vehicle.assigned_driver_id is None:
        return None

    driver = _lookup(drivers, vehicle.assigned_driver_id)
    if driver is None:
        logger.warning(
            "Vehicle %s referenced missing driver %s; clearing",
            vehicle.id,
            vehicle.assigned_driver_id,
        )
        vehicle.assigned_driver_id = None
        return None
    return unassign(driver, drivers, vehicles)
