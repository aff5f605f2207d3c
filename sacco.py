#!/usr/bin/env python3
"""
Unified CLI for the transport fleet manager.

Commands:
  vehicles          - List vehicles and their drivers
  drivers           - List drivers, license status and vehicles
  collections       - List recorded collections, newest first
  expenses          - List recorded expenses, newest first
  add-vehicle       - Register a new vehicle
  add-driver        - Register a new driver
  set-status        - Change a vehicle's operating status
  update-vehicle    - Edit a vehicle's route, target, capacity or status
  update-driver     - Edit a driver's phone or license expiry
  assign            - Assign a driver to a vehicle
  unassign          - Take a driver off their vehicle
  release           - Take the driver off a vehicle
  collect           - Record a day's collection for a vehicle
  expense           - Record an expense against a vehicle
  totals            - Collection totals for a period
  rankings          - Top and bottom vehicles against target
  drivers-report    - Driver rankings by average collection
  below-target      - Individual collections under target
  expenses-summary  - Expenses by category
  profit            - Net profit for one vehicle
  routes            - Route profitability
  report            - Full fleet performance report
  alerts            - License, assignment, maintenance and target alerts
  export            - Write listings (and optionally reports) as CSV
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional, Sequence

from fleet import (
    Collection,
    Driver,
    EntityStore,
    Expense,
    ExpenseCategory,
    FleetError,
    NotFound,
    Vehicle,
    VehicleStatus,
    assign,
    below_target_collections,
    bottom_k,
    category_breakdown,
    driver_performance,
    evaluate,
    fleet_summary,
    next_id,
    period_totals,
    rank,
    record_collection,
    release_vehicle,
    resolve_period,
    route_profitability,
    top_k,
    unassign,
    vehicle_performance,
)
from fleet import export, validation
from fleet.aggregation import (
    CategoryTotal,
    DriverPerformance,
    RANK_METRICS,
    RouteProfitability,
    Shortfall,
    VehiclePerformance,
)
from fleet.alerts import by_urgency
from fleet.config import CURRENCY, get_data_dir
from fleet.period import SELECTORS
from fleet.records import (
    find_driver_by_license,
    find_driver_by_phone,
    find_drivers_by_name,
    find_vehicle_by_registration,
)

logger = logging.getLogger("sacco")

# =============================================================================
# Formatting helpers
# =============================================================================


def format_currency(amount: Optional[float]) -> str:
    """Format money for display."""
    return f"{CURRENCY} {amount:,.2f}" if amount is not None else "-"


def format_percent(value: Optional[float]) -> str:
    return f"{value:.1f}%" if value is not None else "-"


def format_license_status(days: int) -> str:
    """Describe license expiry relative to today."""
    if days < 0:
        return f"EXPIRED {abs(days)}d ago"
    if days <= 7:
        return f"URGENT: {days}d left"
    if days <= 30:
        return f"expires in {days}d"
    return "ok"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def print_section(title: str, width: int = 60) -> None:
    print("=" * width)
    print(title)
    print("=" * width)


# =============================================================================
# Table builders
# =============================================================================


def make_vehicle_table(vehicles: Sequence[Vehicle], drivers: Sequence[Driver]) -> List[List[str]]:
    drivers_by_id = {d.id: d for d in drivers}
    rows = []
    for v in vehicles:
        driver = drivers_by_id.get(v.assigned_driver_id)
        rows.append(
            [
                v.id,
                v.registration,
                str(v.capacity),
                truncate(v.route),
                format_currency(v.daily_target),
                v.status.value,
                driver.name if driver else "Not assigned",
            ]
        )
    return rows


def make_driver_table(
    drivers: Sequence[Driver], vehicles: Sequence[Vehicle], today: date
) -> List[List[str]]:
    vehicles_by_id = {v.id: v for v in vehicles}
    rows = []
    for d in drivers:
        vehicle = vehicles_by_id.get(d.assigned_vehicle_id)
        rows.append(
            [
                d.id,
                d.name,
                d.phone,
                d.license_number,
                d.license_expiry.isoformat(),
                format_license_status(d.days_until_expiry(today)),
                vehicle.label if vehicle else "Not assigned",
            ]
        )
    return rows


def make_performance_table(rows: Sequence[VehiclePerformance]) -> List[List[str]]:
    return [
        [
            p.vehicle.registration,
            p.vehicle.route,
            str(p.count),
            format_currency(p.total),
            format_currency(p.average),
            format_currency(p.vehicle.daily_target),
            format_percent(p.percent_of_target),
            format_currency(p.total_expenses),
            format_currency(p.net_profit),
        ]
        for p in rows
    ]


def make_driver_performance_table(rows: Sequence[DriverPerformance]) -> List[List[str]]:
    return [
        [
            p.driver.name,
            p.vehicle.registration if p.vehicle else "Not assigned",
            str(p.count),
            format_currency(p.total),
            format_currency(p.average),
            format_percent(p.percent_of_target) if p.vehicle and p.count else "-",
        ]
        for p in rows
    ]


def make_category_table(rows: Sequence[CategoryTotal]) -> List[List[str]]:
    return [
        [
            c.category.display_name,
            str(c.count),
            format_currency(c.total),
            format_percent(c.percent_of_grand_total),
            format_currency(c.average),
        ]
        for c in rows
    ]


def make_route_table(rows: Sequence[RouteProfitability]) -> List[List[str]]:
    return [
        [
            r.route,
            str(r.vehicle_count),
            str(r.count),
            format_currency(r.total_collections),
            format_currency(r.total_expenses),
            format_currency(r.net_profit),
            format_percent(r.profit_margin),
            format_currency(r.average),
        ]
        for r in rows
    ]


def make_shortfall_table(rows: Sequence[Shortfall], drivers: Sequence[Driver]) -> List[List[str]]:
    drivers_by_id = {d.id: d for d in drivers}
    table = []
    for s in rows:
        driver = drivers_by_id.get(s.collection.driver_id)
        table.append(
            [
                s.collection.date.isoformat(),
                s.vehicle.registration,
                s.vehicle.route,
                driver.name if driver else "Unassigned",
                format_currency(s.collection.amount),
                format_currency(s.vehicle.daily_target),
                format_currency(s.shortfall),
                format_percent(s.percent_achieved),
            ]
        )
    return table


def make_collection_table(
    collections: Sequence[Collection], vehicles: Sequence[Vehicle], drivers: Sequence[Driver]
) -> List[List[str]]:
    vehicles_by_id = {v.id: v for v in vehicles}
    drivers_by_id = {d.id: d for d in drivers}
    table = []
    for c in collections:
        vehicle = vehicles_by_id.get(c.vehicle_id)
        driver = drivers_by_id.get(c.driver_id)
        table.append(
            [
                c.id,
                c.date.isoformat(),
                vehicle.registration if vehicle else "Unknown",
                vehicle.route if vehicle else "-",
                driver.name if driver else "Unassigned",
                format_currency(c.amount),
            ]
        )
    return table


def make_expense_table(expenses: Sequence[Expense], vehicles: Sequence[Vehicle]) -> List[List[str]]:
    vehicles_by_id = {v.id: v for v in vehicles}
    table = []
    for e in expenses:
        vehicle = vehicles_by_id.get(e.vehicle_id)
        table.append(
            [
                e.id,
                e.date.isoformat(),
                vehicle.registration if vehicle else "Unknown",
                e.category.display_name,
                truncate(e.description or None),
                format_currency(e.amount),
            ]
        )
    return table


def newest_first(records: Sequence, limit: int) -> list:
    """Records sorted by date descending, keeping input order within a day."""
    ordered = sorted(records, key=lambda r: r.date, reverse=True)
    return ordered[:max(limit, 0)]


PERFORMANCE_HEADERS = [
    "Vehicle", "Route", "Days", "Collected", "Average", "Target", "Achieved", "Expenses", "Net",
]
DRIVER_PERFORMANCE_HEADERS = ["Driver", "Vehicle", "Days", "Total", "Average", "Achieved"]
CATEGORY_HEADERS = ["Category", "Count", "Total", "% of Total", "Average"]
ROUTE_HEADERS = [
    "Route", "Vehicles", "Days", "Collections", "Expenses", "Net Profit", "Margin", "Avg/Day",
]

# =============================================================================
# Shared argument handling
# =============================================================================


def get_today(args) -> date:
    if getattr(args, "today", None):
        return validation.parse_date(args.today)
    return date.today()


def get_period(args):
    return resolve_period(args.period, get_today(args), args.start, args.end)


def open_store(args) -> EntityStore:
    return EntityStore(get_data_dir(args.data_dir))


def resolve_vehicle(vehicles: Sequence[Vehicle], text: str) -> Vehicle:
    """Find a vehicle by id or registration."""
    for vehicle in vehicles:
        if vehicle.id == text:
            return vehicle
    vehicle = find_vehicle_by_registration(vehicles, text)
    if vehicle is None:
        raise NotFound("Vehicle", text)
    return vehicle


def resolve_driver(drivers: Sequence[Driver], text: str) -> Driver:
    """Find a driver by id, or by a name fragment matching exactly one driver."""
    for driver in drivers:
        if driver.id == text:
            return driver
    matches = find_drivers_by_name(drivers, text)
    if not matches:
        raise NotFound("Driver", text)
    if len(matches) > 1:
        names = ", ".join(f"{d.name} ({d.id})" for d in matches)
        raise ValueError(f"'{text}' matches {len(matches)} drivers: {names}")
    return matches[0]


# =============================================================================
# Listing commands
# =============================================================================


def cmd_vehicles(args):
    """List vehicles and their drivers."""
    store = open_store(args)
    vehicles = store.load("vehicles")
    drivers = store.load("drivers")

    if args.status:
        status = VehicleStatus.parse(args.status)
        vehicles = [v for v in vehicles if v.status == status]
    if args.route:
        vehicles = [v for v in vehicles if args.route.lower() in v.route.lower()]

    if not vehicles:
        print("No vehicles found.")
        return 0

    print(f"Total vehicles: {len(vehicles)}")
    print()
    headers = ["ID", "Registration", "Capacity", "Route", "Target", "Status", "Driver"]
    print(tabulate(make_vehicle_table(vehicles, drivers), headers=headers, tablefmt="simple"))
    return 0


def cmd_drivers(args):
    """List drivers, license status and vehicles."""
    store = open_store(args)
    drivers = store.load("drivers")
    vehicles = store.load("vehicles")
    today = get_today(args)

    if args.name:
        drivers = find_drivers_by_name(drivers, args.name)
    if args.expiring is not None:
        drivers = [d for d in drivers if d.days_until_expiry(today) <= args.expiring]

    if not drivers:
        print("No drivers found.")
        return 0

    print(f"Total drivers: {len(drivers)}")
    print()
    headers = ["ID", "Name", "Phone", "License", "Expiry", "License Status", "Vehicle"]
    print(tabulate(make_driver_table(drivers, vehicles, today), headers=headers, tablefmt="simple"))
    return 0


def cmd_collections(args):
    """List recorded collections, newest first."""
    store = open_store(args)
    collections = store.load("collections")
    vehicles = store.load("vehicles")
    drivers = store.load("drivers")

    if args.date:
        day = validation.parse_date(args.date)
        collections = [c for c in collections if c.date == day]
    if args.vehicle:
        vehicle = resolve_vehicle(vehicles, args.vehicle)
        collections = [c for c in collections if c.vehicle_id == vehicle.id]

    if not collections:
        print("No collections found.")
        return 0

    shown = newest_first(collections, args.limit)
    print(f"Showing {len(shown)} of {len(collections)} collections")
    print(f"Total: {format_currency(sum(c.amount for c in collections))}")
    print()
    headers = ["ID", "Date", "Vehicle", "Route", "Driver", "Amount"]
    print(tabulate(make_collection_table(shown, vehicles, drivers), headers=headers, tablefmt="simple"))
    return 0


def cmd_expenses(args):
    """List recorded expenses, newest first."""
    store = open_store(args)
    expenses = store.load("expenses")
    vehicles = store.load("vehicles")

    if args.vehicle:
        vehicle = resolve_vehicle(vehicles, args.vehicle)
        expenses = [e for e in expenses if e.vehicle_id == vehicle.id]
    if args.category:
        category = ExpenseCategory.parse(args.category)
        expenses = [e for e in expenses if e.category == category]

    if not expenses:
        print("No expenses found.")
        return 0

    shown = newest_first(expenses, args.limit)
    print(f"Showing {len(shown)} of {len(expenses)} expenses")
    print(f"Total: {format_currency(sum(e.amount for e in expenses))}")
    print()
    headers = ["ID", "Date", "Vehicle", "Category", "Description", "Amount"]
    print(tabulate(make_expense_table(shown, vehicles), headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Record commands
# =============================================================================


def cmd_add_vehicle(args):
    """Register a new vehicle."""
    store = open_store(args)
    vehicles = store.load("vehicles")

    if not validation.is_valid_registration(args.registration):
        print("Error: Invalid registration format. Use format: KCB 123A")
        return 1
    registration = validation.format_registration(args.registration)
    existing = find_vehicle_by_registration(vehicles, registration)
    if existing:
        print(f"Error: Vehicle with registration {registration} already exists ({existing.id})")
        return 1

    vehicle = Vehicle(
        id=next_id("vehicles", vehicles),
        registration=registration,
        capacity=validation.validate_capacity(args.capacity),
        route=args.route.strip(),
        daily_target=validation.validate_target(args.target),
        status=VehicleStatus.parse(args.status),
    )

    print(f"Adding vehicle {vehicle.id}:")
    print(f"  Registration: {vehicle.registration}")
    print(f"  Capacity:     {vehicle.capacity}")
    print(f"  Route:        {vehicle.route}")
    print(f"  Daily target: {format_currency(vehicle.daily_target)}")
    print(f"  Status:       {vehicle.status.value}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    vehicles.append(vehicle)
    store.save("vehicles", vehicles)
    print("Vehicle saved.")
    return 0


def cmd_add_driver(args):
    """Register a new driver."""
    store = open_store(args)
    drivers = store.load("drivers")
    today = get_today(args)

    name = validation.validate_name(args.name)
    if not validation.is_valid_phone(args.phone):
        print("Error: Invalid phone number format. Use: 0712345678 or +254712345678")
        return 1
    phone = validation.format_phone(args.phone)
    if find_driver_by_phone(drivers, phone):
        print(f"Error: A driver with phone {phone} already exists")
        return 1
    license_number = validation.validate_license_number(args.license)
    existing = find_driver_by_license(drivers, license_number)
    if existing:
        print(f"Error: License {license_number} already registered to {existing.name}")
        return 1
    expiry = validation.parse_date(args.expiry)
    if expiry < today:
        print("Error: License expiry date cannot be in the past")
        return 1

    driver = Driver(
        id=next_id("drivers", drivers),
        name=name,
        phone=phone,
        license_number=license_number,
        license_expiry=expiry,
    )

    print(f"Adding driver {driver.id}:")
    print(f"  Name:    {driver.name}")
    print(f"  Phone:   {driver.phone}")
    print(f"  License: {driver.license_number}")
    print(f"  Expiry:  {driver.license_expiry.isoformat()}")
    days = driver.days_until_expiry(today)
    if days <= 30:
        print(f"  Warning: License expires in {days} days!")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    drivers.append(driver)
    store.save("drivers", drivers)
    print("Driver saved.")
    return 0


def cmd_set_status(args):
    """Change a vehicle's operating status."""
    store = open_store(args)
    vehicles = store.load("vehicles")
    vehicle = resolve_vehicle(vehicles, args.vehicle)
    new_status = VehicleStatus.parse(args.status)

    print(f"Vehicle: {vehicle.label}")
    print(f"Status:  {vehicle.status.value} -> {new_status.value}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    vehicle.status = new_status
    store.save("vehicles", vehicles)
    print("Status updated.")
    return 0


def cmd_update_vehicle(args):
    """Change a vehicle's route, target, capacity or status."""
    store = open_store(args)
    vehicles = store.load("vehicles")
    vehicle = resolve_vehicle(vehicles, args.vehicle)

    changes = []
    if args.route is not None:
        route = args.route.strip()
        if not route:
            raise ValueError("Route cannot be empty.")
        changes.append(("Route", "route", vehicle.route, route))
    if args.target is not None:
        target = validation.validate_target(args.target)
        changes.append(("Daily target", "daily_target", vehicle.daily_target, target))
    if args.capacity is not None:
        capacity = validation.validate_capacity(args.capacity)
        changes.append(("Capacity", "capacity", vehicle.capacity, capacity))
    if args.status is not None:
        status = VehicleStatus.parse(args.status)
        changes.append(("Status", "status", vehicle.status, status))

    if not changes:
        print("Nothing to update. Use --route, --target, --capacity or --status.")
        return 1

    print(f"Updating vehicle {vehicle.label}:")
    for label, _, old, new in changes:
        old_text = old.value if isinstance(old, VehicleStatus) else old
        new_text = new.value if isinstance(new, VehicleStatus) else new
        print(f"  {label}: {old_text} -> {new_text}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    for _, attr, _, new in changes:
        setattr(vehicle, attr, new)
    store.save("vehicles", vehicles)
    print("Vehicle updated.")
    return 0


def cmd_update_driver(args):
    """Change a driver's phone number or license expiry."""
    store = open_store(args)
    drivers = store.load("drivers")
    driver = resolve_driver(drivers, args.driver)
    today = get_today(args)

    phone = None
    if args.phone is not None:
        if not validation.is_valid_phone(args.phone):
            print("Error: Invalid phone number format. Use: 0712345678 or +254712345678")
            return 1
        phone = validation.format_phone(args.phone)
        existing = find_driver_by_phone(drivers, phone)
        if existing and existing.id != driver.id:
            print(f"Error: A driver with phone {phone} already exists ({existing.name})")
            return 1

    expiry = None
    if args.expiry is not None:
        expiry = validation.parse_date(args.expiry)
        if expiry < today:
            print("Error: License expiry date cannot be in the past")
            return 1

    if phone is None and expiry is None:
        print("Nothing to update. Use --phone or --expiry.")
        return 1

    print(f"Updating driver {driver.name} ({driver.id}):")
    if phone is not None:
        print(f"  Phone:  {driver.phone} -> {phone}")
    if expiry is not None:
        print(f"  Expiry: {driver.license_expiry.isoformat()} -> {expiry.isoformat()}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    if phone is not None:
        driver.phone = phone
    if expiry is not None:
        driver.license_expiry = expiry
    store.save("drivers", drivers)
    print("Driver updated.")
    return 0


def cmd_assign(args):
    """Assign a driver to a vehicle."""
    store = open_store(args)
    drivers = store.load("drivers")
    vehicles = store.load("vehicles")

    driver = resolve_driver(drivers, args.driver)
    vehicle = resolve_vehicle(vehicles, args.vehicle)
    result = assign(driver, vehicle, drivers, vehicles)

    if not result.changed:
        print(f"{driver.name} is already assigned to {vehicle.registration}.")
        return 0

    print(f"Driver:  {driver.name}")
    print(f"Vehicle: {vehicle.registration}")
    print(f"Route:   {vehicle.route}")
    if result.unassigned_vehicle:
        print(f"  {driver.name} no longer drives {result.unassigned_vehicle.registration}")
    if result.unassigned_driver:
        print(f"  {result.unassigned_driver.name} no longer drives {vehicle.registration}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    store.save_assignment(drivers, vehicles)
    print("Assignment saved.")
    return 0


def cmd_unassign(args):
    """Take a driver off their vehicle."""
    store = open_store(args)
    drivers = store.load("drivers")
    vehicles = store.load("vehicles")

    driver = resolve_driver(drivers, args.driver)
    result = unassign(driver, drivers, vehicles)

    if not result.changed:
        print(f"{driver.name} is not assigned to a vehicle.")
        return 0

    released = result.unassigned_vehicle
    print(f"{driver.name} unassigned" + (f" from {released.registration}" if released else ""))
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    store.save_assignment(drivers, vehicles)
    print("Assignment saved.")
    return 0


def cmd_release(args):
    """Take whoever drives a vehicle off it."""
    store = open_store(args)
    drivers = store.load("drivers")
    vehicles = store.load("vehicles")

    vehicle = resolve_vehicle(vehicles, args.vehicle)
    had_driver = vehicle.assigned_driver_id is not None
    result = release_vehicle(vehicle, drivers, vehicles)

    if result is None and not had_driver:
        print(f"{vehicle.registration} has no assigned driver.")
        return 0

    if result is not None:
        print(f"{result.driver.name} released from {vehicle.registration}")
    else:
        print(f"Cleared missing driver reference on {vehicle.registration}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    store.save_assignment(drivers, vehicles)
    print("Assignment saved.")
    return 0


def cmd_collect(args):
    """Record a day's collection for a vehicle."""
    store = open_store(args)
    collections = store.load("collections")
    vehicles = store.load("vehicles")
    drivers = store.load("drivers")

    vehicle = resolve_vehicle(vehicles, args.vehicle)
    day = validation.parse_date(args.date) if args.date else get_today(args)
    amount = validation.validate_amount(args.amount, allow_zero=True)

    if args.driver:
        driver = resolve_driver(drivers, args.driver)
    else:
        driver = next((d for d in drivers if d.id == vehicle.assigned_driver_id), None)

    collection = Collection(
        id=next_id("collections", collections),
        vehicle_id=vehicle.id,
        driver_id=driver.id if driver else None,
        date=day,
        amount=amount,
    )

    print(f"Recording collection {collection.id}:")
    print(f"  Vehicle: {vehicle.label}")
    print(f"  Driver:  {driver.name if driver else 'Not assigned'}")
    print(f"  Date:    {day.isoformat()}")
    print(f"  Amount:  {format_currency(amount)}")
    if vehicle.daily_target > 0:
        print(
            f"  Target:  {format_currency(vehicle.daily_target)} "
            f"({format_percent(amount / vehicle.daily_target * 100)})"
        )
    print()

    replaced = record_collection(collections, collection, overwrite=args.overwrite)
    if replaced:
        print(f"Replacing {replaced.id} ({format_currency(replaced.amount)})")

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    store.save("collections", collections)
    print("Collection saved.")
    return 0


def cmd_expense(args):
    """Record an expense against a vehicle."""
    store = open_store(args)
    expenses = store.load("expenses")
    vehicles = store.load("vehicles")

    vehicle = resolve_vehicle(vehicles, args.vehicle)
    expense = Expense(
        id=next_id("expenses", expenses),
        vehicle_id=vehicle.id,
        category=ExpenseCategory.parse(args.category),
        description=(args.description or "").strip(),
        amount=validation.validate_amount(args.amount, allow_zero=False),
        date=validation.parse_date(args.date) if args.date else get_today(args),
    )

    print(f"Recording expense {expense.id}:")
    print(f"  Vehicle:     {vehicle.label}")
    print(f"  Category:    {expense.category.display_name}")
    if expense.description:
        print(f"  Description: {expense.description}")
    print(f"  Amount:      {format_currency(expense.amount)}")
    print(f"  Date:        {expense.date.isoformat()}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    expenses.append(expense)
    store.save("expenses", expenses)
    print("Expense saved.")
    return 0


# =============================================================================
# Report commands
# =============================================================================


def cmd_totals(args):
    """Collection totals for a period."""
    store = open_store(args)
    collections = store.load("collections")
    period = get_period(args)

    totals = period_totals(collections, period)
    if totals.count == 0:
        print(f"No collections found for {period.label}.")
        return 0

    print(f"{period.label} Summary")
    print(f"Total collections: {totals.count} entries")
    print(f"Total amount:      {format_currency(totals.total)}")
    print(f"Average:           {format_currency(totals.average)}")
    return 0


def cmd_rankings(args):
    """Top and bottom vehicles."""
    store = open_store(args)
    data = store.load_all()
    period = get_period(args)

    rows = vehicle_performance(data.vehicles, data.collections, data.expenses, period)
    if not any(r.count for r in rows):
        print(f"No collections found for {period.label}.")
        return 0

    top = [r for r in top_k(rows, args.metric, args.top) if r.count > 0]
    bottom = bottom_k(rows, args.metric, args.top)

    print(f"Vehicle rankings by {args.metric.replace('_', ' ')} ({period.label})")
    print()
    print("TOP PERFORMERS:")
    print(tabulate(make_performance_table(top), headers=PERFORMANCE_HEADERS, tablefmt="simple"))
    print()
    print("NEEDS IMPROVEMENT:")
    print(tabulate(make_performance_table(bottom), headers=PERFORMANCE_HEADERS, tablefmt="simple"))
    return 0


def cmd_drivers_report(args):
    """Driver rankings by average collection."""
    store = open_store(args)
    data = store.load_all()
    period = get_period(args)

    rows = rank(driver_performance(data.drivers, data.vehicles, data.collections, period), "average")
    if not rows:
        print("No drivers in the system.")
        return 0

    print(f"Driver rankings by average daily collection ({period.label})")
    print()
    print(
        tabulate(
            make_driver_performance_table(rows),
            headers=DRIVER_PERFORMANCE_HEADERS,
            tablefmt="simple",
        )
    )
    return 0


def cmd_below_target(args):
    """Individual collections under target."""
    store = open_store(args)
    data = store.load_all()
    period = get_period(args)

    rows = below_target_collections(data.collections, data.vehicles, period)
    if not rows:
        print("All collections have met their targets.")
        return 0

    print(f"Found {len(rows)} below-target collections ({period.label}):")
    print()
    headers = ["Date", "Vehicle", "Route", "Driver", "Collected", "Target", "Shortfall", "Achieved"]
    print(tabulate(make_shortfall_table(rows, data.drivers), headers=headers, tablefmt="simple"))
    return 0


def cmd_expenses_summary(args):
    """Expenses by category."""
    store = open_store(args)
    expenses = store.load("expenses")
    period = get_period(args)

    rows = category_breakdown(expenses, period)
    count = sum(r.count for r in rows)
    if count == 0:
        print(f"No expenses found for {period.label}.")
        return 0

    print(f"Expense Summary - {period.label}")
    print()
    table = make_category_table(rows)
    table.append(["TOTAL", str(count), format_currency(rows[0].grand_total), "", ""])
    print(tabulate(table, headers=CATEGORY_HEADERS, tablefmt="simple"))
    return 0


def cmd_profit(args):
    """Net profit for one vehicle."""
    store = open_store(args)
    data = store.load_all()
    period = get_period(args)

    vehicle = resolve_vehicle(data.vehicles, args.vehicle)
    perf = vehicle_performance([vehicle], data.collections, data.expenses, period)[0]

    print(f"Vehicle: {vehicle.label}")
    print(f"Period:  {period.label}")
    print()
    print(f"Collections: {format_currency(perf.total)} ({perf.count} days)")
    print(f"Expenses:    {format_currency(perf.total_expenses)} ({perf.expense_count} entries)")
    label = "NET PROFIT" if perf.net_profit >= 0 else "NET LOSS"
    print(f"{label}: {format_currency(abs(perf.net_profit))}")
    print(f"Profit margin: {format_percent(perf.profit_margin)}")
    if perf.count:
        print(
            f"Average daily: {format_currency(perf.average)} "
            f"({format_percent(perf.percent_of_target)} of target)"
        )
    return 0


def cmd_routes(args):
    """Route profitability."""
    store = open_store(args)
    data = store.load_all()
    period = get_period(args)

    rows = rank(route_profitability(data.vehicles, data.collections, data.expenses, period), "net_profit")
    if not any(r.count for r in rows):
        print(f"No data available for route analysis ({period.label}).")
        return 0

    print(f"Route rankings by profitability ({period.label})")
    print()
    print(tabulate(make_route_table(rows), headers=ROUTE_HEADERS, tablefmt="simple"))
    return 0


def print_alerts(alerts) -> None:
    if not alerts:
        print("No alerts at this time. Fleet is operating smoothly!")
        return
    for alert in by_urgency(alerts):
        print(f"  [{alert.kind.name}] {alert.message}")


def cmd_alerts(args):
    """License, assignment, maintenance and target alerts."""
    store = open_store(args)
    data = store.load_all()
    period = get_period(args)
    today = get_today(args)

    performance = vehicle_performance(data.vehicles, data.collections, data.expenses, period)
    alerts = evaluate(data.vehicles, data.drivers, performance, today)
    print(f"Alerts ({len(alerts)}):")
    print_alerts(alerts)
    return 0


def cmd_report(args):
    """Full fleet performance report."""
    store = open_store(args)
    data = store.load_all()
    period = get_period(args)
    today = get_today(args)

    if not data.vehicles:
        print("No data available for report generation.")
        return 0

    summary = fleet_summary(data.vehicles, data.drivers, data.collections, data.expenses, period)
    performance = vehicle_performance(data.vehicles, data.collections, data.expenses, period)

    print(f"Report generated: {today.isoformat()} ({period.label})")
    print()
    print_section("FLEET OVERVIEW")
    print(f"Total vehicles: {summary.vehicle_count}")
    print(f"  Active: {summary.active}")
    print(f"  Inactive: {summary.inactive}")
    print(f"  Under maintenance: {summary.maintenance}")
    print(f"Total drivers: {summary.driver_count}")
    print(f"  Assigned: {summary.assigned_drivers}")
    print(f"  Unassigned: {summary.unassigned_drivers}")
    print()

    print_section("FINANCIAL SUMMARY")
    print(f"Total collections: {format_currency(summary.total_collections)} ({summary.collection_count} entries)")
    print(f"Total expenses:    {format_currency(summary.total_expenses)} ({summary.expense_count} entries)")
    print()
    print(
        tabulate(
            make_category_table(category_breakdown(data.expenses, period)),
            headers=CATEGORY_HEADERS,
            tablefmt="simple",
        )
    )
    print()
    label = "NET PROFIT" if summary.net_profit >= 0 else "NET LOSS"
    print(f"{label}: {format_currency(abs(summary.net_profit))}")
    if summary.total_collections > 0:
        print(f"Profit margin: {format_percent(summary.profit_margin)}")
    print()

    print_section("TOP 5 PERFORMING VEHICLES")
    top_vehicles = [p for p in top_k(performance, "net_profit", 5) if p.count > 0]
    print(tabulate(make_performance_table(top_vehicles), headers=PERFORMANCE_HEADERS, tablefmt="simple"))
    print()

    print_section("TOP 5 PERFORMING DRIVERS")
    drivers = driver_performance(data.drivers, data.vehicles, data.collections, period)
    top_drivers = [p for p in top_k(drivers, "average", 5) if p.count > 0]
    print(
        tabulate(
            make_driver_performance_table(top_drivers),
            headers=DRIVER_PERFORMANCE_HEADERS,
            tablefmt="simple",
        )
    )
    print()

    print_section("ALERTS & RECOMMENDATIONS")
    print_alerts(evaluate(data.vehicles, data.drivers, performance, today))
    return 0


def cmd_export(args):
    """Write listings (and optionally reports) as CSV."""
    store = open_store(args)
    data = store.load_all()
    period = get_period(args)
    output_dir = Path(args.output_dir) if args.output_dir else store.data_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    collections = period.filter(data.collections)
    expenses = period.filter(data.expenses)
    suffix = "export" if args.period == "all" else f"{period.start.isoformat()}_to_{period.end.isoformat()}"

    written = []
    path = output_dir / "vehicles_export.csv"
    export.write_csv(path, export.VEHICLE_HEADERS, export.vehicle_rows(data.vehicles))
    written.append((path, len(data.vehicles)))

    path = output_dir / f"collections_{suffix}.csv"
    export.write_csv(
        path,
        export.COLLECTION_HEADERS,
        export.collection_rows(collections, data.vehicles, data.drivers),
    )
    written.append((path, len(collections)))

    path = output_dir / f"expenses_{suffix}.csv"
    export.write_csv(path, export.EXPENSE_HEADERS, export.expense_rows(expenses, data.vehicles))
    written.append((path, len(expenses)))

    if args.with_reports:
        performance = vehicle_performance(data.vehicles, data.collections, data.expenses, period)
        routes = route_profitability(data.vehicles, data.collections, data.expenses, period)
        categories = category_breakdown(data.expenses, period)
        for name, rows in (
            ("vehicle_performance", performance),
            ("route_profitability", routes),
            ("expense_categories", categories),
        ):
            path = output_dir / f"{name}_{suffix}.csv"
            export.write_records_csv(path, (r.as_dict() for r in rows))
            written.append((path, len(rows)))

    for path, count in written:
        print(f"Exported {count} rows to {path}")
    return 0


# =============================================================================
# Main
# =============================================================================


def add_period_arguments(parser: argparse.ArgumentParser, default: str = "all") -> None:
    parser.add_argument(
        "--period",
        choices=SELECTORS,
        default=default,
        help=f"Period to report on (default: {default})",
    )
    parser.add_argument("--start", type=str, help="Custom period start (YYYY-MM-DD)")
    parser.add_argument("--end", type=str, help="Custom period end (YYYY-MM-DD)")


def add_dry_run(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without saving",
    )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Transport fleet manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s add-vehicle "KCB 123A" --capacity 14 --route "CBD - Kibera" --target 2000
  %(prog)s update-vehicle "KCB 123A" --target 2200 --status maintenance
  %(prog)s add-driver "John Kamau" --phone 0712345678 --license DL12345 --expiry 2027-06-30
  %(prog)s collections --vehicle "KCB 123A" --limit 10
  %(prog)s assign "kamau" "KCB 123A"
  %(prog)s collect "KCB 123A" 2500 --date 2024-01-01
  %(prog)s expense "KCB 123A" fuel 1200 --description "Diesel"
  %(prog)s rankings --period last30
  %(prog)s report --period custom --start 2024-01-01 --end 2024-01-31
  %(prog)s export --period last7 --with-reports
""",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        help="Directory holding the data files (default: $FLEET_DATA_DIR or ./data)",
    )
    parser.add_argument(
        "--today",
        type=str,
        help="Treat this date (YYYY-MM-DD) as today",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Listings
    vehicles_parser = subparsers.add_parser("vehicles", help="List vehicles")
    vehicles_parser.add_argument(
        "--status", choices=[s.value for s in VehicleStatus], help="Filter by status"
    )
    vehicles_parser.add_argument("--route", type=str, help="Filter by route text")

    drivers_parser = subparsers.add_parser("drivers", help="List drivers")
    drivers_parser.add_argument("--name", type=str, help="Filter by name (partial match)")
    drivers_parser.add_argument(
        "--expiring",
        type=int,
        metavar="DAYS",
        help="Only drivers whose license expires within DAYS (includes expired)",
    )

    collections_parser = subparsers.add_parser("collections", help="List recorded collections")
    collections_parser.add_argument("--date", type=str, help="Only this date (YYYY-MM-DD)")
    collections_parser.add_argument("--vehicle", type=str, help="Vehicle id or registration")
    collections_parser.add_argument("--limit", type=int, default=20, help="How many to show (default: 20)")

    expenses_parser = subparsers.add_parser("expenses", help="List recorded expenses")
    expenses_parser.add_argument("--vehicle", type=str, help="Vehicle id or registration")
    expenses_parser.add_argument(
        "--category", choices=[c.value for c in ExpenseCategory], help="Filter by category"
    )
    expenses_parser.add_argument("--limit", type=int, default=20, help="How many to show (default: 20)")

    # Records
    add_vehicle_parser = subparsers.add_parser("add-vehicle", help="Register a new vehicle")
    add_vehicle_parser.add_argument("registration", type=str, help="Registration (e.g., KCB 123A)")
    add_vehicle_parser.add_argument("--capacity", type=int, required=True, help="Passenger capacity")
    add_vehicle_parser.add_argument("--route", type=str, required=True, help="Route (e.g., CBD - Kibera)")
    add_vehicle_parser.add_argument("--target", type=float, required=True, help="Daily collection target")
    add_vehicle_parser.add_argument(
        "--status",
        choices=[s.value for s in VehicleStatus],
        default="active",
        help="Initial status (default: active)",
    )
    add_dry_run(add_vehicle_parser)

    add_driver_parser = subparsers.add_parser("add-driver", help="Register a new driver")
    add_driver_parser.add_argument("name", type=str, help="Driver full name")
    add_driver_parser.add_argument("--phone", type=str, required=True, help="Phone (e.g., 0712345678)")
    add_driver_parser.add_argument("--license", type=str, required=True, help="License number")
    add_driver_parser.add_argument("--expiry", type=str, required=True, help="License expiry (YYYY-MM-DD)")
    add_dry_run(add_driver_parser)

    status_parser = subparsers.add_parser("set-status", help="Change a vehicle's status")
    status_parser.add_argument("vehicle", type=str, help="Vehicle id or registration")
    status_parser.add_argument("status", choices=[s.value for s in VehicleStatus])
    add_dry_run(status_parser)

    update_vehicle_parser = subparsers.add_parser("update-vehicle", help="Edit vehicle details")
    update_vehicle_parser.add_argument("vehicle", type=str, help="Vehicle id or registration")
    update_vehicle_parser.add_argument("--route", type=str, help="New route")
    update_vehicle_parser.add_argument("--target", type=float, help="New daily collection target")
    update_vehicle_parser.add_argument("--capacity", type=int, help="New passenger capacity")
    update_vehicle_parser.add_argument("--status", choices=[s.value for s in VehicleStatus])
    add_dry_run(update_vehicle_parser)

    update_driver_parser = subparsers.add_parser("update-driver", help="Edit driver details")
    update_driver_parser.add_argument("driver", type=str, help="Driver id or name (partial match)")
    update_driver_parser.add_argument("--phone", type=str, help="New phone number")
    update_driver_parser.add_argument("--expiry", type=str, help="New license expiry (YYYY-MM-DD)")
    add_dry_run(update_driver_parser)

    assign_parser = subparsers.add_parser("assign", help="Assign a driver to a vehicle")
    assign_parser.add_argument("driver", type=str, help="Driver id or name (partial match)")
    assign_parser.add_argument("vehicle", type=str, help="Vehicle id or registration")
    add_dry_run(assign_parser)

    unassign_parser = subparsers.add_parser("unassign", help="Take a driver off their vehicle")
    unassign_parser.add_argument("driver", type=str, help="Driver id or name (partial match)")
    add_dry_run(unassign_parser)

    release_parser = subparsers.add_parser("release", help="Take the driver off a vehicle")
    release_parser.add_argument("vehicle", type=str, help="Vehicle id or registration")
    add_dry_run(release_parser)

    collect_parser = subparsers.add_parser("collect", help="Record a daily collection")
    collect_parser.add_argument("vehicle", type=str, help="Vehicle id or registration")
    collect_parser.add_argument("amount", type=float, help="Amount collected")
    collect_parser.add_argument("--date", type=str, help="Collection date (default: today)")
    collect_parser.add_argument(
        "--driver", type=str, help="Driver id or name (default: the vehicle's driver)"
    )
    collect_parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace an existing collection for the same vehicle and date",
    )
    add_dry_run(collect_parser)

    expense_parser = subparsers.add_parser("expense", help="Record an expense")
    expense_parser.add_argument("vehicle", type=str, help="Vehicle id or registration")
    expense_parser.add_argument("category", choices=[c.value for c in ExpenseCategory])
    expense_parser.add_argument("amount", type=float, help="Amount spent")
    expense_parser.add_argument("--description", type=str, help="What the money was spent on")
    expense_parser.add_argument("--date", type=str, help="Expense date (default: today)")
    add_dry_run(expense_parser)

    # Reports
    totals_parser = subparsers.add_parser("totals", help="Collection totals for a period")
    add_period_arguments(totals_parser, default="today")

    rankings_parser = subparsers.add_parser("rankings", help="Top and bottom vehicles")
    add_period_arguments(rankings_parser)
    rankings_parser.add_argument(
        "--metric",
        choices=RANK_METRICS,
        default="percent_of_target",
        help="Ranking metric (default: percent_of_target)",
    )
    rankings_parser.add_argument("--top", type=int, default=3, help="How many to show (default: 3)")

    drivers_report_parser = subparsers.add_parser("drivers-report", help="Driver rankings")
    add_period_arguments(drivers_report_parser)

    below_parser = subparsers.add_parser("below-target", help="Collections under target")
    add_period_arguments(below_parser)

    expenses_summary_parser = subparsers.add_parser("expenses-summary", help="Expenses by category")
    add_period_arguments(expenses_summary_parser)

    profit_parser = subparsers.add_parser("profit", help="Net profit for one vehicle")
    profit_parser.add_argument("vehicle", type=str, help="Vehicle id or registration")
    add_period_arguments(profit_parser)

    routes_parser = subparsers.add_parser("routes", help="Route profitability")
    add_period_arguments(routes_parser)

    report_parser = subparsers.add_parser("report", help="Full fleet performance report")
    add_period_arguments(report_parser)

    alerts_parser = subparsers.add_parser("alerts", help="Fleet alerts")
    add_period_arguments(alerts_parser)

    export_parser = subparsers.add_parser("export", help="Export data as CSV")
    add_period_arguments(export_parser)
    export_parser.add_argument("--output-dir", type=Path, help="Where to write (default: data dir)")
    export_parser.add_argument(
        "--with-reports",
        action="store_true",
        help="Also export vehicle, route and category reports",
    )

    return parser


COMMANDS = {
    "vehicles": cmd_vehicles,
    "drivers": cmd_drivers,
    "collections": cmd_collections,
    "expenses": cmd_expenses,
    "add-vehicle": cmd_add_vehicle,
    "add-driver": cmd_add_driver,
    "set-status": cmd_set_status,
    "update-vehicle": cmd_update_vehicle,
    "update-driver": cmd_update_driver,
    "assign": cmd_assign,
    "unassign": cmd_unassign,
    "release": cmd_release,
    "collect": cmd_collect,
    "expense": cmd_expense,
    "totals": cmd_totals,
    "rankings": cmd_rankings,
    "drivers-report": cmd_drivers_report,
    "below-target": cmd_below_target,
    "expenses-summary": cmd_expenses_summary,
    "profit": cmd_profit,
    "routes": cmd_routes,
    "report": cmd_report,
    "alerts": cmd_alerts,
    "export": cmd_export,
}


def main(argv: Optional[Sequence[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        return COMMANDS[args.command](args)
    except (FleetError, ValueError) as error:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {error}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
