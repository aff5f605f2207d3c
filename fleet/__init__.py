"""
Transport fleet tracking models and engine.

This package tracks vehicles, drivers, daily collections and expenses:
- VehicleStatus / ExpenseCategory: enumerations
- Vehicle, Driver, Collection, Expense: stored records
- assignment: the single write path for vehicle/driver pairing
- period: period selectors resolved to date intervals
- aggregation: totals, target achievement, rankings, profitability
- alerts: license, assignment, maintenance and performance alerts
- EntityStore: YAML persistence per collection
"""

from .vehicle_status import VehicleStatus
from .expense_category import ExpenseCategory
from .vehicle import Vehicle
from .driver import Driver
from .collection import Collection
from .expense import Expense
from .errors import (
    FleetError,
    NotFound,
    InvalidRange,
    PersistenceFailure,
    InconsistentAssignment,
    DuplicateCollection,
)
from .calculations import safe_ratio, percent, days_until
from .period import Period, resolve_period
from .assignment import (
    AssignmentResult,
    assign,
    unassign,
    release_vehicle,
    find_inconsistencies,
)
from .aggregation import (
    GroupTotal,
    VehiclePerformance,
    DriverPerformance,
    CategoryTotal,
    RouteProfitability,
    FleetSummary,
    Shortfall,
    aggregate,
    period_totals,
    route_key,
    vehicle_performance,
    driver_performance,
    rank,
    top_k,
    bottom_k,
    category_breakdown,
    route_profitability,
    fleet_summary,
    below_target_collections,
)
from .alerts import (
    AlertKind,
    LicenseExpiring,
    LicenseExpired,
    UnassignedActiveVehicle,
    UnderMaintenance,
    UnderperformingVehicle,
    evaluate,
)
from .records import (
    generate_id,
    next_id,
    find_by_id,
    find_collection,
    record_collection,
)
from .store import EntityStore, FleetData

__all__ = [
    "VehicleStatus",
    "ExpenseCategory",
    "Vehicle",
    "Driver",
    "Collection",
    "Expense",
    "FleetError",
    "NotFound",
    "InvalidRange",
    "PersistenceFailure",
    "InconsistentAssignment",
    "DuplicateCollection",
    "safe_ratio",
    "percent",
    "days_until",
    "Period",
    "resolve_period",
    "AssignmentResult",
    "assign",
    "unassign",
    "release_vehicle",
    "find_inconsistencies",
    "GroupTotal",
    "VehiclePerformance",
    "DriverPerformance",
    "CategoryTotal",
    "RouteProfitability",
    "FleetSummary",
    "Shortfall",
    "aggregate",
    "period_totals",
    "route_key",
    "vehicle_performance",
    "driver_performance",
    "rank",
    "top_k",
    "bottom_k",
    "category_breakdown",
    "route_profitability",
    "fleet_summary",
    "below_target_collections",
    "AlertKind",
    "LicenseExpiring",
    "LicenseExpired",
    "UnassignedActiveVehicle",
    "UnderMaintenance",
    "UnderperformingVehicle",
    "evaluate",
    "generate_id",
    "next_id",
    "find_by_id",
    "find_collection",
    "record_collection",
    "EntityStore",
    "FleetData",
]
