"""
Period-based totals, target achievement, rankings and profitability.

Every function takes in-memory collections and a ``Period`` and returns
plain result records for the presentation layer. Ratios go through
``safe_ratio``/``percent`` so an empty denominator reports 0 rather than
raising or producing NaN.

References that do not resolve (a collection for a vehicle that is not in
``vehicles``) are left out of grouped results.
"""

from dataclasses import dataclass, field
from operator import attrgetter
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Sequence

from .calculations import percent, safe_ratio, total_amount
from .collection import Collection
from .driver import Driver
from .expense import Expense
from .expense_category import ExpenseCategory
from .period import Period
from .vehicle import Vehicle
from .vehicle_status import VehicleStatus

RANK_METRICS = (
    "percent_of_target",
    "average",
    "total",
    "net_profit",
    "profit_margin",
)

# =============================================================================
# Result records
# =============================================================================


@dataclass
class GroupTotal:
    """Count and sum of amounts for one key."""

    key: Hashable
    count: int = 0
    total: float = 0.0

    @property
    def average(self) -> float:
        return safe_ratio(self.total, self.count)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "count": self.count,
            "total": self.total,
            "average": self.average,
        }


@dataclass
class VehiclePerformance:
    """Collections against target, and expenses, for one vehicle."""

    vehicle: Vehicle
    count: int = 0
    total: float = 0.0
    expense_count: int = 0
    total_expenses: float = 0.0

    @property
    def average(self) -> float:
        return safe_ratio(self.total, self.count)

    @property
    def percent_of_target(self) -> float:
        return percent(self.average, self.vehicle.daily_target)

    @property
    def net_profit(self) -> float:
        return self.total - self.total_expenses

    @property
    def profit_margin(self) -> float:
        return percent(self.net_profit, self.total)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "vehicleId": self.vehicle.id,
            "registration": self.vehicle.registration,
            "route": self.vehicle.route,
            "dailyTarget": self.vehicle.daily_target,
            "count": self.count,
            "total": self.total,
            "average": self.average,
            "percentOfTarget": self.percent_of_target,
            "totalExpenses": self.total_expenses,
            "netProfit": self.net_profit,
            "profitMargin": self.profit_margin,
        }


@dataclass
class DriverPerformance:
    """Collections for one driver, measured against their current vehicle."""

    driver: Driver
    vehicle: Optional[Vehicle] = None
    count: int = 0
    total: float = 0.0

    @property
    def average(self) -> float:
        return safe_ratio(self.total, self.count)

    @property
    def percent_of_target(self) -> float:
        if self.vehicle is None:
            return 0.0
        return percent(self.average, self.vehicle.daily_target)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "driverId": self.driver.id,
            "name": self.driver.name,
            "vehicleId": self.vehicle.id if self.vehicle else None,
            "count": self.count,
            "total": self.total,
            "average": self.average,
            "percentOfTarget": self.percent_of_target,
        }


@dataclass
class CategoryTotal:
    """One bucket of the expense category histogram."""

    category: ExpenseCategory
    count: int = 0
    total: float = 0.0
    grand_total: float = 0.0

    @property
    def average(self) -> float:
        return safe_ratio(self.total, self.count)

    @property
    def percent_of_grand_total(self) -> float:
        return percent(self.total, self.grand_total)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "count": self.count,
            "total": self.total,
            "percentOfGrandTotal": self.percent_of_grand_total,
            "average": self.average,
        }


@dataclass
class RouteProfitability:
    """Collections and expenses of every vehicle on one route."""

    route: str
    vehicle_ids: List[str] = field(default_factory=list)
    count: int = 0
    total_collections: float = 0.0
    total_expenses: float = 0.0

    @property
    def vehicle_count(self) -> int:
        return len(self.vehicle_ids)

    @property
    def net_profit(self) -> float:
        return self.total_collections - self.total_expenses

    @property
    def profit_margin(self) -> float:
        return percent(self.net_profit, self.total_collections)

    @property
    def average(self) -> float:
        """Average collection per vehicle-day on the route."""
        return safe_ratio(self.total_collections, self.count)

    @property
    def total(self) -> float:
        return self.total_collections

    def as_dict(self) -> Dict[str, Any]:
        return {
            "route": self.route,
            "vehicleCount": self.vehicle_count,
            "count": self.count,
            "totalCollections": self.total_collections,
            "totalExpenses": self.total_expenses,
            "netProfit": self.net_profit,
            "profitMargin": self.profit_margin,
            "averagePerDay": self.average,
        }


@dataclass
class FleetSummary:
    """Fleet overview and financial summary for a period."""

    vehicle_count: int = 0
    active: int = 0
    inactive: int = 0
    maintenance: int = 0
    driver_count: int = 0
    assigned_drivers: int = 0
    collection_count: int = 0
    total_collections: float = 0.0
    expense_count: int = 0
    total_expenses: float = 0.0

    @property
    def unassigned_drivers(self) -> int:
        return self.driver_count - self.assigned_drivers

    @property
    def net_profit(self) -> float:
        return self.total_collections - self.total_expenses

    @property
    def profit_margin(self) -> float:
        return percent(self.net_profit, self.total_collections)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "vehicles": {
                "total": self.vehicle_count,
                "active": self.active,
                "inactive": self.inactive,
                "maintenance": self.maintenance,
            },
            "drivers": {
                "total": self.driver_count,
                "assigned": self.assigned_drivers,
                "unassigned": self.unassigned_drivers,
            },
            "collections": {"count": self.collection_count, "total": self.total_collections},
            "expenses": {"count": self.expense_count, "total": self.total_expenses},
            "netProfit": self.net_profit,
            "profitMargin": self.profit_margin,
        }


@dataclass
class Shortfall:
    """A single collection that came in under its vehicle's daily target."""

    collection: Collection
    vehicle: Vehicle

    @property
    def shortfall(self) -> float:
        return self.vehicle.daily_target - self.collection.amount

    @property
    def percent_achieved(self) -> float:
        return percent(self.collection.amount, self.vehicle.daily_target)


# =============================================================================
# Grouping
# =============================================================================


def aggregate(
    records: Iterable,
    key_fn: Callable[[Any], Optional[Hashable]],
    period: Period,
) -> List[GroupTotal]:
    """
    Group records inside the period by key_fn and total their amounts.

    Groups come back in the order their key first appears. Records for
    which key_fn returns None are left out.
    """
    groups: Dict[Hashable, GroupTotal] = {}
    for record in period.filter(records):
        key = key_fn(record)
        if key is None:
            continue
        group = groups.get(key)
        if group is None:
            group = groups[key] = GroupTotal(key)
        group.count += 1
        group.total += record.amount
    return list(groups.values())


def period_totals(records: Iterable, period: Period) -> GroupTotal:
    """Count, total and average of every record in the period."""
    in_period = period.filter(records)
    return GroupTotal(key=period.label, count=len(in_period), total=total_amount(in_period))


def route_key(vehicles: Sequence[Vehicle]) -> Callable[[Any], Optional[str]]:
    """key_fn mapping a record to its vehicle's route (None if unknown)."""
    routes = {v.id: v.route for v in vehicles}
    return lambda record: routes.get(record.vehicle_id)


def _by_key(groups: List[GroupTotal]) -> Dict[Hashable, GroupTotal]:
    return {g.key: g for g in groups}


# =============================================================================
# Performance
# =============================================================================


def vehicle_performance(
    vehicles: Sequence[Vehicle],
    collections: Iterable[Collection],
    expenses: Iterable[Expense],
    period: Period,
) -> List[VehiclePerformance]:
    """One row per vehicle, in fleet order, including vehicles with no records."""
    collected = _by_key(aggregate(collections, attrgetter("vehicle_id"), period))
    spent = _by_key(aggregate(expenses, attrgetter("vehicle_id"), period))

    rows = []
    for vehicle in vehicles:
        row = VehiclePerformance(vehicle)
        if vehicle.id in collected:
            row.count = collected[vehicle.id].count
            row.total = collected[vehicle.id].total
        if vehicle.id in spent:
            row.expense_count = spent[vehicle.id].count
            row.total_expenses = spent[vehicle.id].total
        rows.append(row)
    return rows


def driver_performance(
    drivers: Sequence[Driver],
    vehicles: Sequence[Vehicle],
    collections: Iterable[Collection],
    period: Period,
) -> List[DriverPerformance]:
    """One row per driver; collections without a driver are not attributed."""
    collected = _by_key(aggregate(collections, attrgetter("driver_id"), period))
    vehicles_by_id = {v.id: v for v in vehicles}

    rows = []
    for driver in drivers:
        row = DriverPerformance(driver, vehicle=vehicles_by_id.get(driver.assigned_vehicle_id))
        if driver.id in collected:
            row.count = collected[driver.id].count
            row.total = collected[driver.id].total
        rows.append(row)
    return rows


# =============================================================================
# Ranking
# =============================================================================


def rank(rows: Iterable, metric: str) -> list:
    """
    Sort rows by metric, highest first.

    Rows with equal metric keep their input order.
    """
    if metric not in RANK_METRICS:
        raise ValueError(
            f"Unknown ranking metric '{metric}' (expected one of: {', '.join(RANK_METRICS)})"
        )
    return sorted(rows, key=attrgetter(metric), reverse=True)


def top_k(rows: Iterable, metric: str, k: int = 3) -> list:
    """The k best rows by metric."""
    return rank(rows, metric)[:max(k, 0)]


def bottom_k(rows: Iterable, metric: str, k: int = 3) -> list:
    """
    The k worst rows by metric, worst first.

    Rows with no records (count == 0) are not ranked at the bottom.
    """
    if k <= 0:
        return []
    ranked = [r for r in rank(rows, metric) if r.count > 0]
    return list(reversed(ranked[-k:]))


# =============================================================================
# Breakdowns
# =============================================================================


def category_breakdown(expenses: Iterable[Expense], period: Period) -> List[CategoryTotal]:
    """Five fixed buckets, one per ExpenseCategory, in declaration order."""
    groups = _by_key(aggregate(expenses, attrgetter("category"), period))
    grand_total = sum(g.total for g in groups.values())

    rows = []
    for category in ExpenseCategory:
        group = groups.get(category)
        rows.append(CategoryTotal(
            category,
            count=group.count if group else 0,
            total=group.total if group else 0.0,
            grand_total=grand_total,
        ))
    return rows


def route_profitability(
    vehicles: Sequence[Vehicle],
    collections: Iterable[Collection],
    expenses: Iterable[Expense],
    period: Period,
) -> List[RouteProfitability]:
    """
    Vehicle-level results re-keyed by route.

    Routes come back in the order they first appear in ``vehicles``;
    ``rank(rows, "net_profit")`` gives the profitability ranking.
    """
    routes: Dict[str, RouteProfitability] = {}
    for row in vehicle_performance(vehicles, collections, expenses, period):
        route = routes.get(row.vehicle.route)
        if route is None:
            route = routes[row.vehicle.route] = RouteProfitability(row.vehicle.route)
        if row.vehicle.id not in route.vehicle_ids:
            route.vehicle_ids.append(row.vehicle.id)
        route.count += row.count
        route.total_collections += row.total
        route.total_expenses += row.total_expenses
    return list(routes.values())


def fleet_summary(
    vehicles: Sequence[Vehicle],
    drivers: Sequence[Driver],
    collections: Iterable[Collection],
    expenses: Iterable[Expense],
    period: Period,
) -> FleetSummary:
    """Status counts, driver assignment counts and money in/out for the period."""
    period_collections = period.filter(collections)
    period_expenses = period.filter(expenses)
    return FleetSummary(
        vehicle_count=len(vehicles),
        active=sum(1 for v in vehicles if v.status == VehicleStatus.ACTIVE),
        inactive=sum(1 for v in vehicles if v.status == VehicleStatus.INACTIVE),
        maintenance=sum(1 for v in vehicles if v.status == VehicleStatus.MAINTENANCE),
        driver_count=len(drivers),
        assigned_drivers=sum(1 for d in drivers if d.is_assigned),
        collection_count=len(period_collections),
        total_collections=total_amount(period_collections),
        expense_count=len(period_expenses),
        total_expenses=total_amount(period_expenses),
    )


def below_target_collections(
    collections: Iterable[Collection],
    vehicles: Sequence[Vehicle],
    period: Period,
) -> List[Shortfall]:
    """Individual collections under their vehicle's daily target, newest first."""
    vehicles_by_id = {v.id: v for v in vehicles}
    rows = []
    for collection in period.filter(collections):
        vehicle = vehicles_by_id.get(collection.vehicle_id)
        if vehicle is not None and collection.amount < vehicle.daily_target:
            rows.append(Shortfall(collection, vehicle))
    return sorted(rows, key=lambda s: s.collection.date, reverse=True)
