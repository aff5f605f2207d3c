#!/usr/bin/env python3
"""Tests for period aggregation, rankings and profitability."""

from datetime import date
from operator import attrgetter

import pytest

from fleet import (
    Collection,
    Driver,
    Expense,
    ExpenseCategory,
    Period,
    Vehicle,
    VehicleStatus,
    aggregate,
    below_target_collections,
    bottom_k,
    category_breakdown,
    driver_performance,
    fleet_summary,
    period_totals,
    rank,
    resolve_period,
    route_key,
    route_profitability,
    top_k,
    vehicle_performance,
)

JAN_1_2 = Period(date(2024, 1, 1), date(2024, 1, 2), "2024-01-01 to 2024-01-02")
ALL = resolve_period("all", date(2024, 1, 10))


def make_example():
    """Two vehicles with three collections over two days."""
    vehicles = [
        Vehicle("V1", "KCB 123A", 14, "CBD - Kibera", 2000.0),
        Vehicle("V2", "KDA 456B", 14, "CBD - Rongai", 1500.0),
    ]
    collections = [
        Collection("c001", "V1", "D1", date(2024, 1, 1), 2500.0),
        Collection("c002", "V1", "D1", date(2024, 1, 2), 1800.0),
        Collection("c003", "V2", "D2", date(2024, 1, 1), 1600.0),
    ]
    return vehicles, collections


class TestAggregate:
    """Tests for aggregate."""

    def test_by_vehicle(self):
        vehicles, collections = make_example()
        groups = {g.key: g for g in aggregate(collections, attrgetter("vehicle_id"), JAN_1_2)}

        assert groups["V1"].count == 2
        assert groups["V1"].total == pytest.approx(4300.0)
        assert groups["V1"].average == pytest.approx(2150.0)
        assert groups["V2"].count == 1
        assert groups["V2"].average == pytest.approx(1600.0)

    def test_first_seen_order(self):
        _, collections = make_example()
        groups = aggregate(reversed(collections), attrgetter("vehicle_id"), ALL)
        assert [g.key for g in groups] == ["V2", "V1"]

    def test_none_keys_skipped(self):
        vehicles, collections = make_example()
        collections.append(Collection("c004", "V9", None, date(2024, 1, 1), 999.0))
        groups = aggregate(collections, route_key(vehicles), ALL)
        assert [g.key for g in groups] == ["CBD - Kibera", "CBD - Rongai"]

    def test_conserves_count_and_total(self):
        _, collections = make_example()
        groups = aggregate(collections, attrgetter("vehicle_id"), ALL)
        in_period = ALL.filter(collections)
        assert sum(g.count for g in groups) == len(in_period)
        assert sum(g.total for g in groups) == pytest.approx(sum(c.amount for c in in_period))

    def test_period_boundaries(self):
        _, collections = make_example()
        day_two = Period(date(2024, 1, 2), date(2024, 1, 2))
        groups = aggregate(collections, attrgetter("vehicle_id"), day_two)
        assert [(g.key, g.count) for g in groups] == [("V1", 1)]

    def test_empty_period(self):
        _, collections = make_example()
        empty = Period(date(2025, 1, 1), date(2025, 1, 31))
        assert aggregate(collections, attrgetter("vehicle_id"), empty) == []


class TestPeriodTotals:
    """Tests for period_totals."""

    def test_totals(self):
        _, collections = make_example()
        totals = period_totals(collections, JAN_1_2)
        assert totals.count == 3
        assert totals.total == pytest.approx(5900.0)
        assert totals.key == JAN_1_2.label

    def test_empty_average_is_zero(self):
        totals = period_totals([], ALL)
        assert totals.count == 0
        assert totals.average == 0.0


class TestVehiclePerformance:
    """Tests for vehicle_performance."""

    def test_percent_of_target(self):
        vehicles, collections = make_example()
        rows = vehicle_performance(vehicles, collections, [], JAN_1_2)

        assert rows[0].percent_of_target == pytest.approx(107.5)
        assert rows[1].percent_of_target == pytest.approx(106.6667, rel=1e-4)

    def test_every_vehicle_reported(self):
        vehicles, collections = make_example()
        vehicles.append(Vehicle("V3", "KDB 789C", 33, "CBD - Ngong", 3000.0))
        rows = vehicle_performance(vehicles, collections, [], ALL)

        assert [r.vehicle.id for r in rows] == ["V1", "V2", "V3"]
        assert rows[2].count == 0
        assert rows[2].percent_of_target == 0.0

    def test_expenses_and_profit(self):
        vehicles, collections = make_example()
        expenses = [
            Expense("e001", "V1", ExpenseCategory.FUEL, "Diesel", 1000.0, date(2024, 1, 1)),
            Expense("e002", "V1", ExpenseCategory.FINE, "", 300.0, date(2024, 1, 2)),
        ]
        row = vehicle_performance(vehicles, collections, expenses, ALL)[0]

        assert row.expense_count == 2
        assert row.total_expenses == pytest.approx(1300.0)
        assert row.net_profit == pytest.approx(3000.0)
        assert row.profit_margin == pytest.approx(3000.0 / 4300.0 * 100)

    def test_as_dict_keys(self):
        vehicles, collections = make_example()
        data = vehicle_performance(vehicles, collections, [], ALL)[0].as_dict()
        assert data["vehicleId"] == "V1"
        assert data["percentOfTarget"] == pytest.approx(107.5)


class TestDriverPerformance:
    """Tests for driver_performance."""

    def test_measured_against_current_vehicle(self):
        vehicles, collections = make_example()
        drivers = [
            Driver("D1", "John Kamau", "+254712345678", "DL12345", date(2025, 1, 1), "V1"),
            Driver("D2", "Mary Wanjiku", "+254722345678", "DL67890", date(2025, 1, 1)),
        ]
        rows = driver_performance(drivers, vehicles, collections, ALL)

        assert rows[0].count == 2
        assert rows[0].percent_of_target == pytest.approx(107.5)
        assert rows[1].vehicle is None
        assert rows[1].count == 1
        assert rows[1].percent_of_target == 0.0

    def test_driverless_collections_not_attributed(self):
        vehicles, _ = make_example()
        collections = [Collection("c001", "V1", None, date(2024, 1, 1), 2000.0)]
        drivers = [Driver("D1", "John Kamau", "+254712345678", "DL12345", date(2025, 1, 1))]
        assert driver_performance(drivers, vehicles, collections, ALL)[0].count == 0


class TestRanking:
    """Tests for rank, top_k and bottom_k."""

    def test_rank_by_percent_of_target(self):
        vehicles, collections = make_example()
        rows = rank(vehicle_performance(vehicles, collections, [], JAN_1_2), "percent_of_target")
        assert [r.vehicle.id for r in rows] == ["V1", "V2"]

    def test_ties_keep_input_order(self):
        vehicles = [
            Vehicle(f"V{i}", f"KCB 00{i}A", 14, "Route", 1000.0) for i in range(1, 5)
        ]
        collections = [
            Collection(f"c00{i}", f"V{i}", None, date(2024, 1, 1), 1000.0) for i in range(1, 5)
        ]
        rows = rank(vehicle_performance(vehicles, collections, [], ALL), "percent_of_target")
        assert [r.vehicle.id for r in rows] == ["V1", "V2", "V3", "V4"]

    def test_unknown_metric_raises(self):
        with pytest.raises(ValueError, match="Unknown ranking metric"):
            rank([], "speed")

    def test_top_and_bottom(self):
        vehicles = [
            Vehicle(f"V{i}", f"KCB 00{i}A", 14, "Route", 1000.0) for i in range(1, 6)
        ]
        collections = [
            Collection(f"c00{i}", f"V{i}", None, date(2024, 1, 1), 100.0 * i) for i in range(1, 5)
        ]
        rows = vehicle_performance(vehicles, collections, [], ALL)

        assert [r.vehicle.id for r in top_k(rows, "total")] == ["V4", "V3", "V2"]
        assert [r.vehicle.id for r in bottom_k(rows, "total")] == ["V1", "V2", "V3"]

    def test_bottom_excludes_vehicles_without_records(self):
        vehicles, collections = make_example()
        vehicles.append(Vehicle("V3", "KDB 789C", 33, "CBD - Ngong", 3000.0))
        rows = vehicle_performance(vehicles, collections, [], ALL)
        assert "V3" not in [r.vehicle.id for r in bottom_k(rows, "percent_of_target")]

    def test_k_larger_than_rows(self):
        vehicles, collections = make_example()
        rows = vehicle_performance(vehicles, collections, [], ALL)
        assert len(top_k(rows, "total", 10)) == 2
        assert bottom_k(rows, "total", 0) == []


class TestCategoryBreakdown:
    """Tests for category_breakdown."""

    def test_five_buckets_in_order(self):
        expenses = [
            Expense("e001", "V1", ExpenseCategory.FUEL, "", 600.0, date(2024, 1, 1)),
            Expense("e002", "V1", ExpenseCategory.REPAIR, "", 300.0, date(2024, 1, 1)),
            Expense("e003", "V2", ExpenseCategory.FUEL, "", 100.0, date(2024, 1, 2)),
        ]
        rows = category_breakdown(expenses, ALL)

        assert [r.category for r in rows] == list(ExpenseCategory)
        assert rows[0].count == 2
        assert rows[0].total == pytest.approx(700.0)
        assert rows[0].percent_of_grand_total == pytest.approx(70.0)
        assert rows[2].count == 0
        assert rows[2].percent_of_grand_total == 0.0
        assert sum(r.percent_of_grand_total for r in rows) == pytest.approx(100.0)

    def test_no_expenses(self):
        rows = category_breakdown([], ALL)
        assert all(r.total == 0 and r.percent_of_grand_total == 0 for r in rows)


class TestRouteProfitability:
    """Tests for route_profitability."""

    def test_groups_vehicles_by_route(self):
        vehicles, collections = make_example()
        vehicles.append(Vehicle("V3", "KDB 789C", 33, "CBD - Kibera", 3000.0))
        expenses = [Expense("e001", "V2", ExpenseCategory.FUEL, "", 2000.0, date(2024, 1, 1))]

        rows = {r.route: r for r in route_profitability(vehicles, collections, expenses, ALL)}

        kibera = rows["CBD - Kibera"]
        assert kibera.vehicle_ids == ["V1", "V3"]
        assert kibera.vehicle_count == 2
        assert kibera.count == 2
        assert kibera.total_collections == pytest.approx(4300.0)
        assert kibera.average == pytest.approx(2150.0)
        assert rows["CBD - Rongai"].net_profit == pytest.approx(-400.0)

    def test_ranked_by_profit(self):
        vehicles, collections = make_example()
        rows = rank(route_profitability(vehicles, collections, [], ALL), "net_profit")
        assert [r.route for r in rows] == ["CBD - Kibera", "CBD - Rongai"]


class TestFleetSummary:
    """Tests for fleet_summary."""

    def test_counts_and_money(self):
        vehicles, collections = make_example()
        vehicles[1].status = VehicleStatus.MAINTENANCE
        drivers = [
            Driver("D1", "John Kamau", "+254712345678", "DL12345", date(2025, 1, 1), "V1"),
            Driver("D2", "Mary Wanjiku", "+254722345678", "DL67890", date(2025, 1, 1)),
        ]
        expenses = [Expense("e001", "V1", ExpenseCategory.FUEL, "", 900.0, date(2024, 1, 1))]

        summary = fleet_summary(vehicles, drivers, collections, expenses, JAN_1_2)

        assert (summary.active, summary.inactive, summary.maintenance) == (1, 0, 1)
        assert summary.assigned_drivers == 1
        assert summary.unassigned_drivers == 1
        assert summary.total_collections == pytest.approx(5900.0)
        assert summary.net_profit == pytest.approx(5000.0)
        assert summary.as_dict()["drivers"]["unassigned"] == 1

    def test_empty_margin_is_zero(self):
        summary = fleet_summary([], [], [], [], ALL)
        assert summary.profit_margin == 0.0


class TestBelowTarget:
    """Tests for below_target_collections."""

    def test_newest_first(self):
        vehicles, collections = make_example()
        collections.append(Collection("c004", "V2", None, date(2024, 1, 3), 1000.0))

        rows = below_target_collections(collections, vehicles, ALL)

        assert [s.collection.id for s in rows] == ["c004", "c002"]
        assert rows[1].shortfall == pytest.approx(200.0)
        assert rows[1].percent_achieved == pytest.approx(90.0)

    def test_target_met_exactly_is_not_below(self):
        vehicles, _ = make_example()
        collections = [Collection("c001", "V1", None, date(2024, 1, 1), 2000.0)]
        assert below_target_collections(collections, vehicles, ALL) == []
