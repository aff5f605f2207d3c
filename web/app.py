"""Flask JSON API for fleet performance and assignments."""

import logging
import os
from datetime import date
from pathlib import Path

from flask import Flask, jsonify, request

# Add parent directory to path for fleet imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from fleet import (
    EntityStore,
    FleetError,
    NotFound,
    assign,
    category_breakdown,
    driver_performance,
    evaluate,
    fleet_summary,
    rank,
    resolve_period,
    route_profitability,
    unassign,
    vehicle_performance,
)
from fleet.alerts import by_urgency
from fleet.config import get_data_dir
from fleet.records import find_by_id
from fleet.validation import parse_date

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")
app.config["DATA_DIR"] = get_data_dir()


def get_store() -> EntityStore:
    return EntityStore(app.config["DATA_DIR"])


def get_today() -> date:
    """Report date from ?today=YYYY-MM-DD, default today."""
    value = request.args.get("today")
    return parse_date(value) if value else date.today()


def get_period():
    """Period from ?period=...&start=...&end=..., default all time."""
    return resolve_period(
        request.args.get("period", "all"),
        get_today(),
        request.args.get("start"),
        request.args.get("end"),
    )


def period_dict(period) -> dict:
    return {
        "label": period.label,
        "start": period.start.isoformat(),
        "end": period.end.isoformat(),
    }


def alert_dict(alert) -> dict:
    subject = getattr(alert, "driver", None) or getattr(alert, "vehicle")
    return {
        "kind": alert.kind.name.lower(),
        "subjectId": subject.id,
        "message": alert.message,
    }


@app.errorhandler(NotFound)
def handle_not_found(error):
    return jsonify({"error": str(error)}), 404


@app.errorhandler(FleetError)
def handle_fleet_error(error):
    return jsonify({"error": str(error)}), 400


@app.errorhandler(ValueError)
def handle_value_error(error):
    return jsonify({"error": str(error)}), 400


@app.route("/api/summary")
def summary():
    """Fleet overview and financial summary."""
    data = get_store().load_all()
    period = get_period()
    result = fleet_summary(data.vehicles, data.drivers, data.collections, data.expenses, period)
    return jsonify({"period": period_dict(period), **result.as_dict()})


@app.route("/api/vehicles/performance")
def vehicles_performance():
    """Per-vehicle performance, ranked by ?metric= when given."""
    data = get_store().load_all()
    period = get_period()
    rows = vehicle_performance(data.vehicles, data.collections, data.expenses, period)
    metric = request.args.get("metric")
    if metric:
        rows = rank(rows, metric)
    return jsonify({"period": period_dict(period), "vehicles": [r.as_dict() for r in rows]})


@app.route("/api/drivers/performance")
def drivers_performance():
    data = get_store().load_all()
    period = get_period()
    rows = rank(driver_performance(data.drivers, data.vehicles, data.collections, period), "average")
    return jsonify({"period": period_dict(period), "drivers": [r.as_dict() for r in rows]})


@app.route("/api/routes")
def routes():
    data = get_store().load_all()
    period = get_period()
    rows = rank(
        route_profitability(data.vehicles, data.collections, data.expenses, period),
        "net_profit",
    )
    return jsonify({"period": period_dict(period), "routes": [r.as_dict() for r in rows]})


@app.route("/api/expenses/categories")
def expense_categories():
    expenses = get_store().load("expenses")
    period = get_period()
    rows = category_breakdown(expenses, period)
    return jsonify({"period": period_dict(period), "categories": [r.as_dict() for r in rows]})


@app.route("/api/alerts")
def alerts():
    """Current alerts, most urgent first."""
    data = get_store().load_all()
    period = get_period()
    performance = vehicle_performance(data.vehicles, data.collections, data.expenses, period)
    found = by_urgency(evaluate(data.vehicles, data.drivers, performance, get_today()))
    return jsonify({"period": period_dict(period), "alerts": [alert_dict(a) for a in found]})


@app.route("/api/assignments", methods=["POST"])
def update_assignment():
    """
    Assign a driver to a vehicle, or unassign with vehicleId null.

    Body: {"driverId": "d001", "vehicleId": "v001" | null}
    """
    body = request.get_json(silent=True) or {}
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    driver_id = body.get("driverId")
    if not driver_id:
        raise ValueError("driverId is required")

    store = get_store()
    drivers = store.load("drivers")
    vehicles = store.load("vehicles")

    driver = find_by_id(drivers, driver_id, "Driver")
    vehicle_id = body.get("vehicleId")
    if vehicle_id:
        result = assign(driver, find_by_id(vehicles, vehicle_id, "Vehicle"), drivers, vehicles)
    else:
        result = unassign(driver, drivers, vehicles)

    if result.changed:
        store.save_assignment(drivers, vehicles)

    return jsonify({
        "changed": result.changed,
        "driverId": result.driver.id,
        "vehicleId": result.vehicle.id if result.vehicle else None,
        "unassignedDriverId": result.unassigned_driver.id if result.unassigned_driver else None,
        "unassignedVehicleId": result.unassigned_vehicle.id if result.unassigned_vehicle else None,
    })


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    app.run(debug=True, port=5000)
