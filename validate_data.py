#!/usr/bin/env python3
"""Validate fleet data files against the schema and each other."""
import argparse
import sys
from collections import Counter
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from jsonschema import validate, ValidationError

from fleet import EntityStore, FleetError, find_inconsistencies
from fleet.config import get_data_dir
from fleet.store import COLLECTION_NAMES


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def file_schema(schema: dict, name: str) -> dict:
    """The schema for one data file, with the shared definitions attached."""
    result = dict(schema["files"][name])
    result["definitions"] = schema["definitions"]
    return result


def _normalise(value: Any) -> Any:
    """Bare YAML dates load as date objects; the schema expects strings."""
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, list):
        return [_normalise(v) for v in value]
    if isinstance(value, dict):
        return {k: _normalise(v) for k, v in value.items()}
    return value


def validate_data_file(filepath: Path, schema: dict, name: str) -> List[str]:
    """Validate a single data file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        if data is None:
            return errors
        validate(instance=_normalise(data), schema=file_schema(schema, name))
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except OSError as e:
        errors.append(f"Error: {e}")
    return errors


def check_references(store: EntityStore) -> Dict[str, List[str]]:
    """
    Cross-file checks, run once every file passes the schema.

    Returns errors and warnings: broken vehicle/driver pairings, duplicate
    ids and dangling vehicle references are errors; more than one
    collection for a vehicle on a day is a warning.
    """
    data = store.load_all()
    errors: List[str] = []
    warnings: List[str] = []

    for name in COLLECTION_NAMES:
        counts = Counter(r.id for r in getattr(data, name))
        for record_id, count in counts.items():
            if count > 1:
                errors.append(f"{name}: id '{record_id}' used {count} times")

    errors.extend(p.message for p in find_inconsistencies(data.drivers, data.vehicles))

    vehicle_ids = {v.id for v in data.vehicles}
    driver_ids = {d.id for d in data.drivers}
    for collection in data.collections:
        if collection.vehicle_id not in vehicle_ids:
            errors.append(
                f"Collection '{collection.id}' references missing vehicle '{collection.vehicle_id}'"
            )
        if collection.driver_id is not None and collection.driver_id not in driver_ids:
            warnings.append(
                f"Collection '{collection.id}' references missing driver '{collection.driver_id}'"
            )
    for expense in data.expenses:
        if expense.vehicle_id not in vehicle_ids:
            errors.append(
                f"Expense '{expense.id}' references missing vehicle '{expense.vehicle_id}'"
            )

    per_day = Counter((c.vehicle_id, c.date) for c in data.collections)
    for (vehicle_id, day), count in per_day.items():
        if count > 1:
            warnings.append(
                f"Vehicle '{vehicle_id}' has {count} collections on {day.isoformat()}"
            )

    return {"errors": errors, "warnings": warnings}


def main(argv: Optional[List[str]] = None):
    """Validate every data file in the data directory."""
    parser = argparse.ArgumentParser(description="Validate fleet data files")
    parser.add_argument(
        "--data-dir",
        type=Path,
        help="Directory holding the data files (default: $FLEET_DATA_DIR or ./data)",
    )
    args = parser.parse_args(argv)

    schema = load_schema()
    store = EntityStore(get_data_dir(args.data_dir))

    if not store.data_dir.exists():
        print(f"Error: data directory not found: {store.data_dir}")
        return 1

    all_valid = True
    for name in COLLECTION_NAMES:
        filepath = store.path_for(name)
        if not filepath.exists():
            print(f"SKIP: {filepath.name} (not present)")
            continue
        errors = validate_data_file(filepath, schema, name)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    if not all_valid:
        return 1

    try:
        result = check_references(store)
    except FleetError as e:
        print(f"FAIL: {e}")
        return 1

    for warning in result["warnings"]:
        print(f"WARN: {warning}")
    if result["errors"]:
        print("FAIL: cross-file checks")
        for error in result["errors"]:
            print(f"  {error}")
        return 1

    print("OK: cross-file checks")
    return 0


if __name__ == "__main__":
    sys.exit(main())
