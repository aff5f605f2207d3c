#!/usr/bin/env python3
"""Tests for id generation, lookups and collection recording."""

from datetime import date

import pytest

from fleet import (
    Collection,
    Driver,
    DuplicateCollection,
    NotFound,
    Vehicle,
    find_by_id,
    find_collection,
    generate_id,
    next_id,
    record_collection,
)
from fleet.records import (
    find_driver_by_license,
    find_driver_by_phone,
    find_drivers_by_name,
    find_vehicle_by_registration,
)


def make_drivers():
    return [
        Driver("d001", "John Kamau", "+254712345678", "DL12345", date(2025, 6, 30)),
        Driver("d002", "Mary Wanjiku", "+254722345678", "DL67890", date(2025, 3, 1)),
        Driver("d003", "John Otieno", "+254732345678", "DL11111", date(2025, 9, 1)),
    ]


class TestGenerateId:
    """Tests for generate_id and next_id."""

    def test_first_id(self):
        assert generate_id("v", []) == "v001"

    def test_next_after_existing(self):
        assert generate_id("v", ["v001", "v002"]) == "v003"

    def test_fills_gap(self):
        assert generate_id("d", ["d001", "d003"]) == "d002"

    def test_next_id_uses_collection_prefix(self):
        assert next_id("expenses", []) == "e001"
        assert next_id("drivers", make_drivers()) == "d004"


class TestFindById:
    """Tests for find_by_id."""

    def test_found(self):
        assert find_by_id(make_drivers(), "d002").name == "Mary Wanjiku"

    def test_missing_raises(self):
        with pytest.raises(NotFound, match="Driver 'd999' not found"):
            find_by_id(make_drivers(), "d999", "Driver")


class TestLookups:
    """Tests for registration, name, license and phone lookups."""

    def test_registration_ignores_case_and_spacing(self):
        vehicles = [Vehicle("v001", "KCB 123A", 14, "CBD - Kibera", 2000.0)]
        assert find_vehicle_by_registration(vehicles, "kcb123a").id == "v001"
        assert find_vehicle_by_registration(vehicles, "KDA 999Z") is None

    def test_name_substring(self):
        matches = find_drivers_by_name(make_drivers(), "john")
        assert [d.id for d in matches] == ["d001", "d003"]

    def test_license(self):
        assert find_driver_by_license(make_drivers(), "dl67890").id == "d002"
        assert find_driver_by_license(make_drivers(), "XX00000") is None

    def test_phone(self):
        assert find_driver_by_phone(make_drivers(), "+254732345678").id == "d003"


class TestRecordCollection:
    """Tests for record_collection."""

    def test_appends_new(self):
        collections = []
        new = Collection("c001", "v001", "d001", date(2024, 1, 1), 2000.0)
        assert record_collection(collections, new) is None
        assert collections == [new]

    def test_same_day_other_vehicle_is_new(self):
        collections = [Collection("c001", "v001", "d001", date(2024, 1, 1), 2000.0)]
        record_collection(collections, Collection("c002", "v002", None, date(2024, 1, 1), 1500.0))
        assert len(collections) == 2

    def test_duplicate_raises(self):
        existing = Collection("c001", "v001", "d001", date(2024, 1, 1), 2000.0)
        collections = [existing]
        with pytest.raises(DuplicateCollection) as info:
            record_collection(collections, Collection("c002", "v001", "d001", date(2024, 1, 1), 2500.0))
        assert info.value.existing is existing
        assert collections == [existing]

    def test_overwrite_replaces_in_place(self):
        first = Collection("c001", "v001", "d001", date(2024, 1, 1), 2000.0)
        other = Collection("c002", "v002", "d002", date(2024, 1, 1), 1800.0)
        collections = [first, other]
        replacement = Collection("c003", "v001", "d001", date(2024, 1, 1), 2500.0)

        replaced = record_collection(collections, replacement, overwrite=True)

        assert replaced is first
        assert collections == [replacement, other]
        assert find_collection(collections, "v001", date(2024, 1, 1)).amount == 2500.0
