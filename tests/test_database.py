"""
Tests for FlightStore against an in-memory MongoDB.
"""

from datetime import datetime, timedelta

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from database import to_str_id


class TestFlightStore:
    def test_insert_sets_timestamps_and_id(self, store):
        flight = store.insert({"flightCode": "AA100", "passengers": []})
        assert isinstance(flight["_id"], ObjectId)
        assert flight["createdAt"] == flight["updatedAt"]
        assert store.find_by_code("AA100")["_id"] == flight["_id"]

    def test_timestamps_have_millisecond_precision(self, store):
        flight = store.insert({"flightCode": "AA100", "passengers": []})
        assert flight["createdAt"].microsecond % 1000 == 0
        updated = store.update_by_code("AA100", {})
        assert updated["updatedAt"].microsecond % 1000 == 0

    def test_unique_index_rejects_duplicate_code(self, store):
        store.insert({"flightCode": "AA100", "passengers": []})
        with pytest.raises(DuplicateKeyError):
            store.insert({"flightCode": "AA100", "passengers": []})
        assert store.collection.count_documents({}) == 1

    def test_find_all_newest_first(self, store):
        base = datetime(2026, 1, 1)
        for code, hours in [("OLD1", 0), ("NEW3", 2), ("MID2", 1)]:
            store.collection.insert_one(
                {"flightCode": code, "passengers": [], "createdAt": base + timedelta(hours=hours)}
            )
        assert [f["flightCode"] for f in store.find_all()] == ["NEW3", "MID2", "OLD1"]

    def test_find_by_code_missing(self, store):
        assert store.find_by_code("ZZ999") is None

    def test_update_sets_fields_and_updated_at(self, store):
        store.insert({"flightCode": "AA100", "passengers": []})
        before = store.find_by_code("AA100")
        updated = store.update_by_code("AA100", {"flightCode": "AA101"})
        assert updated["flightCode"] == "AA101"
        assert updated["passengers"] == []
        assert updated["createdAt"] == before["createdAt"]
        assert updated["updatedAt"] >= before["updatedAt"]
        assert store.find_by_code("AA100") is None

    def test_update_missing_returns_none(self, store):
        assert store.update_by_code("ZZ999", {"passengers": []}) is None

    def test_delete_returns_prior_state(self, store):
        store.insert({"flightCode": "AA100", "passengers": [{"id": 1}]})
        deleted = store.delete_by_code("AA100")
        assert deleted["passengers"] == [{"id": 1}]
        assert store.find_by_code("AA100") is None
        assert store.delete_by_code("AA100") is None


class TestToStrId:
    def test_object_id_becomes_string(self):
        oid = ObjectId()
        assert to_str_id({"_id": oid, "flightCode": "AA100"}) == {"_id": str(oid), "flightCode": "AA100"}

    def test_does_not_mutate_input(self):
        doc = {"_id": ObjectId()}
        to_str_id(doc)
        assert isinstance(doc["_id"], ObjectId)

    def test_empty_passthrough(self):
        assert to_str_id(None) is None
