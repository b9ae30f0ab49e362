"""Tests for cycle-safe structural snapshots."""

import json
from datetime import date, datetime

from clean_village.database.models import Asset
from clean_village.utils.snapshot import snapshot, snapshot_json


class _Exploding:
    def keys(self):
        raise RuntimeError("boom")

    def __getitem__(self, key):
        raise RuntimeError("boom")


class TestSnapshot:
    def test_plain_data_is_copied(self):
        original = {"a": [1, 2, {"b": "c"}], "n": None}
        copy = snapshot(original)
        assert copy == original
        assert copy is not original
        assert copy["a"] is not original["a"]

    def test_dict_cycle(self):
        d = {"name": "x"}
        d["self"] = d
        assert snapshot(d) == {"name": "x", "self": "[Circular]"}

    def test_list_cycle(self):
        items = [1]
        items.append(items)
        assert snapshot(items) == [1, "[Circular]"]

    def test_shared_sibling_is_not_circular(self):
        shared = {"v": 1}
        assert snapshot({"a": shared, "b": shared}) == {
            "a": {"v": 1}, "b": {"v": 1},
        }

    def test_private_keys_skipped(self):
        assert snapshot({"_secret": 1, "visible": 2}) == {"visible": 2}

    def test_dataclass_and_dates(self):
        asset = Asset(id=3, name="Pump", created_at=datetime(2024, 3, 1, 9))
        copy = snapshot(asset)
        assert copy["name"] == "Pump"
        assert copy["created_at"] == "2024-03-01T09:00:00"
        assert snapshot(date(2024, 1, 2)) == "2024-01-02"

    def test_unknown_object_placeholder(self):
        assert snapshot({"obj": object()}) == {"obj": "[Complex Object]"}

    def test_exploding_mapping_placeholder(self):
        assert snapshot([_Exploding()]) == ["[Complex Object]"]

    def test_json_keeps_non_ascii(self):
        text = snapshot_json({"service": "水塔清洗"})
        assert "水塔清洗" in text
        assert json.loads(text) == {"service": "水塔清洗"}
