"""Tests for storage unit resolution and loose item matching."""

import pytest

from helpers import asset, inventory_data, item_description, storage_unit_description
from storage_bot.errors import MalformedInventoryError
from storage_bot.models import InventorySnapshot, StorageUnit
from storage_bot.resolver import list_storage_units, match_loose_asset_ids, resolve_by_name


def snapshot_of(data):
    return InventorySnapshot.from_response(data)


class TestResolveByName:
    """Tests for resolve_by_name."""

    def test_returns_unit_for_matching_name_tag(self):
        unit = resolve_by_name(snapshot_of(inventory_data(quantity=998)), "Cases")

        assert unit == StorageUnit(id=9000, name="Cases", current_quantity=998)

    def test_returns_none_for_unknown_name(self, log_messages):
        assert resolve_by_name(snapshot_of(inventory_data()), "Skins") is None
        assert any("No storage unit found with name Skins" in m for m in log_messages)

    def test_name_tag_match_is_case_sensitive(self):
        assert resolve_by_name(snapshot_of(inventory_data()), "cases") is None

    def test_picks_the_unit_with_the_matching_tag(self):
        data = inventory_data()
        data["assets"].append(asset(9001, "3604678662"))
        data["descriptions"].append(
            storage_unit_description("3604678662", "Skins", "Number of Items: 12")
        )

        unit = resolve_by_name(snapshot_of(data), "Skins")

        assert unit.id == 9001
        assert unit.current_quantity == 12

    def test_unit_without_name_tag_is_not_matched(self):
        data = {
            "assets": [asset(9000, "3604678661")],
            "descriptions": [storage_unit_description("3604678661", None, "Number of Items: 3")],
        }

        assert resolve_by_name(snapshot_of(data), "Cases") is None

    def test_no_storage_units_at_all(self):
        data = {
            "assets": [asset(1, "1")],
            "descriptions": [item_description("1", "Recoil Case")],
        }

        assert resolve_by_name(snapshot_of(data), "Cases") is None

    def test_missing_quantity_prefix_raises_typed_error(self):
        data = inventory_data()
        data["descriptions"][0] = storage_unit_description("3604678661", "Cases", "998 items")

        with pytest.raises(MalformedInventoryError):
            resolve_by_name(snapshot_of(data), "Cases")

    def test_non_numeric_quantity_raises_typed_error(self):
        data = inventory_data()
        data["descriptions"][0] = storage_unit_description("3604678661", "Cases", "Number of Items: lots")

        with pytest.raises(MalformedInventoryError):
            resolve_by_name(snapshot_of(data), "Cases")

    def test_missing_quantity_field_raises_typed_error(self):
        data = inventory_data()
        data["descriptions"][0]["descriptions"] = data["descriptions"][0]["descriptions"][:2]

        with pytest.raises(MalformedInventoryError):
            resolve_by_name(snapshot_of(data), "Cases")

    def test_unit_without_asset_raises_typed_error(self):
        data = inventory_data()
        data["assets"] = [a for a in data["assets"] if a["classid"] != "3604678661"]

        with pytest.raises(MalformedInventoryError):
            resolve_by_name(snapshot_of(data), "Cases")


class TestListStorageUnits:
    """Tests for list_storage_units."""

    def test_lists_tagged_units_and_skips_malformed(self, log_messages):
        data = inventory_data(quantity=40)
        data["assets"] += [asset(9001, "3604678662"), asset(9002, "3604678663")]
        data["descriptions"] += [
            storage_unit_description("3604678662", "Broken", "oops"),
            storage_unit_description("3604678663", "Skins", "Number of Items: 0"),
        ]

        units = list_storage_units(snapshot_of(data))

        assert [(u.name, u.id, u.current_quantity) for u in units] == [
            ("Cases", 9000, 40),
            ("Skins", 9002, 0),
        ]
        assert any("Skipping storage unit Broken" in m for m in log_messages)


class TestMatchLooseAssetIds:
    """Tests for match_loose_asset_ids."""

    def test_returns_loose_ids_in_snapshot_order(self):
        ids = match_loose_asset_ids(snapshot_of(inventory_data(loose_cases=3)), "Recoil Case")

        assert ids == [100, 101, 102]

    def test_excludes_stored_items_regardless_of_order(self):
        data = {
            "assets": [
                asset(3, "41", casket_id="9000"),
                asset(1, "41"),
                asset(5, "41", casket_id="9001"),
                asset(2, "41"),
                asset(4, "41", casket_id="9000"),
            ],
            "descriptions": [item_description("41", "Recoil Case")],
        }

        assert match_loose_asset_ids(snapshot_of(data), "Recoil Case") == [1, 2]

    def test_unknown_name_returns_empty_list(self):
        assert match_loose_asset_ids(snapshot_of(inventory_data()), "Dreams & Nightmares Case") == []

    def test_other_classes_are_ignored(self):
        ids = match_loose_asset_ids(snapshot_of(inventory_data()), "AK-47 | Redline (Field-Tested)")

        assert ids == [700]
