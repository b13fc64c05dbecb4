from __future__ import annotations

import json
import unittest

from contracts.errors import GroupingKeyError
from contracts.grouping_key import GroupingKeyDescriptor
from grouping.grouping_key import expand_by_grouping_key


def _key(**fields: object) -> str:
    return json.dumps(fields, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class TestGroupingKeyExpansion(unittest.TestCase):
    def test_descriptor_without_children_passes_value_through(self) -> None:
        value = {"name": "Alice", "state": "CO"}
        pairs = expand_by_grouping_key(value, GroupingKeyDescriptor(type="object"))
        self.assertEqual(pairs, [("", value)])

    def test_leaf_field_becomes_selector_and_siblings_are_carried(self) -> None:
        d = GroupingKeyDescriptor.from_dict({"type": "object", "children": {"state": {"type": "string"}}})
        pairs = expand_by_grouping_key({"state": "CO", "name": "Alice"}, d)
        self.assertEqual(pairs, [(_key(state="CO"), {"state": "CO", "name": "Alice"})])

    def test_array_of_objects_fans_out_one_slice_per_element(self) -> None:
        d = GroupingKeyDescriptor.from_dict(
            {
                "type": "object",
                "children": {
                    "addresses": {"type": "array", "children": {"city": {"type": "string"}}},
                },
            }
        )
        value = {
            "name": "Alice",
            "addresses": [
                {"city": "Denver", "zip": "80202"},
                {"city": "Boulder", "zip": "80301"},
                {"city": "Aurora", "zip": "80010"},
            ],
        }
        pairs = expand_by_grouping_key(value, d)

        self.assertEqual(len(pairs), 3)
        self.assertEqual(
            [k for k, _ in pairs],
            [
                _key(addresses={"city": "Denver"}),
                _key(addresses={"city": "Boulder"}),
                _key(addresses={"city": "Aurora"}),
            ],
        )
        for (_, sliced), original in zip(pairs, value["addresses"]):
            self.assertEqual(sliced["name"], "Alice")
            self.assertEqual(sliced["addresses"], original)

        # Input is never mutated.
        self.assertEqual(len(value["addresses"]), 3)

    def test_two_arrays_produce_cross_product_in_stable_order(self) -> None:
        d = GroupingKeyDescriptor.from_dict(
            {"type": "object", "children": {"tags": {"type": "array"}, "codes": {"type": "array"}}}
        )
        pairs = expand_by_grouping_key({"tags": ["a", "b"], "codes": [1, 2, 3]}, d)

        self.assertEqual(len(pairs), 6)
        self.assertEqual(
            [(s["tags"], s["codes"]) for _, s in pairs],
            [("a", 1), ("a", 2), ("a", 3), ("b", 1), ("b", 2), ("b", 3)],
        )
        self.assertEqual(pairs[0][0], _key(codes=1, tags="a"))

    def test_nested_arrays_multiply_across_depths(self) -> None:
        d = GroupingKeyDescriptor.from_dict(
            {
                "type": "object",
                "children": {
                    "providers": {
                        "type": "array",
                        "children": {
                            "name": {"type": "string"},
                            "locations": {"type": "array"},
                        },
                    }
                },
            }
        )
        value = {
            "providers": [
                {"name": "P1", "locations": ["X", "Y"]},
                {"name": "P2", "locations": ["Z"]},
            ]
        }
        pairs = expand_by_grouping_key(value, d)
        self.assertEqual(
            [(s["providers"]["name"], s["providers"]["locations"]) for _, s in pairs],
            [("P1", "X"), ("P1", "Y"), ("P2", "Z")],
        )

    def test_array_of_scalars_selects_the_scalar_itself(self) -> None:
        d = GroupingKeyDescriptor.from_dict({"type": "object", "children": {"tags": {"type": "array"}}})
        pairs = expand_by_grouping_key({"tags": ["x", "y"], "other": 1}, d)
        self.assertEqual(
            pairs,
            [
                (_key(tags="x"), {"tags": "x", "other": 1}),
                (_key(tags="y"), {"tags": "y", "other": 1}),
            ],
        )

    def test_records_differing_outside_the_descriptor_share_a_selector(self) -> None:
        d = GroupingKeyDescriptor.from_dict({"type": "object", "children": {"state": {"type": "string"}}})
        [(k1, _)] = expand_by_grouping_key({"state": "CO", "city": "Denver"}, d)
        [(k2, _)] = expand_by_grouping_key({"city": "Boulder", "state": "CO", "extra": [1, 2]}, d)
        self.assertEqual(k1, k2)

    def test_missing_field_contributes_nothing(self) -> None:
        d = GroupingKeyDescriptor.from_dict({"type": "object", "children": {"state": {"type": "string"}}})
        value = {"name": "Alice"}
        self.assertEqual(expand_by_grouping_key(value, d), [("", value)])

    def test_empty_array_is_carried_through(self) -> None:
        d = GroupingKeyDescriptor.from_dict({"type": "object", "children": {"tags": {"type": "array"}}})
        value = {"tags": [], "name": "A"}
        self.assertEqual(expand_by_grouping_key(value, d), [("", value)])

    def test_type_mismatch_is_logged_and_skipped(self) -> None:
        d = GroupingKeyDescriptor.from_dict(
            {"type": "object", "children": {"addresses": {"type": "array", "children": {"city": {"type": "string"}}}}}
        )
        value = {"addresses": "not a list"}
        with self.assertLogs("grouping.grouping_key", level="WARNING"):
            pairs = expand_by_grouping_key(value, d)
        self.assertEqual(pairs, [("", value)])

    def test_non_object_root_descriptor_raises(self) -> None:
        with self.assertRaises(GroupingKeyError):
            expand_by_grouping_key({"a": [1]}, GroupingKeyDescriptor(type="array"))

    def test_expansion_is_deterministic(self) -> None:
        d = GroupingKeyDescriptor.from_dict(
            {"type": "object", "children": {"tags": {"type": "array"}, "state": {"type": "string"}}}
        )
        value = {"state": "CO", "tags": ["a", "b"]}
        self.assertEqual(expand_by_grouping_key(value, d), expand_by_grouping_key(value, d))


class TestGroupingKeyDescriptor(unittest.TestCase):
    def test_unknown_type_is_rejected(self) -> None:
        with self.assertRaises(GroupingKeyError):
            GroupingKeyDescriptor.from_dict({"type": "dictionary"})

    def test_leaf_with_children_is_rejected(self) -> None:
        with self.assertRaises(GroupingKeyError):
            GroupingKeyDescriptor.from_dict({"type": "string", "children": {"x": {"type": "string"}}})

    def test_missing_type_is_rejected(self) -> None:
        with self.assertRaises(GroupingKeyError):
            GroupingKeyDescriptor.from_dict({"children": {}})

    def test_grouping_key_error_is_a_value_error(self) -> None:
        with self.assertRaises(ValueError):
            GroupingKeyDescriptor.from_dict("object")

    def test_round_trip_keeps_structure(self) -> None:
        raw = {"type": "object", "children": {"addresses": {"type": "array", "children": {"city": {"type": "string"}}}}}
        self.assertEqual(GroupingKeyDescriptor.from_dict(raw).to_dict(), raw)

    def test_combine_unions_children(self) -> None:
        a = GroupingKeyDescriptor.from_dict(
            {"type": "object", "children": {"addresses": {"type": "array", "children": {"city": {"type": "string"}}}}}
        )
        b = GroupingKeyDescriptor.from_dict(
            {
                "type": "object",
                "children": {
                    "addresses": {"type": "array", "children": {"state": {"type": "string"}}},
                    "name": {"type": "string"},
                },
            }
        )
        combined = GroupingKeyDescriptor.combine(a, b)
        self.assertEqual(sorted(combined.children), ["addresses", "name"])
        self.assertEqual(sorted(combined.children["addresses"].children), ["city", "state"])

    def test_combine_rejects_conflicting_types(self) -> None:
        a = GroupingKeyDescriptor.from_dict({"type": "object", "children": {"x": {"type": "array"}}})
        b = GroupingKeyDescriptor.from_dict({"type": "object", "children": {"x": {"type": "string"}}})
        with self.assertRaises(GroupingKeyError):
            GroupingKeyDescriptor.combine(a, b)


if __name__ == "__main__":
    unittest.main()
