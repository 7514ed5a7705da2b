import unittest

import numpy as np

from petrikit.Net.acset import ACSet, Schema
from petrikit.exceptions import MissingAttributeError


def _graph_schema() -> Schema:
    return Schema(
        obs=("V", "E"),
        homs={"src": ("E", "V"), "tgt": ("E", "V")},
        attrs={"weight": "E", "label": "V"},
        coercions={"weight": float},
    )


class TestSchema(unittest.TestCase):
    def test_columns_and_domain(self):
        schema = _graph_schema()
        self.assertEqual(schema.columns("E"), ["src", "tgt", "weight"])
        self.assertEqual(schema.columns("V"), ["label"])
        self.assertEqual(schema.domain("src"), "E")
        self.assertEqual(schema.domain("label"), "V")
        with self.assertRaises(MissingAttributeError):
            schema.domain("colour")

    def test_rejects_unknown_objects(self):
        with self.assertRaises(ValueError):
            Schema(obs=("V",), homs={"src": ("E", "V")})
        with self.assertRaises(ValueError):
            Schema(obs=("V",), attrs={"label": "E"})


class TestACSet(unittest.TestCase):
    def setUp(self) -> None:
        self.g = ACSet(_graph_schema())
        self.g.add_parts("V", 3, label=["a", "b", "c"])

    def test_add_parts_returns_contiguous_ids(self):
        self.assertEqual(self.g.parts("V"), range(1, 4))
        created = self.g.add_parts("E", 2, src=[1, 2], tgt=3, weight=1)
        self.assertEqual(created, range(1, 3))
        self.assertEqual(self.g.subparts("tgt"), [3, 3])
        # coercion applied on write
        self.assertIsInstance(self.g.subpart(1, "weight"), float)

    def test_add_part_keeps_list_values_whole(self):
        v = self.g.add_part("V", label=["x", "y"])
        self.assertEqual(v, 4)
        self.assertEqual(self.g.subpart(v, "label"), ["x", "y"])

    def test_numpy_arrays_are_per_part(self):
        self.g.add_parts("E", 2, src=np.array([1, 2]), tgt=np.array([2, 3]))
        self.assertEqual(self.g.subparts("src"), [1, 2])
        self.assertEqual(self.g.incident(2, "tgt"), [1])

    def test_missing_values_default_to_none(self):
        self.g.add_part("E", src=1, tgt=2)
        self.assertIsNone(self.g.subpart(1, "weight"))

    def test_validation_is_all_or_nothing(self):
        with self.assertRaises(IndexError):
            self.g.add_parts("E", 2, src=[1, 9], tgt=1)
        self.assertEqual(self.g.nparts("E"), 0)
        self.assertEqual(self.g.incident(1, "src"), [])
        with self.assertRaises(ValueError):
            self.g.add_parts("E", 2, src=[1, 2, 3], tgt=1)
        with self.assertRaises(MissingAttributeError):
            self.g.add_parts("E", 1, src=1, tgt=1, colour="red")
        self.assertEqual(self.g.nparts("E"), 0)

    def test_incident_in_insertion_order(self):
        self.g.add_parts("E", 4, src=[1, 2, 1, 1], tgt=[2, 3, 3, 2])
        self.assertEqual(self.g.incident(1, "src"), [1, 3, 4])
        self.assertEqual(self.g.incident(2, "tgt"), [1, 4])
        self.assertEqual(self.g.incident(3, "src"), [])
        with self.assertRaises(MissingAttributeError):
            self.g.incident(1, "weight")

    def test_set_subpart(self):
        self.g.add_part("E", src=1, tgt=2, weight=2)
        self.g.set_subpart(1, "weight", 5)
        self.assertEqual(self.g.subpart(1, "weight"), 5.0)
        with self.assertRaises(ValueError):
            self.g.set_subpart(1, "src", 3)
        with self.assertRaises(IndexError):
            self.g.set_subpart(7, "weight", 1)
        with self.assertRaises(MissingAttributeError):
            self.g.subpart(1, "colour")

    def test_copy_is_independent(self):
        self.g.add_part("E", src=1, tgt=2)
        dup = self.g.copy()
        dup.add_part("E", src=1, tgt=3)
        dup.set_subpart(1, "label", "z")
        self.assertEqual(self.g.nparts("E"), 1)
        self.assertEqual(self.g.incident(1, "src"), [1])
        self.assertEqual(self.g.subpart(1, "label"), "a")
        self.assertEqual(dup.incident(1, "src"), [1, 2])

    def test_copy_parts_translates_foreign_keys(self):
        self.g.add_part("E", src=1, tgt=2, weight=1.5)
        other = self.g.copy()
        created = self.g.copy_parts(other)
        self.assertEqual(created["V"], range(4, 7))
        self.assertEqual(created["E"], range(2, 3))
        self.assertEqual(self.g.subpart(2, "src"), 4)
        self.assertEqual(self.g.subpart(2, "tgt"), 5)
        self.assertEqual(self.g.subpart(2, "weight"), 1.5)
        self.assertEqual(self.g.subparts("label"), ["a", "b", "c"] * 2)


if __name__ == "__main__":
    unittest.main()
