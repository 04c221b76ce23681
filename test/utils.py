"""
Utils module behavioral tests (Unset marker, coalesce, mirror, ordinal).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argoshell.utils import Unset, UnsetType, coalesce, mirror, ordinal


class TestUnset(TestCase):
    """Behavioral tests for the Unset marker."""

    def testSingletonAndFalsey(self):
        self.assertIs(UnsetType(), Unset)
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testUnionInIsinstance(self):
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("x", str | Unset))
        self.assertFalse(isinstance(1, str | Unset))

    def testNotSubclassable(self):
        with self.assertRaises(TypeError):
            type("Other", (UnsetType,), {})

    def testCoalesceKeepsFalseyValues(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 5), 0)
        self.assertIsNone(coalesce(Unset))


class TestMirror(TestCase):
    """Behavioral tests for mirrored read-only views."""

    def testContainersAreCopied(self):
        class Holder:
            items = mirror("items")
            table = mirror("table")

        holder = Holder()
        holder._items = [1, 2]
        holder._table = {"a": 1}
        self.assertEqual(holder.items, (1, 2))
        holder.table["b"] = 2
        self.assertEqual(holder._table, {"a": 1})
        with self.assertRaises(AttributeError):
            holder.items = ()


class TestOrdinal(TestCase):
    """Behavioral tests for position labels."""

    def testWords(self):
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(10), "tenth")

    def testSuffixes(self):
        for number, label in ((11, "11th"), (12, "12th"), (13, "13th"), (21, "21st"),
                              (22, "22nd"), (23, "23rd"), (111, "111th"), (104, "104th")):
            with self.subTest(number=number):
                self.assertEqual(ordinal(number), label)


if __name__ == "__main__":
    unittest.main()
