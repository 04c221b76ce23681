"""
Parser behavioral tests (expansion, consumption order, faults, validation).

Scope
- Validate short-flag cluster expansion against mixed boolean/valued flags.
- Validate positional fill order, overflow into multi-valued positionals and token-order output.
- Validate every parse fault, its options (token, index, argument) and the partial results.
- Validate that the parse state is local to each call.

Conventions
- Test method names follow CamelCase per project convention.
- Commands are built with Command(name=...) and declared through Command.argument().
"""

from __future__ import annotations

import threading
import unittest
from unittest import TestCase

from argoshell import ArgumentKind, Command, parse_args
from argoshell.faults import (
    DuplicateArgumentError,
    FaultCode,
    InvalidIntegerValueError,
    MissingRequiredArgumentError,
    MissingValueError,
    UnrecognizedArgumentError,
)


def flags():
    root = Command(name="root", help="root help")
    root.argument("--test1", "-x", ArgumentKind.INTEGER, required=True)
    root.argument("--test2", "-y", ArgumentKind.BOOLEAN)
    root.argument("--test3", "-z", ArgumentKind.STRING, multiple=True)
    return root


def positionals():
    root = Command(name="root", help="root help")
    root.argument("test1", required=True)
    root.argument("test2")
    root.argument("--test3", "-x", ArgumentKind.INTEGER, required=True)
    return root


class TestFlagParsing(TestCase):
    """Behavioral tests for flag consumption."""

    def testBasicValuedFlag(self):
        parsed = flags().parse_args(["-x", "1"])
        self.assertEqual(len(parsed), 1)
        self.assertEqual(parsed[0].index, 0)
        self.assertIs(parsed[0].kind, ArgumentKind.INTEGER)
        self.assertEqual(parsed[0].value, "1")

    def testCombinedShortFlags(self):
        parsed = flags().parse_args(["-x", "1", "-yz", "test"])
        self.assertEqual(
            [(p.index, p.key, p.value) for p in parsed],
            [(0, "--test1", "1"), (1, "--test2", ""), (2, "--test3", "test")],
        )
        self.assertIs(parsed[1].kind, ArgumentKind.BOOLEAN)
        self.assertIs(parsed[2].kind, ArgumentKind.STRING)

    def testCombinedEqualsExplicit(self):
        root = flags()
        self.assertEqual(
            root.parse_args(["-x", "1", "-yz", "test"]),
            root.parse_args(["-x", "1", "-y", "-z", "test"]),
        )

    def testLongFlagsMatchKeys(self):
        parsed = flags().parse_args(["--test1", "5", "--test2", "--test3", "v"])
        self.assertEqual([p.key for p in parsed], ["--test1", "--test2", "--test3"])
        self.assertEqual(parsed[0].typed, 5)

    def testMultipleOccurrencesKeptInOrder(self):
        parsed = flags().parse_args(["-z", "a", "-x", "1", "-z", "b"])
        self.assertEqual([p.value for p in parsed], ["a", "1", "b"])

    def testBooleanFlagWhileAwaitingValue(self):
        parsed = flags().parse_args(["-x", "-y", "1"])
        self.assertEqual(
            [(p.key, p.value) for p in parsed],
            [("--test2", ""), ("--test1", "1")],
        )

    def testValuedFlagReplacesPendingFlag(self):
        parsed = flags().parse_args(["-x", "-z", "v", "-x", "2"])
        self.assertEqual(
            [(p.key, p.value) for p in parsed],
            [("--test3", "v"), ("--test1", "2")],
        )

    def testSignedIntegerAccepted(self):
        parsed = flags().parse_args(["-x", "-3"])
        self.assertEqual(parsed[0].typed, -3)

    def testEmptyInputWithoutRequirements(self):
        self.assertEqual(Command(name="root").parse_args([]), ())

    def testModuleLevelParseArgs(self):
        self.assertEqual(parse_args(flags(), ["-x", "1"]), flags().parse_args(["-x", "1"]))


class TestPositionalParsing(TestCase):
    """Behavioral tests for positional slot selection."""

    def testEmptySlotFilledFirst(self):
        parsed = positionals().parse_args(["-x", "1", "test"])
        self.assertEqual(
            [(p.index, p.key, p.value) for p in parsed],
            [(2, "--test3", "1"), (0, "test1", "test")],
        )

    def testTokenOrderPreserved(self):
        parsed = positionals().parse_args(["test1", "-x", "1", "test2"])
        self.assertEqual(
            [(p.index, p.key, p.value) for p in parsed],
            [(0, "test1", "test1"), (2, "--test3", "1"), (1, "test2", "test2")],
        )

    def testMultiValuedPositionalKeepsTokens(self):
        root = Command(name="root")
        root.argument("test1", multiple=True, required=True)
        root.argument("test2")
        parsed = root.parse_args(["test1", "test1"])
        self.assertEqual([p.index for p in parsed], [0, 0])

    def testOverflowIntoMultiValued(self):
        root = Command(name="root")
        root.argument("first")
        root.argument("rest", multiple=True)
        parsed = root.parse_args(["a", "b", "c"])
        self.assertEqual([p.key for p in parsed], ["first", "rest", "rest"])

    def testIntegerPositional(self):
        root = Command(name="root")
        root.argument("count", kind=ArgumentKind.INTEGER)
        self.assertEqual(root.parse_args(["12"])[0].typed, 12)

    def testLoneDashIsPositional(self):
        root = Command(name="root")
        root.argument("path")
        self.assertEqual(root.parse_args(["-"])[0].value, "-")


class TestParseFaults(TestCase):
    """Behavioral tests for parse-time faults."""

    def testMissingRequired(self):
        with self.assertRaises(MissingRequiredArgumentError) as context:
            flags().parse_args(["-yz", "test"])
        fault = context.exception
        self.assertEqual(fault.options["argument"].key, "--test1")
        self.assertIs(fault.options["code"], FaultCode.MISSING_REQUIRED_ARGUMENT)
        self.assertIn("--test1", str(fault))

    def testMissingRequiredPositionalAfterOptional(self):
        root = Command(name="root")
        root.argument("first")
        root.argument("second", required=True)
        with self.assertRaises(MissingRequiredArgumentError) as context:
            root.parse_args(["a"])
        self.assertEqual(context.exception.options["argument"].key, "second")

    def testMissingValueAtEnd(self):
        with self.assertRaises(MissingValueError) as context:
            flags().parse_args(["-x", "1", "-yz"])
        fault = context.exception
        self.assertEqual(fault.options["token"], "-z")
        self.assertEqual(fault.options["index"], 3)
        self.assertEqual(fault.options["argument"].key, "--test3")
        self.assertIn("third position", str(fault))

    def testReplacedPendingFlagIsNotCounted(self):
        with self.assertRaises(MissingRequiredArgumentError) as context:
            flags().parse_args(["-x", "-z", "v"])
        self.assertEqual(context.exception.options["argument"].key, "--test1")

    def testEmptyValueRejected(self):
        with self.assertRaises(MissingValueError) as context:
            flags().parse_args(["-x", "1", "-z", ""])
        self.assertEqual(context.exception.options["argument"].key, "--test3")

    def testInvalidIntegerFromFlag(self):
        with self.assertRaises(InvalidIntegerValueError) as context:
            flags().parse_args(["-x", "one"])
        fault = context.exception
        self.assertEqual(fault.options["token"], "one")
        self.assertEqual(fault.options["argument"].key, "--test1")
        self.assertIn("one", str(fault))
        self.assertIn("--test1", str(fault))

    def testOutOfRangeIntegerRejected(self):
        with self.assertRaises(InvalidIntegerValueError):
            flags().parse_args(["-x", "99999999999999999999"])

    def testInvalidIntegerFromPositional(self):
        root = Command(name="root")
        root.argument("count", kind=ArgumentKind.INTEGER)
        with self.assertRaises(InvalidIntegerValueError) as context:
            root.parse_args(["1.5"])
        self.assertIn("first position", str(context.exception))

    def testUnrecognizedBareToken(self):
        with self.assertRaises(UnrecognizedArgumentError) as context:
            flags().parse_args(["-x", "1", "stray"])
        fault = context.exception
        self.assertEqual(fault.options["token"], "stray")
        self.assertEqual(fault.options["index"], 3)
        self.assertIn("third position", str(fault))

    def testUnrecognizedFlagSuggestsClosest(self):
        with self.assertRaises(UnrecognizedArgumentError) as context:
            flags().parse_args(["--test4", "1"])
        self.assertTrue(context.exception.options["hint"].startswith("did you mean '--test"))

    def testUnknownShortFlagInCluster(self):
        with self.assertRaises(UnrecognizedArgumentError) as context:
            flags().parse_args(["-x", "1", "-yq"])
        self.assertEqual(context.exception.options["token"], "-q")
        self.assertEqual(context.exception.options["index"], 3)

    def testPositionsCountInputTokens(self):
        with self.assertRaises(UnrecognizedArgumentError) as context:
            flags().parse_args(["-yz", "a", "-x", "1", "stray"])
        self.assertEqual(context.exception.options["index"], 5)
        self.assertIn("fifth position", str(context.exception))

    def testSecondSingleValuedPositionalIsUnrecognized(self):
        root = Command(name="root")
        root.argument("only")
        with self.assertRaises(UnrecognizedArgumentError):
            root.parse_args(["a", "b"])

    def testDuplicateSingleValuedFlag(self):
        with self.assertRaises(DuplicateArgumentError) as context:
            flags().parse_args(["-x", "1", "-x", "2"])
        self.assertEqual(context.exception.options["argument"].key, "--test1")

    def testDuplicateBooleanFlag(self):
        with self.assertRaises(DuplicateArgumentError):
            flags().parse_args(["-x", "1", "-yy"])

    def testPartialResultsCarried(self):
        with self.assertRaises(UnrecognizedArgumentError) as context:
            flags().parse_args(["-x", "1", "-y", "stray"])
        parsed = context.exception.options["parsed"]
        self.assertEqual([p.key for p in parsed], ["--test1", "--test2"])

    def testRouteNamesCommandPath(self):
        root = Command(name="root")
        child = Command(name="child", parent=root)
        with self.assertRaises(UnrecognizedArgumentError) as context:
            child.parse_args(["stray"])
        self.assertEqual(context.exception.options["route"], "root child")


class TestParseState(TestCase):
    """Behavioral tests for per-call parse state."""

    def testRepeatedCallsAreIndependent(self):
        root = flags()
        first = root.parse_args(["-x", "1"])
        second = root.parse_args(["-x", "1"])
        self.assertEqual(first, second)

    def testConcurrentParsing(self):
        root = flags()
        results, failures = [], []

        def work(value):
            try:
                results.append(root.parse_args(["-x", str(value), "-z", str(value)]))
            except Exception as exception:  # pragma: no cover
                failures.append(exception)

        threads = [threading.Thread(target=work, args=(n,)) for n in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(failures, [])
        self.assertEqual(len(results), 16)
        for parsed in results:
            self.assertEqual(parsed[0].value, parsed[1].value)


if __name__ == "__main__":
    unittest.main()
