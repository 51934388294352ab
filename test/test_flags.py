"""
Flags module behavioral tests (kinds, parsing, updates, flag maps, getters).

Scope
- Validate FlagValue construction: default/kind agreement and read-only fields.
- Validate parse/update per kind, including list kinds and BOOL toggling.
- Validate constraint application order and ValueError conversion.
- Validate update_flags token handling and merge precedence.
- Validate typed getters.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import unittest
from unittest import TestCase

from arbor import (
    FlagKind,
    FlagValue,
    parse,
    update,
    apply_constraints,
    flag_constraint,
    int_flag,
    float_flag,
    bool_flag,
    string_flag,
    ints_flag,
    floats_flag,
    strings_flag,
    merge,
    update_flags,
    get_int,
    get_bool,
    get_string,
    get_ints,
    one_of,
    FlagParseError,
    MissingFlagValueError,
    ConstraintError,
    UnknownFlagError,
    MalformedFlagError,
)
from arbor.flags import sanitize_name


class TestFlagValue(TestCase):
    """Behavioral tests for FlagValue construction and immutability."""

    def testBuildersUseKindDefaults(self):
        self.assertEqual(int_flag().value, 0)
        self.assertEqual(float_flag().value, 0.0)
        self.assertIs(bool_flag().value, False)
        self.assertEqual(string_flag().value, "")
        self.assertEqual(ints_flag().value, [])
        self.assertEqual(floats_flag().value, [])
        self.assertEqual(strings_flag().value, [])

    def testBuilderKinds(self):
        self.assertIs(int_flag().kind, FlagKind.INT)
        self.assertIs(strings_flag().kind, FlagKind.STRINGS)
        self.assertTrue(FlagKind.FLOATS.listed)
        self.assertIs(FlagKind.FLOATS.scalar, FlagKind.FLOAT)

    def testValueStartsAsDefault(self):
        flag = int_flag(7, "seven")
        self.assertEqual(flag.value, 7)
        self.assertEqual(flag.default, 7)
        self.assertEqual(flag.descr, "seven")

    def testDescrDefaultsToNone(self):
        self.assertIsNone(int_flag(1).descr)

    def testEmptyDescrRejected(self):
        with self.assertRaises(ValueError):
            int_flag(1, "   ")

    def testDefaultMustMatchKind(self):
        with self.assertRaises(TypeError):
            int_flag("1")
        with self.assertRaises(TypeError):
            int_flag(True)
        with self.assertRaises(TypeError):
            bool_flag(1)
        with self.assertRaises(TypeError):
            ints_flag("123")
        with self.assertRaises(TypeError):
            ints_flag([1, "2"])

    def testFloatAcceptsIntDefault(self):
        flag = float_flag(2)
        self.assertIsInstance(flag.value, float)
        self.assertEqual(flag.value, 2.0)

    def testListValueIsDetached(self):
        flag = ints_flag([1])
        value = flag.value
        value.append(2)
        self.assertEqual(flag.value, [1])

    def testKindCannotChange(self):
        with self.assertRaises(TypeError):
            copy.replace(int_flag(), kind=FlagKind.STRING)

    def testReplaceKeepsKind(self):
        flag = copy.replace(int_flag(1), value=5)
        self.assertIs(flag.kind, FlagKind.INT)
        self.assertEqual(flag.value, 5)
        self.assertEqual(flag.default, 1)

    def testReplaceValidatesValue(self):
        with self.assertRaises(TypeError):
            copy.replace(int_flag(), value="five")

    def testConstraintReturnsNewFlag(self):
        flag = int_flag(1)
        constrained = flag.constraint(one_of([1, 2]))
        self.assertEqual(flag.constraints, [])
        self.assertEqual(len(constrained.constraints), 1)

    def testConstraintMustBeCallable(self):
        with self.assertRaises(TypeError):
            int_flag().constraint(3)
        with self.assertRaises(TypeError):
            flag_constraint("flag", one_of([1]))

    def testFlagConstraintFunctionForm(self):
        flag = flag_constraint(int_flag(1), one_of([1, 2]))
        with self.assertRaises(ConstraintError):
            update(flag, "3")


class TestParseAndUpdate(TestCase):
    """Behavioral tests for parse() and update()."""

    def testParseScalars(self):
        self.assertEqual(parse(FlagKind.INT, "42"), 42)
        self.assertEqual(parse(FlagKind.FLOAT, "1.5"), 1.5)
        self.assertIs(parse(FlagKind.BOOL, "TRUE"), True)
        self.assertIs(parse(FlagKind.BOOL, "false"), False)
        self.assertEqual(parse(FlagKind.STRING, "a,b"), "a,b")

    def testParseLists(self):
        self.assertEqual(parse(FlagKind.INTS, "1,2,3"), [1, 2, 3])
        self.assertEqual(parse(FlagKind.FLOATS, "1.5,2"), [1.5, 2.0])
        self.assertEqual(parse(FlagKind.STRINGS, "a,b"), ["a", "b"])

    def testParseFailures(self):
        for kind, raw in (
                (FlagKind.INT, "x"),
                (FlagKind.INT, ""),
                (FlagKind.FLOAT, "one"),
                (FlagKind.BOOL, "yes"),
                (FlagKind.INTS, "1,x"),
        ):
            with self.subTest(kind=kind, raw=raw):
                with self.assertRaises(FlagParseError) as context:
                    parse(kind, raw)
                self.assertIn(repr(raw), str(context.exception))

    def testUpdateReturnsNewFlag(self):
        flag = int_flag(1)
        updated = update(flag, "3")
        self.assertEqual(updated.value, 3)
        self.assertEqual(flag.value, 1)
        self.assertEqual(updated.default, 1)

    def testUpdateBoolWithNonBooleanFails(self):
        with self.assertRaises(FlagParseError):
            update(bool_flag(), "1")

    def testBareBoolTokenToggles(self):
        flag = update(bool_flag(), None)
        self.assertIs(flag.value, True)
        self.assertIs(update(flag, None).value, False)

    def testBareTokenOnNonBoolFails(self):
        with self.assertRaises(MissingFlagValueError):
            update(int_flag(), None)

    def testConstraintsRunInOrderAndShortCircuit(self):
        calls = []

        def first(value):
            calls.append("first")
            raise ConstraintError("first failed")

        def second(value):
            calls.append("second")
            return value

        flag = int_flag().constraint(first).constraint(second)
        with self.assertRaises(ConstraintError) as context:
            update(flag, "1")
        self.assertEqual(calls, ["first"])
        self.assertEqual(str(context.exception), "first failed")

    def testConstraintOutputFeedsNextConstraint(self):
        flag = int_flag().constraint(lambda value: value * 2).constraint(one_of([4]))
        self.assertEqual(update(flag, "2").value, 4)

    def testValueErrorBecomesConstraintError(self):
        def positive(value):
            if value <= 0:
                raise ValueError("must be positive")
            return value

        with self.assertRaises(ConstraintError) as context:
            apply_constraints(int_flag().constraint(positive), -1)
        self.assertEqual(str(context.exception), "must be positive")

    def testCheckOnlyPredicateKeepsValue(self):
        def positive(value):
            if value <= 0:
                raise ValueError("must be positive")

        flag = int_flag().constraint(positive)
        self.assertEqual(update(flag, "5").value, 5)
        with self.assertRaises(ConstraintError):
            update(flag, "-5")

    def testCheckOnlyPredicateFeedsNextConstraint(self):
        flag = int_flag().constraint(lambda value: None).constraint(one_of([3]))
        self.assertEqual(update(flag, "3").value, 3)

    def testWrongTypeFromConstraintIsConstraintError(self):
        def stringify(value):
            return str(value)

        with self.assertRaises(ConstraintError) as context:
            update(int_flag().constraint(stringify), "5")
        self.assertIn("stringify", str(context.exception))
        self.assertEqual(context.exception.options["value"], "5")

    def testListConstraintReceivesWholeList(self):
        received = []

        def record(values):
            received.append(values)
            return values

        update(ints_flag().constraint(record), "1,2")
        self.assertEqual(received, [[1, 2]])


class TestFlagMaps(TestCase):
    """Behavioral tests for merge() and update_flags()."""

    def testMergeLocalWins(self):
        local = string_flag("local")
        merged = merge({"n": int_flag(1), "g": bool_flag()}, {"n": local})
        self.assertIs(merged["n"], local)
        self.assertIn("g", merged)

    def testUpdateFlagsSetsValue(self):
        flags = {"count": int_flag(1)}
        updated = update_flags(flags, "--count=5")
        self.assertEqual(updated["count"].value, 5)
        self.assertEqual(flags["count"].value, 1)

    def testUpdateFlagsValueMayContainEquals(self):
        updated = update_flags({"expr": string_flag()}, "--expr=a=b")
        self.assertEqual(updated["expr"].value, "a=b")

    def testUnknownFlagSuggestsCloseMatches(self):
        with self.assertRaises(UnknownFlagError) as context:
            update_flags({"count": int_flag()}, "--cont=1")
        self.assertEqual(context.exception.options["suggestions"], ["count"])
        self.assertIn("--count", context.exception.options["hint"])

    def testMalformedTokens(self):
        for token in ("count=1", "--=1", "--"):
            with self.subTest(token=token):
                with self.assertRaises(MalformedFlagError):
                    update_flags({"count": int_flag()}, token)

    def testUpdateErrorsGainContext(self):
        with self.assertRaises(FlagParseError) as context:
            update_flags({"count": int_flag()}, "--count=x")
        self.assertEqual(context.exception.contexts, ("failed to update flag 'count'",))
        self.assertTrue(str(context.exception).startswith("failed to update flag 'count': "))


class TestGetters(TestCase):
    """Behavioral tests for typed getters."""

    def testGettersReturnValues(self):
        flags = {
            "n": update(int_flag(), "3"),
            "v": bool_flag(True),
            "s": string_flag("x"),
            "l": ints_flag([1, 2]),
        }
        self.assertEqual(get_int(flags, "n"), 3)
        self.assertIs(get_bool(flags, "v"), True)
        self.assertEqual(get_string(flags, "s"), "x")
        self.assertEqual(get_ints(flags, "l"), [1, 2])

    def testGetterKindMismatch(self):
        with self.assertRaises(TypeError):
            get_string({"n": int_flag()}, "n")

    def testGetterMissingFlag(self):
        with self.assertRaises(UnknownFlagError):
            get_int({}, "n")

    def testGetterNames(self):
        self.assertEqual(get_int.__name__, "get_int")


class TestNames(TestCase):
    """Behavioral tests for flag name validation."""

    def testNameIsTrimmed(self):
        self.assertEqual(sanitize_name("  dry-run "), "dry-run")

    def testHelpIsReserved(self):
        with self.assertRaises(ValueError):
            sanitize_name("help")

    def testInvalidNames(self):
        for name in ("", "  ", "-x", "--x", "a b", "a\tb", "a=b"):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    sanitize_name(name)

    def testCommonNamesAllowed(self):
        for name in ("max_retries", "dry_run", "2fa", "dry-run", "x.y", "v"):
            with self.subTest(name=name):
                self.assertEqual(sanitize_name(name), name)

    def testNonStringName(self):
        with self.assertRaises(TypeError):
            sanitize_name(3)

    def testUnicodeNamesAllowed(self):
        self.assertEqual(sanitize_name("名-前"), "名-前")


if __name__ == "__main__":
    unittest.main()
