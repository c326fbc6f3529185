"""
Parser behavioral tests (token matching, coercion dispatch, rest tokens, faults).

Scope
- Validate the token rules: inline vs spaced options, bare boolean flags, positional
  cursor, pending options, unresolved tokens going to rest.
- Validate case-folding policies of long and short aliases.
- Validate required-argument validation and invalid-value faults.
- Validate collections accumulation and enum/nullable/duration coercion.
- Every behavior runs against both the reflective and the compiled parser.

Conventions
- Test method names follow CamelCase per project convention.
- Behaviors live in a mixin; each parser gets its own TestCase binding 'parse'.
"""
import contextlib
import enum
import io
import unittest
from collections import deque
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Annotated
from unittest import TestCase

from husk import (
    Argument,
    serializable,
    parse_arguments,
    parse_compiled,
    InvalidValueError,
    MissingRequiredArgumentError,
    UnsupportedTargetError,
    DanglingOptionWarning,
)


class Color(enum.Enum):
    RED = 1
    GREEN = 2


@serializable
@dataclass
class Sample:
    a: Annotated[str, Argument("a", required=True)] = ""
    b: Annotated[bool, Argument("b")] = False
    c: Annotated[int, Argument("c")] = 0


@serializable
@dataclass(frozen=True)
class Model:
    string_argument: Annotated[str, Argument("string-argument", "s", required=True)] = ""
    bool_argument: Annotated[bool, Argument("bool-argument", "b")] = False
    integer_argument: Annotated[int, Argument("integer-argument", "i")] = 0
    untouched: int = 7


@serializable
@dataclass
class Build:
    source: Annotated[str, Argument(order=0, required=True)] = ""
    destination: Annotated[str | None, Argument(order=2)] = None
    jobs: Annotated[int, Argument("jobs", "j")] = 1
    color: Annotated[Color, Argument("color")] = Color.RED
    accent: Annotated[Color | None, Argument("accent")] = None
    ratio: Annotated[float | None, Argument("ratio")] = None
    include: Annotated[list[str], Argument("include", "I")] = field(default_factory=list)
    levels: Annotated[tuple[int, ...], Argument("level")] = ()
    timeout: Annotated[timedelta, Argument("timeout")] = timedelta(0)
    verbose: Annotated[bool, Argument("verbose", "v")] = False
    name: Annotated[str, Argument("Name", "N", ignore_case_long=False, ignore_case_short=True)] = ""


@serializable
@dataclass
class Queue:
    items: Annotated[deque[str], Argument("item")] = field(default_factory=deque)
    street: Annotated[str, Argument("stra\u00dfe")] = ""


class ParserBehavior:
    """Behaviors shared by every parser implementation."""

    parse = None

    def testRoundTrip(self):
        result, rest = self.parse(Sample, ["--a", "x", "--b", "--c", "5"])
        self.assertEqual(result, Sample(a="x", b=True, c=5))
        self.assertEqual(rest, [])

    def testMissingRequiredArgument(self):
        with self.assertRaises(MissingRequiredArgumentError) as context:
            self.parse(Sample, ["--b=false", "--c=5"])
        self.assertEqual([descriptor.name for descriptor in context.exception.options["missing"]], ["a"])
        self.assertIn("'a'", context.exception.message)

    def testOriginalModelSpacedForm(self):
        result, rest = self.parse(Model, ["--string-argument", "test", "--bool-argument", "--integer-argument", "123"])
        self.assertEqual(result.string_argument, "test")
        self.assertIs(result.bool_argument, True)
        self.assertEqual(result.integer_argument, 123)
        self.assertEqual(result.untouched, 7)
        self.assertEqual(rest, [])

    def testOriginalModelInlineForm(self):
        result, _ = self.parse(Model, ["--string-argument=test", "--bool-argument=false", "--integer-argument=123"])
        self.assertEqual(result, Model("test", False, 123))

    def testOriginalModelMissingRequired(self):
        with self.assertRaises(MissingRequiredArgumentError):
            self.parse(Model, ["--bool-argument=false", "--integer-argument=123"])

    def testBareFlagDoesNotConsumeNextToken(self):
        result, rest = self.parse(Sample, ["--a", "x", "--b", "tail"])
        self.assertIs(result.b, True)
        self.assertEqual(rest, ["tail"])

    def testInlineBooleanAnyCase(self):
        for token, expected in (("--b=FALSE", False), ("--b=Off", False), ("--b=Yes", True), ("--b=1", True)):
            result, _ = self.parse(Sample, ["--a=x", token])
            self.assertIs(result.b, expected, token)

    def testSpacedAndInlineAreEquivalent(self):
        spaced, _ = self.parse(Sample, ["--a", "x", "--c", "42"])
        inline, _ = self.parse(Sample, ["--a=x", "--c=42"])
        self.assertEqual(spaced, inline)

    def testLongNameIgnoresCaseByDefault(self):
        result, rest = self.parse(Sample, ["--A", "x", "--B"])
        self.assertEqual(result.a, "x")
        self.assertIs(result.b, True)
        self.assertEqual(rest, [])

    def testShortNameIsCaseSensitiveByDefault(self):
        result, rest = self.parse(Model, ["-S", "v", "-s", "w"])
        self.assertEqual(result.string_argument, "w")
        self.assertEqual(rest, ["-S", "v"])

    def testFlippedCasePolicies(self):
        result, rest = self.parse(Build, ["src", "--name", "x", "-n", "y"])
        self.assertEqual(result.name, "y")
        self.assertEqual(rest, ["--name", "x"])

    def testInvalidBooleanNamesValue(self):
        with self.assertRaises(InvalidValueError) as context:
            self.parse(Sample, ["--a=x", "--b=maybe"])
        self.assertIn("maybe", context.exception.message)
        self.assertEqual(context.exception.options["value"], "maybe")
        self.assertEqual(context.exception.options["field"], "b")

    def testInvalidIntegerChainsCause(self):
        with self.assertRaises(InvalidValueError) as context:
            self.parse(Build, ["src", "--jobs", "four"])
        self.assertIsInstance(context.exception.__cause__, ValueError)

    def testUnmatchedTokensKeepOrder(self):
        result, rest = self.parse(Sample, ["--x", "--a", "x", "--y=1", "-z", "free"])
        self.assertEqual(result.a, "x")
        self.assertEqual(rest, ["--x", "--y=1", "-z", "free"])

    def testPositionalCursorSkipsOptionValues(self):
        result, rest = self.parse(Build, ["src", "--jobs", "4", "skipped", "dst", "extra"])
        self.assertEqual(result.source, "src")
        self.assertEqual(result.jobs, 4)
        self.assertEqual(result.destination, "dst")
        self.assertEqual(rest, ["skipped", "extra"])

    def testRequiredSatisfiedPositionally(self):
        result, _ = self.parse(Build, ["src"])
        self.assertEqual(result.source, "src")
        with self.assertRaises(MissingRequiredArgumentError):
            self.parse(Build, ["--jobs", "2"])

    def testCollectionsAccumulate(self):
        result, _ = self.parse(Build, ["src", "--include", "a", "-I", "b", "--level=1", "--level", "2"])
        self.assertEqual(result.include, ["a", "b"])
        self.assertEqual(result.levels, (1, 2))

    def testIterableTypesAccumulate(self):
        result, _ = self.parse(Queue, ["--item", "abc", "--item", "de"])
        self.assertIsInstance(result.items, deque)
        self.assertEqual(list(result.items), ["abc", "de"])

    def testIgnoredCaseIsCharacterWise(self):
        result, rest = self.parse(Queue, ["--STRASSE", "x", "--STRA\u00dfE", "y"])
        self.assertEqual(result.street, "y")
        self.assertEqual(rest, ["--STRASSE", "x"])

    def testCollectionsKeepDefaultWhenAbsent(self):
        result, _ = self.parse(Build, ["src"])
        self.assertEqual(result.include, [])
        self.assertEqual(result.levels, ())

    def testEnums(self):
        result, _ = self.parse(Build, ["src", "--color", "GREEN", "--accent=RED"])
        self.assertIs(result.color, Color.GREEN)
        self.assertIs(result.accent, Color.RED)

    def testEnumNamesAreCaseSensitive(self):
        with self.assertRaises(InvalidValueError) as context:
            self.parse(Build, ["src", "--color", "green"])
        self.assertIn("RED", context.exception.options["hint"])

    def testNullableScalar(self):
        result, _ = self.parse(Build, ["src", "--ratio", "0.5"])
        self.assertEqual(result.ratio, 0.5)
        result, _ = self.parse(Build, ["src"])
        self.assertIsNone(result.ratio)

    def testDuration(self):
        result, _ = self.parse(Build, ["src", "--timeout", "00:01:30"])
        self.assertEqual(result.timeout, timedelta(seconds=90))

    def testInlineValueSplitsOnFirstEquals(self):
        result, _ = self.parse(Sample, ["--a=x=y"])
        self.assertEqual(result.a, "x=y")

    def testEmptyInlineValueSatisfies(self):
        result, _ = self.parse(Sample, ["--a="])
        self.assertEqual(result.a, "")

    def testNegativeNumberInline(self):
        result, _ = self.parse(Sample, ["--a=x", "--c=-5"])
        self.assertEqual(result.c, -5)

    def testDanglingOptionWarns(self):
        with self.assertWarns(DanglingOptionWarning):
            result, rest = self.parse(Build, ["src", "--jobs"])
        self.assertEqual(result.jobs, 1)
        self.assertEqual(rest, [])

    def testDanglingRequiredOptionIsMissing(self):
        with self.assertWarns(DanglingOptionWarning):
            with self.assertRaises(MissingRequiredArgumentError):
                self.parse(Sample, ["--a"])

    def testReplacedPendingOptionWarns(self):
        with self.assertWarns(DanglingOptionWarning):
            result, _ = self.parse(Build, ["src", "--jobs", "--timeout", "00:00:05"])
        self.assertEqual(result.jobs, 1)
        self.assertEqual(result.timeout, timedelta(seconds=5))

    def testPendingOptionSurvivesFlag(self):
        result, rest = self.parse(Build, ["src", "--jobs", "-v", "3"])
        self.assertEqual(result.jobs, 3)
        self.assertIs(result.verbose, True)
        self.assertEqual(rest, [])

    def testShellStringArgv(self):
        result, _ = self.parse(Sample, "--a 'hello world' --c 3")
        self.assertEqual(result.a, "hello world")
        self.assertEqual(result.c, 3)

    def testNonStringTokenRejected(self):
        with self.assertRaises(TypeError):
            self.parse(Sample, ["--a", 1])

    def testUnknownRuntimeOptionRejected(self):
        with self.assertRaises(TypeError):
            self.parse(Sample, ["--a", "x"], verbose=True)

    def testUnsupportedTargets(self):
        class Plain:
            pass

        @dataclass
        class Unmarked:
            a: Annotated[str, Argument("a")] = ""

        for target in (Plain, Unmarked):
            with self.assertRaises(UnsupportedTargetError):
                self.parse(target, [])

    def testShellModeRendersAndExits(self):
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr):
            with self.assertRaises(SystemExit) as context:
                self.parse(Sample, ["--b"], shell=True)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("missing required argument", stderr.getvalue())


class TestReflectiveParser(ParserBehavior, TestCase):
    """Behavioral tests for the reflective parser."""

    parse = staticmethod(parse_arguments)


class TestCompiledParser(ParserBehavior, TestCase):
    """Behavioral tests for the compiled parser."""

    parse = staticmethod(parse_compiled)


if __name__ == "__main__":
    unittest.main()
