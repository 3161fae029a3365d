"""
Faults behavioral tests (codes, rendering, triggering, host hooks).

Scope
- Validate fault codes and host-provided code labels and documentation.
- Validate plain and fancy rendering through rich.
- Validate trigger(): raising outside shell mode, printing and exiting inside.
- Validate DispatchExit grouping.

Conventions
- Test method names follow CamelCase per project convention.
- Rendering is captured on an uncoloured in-memory rich console.
"""

from __future__ import annotations

import copy
import io
import sys
import unittest
from unittest import TestCase, mock

from rich.console import Console

from helmsman import faults
from helmsman.faults import (
    FaultCode,
    DispatchFault,
    DispatchExit,
    MalformedTokenError,
    UnknownCommandError,
    UnknownOptionError,
    ValidationFailedError,
    trigger,
    getdoc,
)


def capture():
    return Console(file=io.StringIO(), width=100, color_system=None, force_terminal=False)


class TestFaultCodes(TestCase):
    """Stable identifiers per fault class."""

    def testCodeValues(self):
        self.assertEqual(FaultCode.UNKNOWN_COMMAND, 11101)
        self.assertEqual(FaultCode.MALFORMED_TOKEN, 11111)
        self.assertEqual(FaultCode.UNKNOWN_OPTION, 11112)
        self.assertEqual(FaultCode.FAILED_VALIDATION, 11131)

    def testClassCodes(self):
        self.assertIs(MalformedTokenError.__code__, FaultCode.MALFORMED_TOKEN)
        self.assertIs(UnknownCommandError.__code__, FaultCode.UNKNOWN_COMMAND)
        self.assertIs(UnknownOptionError.__code__, FaultCode.UNKNOWN_OPTION)
        self.assertIs(ValidationFailedError.__code__, FaultCode.FAILED_VALIDATION)
        self.assertTrue(issubclass(ValidationFailedError, DispatchFault))

    def testNormalizeDefaultsToNumber(self):
        with mock.patch.object(sys.modules["__main__"], "__codes__", {}, create=True):
            self.assertEqual(FaultCode.UNKNOWN_OPTION.normalize(), "11112")

    def testNormalizeUsesHostLabels(self):
        labels = {FaultCode.UNKNOWN_OPTION: "E-OPT"}
        with mock.patch.object(sys.modules["__main__"], "__codes__", labels, create=True):
            self.assertEqual(FaultCode.UNKNOWN_OPTION.normalize(), "E-OPT")
            self.assertEqual(FaultCode.UNKNOWN_COMMAND.normalize(), "11101")

    def testGetdoc(self):
        docs = {FaultCode.MALFORMED_TOKEN: "tokens must look like -x or --name"}
        with mock.patch.object(sys.modules["__main__"], "__docs__", docs, create=True):
            self.assertEqual(getdoc(FaultCode.MALFORMED_TOKEN), "tokens must look like -x or --name")
            self.assertIsNone(getdoc(FaultCode.UNKNOWN_OPTION))
        with self.assertRaises(TypeError):
            getdoc(11111)


class TestRendering(TestCase):
    """Faults render through rich with a header, the message and a hint."""

    def setUp(self):
        patcher = mock.patch.object(sys.modules["__main__"], "__prog__", "tool", create=True)
        patcher.start()
        self.addCleanup(patcher.stop)

    def testPlainRendering(self):
        console = capture()
        console.print(UnknownOptionError("unknown option '--verbos'", name="verbos", colorful=False))
        output = console.file.getvalue()
        self.assertIn("tool", output)
        self.assertIn("11112", output)
        self.assertIn("Unknown Option", output)
        self.assertIn("unknown option '--verbos'", output)
        self.assertIn("check the option name against the registered options", output)

    def testFancyRendering(self):
        console = capture()
        with mock.patch.object(faults, "console", console):
            console.print(ValidationFailedError("invalid value", fancy=True))
        output = console.file.getvalue()
        self.assertIn("invalid value", output)
        self.assertIn("Invalid Option Value", output)

    def testOptionsOverrideClassCopy(self):
        console = capture()
        console.print(DispatchFault("boom", title="custom title", hint="try again later"))
        output = console.file.getvalue()
        self.assertIn("Custom Title", output)
        self.assertIn("try again later", output)

    def testGroupRendering(self):
        console = capture()
        group = DispatchExit([
            MalformedTokenError("bad form of token '--a'", token="--a"),
            UnknownOptionError("unknown option '-x'", name="x"),
        ], colorful=False)
        with mock.patch.object(faults, "console", console):
            console.print(group)
        output = console.file.getvalue()
        self.assertIn("Bad Exit", output)
        self.assertIn("bad form of token '--a'", output)
        self.assertIn("unknown option '-x'", output)


class TestTrigger(TestCase):
    """trigger() raises or prints depending on the shell option."""

    def testReplaceKeepsMessageAndMergesOptions(self):
        fault = UnknownOptionError("unknown option '-x'", name="x")
        clone = copy.replace(fault, shell=True)
        self.assertIsInstance(clone, UnknownOptionError)
        self.assertEqual(clone.message, "unknown option '-x'")
        self.assertEqual(dict(clone.options), {"name": "x", "shell": True})
        self.assertEqual(dict(fault.options), {"name": "x"})

    def testRaisesOutsideShell(self):
        with self.assertRaises(UnknownCommandError) as context:
            trigger(UnknownCommandError("unknown command 'go'", name="go"), shell=False)
        self.assertEqual(context.exception.options["name"], "go")

    def testShellPrintsAndExits(self):
        console = capture()
        with mock.patch.object(faults, "console", console):
            with self.assertRaises(SystemExit) as context:
                trigger(MalformedTokenError("bad form of token '-'", token="-"), shell=True, colorful=False)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("bad form of token '-'", console.file.getvalue())

    def testDeferredShellOnlyPrints(self):
        console = capture()
        with mock.patch.object(faults, "console", console):
            trigger(DispatchExit([UnknownOptionError("unknown option '-q'")]), shell=True, deferred=True)
        self.assertIn("unknown option '-q'", console.file.getvalue())

    def testGroupRaisesOutsideShell(self):
        with self.assertRaises(DispatchExit) as context:
            trigger(DispatchExit([UnknownOptionError("unknown option '-q'")]))
        self.assertEqual(len(context.exception.exceptions), 1)
        self.assertIsInstance(context.exception.exceptions[0], UnknownOptionError)

    def testRejectsUntriggerableObjects(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))

    def testGroupDeriveKeepsOptions(self):
        group = DispatchExit([UnknownOptionError("a"), MalformedTokenError("b")], fancy=True)
        matched, rest = group.split(UnknownOptionError)
        self.assertIsInstance(matched, DispatchExit)
        self.assertTrue(matched.options["fancy"])
        self.assertEqual(len(rest.exceptions), 1)


if __name__ == "__main__":
    unittest.main()
