"""Unit tests for the executor and context-argument rules (DISPATCH_001-DISPATCH_004)."""

import unittest

from corolint.domain.builders import TreeBuilder as T
from corolint.domain.entities import Severity
from corolint.domain.rules.dispatch_rules import (
    BlockingCallInSuspendRule,
    BlockingCallOnMainExecutorRule,
    CallerThreadExecutorRule,
    TokenAsBuilderContextRule,
)
from tests.unit.rule_test_utils import run_rule


def _sleep():
    return T.call("sleep", T.literal(100), receiver="Thread")


def _launch(*arguments, body=()):
    return T.call("launch", *arguments, receiver="viewModelScope", lambda_=T.lam(*body))


class TestCallerThreadExecutorRule(unittest.TestCase):
    """DISPATCH_003."""

    def setUp(self) -> None:
        self.rule = CallerThreadExecutorRule()

    def test_unconfined_launch(self) -> None:
        findings = run_rule(self.rule, T.file(_launch("Dispatchers.Unconfined")))
        self.assertEqual(len(findings), 1)
        self.assertIs(findings[0].severity, Severity.WARNING)

    def test_unconfined_with_context(self) -> None:
        spec = T.file(T.function("f", T.call("withContext", "Dispatchers.Unconfined", lambda_=T.lam()), suspend=True))
        self.assertEqual(len(run_rule(self.rule, spec)), 1)

    def test_explicit_dispatcher_is_clean(self) -> None:
        self.assertEqual(run_rule(self.rule, T.file(_launch("Dispatchers.IO"))), [])


class TestTokenAsBuilderContextRule(unittest.TestCase):
    """DISPATCH_004."""

    def setUp(self) -> None:
        self.rule = TokenAsBuilderContextRule()

    def test_job_as_launch_context(self) -> None:
        findings = run_rule(self.rule, T.file(_launch(T.call("Job"))))
        self.assertEqual(len(findings), 1)
        self.assertIs(findings[0].severity, Severity.ERROR)
        self.assertIn("Job()", findings[0].message)

    def test_supervisor_job_combined_with_dispatcher(self) -> None:
        context = T.binary("+", T.call("SupervisorJob"), "Dispatchers.IO")
        spec = T.file(T.function("f", T.call("withContext", context, lambda_=T.lam()), suspend=True))
        findings = run_rule(self.rule, spec)
        self.assertEqual(len(findings), 1)
        self.assertIn("SupervisorJob()", findings[0].message)

    def test_one_finding_per_call(self) -> None:
        self.assertEqual(len(run_rule(self.rule, T.file(_launch(T.call("Job"), T.call("SupervisorJob"))))), 1)

    def test_job_reference_is_not_flagged(self) -> None:
        self.assertEqual(run_rule(self.rule, T.file(_launch("job"))), [])


class TestBlockingCallInSuspendRule(unittest.TestCase):
    """DISPATCH_002."""

    def setUp(self) -> None:
        self.rule = BlockingCallInSuspendRule()

    def test_sleep_in_suspend_function(self) -> None:
        findings = run_rule(self.rule, T.file(T.function("poll", _sleep(), suspend=True)))
        self.assertEqual(len(findings), 1)
        self.assertIn("'Thread.sleep'", findings[0].message)
        self.assertIn("delay()", findings[0].message)

    def test_blocking_read_in_launched_task(self) -> None:
        read = T.call("read", receiver="inputStream")
        findings = run_rule(self.rule, T.file(T.function("start", _launch(body=[read]))))
        self.assertEqual(len(findings), 1)
        self.assertIn("withContext(Dispatchers.IO)", findings[0].message)

    def test_plain_function_is_clean(self) -> None:
        self.assertEqual(run_rule(self.rule, T.file(T.function("poll", _sleep()))), [])

    def test_io_executor_does_not_suppress(self) -> None:
        moved = T.call("withContext", "Dispatchers.IO", lambda_=T.lam(_sleep()))
        findings = run_rule(self.rule, T.file(T.function("load", moved, suspend=True)))
        self.assertEqual(len(findings), 1)
        self.assertIn("'Thread.sleep'", findings[0].message)

    def test_io_launch_outside_suspend_function(self) -> None:
        spec = T.file(T.function("start", _launch("Dispatchers.IO", body=[_sleep()])))
        self.assertEqual(len(run_rule(self.rule, spec)), 1)

    def test_non_blocking_call(self) -> None:
        spec = T.file(T.function("poll", T.call("delay", T.literal(100)), suspend=True))
        self.assertEqual(run_rule(self.rule, spec), [])


class TestBlockingCallOnMainExecutorRule(unittest.TestCase):
    """DISPATCH_001."""

    def setUp(self) -> None:
        self.rule = BlockingCallOnMainExecutorRule()

    def test_blocking_on_main(self) -> None:
        findings = run_rule(self.rule, T.file(T.function("show", _launch("Dispatchers.Main", body=[_sleep()]))))
        self.assertEqual(len(findings), 1)
        self.assertIs(findings[0].severity, Severity.ERROR)

    def test_blocking_on_main_immediate(self) -> None:
        spec = T.file(T.function("show", _launch("Dispatchers.Main.immediate", body=[_sleep()])))
        self.assertEqual(len(run_rule(self.rule, spec)), 1)

    def test_switched_to_io_inside_main(self) -> None:
        moved = T.call("withContext", "Dispatchers.IO", lambda_=T.lam(_sleep()))
        spec = T.file(T.function("show", _launch("Dispatchers.Main", body=[moved])))
        self.assertEqual(run_rule(self.rule, spec), [])

    def test_default_dispatcher(self) -> None:
        spec = T.file(T.function("show", _launch("Dispatchers.Default", body=[_sleep()])))
        self.assertEqual(run_rule(self.rule, spec), [])


if __name__ == "__main__":
    unittest.main()
