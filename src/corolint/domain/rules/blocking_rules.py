"""Blocking-bridge rules (RUNBLOCK_001, RUNBLOCK_002, TEST_001)."""

from corolint.domain.constants import BLOCKING_BRIDGES, STRUCTURED_BUILDERS
from corolint.domain.context import RuleContext
from corolint.domain.entities import Finding, Severity
from corolint.domain.rules import BaseRule
from corolint.domain.syntax import NodeKind


class BlockingBridgeInSuspendRule(BaseRule):
    """RUNBLOCK_002: runBlocking reached from suspend code."""

    code = "RUNBLOCK_002"
    symbol = "Blocking-bridge-in-suspend"
    severity = Severity.ERROR
    description = "runBlocking inside suspend code blocks the thread and defeats suspension."
    doc_anchor = "22-runblock_002--using-runblocking-inside-suspend-functions"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        findings: list[Finding] = []
        for call in context.calls(*BLOCKING_BRIDGES):
            function = classifier.enclosing_function(call)
            if classifier.is_entry_point(function) or classifier.is_test_function(function):
                continue
            if not classifier.is_in_suspend_context(call):
                continue
            if function is not None and classifier.is_suspendable(function):
                where = f"suspend function '{function.name}'"
            else:
                where = "a coroutine"
            findings.append(
                self.finding(
                    call,
                    f"{call.callee} should not be called inside {where}; it blocks the thread. "
                    "Call the suspending code directly or use withContext.",
                )
            )
        return findings


class RedundantTaskWrapRule(BaseRule):
    """RUNBLOCK_001: `coroutineScope { launch { work() } }` where the launch adds nothing."""

    code = "RUNBLOCK_001"
    symbol = "Redundant-task-wrap"
    severity = Severity.WARNING
    description = "A single launch as the whole body of coroutineScope/supervisorScope is redundant."
    doc_anchor = "21-runblock_001--using-launch-on-the-last-line-of-coroutinescope"

    def check(self, context: RuleContext) -> list[Finding]:
        findings: list[Finding] = []
        for call in context.calls(*STRUCTURED_BUILDERS):
            body = call.trailing_lambda
            if body is None:
                continue
            statements = body.statements
            if len(statements) != 1:
                continue
            only = statements[0]
            if only.kind is not NodeKind.CALL or only.callee != "launch":
                continue
            receiver = only.receiver
            if receiver is not None and not (receiver.kind is NodeKind.NAME and receiver.name == "this"):
                continue
            findings.append(
                self.finding(
                    call,
                    f"Redundant launch inside {call.callee}. Execute the work directly: "
                    f"{call.callee} {{ work() }} instead of {call.callee} {{ launch {{ work() }} }}.",
                )
            )
        return findings


class BlockingBridgeDelayInTestRule(BaseRule):
    """TEST_001: runBlocking + delay in tests waits in real time."""

    code = "TEST_001"
    symbol = "Blocking-bridge-delay-in-test"
    severity = Severity.WARNING
    description = "runBlocking with delay() in tests slows the suite; runTest skips delays with virtual time."
    doc_anchor = "61-test_001--slow-tests-with-real-delays"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        findings: list[Finding] = []
        for call in context.calls(*BLOCKING_BRIDGES):
            in_test = context.is_test_file or classifier.is_test_function(classifier.enclosing_function(call))
            body = call.trailing_lambda
            if not in_test or body is None:
                continue
            if any(n.kind is NodeKind.CALL and n.callee == "delay" for n in body.descendants()):
                findings.append(
                    self.finding(
                        call,
                        f"{call.callee} with delay() in a test waits in real time. "
                        "Use runTest { } from kotlinx-coroutines-test for virtual time.",
                    )
                )
        return findings
