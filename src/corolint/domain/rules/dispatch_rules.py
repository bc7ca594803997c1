"""Executor and context-argument rules (DISPATCH_001-DISPATCH_004)."""

from corolint.domain.constants import (
    CONTEXT_ACCEPTING_BUILDERS,
    EXECUTOR_HOLDER,
    MAIN_EXECUTOR,
    TOKEN_CONSTRUCTORS,
)
from corolint.domain.context import RuleContext
from corolint.domain.entities import Finding, Severity
from corolint.domain.rules import BaseRule


class CallerThreadExecutorRule(BaseRule):
    """DISPATCH_003: Dispatchers.Unconfined passed to a builder."""

    code = "DISPATCH_003"
    symbol = "Caller-thread-executor-usage"
    severity = Severity.WARNING
    description = "Dispatchers.Unconfined resumes on whatever thread happens to resume it."
    doc_anchor = "33-dispatch_003--abusing-dispatchersunconfined"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        return [
            self.finding(
                call,
                f"Dispatchers.Unconfined in {call.callee} has an unpredictable execution thread. "
                "Use Dispatchers.Default, Dispatchers.IO or Dispatchers.Main explicitly.",
            )
            for call in context.calls(*CONTEXT_ACCEPTING_BUILDERS)
            if any(classifier.denotes_caller_thread_executor(arg) for arg in call.arguments)
        ]


class TokenAsBuilderContextRule(BaseRule):
    """DISPATCH_004: `launch(Job())`, `withContext(SupervisorJob() + io)`."""

    code = "DISPATCH_004"
    symbol = "Token-passed-as-builder-context"
    severity = Severity.ERROR
    description = "A fresh Job passed as builder context replaces the parent and breaks cancellation."
    doc_anchor = "34-dispatch_004--passing-job-directly-as-context-to-builders"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        findings: list[Finding] = []
        for call in context.calls(*CONTEXT_ACCEPTING_BUILDERS):
            for argument in call.arguments:
                token = classifier.contains_call(argument, TOKEN_CONSTRUCTORS)
                if token is None:
                    continue
                findings.append(
                    self.finding(
                        call,
                        f"Passing {token.callee}() to {call.callee} breaks structured concurrency: "
                        "the new task no longer belongs to its parent. Use supervisorScope { } "
                        "or a scope that owns the Job.",
                    )
                )
                break
        return findings


class BlockingCallInSuspendRule(BaseRule):
    """DISPATCH_002: registry blocking call inside a coroutine body or suspend function."""

    code = "DISPATCH_002"
    symbol = "Blocking-call-in-suspend-context"
    severity = Severity.WARNING
    description = "Blocking calls inside coroutines starve the dispatcher's threads."
    doc_anchor = "32-dispatch_002--blocking-calls-inside-coroutines"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        findings: list[Finding] = []
        for call in context.calls():
            if not classifier.is_blocking_call(call):
                continue
            function = classifier.enclosing_function(call)
            in_coroutine = classifier.is_inside_task_launcher_lambda(call) or (
                function is not None and classifier.is_suspendable(function)
            )
            if not in_coroutine:
                continue
            name = classifier.qualified_call_name(call)
            findings.append(self.finding(call, f"Blocking call '{name}' inside coroutine. {self._advice(name)}"))
        return findings

    @staticmethod
    def _advice(name: str) -> str:
        if "Thread.sleep" in name or name.endswith(".sleep"):
            return "Use delay() instead of Thread.sleep()."
        if any(part in name for part in ("Statement", "Connection", "ResultSet")):
            return "Use a non-blocking database driver or wrap in withContext(Dispatchers.IO) { }."
        if "Call.execute" in name or name.endswith(".execute"):
            return "Use the asynchronous API (enqueue) or wrap in withContext(Dispatchers.IO) { }."
        if "Future.get" in name:
            return "Wrap the Future with suspendCancellableCoroutine or use async/await."
        return "Wrap in withContext(Dispatchers.IO) { } to avoid blocking the coroutine thread."


class BlockingCallOnMainExecutorRule(BaseRule):
    """DISPATCH_001: blocking call in a builder body pinned to Dispatchers.Main."""

    code = "DISPATCH_001"
    symbol = "Blocking-call-on-main-executor"
    severity = Severity.ERROR
    description = "Blocking on Dispatchers.Main freezes the UI thread."
    doc_anchor = "31-dispatch_001--mixing-blocking-code-with-wrong-dispatchers"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        findings: list[Finding] = []
        for call in context.calls():
            if not classifier.is_blocking_call(call):
                continue
            builder = classifier.enclosing_builder_call(call, CONTEXT_ACCEPTING_BUILDERS)
            if builder is None:
                continue
            if not any(classifier.denotes(arg, MAIN_EXECUTOR, EXECUTOR_HOLDER) for arg in builder.arguments):
                continue
            findings.append(
                self.finding(
                    call,
                    f"Blocking call '{classifier.qualified_call_name(call)}' on Dispatchers.Main. "
                    "Move it to Dispatchers.IO with withContext(Dispatchers.IO) { }.",
                )
            )
        return findings
