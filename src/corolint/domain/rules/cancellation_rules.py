"""Cancellation rules (CANCEL_001, CANCEL_003-CANCEL_005, EXCEPT_002)."""

from corolint.domain.constants import (
    BROAD_CATCH_TYPES,
    CANCEL_CALLS,
    CANCELLATION_SIGNAL,
    KNOWN_SUSPENDING_CALLS,
    TASK_LAUNCHERS,
)
from corolint.domain.classification import Classifier
from corolint.domain.context import RuleContext
from corolint.domain.entities import Finding, Severity
from corolint.domain.rules import BaseRule, ScopeWalker
from corolint.domain.syntax import NodeKind, Role, SyntaxNode

ACTIVE_CHECKS: frozenset[str] = frozenset({"isActive"})
RETHROW_HELPERS: frozenset[str] = frozenset({"ensureActive", "throwIfCancellation"})


class CancellationSwallowedRule(BaseRule):
    """CANCEL_003: `catch (e: Exception)` in suspend code without letting cancellation through."""

    code = "CANCEL_003"
    symbol = "Cancellation-signal-swallowed"
    severity = Severity.WARNING
    description = "Catching Exception/Throwable in suspend code swallows CancellationException."
    doc_anchor = "43-cancel_003--swallowing-cancellationexception"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        findings: list[Finding] = []
        for clause in context.nodes(NodeKind.CATCH):
            type_name = str(clause.attr("type_name") or "")
            if type_name not in BROAD_CATCH_TYPES and Classifier.simple_name(type_name) not in BROAD_CATCH_TYPES:
                continue
            if not classifier.is_in_suspend_context(clause):
                continue
            if self._earlier_signal_catch_rethrows(clause) or self._rethrows_itself(clause):
                continue
            findings.append(
                self.finding(
                    clause,
                    f"catch ({clause.attr('param_name') or 'e'}: {type_name}) may swallow {CANCELLATION_SIGNAL}. "
                    f"Add catch (e: {CANCELLATION_SIGNAL}) {{ throw e }} before it, "
                    "or call ensureActive() in the catch block.",
                )
            )
        return findings

    @staticmethod
    def _earlier_signal_catch_rethrows(clause: SyntaxNode) -> bool:
        try_node = clause.parent
        if try_node is None:
            return False
        for sibling in try_node.children_in(Role.CATCH):
            if sibling == clause:
                return False
            if Classifier.simple_name(str(sibling.attr("type_name") or "")) == CANCELLATION_SIGNAL:
                if any(n.kind is NodeKind.THROW for n in sibling.descendants()):
                    return True
        return False

    @staticmethod
    def _rethrows_itself(clause: SyntaxNode) -> bool:
        """`throw e` of the caught value, or an ensureActive() check in the handler."""
        param = clause.attr("param_name")
        for node in clause.descendants():
            if node.kind is NodeKind.THROW:
                thrown = node.child(Role.EXPRESSION)
                if thrown is not None and thrown.kind is NodeKind.NAME and thrown.name == param:
                    return True
            elif node.kind is NodeKind.CALL and node.callee in RETHROW_HELPERS:
                return True
        return False


class CancellationSubclassRule(BaseRule):
    """EXCEPT_002: domain errors extending CancellationException."""

    code = "EXCEPT_002"
    symbol = "Cancellation-signal-subclassed"
    severity = Severity.ERROR
    description = "Subclassing CancellationException makes failures look like silent cancellation."
    doc_anchor = "52-except_002--extending-cancellationexception-for-domain-errors"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        findings: list[Finding] = []
        for cls in context.nodes(NodeKind.CLASS):
            if classifier.extends_any(cls, CANCELLATION_SIGNAL):
                findings.append(
                    self.finding(
                        cls,
                        f"Class '{cls.name}' extends {CANCELLATION_SIGNAL}. Cancellation exceptions "
                        "are ignored by parents and handlers; extend Exception for domain errors.",
                    )
                )
        return findings


class UnprotectedSuspendInFinallyRule(BaseRule):
    """CANCEL_004: suspending cleanup in finally without withContext(NonCancellable)."""

    code = "CANCEL_004"
    symbol = "Unprotected-suspend-in-finally"
    severity = Severity.WARNING
    description = "Suspending calls in finally do not run once the coroutine is cancelled."
    doc_anchor = "44-cancel_004--suspendable-cleanup-without-noncancellable"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        return [
            self.finding(
                call,
                f"Suspend call '{call.callee}' in finally block may not execute when cancelled. "
                "Wrap the cleanup in withContext(NonCancellable) { }.",
            )
            for call in context.calls(*KNOWN_SUSPENDING_CALLS)
            if classifier.is_within_finally(call)
            and classifier.is_in_suspend_context(call)
            and not classifier.is_wrapped_in_non_cancellable_context(call)
        ]


class LoopWithoutCooperationRule(BaseRule):
    """CANCEL_001: suspend-context loop that never checks for cancellation."""

    code = "CANCEL_001"
    symbol = "Loop-without-cooperation"
    severity = Severity.WARNING
    description = "A loop without yield()/ensureActive()/delay() cannot be cancelled until it finishes."
    doc_anchor = "41-cancel_001--ignoring-cancellation-in-intensive-loops"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        findings: list[Finding] = []
        for loop in context.nodes(NodeKind.LOOP):
            if not classifier.is_in_suspend_context(loop):
                continue
            if self._cooperates(loop, classifier):
                continue
            function = classifier.enclosing_function(loop)
            if function is not None and classifier.is_suspendable(function):
                owner = f"suspend function '{function.name}'"
            else:
                owner = "coroutine"
            findings.append(
                self.finding(
                    loop,
                    f"'{loop.attr('loop_kind') or 'loop'}' loop in {owner} has no cooperation point. "
                    "Add ensureActive() or yield() inside the loop to enable cancellation.",
                )
            )
        return findings

    @staticmethod
    def _cooperates(loop: SyntaxNode, classifier: Classifier) -> bool:
        """Cooperation point in the loop's own subtree; nested declarations and launched tasks do not count."""
        stack = list(loop.children)
        while stack:
            node = stack.pop()
            if node.kind in (NodeKind.FUNCTION, NodeKind.CLASS):
                continue
            if node.kind is NodeKind.CALL:
                if classifier.is_cooperation_point(node):
                    return True
                if node.callee in TASK_LAUNCHERS:
                    stack.extend(c for c in node.children if c.role is not Role.LAMBDA)
                    continue
            elif node.kind is NodeKind.NAME and node.name in ACTIVE_CHECKS:
                return True
            stack.extend(node.children)
        return False


class ScopeRelaunchAfterCancelRule(BaseRule):
    """CANCEL_005: `scope.cancel()` followed by `scope.launch { }` in the same function."""

    code = "CANCEL_005"
    symbol = "Scope-relaunch-after-cancel"
    severity = Severity.WARNING
    description = "A cancelled scope silently refuses new tasks."
    doc_anchor = "45-cancel_005--reusing-a-cancelled-coroutinescope"

    def check(self, context: RuleContext) -> list[Finding]:
        findings: list[Finding] = []
        for cancel in context.calls(*CANCEL_CALLS):
            receiver = cancel.receiver
            if receiver is None or receiver.kind is not NodeKind.NAME:
                continue
            target = receiver.text
            start = (cancel.span.start_line, cancel.span.start_col)
            relaunched = any(
                call.receiver is not None
                and call.receiver.text == target
                and (call.span.start_line, call.span.start_col) > start
                for call in ScopeWalker.local_calls(ScopeWalker.function_scope(cancel), *TASK_LAUNCHERS)
            )
            if relaunched:
                findings.append(
                    self.finding(
                        cancel,
                        f"Scope '{target}' is cancelled and then reused; a cancelled scope does not "
                        f"start new tasks. Use {target}.coroutineContext.cancelChildren() to keep it usable.",
                    )
                )
        return findings
