"""Flow and lifecycle rules (FLOW_001, ARCH_002, ARCH_003)."""

from corolint.domain.constants import (
    FLOW_BUILDERS,
    FLOW_COLLECTORS,
    LIFECYCLE_LAUNCHERS,
    LIFECYCLE_OWNER_TYPES,
    LIFECYCLE_SAFE_CALLS,
    LIFECYCLE_SCOPE,
    SCOPE_CONSTRUCTORS,
    TASK_LAUNCHERS,
)
from corolint.domain.context import RuleContext
from corolint.domain.entities import Finding, Severity
from corolint.domain.rules import BaseRule
from corolint.domain.syntax import NodeKind, Role, SyntaxNode


def _is_lifecycle_scope(receiver: SyntaxNode) -> bool:
    text = receiver.text
    return text == LIFECYCLE_SCOPE or text.endswith("." + LIFECYCLE_SCOPE)


class BlockingCallInFlowRule(BaseRule):
    """FLOW_001: blocking registry call inside a `flow { }` builder."""

    code = "FLOW_001"
    symbol = "Blocking-call-in-flow-builder"
    severity = Severity.WARNING
    description = "Blocking inside flow { } blocks the collector's thread."
    doc_anchor = "91-flow_001--blocking-code-in-flow--builder"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        return [
            self.finding(
                call,
                f"Blocking call '{classifier.qualified_call_name(call)}' inside flow {{ }}. "
                "Use flowOn(Dispatchers.IO) or a suspending API.",
            )
            for call in context.calls()
            if classifier.is_blocking_call(call) and classifier.is_inside_builder_lambda(call, FLOW_BUILDERS)
        ]


class LifecycleUnawareCollectionRule(BaseRule):
    """ARCH_002: `lifecycleScope.launch { flow.collect { } }` without repeatOnLifecycle."""

    code = "ARCH_002"
    symbol = "Lifecycle-unaware-flow-collection"
    severity = Severity.WARNING
    description = "Collecting in lifecycleScope without repeatOnLifecycle keeps collecting in the background."
    doc_anchor = "82-lifecycle-aware-flow-collection-android"

    def check(self, context: RuleContext) -> list[Finding]:
        findings: list[Finding] = []
        for call in context.calls(*LIFECYCLE_LAUNCHERS):
            receiver = call.receiver
            body = call.trailing_lambda
            if receiver is None or body is None or not _is_lifecycle_scope(receiver):
                continue
            callees = {n.callee for n in body.descendants() if n.kind is NodeKind.CALL}
            if not callees & FLOW_COLLECTORS or callees & LIFECYCLE_SAFE_CALLS:
                continue
            findings.append(
                self.finding(
                    call,
                    f"Flow collection in {LIFECYCLE_SCOPE}.{call.callee} without repeatOnLifecycle. "
                    "Use repeatOnLifecycle(Lifecycle.State.STARTED) { flow.collect { } } or "
                    "flowWithLifecycle so collection stops when the UI is in the background.",
                )
            )
        return findings


class LifecycleScopeMisuseRule(BaseRule):
    """ARCH_003: lifecycleScope outside a LifecycleOwner, or a hand-made CoroutineScope inside one."""

    code = "ARCH_003"
    symbol = "Lifecycle-scope-misuse"
    severity = Severity.ERROR
    description = "lifecycleScope belongs to Activities and Fragments, which should not build their own scopes."
    doc_anchor = "82-lifecycle-aware-flow-collection-android"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        findings: list[Finding] = []
        for call in context.calls(*TASK_LAUNCHERS):
            receiver = call.receiver
            if receiver is None or not _is_lifecycle_scope(receiver):
                continue
            if classifier.is_inside_class_extending(call, LIFECYCLE_OWNER_TYPES):
                continue
            findings.append(
                self.finding(
                    call,
                    f"{LIFECYCLE_SCOPE}.{call.callee} outside a LifecycleOwner (Activity, Fragment). "
                    "Use viewModelScope in ViewModels or inject a scope in other classes.",
                )
            )
        for prop in context.nodes(NodeKind.PROPERTY):
            initializer = prop.child(Role.INITIALIZER)
            if (
                initializer is not None
                and initializer.kind is NodeKind.CALL
                and initializer.callee in SCOPE_CONSTRUCTORS
                and classifier.is_inside_class_extending(prop, LIFECYCLE_OWNER_TYPES)
            ):
                findings.append(
                    self.finding(
                        initializer,
                        f"Custom CoroutineScope '{prop.name}' in a LifecycleOwner. Use {LIFECYCLE_SCOPE} instead.",
                    )
                )
        return findings
