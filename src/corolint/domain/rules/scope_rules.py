"""Scope rules (SCOPE_001-SCOPE_006): which scope a task is launched on."""

from corolint.domain.classification import Classifier
from corolint.domain.constants import (
    AWAIT_ALL_CALLS,
    AWAIT_PREFIX,
    SCOPE_CONSTRUCTORS,
    SCOPE_OPT_IN_ANNOTATION,
    SUSPEND_LAMBDA_BUILDERS,
    TASK_LAUNCHERS,
    VALUE_LAUNCHERS,
    VIEW_MODEL_SCOPE,
    VIEW_MODEL_TYPES,
)
from corolint.domain.context import RuleContext
from corolint.domain.entities import Finding, ScopeKind, Severity
from corolint.domain.rules import BaseRule
from corolint.domain.syntax import NodeKind, Role, SyntaxNode


class UnscopedLaunchRule(BaseRule):
    """SCOPE_001: launch/async on the process-wide GlobalScope."""

    code = "SCOPE_001"
    symbol = "Unscoped-launch"
    severity = Severity.ERROR
    description = "Launching on GlobalScope creates tasks no lifecycle owns or cancels."
    doc_anchor = "11-scope_001--using-globalscope-in-production-code"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        return [
            self.finding(
                call,
                f"GlobalScope.{call.callee} launches a task no lifecycle owns. "
                "Use a @StructuredScope scope, a framework scope, or coroutineScope { }.",
            )
            for call in context.calls(*TASK_LAUNCHERS)
            if classifier.classify_launch(call).kind is ScopeKind.UNSCOPED_GLOBAL
        ]


class InlineScopeLaunchRule(BaseRule):
    """SCOPE_004: `CoroutineScope(...).launch { }` or a property initialized with `CoroutineScope(...)`."""

    code = "SCOPE_004"
    symbol = "Inline-scope-launch"
    severity = Severity.ERROR
    description = "An inline CoroutineScope(...) creates orphan tasks without lifecycle management."
    doc_anchor = "14-scope_004--creating-coroutinescope-inline"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        findings = [
            self.finding(
                call,
                f"Inline CoroutineScope(...).{call.callee} creates an orphan task. "
                "Use a @StructuredScope scope, a framework scope, or coroutineScope { }.",
            )
            for call in context.calls(*TASK_LAUNCHERS)
            if classifier.classify_launch(call).kind is ScopeKind.INLINE_SCOPE_CONSTRUCTION
        ]
        for prop in context.nodes(NodeKind.PROPERTY):
            initializer = prop.child(Role.INITIALIZER)
            if (
                initializer is not None
                and initializer.kind is NodeKind.CALL
                and initializer.callee in SCOPE_CONSTRUCTORS
            ):
                findings.append(
                    self.finding(
                        prop,
                        f"Property '{prop.name}' is initialized with an inline CoroutineScope(...). "
                        "Inject a managed scope annotated with @StructuredScope or use a framework scope.",
                    )
                )
        return findings


class UnstructuredLaunchRule(BaseRule):
    """SCOPE_003: launch/async on an explicit receiver that is not a recognized structured scope."""

    code = "SCOPE_003"
    symbol = "Unstructured-launch"
    severity = Severity.ERROR
    description = "Tasks must be launched on a scope whose lifetime is known."
    doc_anchor = "13-scope_003--breaking-structured-concurrency"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        allowed = classifier.registries.allowed_scopes
        findings: list[Finding] = []
        for call in context.calls(*TASK_LAUNCHERS):
            receiver = call.receiver
            if receiver is None:
                continue
            if classifier.classify_launch(call).kind is not ScopeKind.UNCLASSIFIED:
                continue
            if receiver.text in allowed or receiver.name in allowed:
                continue
            if self._is_builder_receiver(receiver, classifier):
                continue
            if self._opted_in(call, classifier):
                continue
            findings.append(
                self.finding(
                    call,
                    f"'{receiver.text}.{call.callee}' launches on a scope with unknown lifetime. "
                    f"Annotate the scope with @{SCOPE_OPT_IN_ANNOTATION}, use a framework scope, "
                    "or use coroutineScope { }.",
                )
            )
        return findings

    @staticmethod
    def _is_builder_receiver(receiver: SyntaxNode, classifier: Classifier) -> bool:
        """`this.launch { }` inside a builder lambda targets the builder's own scope."""
        return (
            receiver.kind is NodeKind.NAME
            and receiver.name == "this"
            and receiver.receiver is None
            and classifier.is_inside_builder_lambda(receiver, SUSPEND_LAMBDA_BUILDERS)
        )

    @staticmethod
    def _opted_in(call: SyntaxNode, classifier: Classifier) -> bool:
        for owner in (classifier.enclosing_function(call), classifier.enclosing_class(call)):
            if owner is not None and classifier.has_annotation(owner, SCOPE_OPT_IN_ANNOTATION):
                return True
        return False


class DeferredNotConsumedRule(BaseRule):
    """SCOPE_002: `val d = scope.async { }` never awaited in the same block."""

    code = "SCOPE_002"
    symbol = "Deferred-not-consumed"
    severity = Severity.ERROR
    description = "A Deferred from async() that is never awaited hides failures and wastes work."
    doc_anchor = "12-scope_002--using-async-without-calling-await"

    def check(self, context: RuleContext) -> list[Finding]:
        findings: list[Finding] = []
        for call in context.calls(*VALUE_LAUNCHERS):
            binding = self._binding(call)
            if binding is None:
                continue
            container = binding.parent
            if container is None or self._is_consumed(container, binding.name):
                continue
            findings.append(
                self.finding(
                    call,
                    f"Deferred '{binding.name}' from {call.callee}() is never awaited. "
                    f"Call {binding.name}.await() or use launch {{ }} if no result is needed.",
                )
            )
        return findings

    @staticmethod
    def _binding(call: SyntaxNode) -> SyntaxNode | None:
        """The property whose initializer holds the call, without crossing a statement boundary."""
        current = call
        for ancestor in call.ancestors():
            if ancestor.kind is NodeKind.PROPERTY:
                return ancestor if current.role is Role.INITIALIZER else None
            if ancestor.kind in (NodeKind.BLOCK, NodeKind.LAMBDA, NodeKind.FILE, NodeKind.FUNCTION, NodeKind.CLASS):
                return None
            current = ancestor
        return None

    @staticmethod
    def _names(node: SyntaxNode | None, name: str) -> bool:
        if node is None or node.kind is not NodeKind.NAME:
            return False
        text = node.text
        return text == name or text.endswith("." + name)

    def _is_consumed(self, container: SyntaxNode, name: str) -> bool:
        for node in container.descendants():
            if node.kind is not NodeKind.CALL:
                continue
            if node.callee.startswith(AWAIT_PREFIX) and self._names(node.receiver, name):
                return True
            if node.callee in AWAIT_ALL_CALLS:
                if any(self._names(arg, name) for arg in node.arguments):
                    return True
                receiver = node.receiver
                if receiver is not None and receiver.kind is NodeKind.CALL:
                    if any(self._names(arg, name) for arg in receiver.arguments):
                        return True
        return False


class ExternalScopeLaunchRule(BaseRule):
    """SCOPE_005: a suspend function launching on a scope owned by its class."""

    code = "SCOPE_005"
    symbol = "External-scope-launch"
    severity = Severity.WARNING
    description = (
        "Launching on a class-held scope from a suspend function detaches the task from the caller. "
        "Use coroutineScope { } or make the function non-suspend if fire-and-forget is intended."
    )
    doc_anchor = "13-scope_003--breaking-structured-concurrency"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        framework = classifier.registries.framework_scopes | classifier.registries.framework_scope_factories
        findings: list[Finding] = []
        for call in context.calls(*TASK_LAUNCHERS):
            receiver = call.receiver
            if receiver is None or receiver.kind is not NodeKind.NAME:
                continue
            qualifier = receiver.receiver
            if qualifier is not None and not (qualifier.kind is NodeKind.NAME and qualifier.name == "this"):
                continue
            if receiver.name in framework:
                continue
            function = classifier.enclosing_function(call)
            if function is None or not classifier.is_suspendable(function):
                continue
            declaration = classifier.find_declaration(receiver, receiver.name)
            owner = declaration.parent if declaration is not None else None
            if owner is None or owner.kind is not NodeKind.CLASS:
                continue
            findings.append(
                self.finding(
                    call,
                    f"Launching on external scope '{receiver.name}' from suspend function "
                    f"'{function.name}'. Use coroutineScope {{ {call.callee} {{ }} }} to keep the "
                    "parent-child relationship, or make the function non-suspend.",
                )
            )
        return findings


class ViewModelScopeMisuseRule(BaseRule):
    """SCOPE_006: viewModelScope outside a ViewModel, or a hand-made CoroutineScope inside one."""

    code = "SCOPE_006"
    symbol = "ViewModel-scope-misuse"
    severity = Severity.ERROR
    description = "viewModelScope belongs to ViewModels, and ViewModels should not build their own scopes."
    doc_anchor = "13-scope_003--breaking-structured-concurrency"

    def check(self, context: RuleContext) -> list[Finding]:
        classifier = context.classifier
        findings: list[Finding] = []
        for call in context.calls(*TASK_LAUNCHERS):
            receiver = call.receiver
            if receiver is None or not self._is_view_model_scope(receiver):
                continue
            if classifier.is_inside_class_extending(call, VIEW_MODEL_TYPES):
                continue
            findings.append(
                self.finding(
                    call,
                    f"{VIEW_MODEL_SCOPE}.{call.callee} outside a ViewModel class. "
                    "Inject a scope or use coroutineScope { } instead.",
                )
            )
        for prop in context.nodes(NodeKind.PROPERTY):
            initializer = prop.child(Role.INITIALIZER)
            if initializer is None or initializer.kind is not NodeKind.CALL:
                continue
            if initializer.callee not in SCOPE_CONSTRUCTORS:
                continue
            if not classifier.is_inside_class_extending(prop, VIEW_MODEL_TYPES):
                continue
            if prop.name == VIEW_MODEL_SCOPE:
                message = (
                    f"Don't create a custom {VIEW_MODEL_SCOPE}. "
                    "Use the viewModelScope property from androidx.lifecycle.ViewModel."
                )
            else:
                message = f"Don't create a custom CoroutineScope '{prop.name}' in a ViewModel. Use {VIEW_MODEL_SCOPE}."
            findings.append(self.finding(initializer, message))
        return findings

    @staticmethod
    def _is_view_model_scope(receiver: SyntaxNode) -> bool:
        text = receiver.text
        return text == VIEW_MODEL_SCOPE or text.endswith("." + VIEW_MODEL_SCOPE)
