"""
Classification primitives shared by every rule.

All functions are total and side-effect free. They match names, never types:
when a question cannot be answered from the tree they return the conservative
answer (Unclassified / False) so rules stay quiet rather than guess.
"""

from collections.abc import Iterable

from corolint.domain.config import Registries
from corolint.domain.constants import (
    CALLER_THREAD_EXECUTOR,
    CONTEXT_SWITCHERS,
    ENTRY_POINT_NAMES,
    EXECUTOR_HOLDER,
    NON_CANCELLABLE,
    SCOPE_CONSTRUCTORS,
    SCOPE_OPT_IN_ANNOTATION,
    SUSPEND_LAMBDA_BUILDERS,
    TASK_LAUNCHER_LAMBDA_BUILDERS,
    TASK_LAUNCHERS,
    TEST_ANNOTATIONS,
    TEST_FILE_SUFFIXES,
    TEST_PATH_MARKERS,
    UNSCOPED_GLOBAL,
)
from corolint.domain.entities import UNCLASSIFIED, ScopeKind, ScopeReference
from corolint.domain.protocols import NameResolverProtocol
from corolint.domain.syntax import NodeKind, Role, SyntaxNode

THIS = "this"


class SyntacticNameResolver:
    """Default resolver: nearest enclosing function, declared supertype names."""

    def enclosing_function(self, node: SyntaxNode) -> SyntaxNode | None:
        for ancestor in node.ancestors():
            if ancestor.kind is NodeKind.FUNCTION:
                return ancestor
        return None

    def supertypes(self, class_node: SyntaxNode) -> tuple[str, ...]:
        value = class_node.attr("supertypes")
        return value if isinstance(value, tuple) else ()


class Classifier:
    """Classification functions bound to one immutable set of registries."""

    def __init__(self, registries: Registries | None = None, resolver: NameResolverProtocol | None = None) -> None:
        self.registries = registries or Registries()
        self.resolver: NameResolverProtocol = resolver or SyntacticNameResolver()

    # Names

    @staticmethod
    def simple_name(name: str) -> str:
        """`@com.example.StructuredScope` -> `StructuredScope`."""
        return name.lstrip("@").rsplit(".", 1)[-1]

    @staticmethod
    def has_annotation(node: SyntaxNode, names: Iterable[str] | str) -> bool:
        wanted = {names} if isinstance(names, str) else set(names)
        return any(Classifier.simple_name(a) in wanted for a in node.annotations)

    def qualified_call_name(self, call: SyntaxNode) -> str:
        """`receiverText.callee`, or just the callee without a receiver."""
        receiver = call.receiver
        if receiver is None:
            return call.callee
        return f"{receiver.text}.{call.callee}"

    def is_blocking_call(self, call: SyntaxNode) -> bool:
        """Suffix match of the qualified call name against the blocking-call registry.

        `jdbcStatement.executeQuery()` matches `Statement.executeQuery`; a receiver
        named after its type (`inputStream.read()`) matches case-insensitively.
        """
        if call.kind is not NodeKind.CALL:
            return False
        qualified = self.qualified_call_name(call)
        folded = qualified.lower()
        for entry in self.registries.blocking_calls:
            if qualified.endswith(entry):
                return True
            lowered = entry.lower()
            if folded == lowered or folded.endswith("." + lowered):
                return True
        return False

    def is_task_launch(self, node: SyntaxNode) -> bool:
        return node.kind is NodeKind.CALL and node.callee in TASK_LAUNCHERS

    def is_cooperation_point(self, call: SyntaxNode) -> bool:
        return call.kind is NodeKind.CALL and call.callee in self.registries.cooperation_points

    # Declarations

    def enclosing_function(self, node: SyntaxNode) -> SyntaxNode | None:
        return self.resolver.enclosing_function(node)

    def enclosing_class(self, node: SyntaxNode) -> SyntaxNode | None:
        for ancestor in node.ancestors():
            if ancestor.kind is NodeKind.CLASS:
                return ancestor
        return None

    def supertypes(self, class_node: SyntaxNode) -> tuple[str, ...]:
        return self.resolver.supertypes(class_node)

    def extends_any(self, class_node: SyntaxNode, names: Iterable[str] | str) -> bool:
        """A supertype whose simple name, without constructor call or type arguments, is in `names`."""
        wanted = {names} if isinstance(names, str) else set(names)
        return any(
            Classifier.simple_name(supertype.split("(", 1)[0].split("<", 1)[0]) in wanted
            for supertype in self.supertypes(class_node)
        )

    def is_inside_class_extending(self, node: SyntaxNode, names: Iterable[str]) -> bool:
        """Some enclosing class, at any depth, extends one of `names`."""
        return any(a.kind is NodeKind.CLASS and self.extends_any(a, names) for a in node.ancestors())

    @staticmethod
    def declarations_in(scope: SyntaxNode) -> Iterable[SyntaxNode]:
        """Parameters and properties declared directly by a function, lambda, class, block or file."""
        kind = scope.kind
        if kind in (NodeKind.FUNCTION, NodeKind.LAMBDA, NodeKind.CLASS):
            yield from scope.children_in(Role.PARAMETER)
        if kind is NodeKind.CLASS:
            members = scope.children_in(Role.MEMBER)
        elif kind is NodeKind.FUNCTION:
            members = scope.statements
        else:
            members = scope.children_in(Role.STATEMENT)
        for member in members:
            if member.kind is NodeKind.PROPERTY:
                yield member

    def find_declaration(self, node: SyntaxNode, name: str) -> SyntaxNode | None:
        """Nearest parameter/property named `name` visible from `node`, walking outwards."""
        for ancestor in node.ancestors():
            if ancestor.kind not in (NodeKind.FUNCTION, NodeKind.LAMBDA, NodeKind.CLASS, NodeKind.BLOCK, NodeKind.FILE):
                continue
            for declaration in self.declarations_in(ancestor):
                if declaration.name == name:
                    return declaration
        return None

    # Scopes

    def classify_scope_receiver(self, receiver: SyntaxNode | None) -> ScopeReference:
        """Classify a launch receiver. First match wins; anything else is Unclassified."""
        if receiver is None:
            return UNCLASSIFIED
        if receiver.kind is NodeKind.NAME:
            name = receiver.name
            if name == UNSCOPED_GLOBAL:
                return ScopeReference(ScopeKind.UNSCOPED_GLOBAL)
            if name in self.registries.framework_scopes:
                return ScopeReference(ScopeKind.FRAMEWORK_SCOPE, name)
            qualifier = receiver.receiver
            if qualifier is None or (qualifier.kind is NodeKind.NAME and qualifier.name == THIS):
                declaration = self.find_declaration(receiver, name)
                if declaration is not None and self.has_annotation(declaration, SCOPE_OPT_IN_ANNOTATION):
                    return ScopeReference(ScopeKind.ANNOTATED_SCOPE, name)
            return UNCLASSIFIED
        if receiver.kind is NodeKind.CALL:
            if receiver.receiver is None and receiver.callee in self.registries.framework_scope_factories:
                return ScopeReference(ScopeKind.FRAMEWORK_SCOPE, receiver.callee)
            if receiver.callee in SCOPE_CONSTRUCTORS:
                return ScopeReference(ScopeKind.INLINE_SCOPE_CONSTRUCTION)
        return UNCLASSIFIED

    def classify_launch(self, call: SyntaxNode) -> ScopeReference:
        return self.classify_scope_receiver(call.receiver)

    # Suspend context

    def is_suspendable(self, node: SyntaxNode) -> bool:
        """Suspend marker on a function, or a lambda passed as trailing lambda to a suspend builder."""
        if node.kind is NodeKind.FUNCTION:
            return node.attr("is_suspend") is True
        if node.kind is NodeKind.LAMBDA and node.role is Role.LAMBDA:
            parent = node.parent
            return parent is not None and parent.callee in SUSPEND_LAMBDA_BUILDERS
        return False

    def is_in_suspend_context(self, node: SyntaxNode) -> bool:
        for ancestor in node.ancestors():
            if ancestor.kind is NodeKind.LAMBDA:
                if self.is_suspendable(ancestor):
                    return True
                continue
            if ancestor.kind is NodeKind.FUNCTION:
                return self.is_suspendable(ancestor)
            if ancestor.kind is NodeKind.CLASS:
                return False
        return False

    def enclosing_builder_call(self, node: SyntaxNode, names: Iterable[str]) -> SyntaxNode | None:
        """Nearest call among `names` whose trailing lambda contains `node`."""
        wanted = frozenset(names)
        for ancestor in node.ancestors():
            if ancestor.kind is NodeKind.LAMBDA and ancestor.role is Role.LAMBDA:
                parent = ancestor.parent
                if parent is not None and parent.callee in wanted:
                    return parent
            elif ancestor.kind in (NodeKind.FUNCTION, NodeKind.CLASS):
                return None
        return None

    def is_inside_builder_lambda(self, node: SyntaxNode, names: Iterable[str]) -> bool:
        return self.enclosing_builder_call(node, names) is not None

    def is_inside_task_launcher_lambda(self, node: SyntaxNode) -> bool:
        return self.is_inside_builder_lambda(node, TASK_LAUNCHER_LAMBDA_BUILDERS)

    # Control flow

    def is_within_finally(self, node: SyntaxNode) -> bool:
        """True if the ancestor chain enters a try through its finally clause.

        The walk stops at declarations and at launched task bodies, which run
        outside the finally clause that spawned them.
        """
        current = node
        for ancestor in node.ancestors():
            if ancestor.kind is NodeKind.TRY and current.role is Role.FINALLY:
                return True
            if ancestor.kind in (NodeKind.FUNCTION, NodeKind.CLASS):
                return False
            if ancestor.kind is NodeKind.CALL and current.role is Role.LAMBDA and ancestor.callee in TASK_LAUNCHERS:
                return False
            current = ancestor
        return False

    def is_wrapped_in_non_cancellable_context(self, node: SyntaxNode) -> bool:
        if self.is_non_cancellable_switch(node):
            return True
        current = node
        for ancestor in node.ancestors():
            if current.role is Role.LAMBDA and self.is_non_cancellable_switch(ancestor):
                return True
            if ancestor.kind in (NodeKind.FUNCTION, NodeKind.CLASS):
                return False
            current = ancestor
        return False

    def is_non_cancellable_switch(self, node: SyntaxNode) -> bool:
        if node.kind is not NodeKind.CALL or node.callee not in CONTEXT_SWITCHERS:
            return False
        arguments = node.arguments
        return bool(arguments) and self.denotes(arguments[0], NON_CANCELLABLE)

    # Context arguments

    def denotes(self, expression: SyntaxNode, member: str, holder: str | None = None) -> bool:
        """Whether an expression structurally names `holder.member` (or `member`).

        Qualified forms, nested members (`Dispatchers.Main.immediate`) and
        operands of `+` count.
        """
        if expression.kind is NodeKind.BINARY and expression.attr("operator") == "+":
            return any(
                self.denotes(side, member, holder)
                for side in (expression.child(Role.LEFT), expression.child(Role.RIGHT))
                if side is not None
            )
        if expression.kind is not NodeKind.NAME:
            return False
        qualifier = expression.receiver
        if expression.name == member:
            if holder is None:
                return True
            return qualifier is not None and qualifier.kind is NodeKind.NAME and qualifier.name == holder
        return qualifier is not None and self.denotes(qualifier, member, holder)

    def denotes_caller_thread_executor(self, expression: SyntaxNode) -> bool:
        return self.denotes(expression, CALLER_THREAD_EXECUTOR, EXECUTOR_HOLDER)

    def contains_call(self, expression: SyntaxNode, callees: Iterable[str]) -> SyntaxNode | None:
        """The expression itself, or a `+` operand, that is a call to one of `callees`."""
        wanted = frozenset(callees)
        if expression.kind is NodeKind.CALL and expression.callee in wanted:
            return expression
        if expression.kind is NodeKind.BINARY and expression.attr("operator") == "+":
            for side in (expression.child(Role.LEFT), expression.child(Role.RIGHT)):
                if side is not None:
                    found = self.contains_call(side, wanted)
                    if found is not None:
                        return found
        return None

    # Entry points

    def is_test_function(self, function: SyntaxNode | None) -> bool:
        return function is not None and self.has_annotation(function, TEST_ANNOTATIONS)

    def is_entry_point(self, function: SyntaxNode | None) -> bool:
        return function is not None and function.name in ENTRY_POINT_NAMES

    @staticmethod
    def is_test_file(path: str) -> bool:
        """Source files named `*Test`/`*Tests`/`*Spec` or living under a test source set."""
        normalized = "/" + path.replace("\\", "/")
        if any(marker in normalized for marker in TEST_PATH_MARKERS):
            return True
        stem = normalized.rsplit("/", 1)[-1]
        for suffix in (".json", ".yaml", ".yml", ".kts", ".kt"):
            if stem.endswith(suffix):
                stem = stem[: -len(suffix)]
        return stem.endswith(TEST_FILE_SUFFIXES)
