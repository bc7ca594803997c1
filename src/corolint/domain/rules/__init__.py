"""Domain models for rules: the rule protocol and the shared base that builds findings."""

from typing import ClassVar, Protocol

from corolint.domain.constants import DOC_BASE_URL
from corolint.domain.context import RuleContext
from corolint.domain.entities import Finding, Severity
from corolint.domain.syntax import NodeKind, SyntaxNode


class Rule(Protocol):
    """A stateless detector: one immutable context in, findings out."""

    code: str
    symbol: str
    severity: Severity
    description: str
    doc_anchor: str

    def check(self, context: RuleContext) -> list[Finding]:
        """Interrogate one compilation unit."""
        ...


class BaseRule:
    """Common metadata handling. Subclasses set the class attributes and implement check()."""

    code: ClassVar[str] = ""
    symbol: ClassVar[str] = ""
    severity: ClassVar[Severity] = Severity.WARNING
    description: ClassVar[str] = ""
    doc_anchor: ClassVar[str] = ""

    def check(self, context: RuleContext) -> list[Finding]:
        raise NotImplementedError

    @property
    def doc_url(self) -> str:
        return f"{DOC_BASE_URL}#{self.doc_anchor}" if self.doc_anchor else DOC_BASE_URL

    def finding(self, node: SyntaxNode, message: str) -> Finding:
        """A finding at the node's span; the message is prefixed with the rule code."""
        return Finding(
            rule_id=self.code,
            symbol=self.symbol,
            severity=self.severity,
            span=node.span,
            message=f"[{self.code}] {message}",
            doc_anchor=self.doc_url,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.code} {self.symbol}>"


class ScopeWalker:
    """Traversals bounded by declarations, shared by the data-flow-ish rules."""

    @staticmethod
    def function_scope(node: SyntaxNode) -> SyntaxNode:
        """Nearest enclosing function, or the file root for top-level code."""
        for ancestor in node.ancestors():
            if ancestor.kind is NodeKind.FUNCTION:
                return ancestor
        return node.tree.root

    @staticmethod
    def local_nodes(scope: SyntaxNode) -> list[SyntaxNode]:
        """Descendants of `scope` that belong to it, skipping nested function and class declarations."""
        result: list[SyntaxNode] = []
        stack = list(reversed(scope.children))
        while stack:
            node = stack.pop()
            if node.kind in (NodeKind.FUNCTION, NodeKind.CLASS):
                continue
            result.append(node)
            stack.extend(reversed(node.children))
        return result

    @staticmethod
    def local_calls(scope: SyntaxNode, *callees: str) -> list[SyntaxNode]:
        wanted = set(callees)
        return [
            n
            for n in ScopeWalker.local_nodes(scope)
            if n.kind is NodeKind.CALL and (not wanted or n.callee in wanted)
        ]
