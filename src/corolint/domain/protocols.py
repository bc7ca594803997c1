from typing import TYPE_CHECKING, Protocol

from corolint.domain.registry_types import RuleRegistryEntry

if TYPE_CHECKING:
    from corolint.domain.entities import AnalysisReport
    from corolint.domain.syntax import SyntaxNode, SyntaxTree


class NameResolverProtocol(Protocol):
    """Optional host-supplied resolution shim. The default implementation is purely syntactic."""

    def enclosing_function(self, node: "SyntaxNode") -> "SyntaxNode | None":
        ...

    def supertypes(self, class_node: "SyntaxNode") -> tuple[str, ...]:
        ...


class TreeLoaderProtocol(Protocol):
    """Loads one compilation unit from storage. Raises EngineError on malformed input."""

    def load(self, path: str) -> "SyntaxTree":
        ...

    def discover(self, paths: list[str]) -> list[str]:
        """Expand directories into the tree documents they contain."""
        ...


class ReporterProtocol(Protocol):
    def report(self, report: "AnalysisReport") -> None:
        ...


class GuidanceServiceProtocol(Protocol):
    """Protocol for rule guidance lookups (rule_registry.yaml)."""

    def get_entry(self, rule_code: str) -> RuleRegistryEntry | None:
        ...

    def get_manual_instructions(self, rule_code: str) -> str | None:
        ...

    def get_references(self, rule_code: str) -> list[str]:
        ...

    def get_registry(self) -> dict[str, RuleRegistryEntry]:
        ...
